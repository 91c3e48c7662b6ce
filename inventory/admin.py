from django.contrib import admin
from .models import BankDetail, Floor, Project, Unit, Wing


class WingInline(admin.TabularInline):
    model = Wing
    extra = 0


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ("name", "developer", "location", "status", "commercial_unit_placement")
    search_fields = ("name", "developer")
    inlines = [WingInline]


@admin.register(Floor)
class FloorAdmin(admin.ModelAdmin):
    list_display = ("project", "wing", "display_number", "type", "is_commercial_block")
    list_filter = ("type", "is_commercial_block")


@admin.register(Unit)
class UnitAdmin(admin.ModelAdmin):
    list_display = ("unit_number", "floor", "configuration", "unit_span", "status", "reserved_by_or_reason")
    list_filter = ("status",)
    search_fields = ("unit_number", "reserved_by_or_reason")


@admin.register(BankDetail)
class BankDetailAdmin(admin.ModelAdmin):
    list_display = ("project", "name", "branch", "ifsc_code", "account_type")
    search_fields = ("project__name", "name", "holder_name")
