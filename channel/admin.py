from django.contrib import admin
from .models import ClientPartner, PartnerEmployee


class PartnerEmployeeInline(admin.TabularInline):
    model = PartnerEmployee
    extra = 0


@admin.register(ClientPartner)
class ClientPartnerAdmin(admin.ModelAdmin):
    list_display = ("cp_id", "name", "email", "phone_no", "commission_percentage", "is_deleted")
    list_filter = ("is_deleted",)
    search_fields = ("cp_id", "name", "email", "phone_no")
    readonly_fields = ("cp_id",)
    inlines = [PartnerEmployeeInline]
