from django.contrib import admin
from .models import Client, Remark, Visit


class VisitInline(admin.TabularInline):
    model = Visit
    extra = 0


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ("id", "first_name", "last_name", "phone_no", "project", "requirement", "budget")
    search_fields = ("first_name", "last_name", "phone_no", "email")
    inlines = [VisitInline]


@admin.register(Remark)
class RemarkAdmin(admin.ModelAdmin):
    list_display = ("id", "visit", "date", "remark")
