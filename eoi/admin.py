from django.contrib import admin
from .models import EOI


@admin.register(EOI)
class EOIAdmin(admin.ModelAdmin):
    list_display = ("eoi_no", "date", "applicant", "config", "eoi_amt", "manager", "status")
    list_filter = ("status", "config")
    search_fields = ("applicant", "manager", "pan", "cp")
