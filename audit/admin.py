from django.contrib import admin
from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "action", "source", "actor_username", "description")
    list_filter = ("action", "source")
    search_fields = ("description", "actor_username", "source")
