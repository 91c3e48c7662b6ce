# accounts/admin.py
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import AuthLog, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "first_name", "last_name", "role", "is_active")
    list_filter = ("role", "is_active", "is_staff")
    fieldsets = BaseUserAdmin.fieldsets + (("Business", {"fields": ("role",)}),)


@admin.register(AuthLog)
class AuthLogAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "username", "action", "invalidated")
    list_filter = ("action", "invalidated")
    search_fields = ("username", "session_id")
