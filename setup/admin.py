from django.contrib import admin
from .models import Category


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "display_name", "color_hex", "precedence", "type")
    ordering = ("precedence", "-created_at")
