from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("email", "full_name", "role", "series", "is_staff")
    list_filter = ("role", "is_staff", "is_active")
    search_fields = ("email", "full_name")
    ordering = ("email",)
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Plataforma", {"fields": ("full_name", "role", "series")}),
    )
