from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'full_name', 'email', 'role', 'workwear_role', 'primary_warehouse', 'is_active']
    list_filter = ['role', 'workwear_role', 'is_active', 'is_staff']
    search_fields = ['username', 'full_name', 'email']
    ordering = ['username']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Lager', {'fields': ('full_name', 'role', 'avatar_url', 'primary_warehouse', 'secondary_warehouse',
                              'workwear_role', 'has_seen_tour', 'collapsed_categories')}),
    )
