from django.contrib import admin
from .models import Warehouse


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'location', 'created_at']
    list_filter = ['type', 'created_at']
    search_fields = ['name', 'location']
    ordering = ['name']
