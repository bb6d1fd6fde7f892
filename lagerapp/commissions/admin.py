from django.contrib import admin
from .models import Commission, CommissionItem, CommissionEvent


class CommissionItemInline(admin.TabularInline):
    model = CommissionItem
    extra = 0
    raw_id_fields = ['article']


@admin.register(Commission)
class CommissionAdmin(admin.ModelAdmin):
    list_display = ['name', 'order_number', 'status', 'warehouse', 'is_processed', 'needs_label', 'deleted_at']
    list_filter = ['status', 'warehouse', 'is_processed', 'needs_label']
    search_fields = ['name', 'order_number', 'supplier_order_number']
    ordering = ['name']
    inlines = [CommissionItemInline]


@admin.register(CommissionEvent)
class CommissionEventAdmin(admin.ModelAdmin):
    list_display = ['commission_name', 'action', 'details', 'user', 'created_at']
    list_filter = ['action', 'created_at']
    search_fields = ['commission_name', 'details']
    ordering = ['-created_at']
