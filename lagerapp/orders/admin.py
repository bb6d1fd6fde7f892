from django.contrib import admin
from .models import Order, OrderItem, OrderEvent


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    raw_id_fields = ['article']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'supplier', 'date', 'status', 'item_count', 'commission_number', 'warehouse', 'created_at']
    list_filter = ['status', 'warehouse', 'date']
    search_fields = ['supplier', 'commission_number', 'supplier_order_number']
    ordering = ['-created_at']
    inlines = [OrderItemInline]


@admin.register(OrderEvent)
class OrderEventAdmin(admin.ModelAdmin):
    list_display = ['order', 'action', 'details', 'user', 'created_at']
    list_filter = ['action', 'created_at']
    search_fields = ['details', 'order__supplier']
    ordering = ['-created_at']
