from django.contrib import admin
from .models import Supplier


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['name', 'customer_number', 'contact_email', 'csv_format', 'created_at']
    search_fields = ['name', 'customer_number', 'contact_email']
    ordering = ['name']
