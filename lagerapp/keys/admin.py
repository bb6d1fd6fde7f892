from django.contrib import admin
from .models import Key, KeyCategory, KeyEvent


@admin.register(KeyCategory)
class KeyCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'color']
    search_fields = ['name']


@admin.register(Key)
class KeyAdmin(admin.ModelAdmin):
    list_display = ['slot_number', 'name', 'address', 'status', 'holder_name', 'category']
    list_filter = ['status', 'category']
    search_fields = ['name', 'address', 'holder_name', 'owner']
    ordering = ['slot_number']


@admin.register(KeyEvent)
class KeyEventAdmin(admin.ModelAdmin):
    list_display = ['key', 'action', 'details', 'user', 'created_at']
    list_filter = ['action', 'created_at']
    search_fields = ['details', 'key__name']
    ordering = ['-created_at']
