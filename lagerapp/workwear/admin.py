from django.contrib import admin
from .models import (
    WorkwearTemplate, WorkwearBudget, UserSize, WorkwearOrder, WorkwearOrderItem, WorkwearSettings,
)


@admin.register(WorkwearTemplate)
class WorkwearTemplateAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'article_number', 'price', 'is_active', 'has_logo']
    list_filter = ['category', 'is_active', 'has_logo']
    search_fields = ['name', 'article_number']


@admin.register(WorkwearBudget)
class WorkwearBudgetAdmin(admin.ModelAdmin):
    list_display = ['user', 'year', 'budget_limit']
    list_filter = ['year']


@admin.register(UserSize)
class UserSizeAdmin(admin.ModelAdmin):
    list_display = ['user', 'category', 'size_value']
    list_filter = ['category']


class WorkwearOrderItemInline(admin.TabularInline):
    model = WorkwearOrderItem
    extra = 0


@admin.register(WorkwearOrder)
class WorkwearOrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'status', 'total_amount', 'created_at']
    list_filter = ['status', 'created_at']
    ordering = ['-created_at']
    inlines = [WorkwearOrderItemInline]


admin.site.register(WorkwearSettings)
