from django.contrib import admin
from .models import Article, ArticleSupplier, StockMovement


class ArticleSupplierInline(admin.TabularInline):
    model = ArticleSupplier
    extra = 0


@admin.register(Article)
class ArticleAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'warehouse', 'category', 'location', 'stock', 'target_stock', 'supplier', 'on_order_date']
    list_filter = ['warehouse', 'category']
    search_fields = ['name', 'sku', 'supplier_sku', 'ean']
    ordering = ['category', 'location', 'name']
    inlines = [ArticleSupplierInline]


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ['article', 'amount', 'type', 'reference', 'user', 'created_at']
    list_filter = ['type', 'created_at']
    search_fields = ['article__name', 'reference']
    ordering = ['-created_at']
    readonly_fields = ['created_at']
