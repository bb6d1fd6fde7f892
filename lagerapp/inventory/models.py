from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class Article(models.Model):
    """Stock item kept at a shelf (category) and bin (location) of a warehouse"""
    name = models.CharField(max_length=255)
    sku = models.CharField(max_length=100, blank=True, help_text='Manufacturer part number')
    # [{"sku": "...", "is_preferred": true}]
    manufacturer_skus = models.JSONField(default=list, blank=True)
    stock = models.IntegerField(default=0)
    target_stock = models.IntegerField(default=0)
    location = models.CharField(max_length=100, blank=True)
    category = models.CharField(max_length=100, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    # Display name of the preferred supplier, also the grouping key for order proposals
    supplier = models.CharField(max_length=200, blank=True)
    supplier_sku = models.CharField(max_length=100, blank=True)
    warehouse = models.ForeignKey(
        'warehouses.Warehouse', on_delete=models.SET_NULL, null=True, blank=True, related_name='articles'
    )
    ean = models.CharField(max_length=50, blank=True)
    product_url = models.URLField(max_length=1000, blank=True)
    image_url = models.URLField(max_length=1000, blank=True)
    on_order_date = models.DateField(null=True, blank=True)
    last_counted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.sku})" if self.sku else self.name

    def clean(self):
        if self.stock is not None and self.stock < 0:
            raise ValidationError({'stock': 'Bestand darf nicht negativ sein'})
        if self.target_stock is not None and self.target_stock < 0:
            raise ValidationError({'target_stock': 'Sollbestand darf nicht negativ sein'})

    @property
    def missing_amount(self):
        return max(self.target_stock - self.stock, 0)

    @property
    def is_below_target(self):
        return self.stock < self.target_stock

    @property
    def order_sku(self):
        """Number used when ordering: supplier part number, else manufacturer number"""
        return self.supplier_sku or self.sku

    @property
    def barcode_value(self):
        return self.supplier_sku or self.sku or self.ean or '0000'

    class Meta:
        db_table = 'articles'
        ordering = ['category', 'location', 'name']
        indexes = [
            models.Index(fields=['warehouse', 'category'], name='article_wh_category_idx'),
            models.Index(fields=['sku'], name='article_sku_idx'),
            models.Index(fields=['supplier_sku'], name='article_supplier_sku_idx'),
            models.Index(fields=['ean'], name='article_ean_idx'),
            models.Index(fields=['supplier'], name='article_supplier_idx'),
        ]


class ArticleSupplier(models.Model):
    """Link between an article and a supplier with that supplier's part number"""
    article = models.ForeignKey(Article, on_delete=models.CASCADE, related_name='supplier_links')
    supplier = models.ForeignKey('suppliers.Supplier', on_delete=models.CASCADE, related_name='article_links')
    supplier_sku = models.CharField(max_length=100, blank=True)
    url = models.URLField(max_length=1000, blank=True)
    is_preferred = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.article.name} @ {self.supplier.name}"

    class Meta:
        db_table = 'article_suppliers'
        unique_together = [('article', 'supplier')]


class StockMovement(models.Model):
    """Signed stock change with its cause"""
    TYPE_CHOICES = [
        ('receive_goods', 'Wareneingang'),
        ('commission_pick', 'Kommissionierung'),
        ('manual_add', 'Manuelle Zubuchung'),
        ('manual_remove', 'Manuelle Entnahme'),
        ('audit_correction', 'Inventurkorrektur'),
    ]

    article = models.ForeignKey(Article, on_delete=models.CASCADE, related_name='movements')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='stock_movements'
    )
    amount = models.IntegerField()
    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    reference = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.article.name}: {self.amount:+d} ({self.type})"

    class Meta:
        db_table = 'stock_movements'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['article', '-created_at'], name='movement_article_date_idx'),
            models.Index(fields=['created_at'], name='movement_created_idx'),
        ]
