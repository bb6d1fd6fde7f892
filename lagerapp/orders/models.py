from django.conf import settings
from django.db import models
from django.utils import timezone
from lagerapp.core.models import EventLog


class Order(models.Model):
    """Supplier order for one warehouse"""
    STATUS_CHOICES = [
        ('Draft', 'Entwurf'),
        ('Ordered', 'Bestellt'),
        ('PartiallyReceived', 'Teilw. Erhalten'),
        ('Received', 'Erhalten'),
        ('ReadyForPickup', 'Abholbereit'),
    ]

    supplier = models.CharField(max_length=200)
    date = models.DateField(default=timezone.localdate)
    item_count = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='Draft')
    total = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    commission_number = models.CharField(max_length=100, blank=True)
    supplier_order_number = models.CharField(max_length=100, blank=True)
    warehouse = models.ForeignKey(
        'warehouses.Warehouse', on_delete=models.SET_NULL, null=True, blank=True, related_name='orders'
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.supplier} {self.commission_number or self.date}"

    @property
    def is_pickup(self):
        return self.status == 'ReadyForPickup'

    @property
    def warehouse_type(self):
        return self.warehouse.type if self.warehouse else None

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at'], name='order_status_created_idx'),
            models.Index(fields=['warehouse'], name='order_warehouse_idx'),
        ]


class OrderItem(models.Model):
    """Ordered line: a catalog article or a free-text custom item"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    article = models.ForeignKey(
        'inventory.Article', on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items'
    )
    custom_name = models.CharField(max_length=255, blank=True)
    custom_sku = models.CharField(max_length=100, blank=True)
    quantity_ordered = models.PositiveIntegerField(default=1)
    quantity_received = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.display_name} x {self.quantity_ordered}"

    @property
    def display_name(self):
        if self.article_id and self.article:
            return self.article.name
        return self.custom_name or 'Unbekannter Artikel'

    @property
    def display_sku(self):
        if self.article_id and self.article:
            return self.article.supplier_sku or self.article.sku or self.custom_sku
        return self.custom_sku

    @property
    def remaining(self):
        return self.quantity_ordered - self.quantity_received

    @property
    def is_complete(self):
        return self.quantity_received >= self.quantity_ordered

    class Meta:
        db_table = 'order_items'
        ordering = ['id']


class OrderEvent(EventLog):
    """History entry of an order"""
    order = models.ForeignKey(Order, on_delete=models.SET_NULL, null=True, blank=True, related_name='events')

    def __str__(self):
        return f"{self.action}: {self.details}"

    class Meta(EventLog.Meta):
        db_table = 'order_events'
