from django.db import models
from lagerapp.core.models import EventLog


class Commission(models.Model):
    """Kit of materials picked for a customer job"""
    STATUS_CHOICES = [
        ('Draft', 'Entwurf'),
        ('Preparing', 'In Vorbereitung'),
        ('Ready', 'Bereit'),
        ('Withdrawn', 'Entnommen'),
        ('ReturnPending', 'Retoure angemeldet'),
        ('ReturnReady', 'Retoure abholbereit'),
        ('ReturnComplete', 'Retoure abgeschlossen'),
        ('Missing', 'Vermisst'),
    ]
    # Statuses in which the commission should physically sit on the pickup shelf
    ON_SHELF_STATUSES = ('Ready', 'ReturnReady')

    order_number = models.CharField(max_length=100, blank=True)
    name = models.CharField(max_length=255)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='Draft')
    warehouse = models.ForeignKey(
        'warehouses.Warehouse', on_delete=models.SET_NULL, null=True, blank=True, related_name='commissions'
    )
    supplier = models.ForeignKey(
        'suppliers.Supplier', on_delete=models.SET_NULL, null=True, blank=True, related_name='commissions'
    )
    supplier_order_number = models.CharField(max_length=100, blank=True)
    is_processed = models.BooleanField(default=False)
    office_notes = models.TextField(blank=True)
    needs_label = models.BooleanField(default=False)
    # Set once stock items have been booked out; later Ready transitions do not book again
    stock_booked = models.BooleanField(default=False)
    withdrawn_at = models.DateTimeField(null=True, blank=True)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.order_number} {self.name}".strip()

    class Meta:
        db_table = 'commissions'
        ordering = ['name']
        indexes = [
            models.Index(fields=['warehouse', 'status'], name='commission_wh_status_idx'),
            models.Index(fields=['deleted_at'], name='commission_deleted_idx'),
        ]


class CommissionItem(models.Model):
    """Line of a commission: an article from stock or an externally sourced part"""
    TYPE_CHOICES = [
        ('Stock', 'Lager'),
        ('External', 'Extern'),
    ]

    commission = models.ForeignKey(Commission, on_delete=models.CASCADE, related_name='items')
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, default='Stock')
    article = models.ForeignKey(
        'inventory.Article', on_delete=models.SET_NULL, null=True, blank=True, related_name='commission_items'
    )
    custom_name = models.CharField(max_length=255, blank=True)
    external_reference = models.CharField(max_length=255, blank=True)
    attachment_url = models.URLField(max_length=1000, blank=True)
    amount = models.PositiveIntegerField(default=1)
    is_picked = models.BooleanField(default=False)
    is_backorder = models.BooleanField(default=False)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.display_name} x {self.amount}"

    @property
    def display_name(self):
        if self.article_id and self.article:
            return self.article.name
        return self.custom_name or 'Unbekannter Artikel'

    class Meta:
        db_table = 'commission_items'
        ordering = ['id']


class CommissionEvent(EventLog):
    """History entry of a commission; keeps the name after the commission is deleted"""
    commission = models.ForeignKey(
        Commission, on_delete=models.SET_NULL, null=True, blank=True, related_name='events'
    )
    commission_name = models.CharField(max_length=255, blank=True)

    def __str__(self):
        return f"{self.commission_name}: {self.action}"

    class Meta(EventLog.Meta):
        db_table = 'commission_events'
        indexes = [
            models.Index(fields=['action', '-created_at'], name='commevent_action_idx'),
        ]
