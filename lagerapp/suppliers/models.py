from django.db import models

DEFAULT_CSV_FORMAT = '{{sku}};{{amount}}'


class Supplier(models.Model):
    """Suppliers with their customer number and order CSV layout"""
    name = models.CharField(max_length=200)
    customer_number = models.CharField(max_length=100, blank=True)
    contact_email = models.EmailField(blank=True)
    website = models.URLField(max_length=500, blank=True)
    # Row template for order CSV exports, placeholders {{sku}} {{amount}} {{name}}
    csv_format = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def get_csv_format(self):
        return self.csv_format or DEFAULT_CSV_FORMAT

    class Meta:
        db_table = 'suppliers'
        ordering = ['name']
        indexes = [
            models.Index(fields=['name'], name='supplier_name_idx'),
        ]
