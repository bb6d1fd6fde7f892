from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


def current_year():
    return timezone.localdate().year


class WorkwearTemplate(models.Model):
    """Catalog entry employees can order"""
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=100)
    article_number = models.CharField(max_length=100, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    image_url = models.URLField(max_length=1000, blank=True)
    is_active = models.BooleanField(default=True)
    has_logo = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'workwear_templates'
        ordering = ['-created_at']


class WorkwearBudget(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='workwear_budgets')
    year = models.PositiveIntegerField(default=current_year)
    budget_limit = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    def __str__(self):
        return f"{self.user} {self.year}: {self.budget_limit}"

    class Meta:
        db_table = 'workwear_budgets'
        unique_together = [['user', 'year']]


class UserSize(models.Model):
    """Clothing size an employee wears per category"""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='workwear_sizes')
    category = models.CharField(max_length=100)
    size_value = models.CharField(max_length=20)

    def __str__(self):
        return f"{self.user} {self.category}: {self.size_value}"

    class Meta:
        db_table = 'workwear_user_sizes'
        unique_together = [['user', 'category']]
        ordering = ['category']


class WorkwearOrder(models.Model):
    STATUS_CHOICES = [
        ('REQUESTED', 'Angefragt'),
        ('ORDERED', 'Bestellt'),
        ('RETURNED', 'Retourniert'),
        ('COMPLETED', 'Abgeschlossen'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='workwear_orders')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='REQUESTED')
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Workwear order {self.pk} ({self.status})"

    def recalculate_total(self):
        self.total_amount = sum(
            (item.price_at_order * item.quantity for item in self.items.all()), Decimal('0.00')
        )
        return self.total_amount

    class Meta:
        db_table = 'workwear_orders'
        ordering = ['-created_at']


class WorkwearOrderItem(models.Model):
    order = models.ForeignKey(WorkwearOrder, on_delete=models.CASCADE, related_name='items')
    template = models.ForeignKey(
        WorkwearTemplate, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items'
    )
    quantity = models.PositiveIntegerField(default=1)
    size = models.CharField(max_length=20, blank=True)
    use_logo = models.BooleanField(default=False)
    price_at_order = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    def __str__(self):
        return f"{self.template} {self.size} x {self.quantity}"

    class Meta:
        db_table = 'workwear_order_items'
        ordering = ['id']


class WorkwearSettings(models.Model):
    """Single row with global workwear settings"""
    logo_url = models.URLField(max_length=1000, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    @classmethod
    def load(cls):
        obj, _ = cls.objects.get_or_create(pk=1)
        return obj

    class Meta:
        db_table = 'workwear_settings'
        verbose_name_plural = 'Workwear settings'
