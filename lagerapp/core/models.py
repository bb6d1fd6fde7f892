from django.contrib.auth.models import AbstractUser
from django.conf import settings
from django.db import models


class User(AbstractUser):
    """Employee account with warehouse preferences and workwear role"""
    ROLE_CHOICES = [
        ('admin', 'Administrator'),
        ('worker', 'Mitarbeiter'),
    ]
    WORKWEAR_ROLE_CHOICES = [
        ('chef', 'Chef'),
        ('besteller', 'Besteller'),
        ('monteur', 'Monteur'),
    ]

    full_name = models.CharField(max_length=200, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='worker')
    avatar_url = models.URLField(max_length=500, blank=True, null=True)
    primary_warehouse = models.ForeignKey(
        'warehouses.Warehouse', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='primary_users'
    )
    secondary_warehouse = models.ForeignKey(
        'warehouses.Warehouse', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='secondary_users'
    )
    collapsed_categories = models.JSONField(default=list, blank=True)
    has_seen_tour = models.BooleanField(default=False)
    workwear_role = models.CharField(max_length=20, choices=WORKWEAR_ROLE_CHOICES, default='monteur')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def display_name(self):
        return self.full_name or self.get_full_name() or self.username

    class Meta:
        db_table = 'users'


class EventLog(models.Model):
    """Base for the per-domain history tables (machines, orders, commissions, keys)"""
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='%(class)s_entries'
    )
    action = models.CharField(max_length=50)
    details = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    @property
    def user_name(self):
        return self.user.display_name if self.user else 'System'

    class Meta:
        abstract = True
        ordering = ['-created_at']
