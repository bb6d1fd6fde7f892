from django.conf import settings
from django.db import models
from lagerapp.core.models import EventLog


class KeyCategory(models.Model):
    name = models.CharField(max_length=100, unique=True)
    color = models.CharField(max_length=20, default='#10b981')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'key_categories'
        ordering = ['name']
        verbose_name_plural = 'Key categories'


class Key(models.Model):
    """Customer or building key stored in a numbered slot of the key cabinet"""
    STATUS_CHOICES = [
        ('Available', 'Verfügbar'),
        ('InUse', 'Ausgegeben'),
        ('Lost', 'Verloren'),
    ]

    slot_number = models.PositiveIntegerField(unique=True)
    name = models.CharField(max_length=255)
    address = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='Available')
    holder = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='held_keys'
    )
    holder_name = models.CharField(max_length=255, blank=True)
    owner = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    category = models.ForeignKey(
        KeyCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name='keys'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"#{self.slot_number} {self.name}"

    class Meta:
        db_table = 'keys'
        ordering = ['slot_number']


class KeyEvent(EventLog):
    key = models.ForeignKey(Key, on_delete=models.SET_NULL, null=True, blank=True, related_name='events')

    def __str__(self):
        return f"{self.key}: {self.action}"

    class Meta(EventLog.Meta):
        db_table = 'key_events'
