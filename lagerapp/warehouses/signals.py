"""Drop cached warehouse lists whenever a warehouse changes"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from lagerapp.core.model_cache import invalidate_warehouse_list_cache
from .models import Warehouse


@receiver(post_save, sender=Warehouse)
@receiver(post_delete, sender=Warehouse)
def warehouse_changed(sender, instance, **kwargs):
    invalidate_warehouse_list_cache()
