"""Drop cached supplier data whenever a supplier changes"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from lagerapp.core.model_cache import invalidate_supplier_cache
from .models import Supplier


@receiver(post_save, sender=Supplier)
@receiver(post_delete, sender=Supplier)
def supplier_changed(sender, instance, **kwargs):
    invalidate_supplier_cache(instance)
