"""
Caching for the small, frequently read lookup lists: warehouses and suppliers.

Both lists are read on nearly every screen and change rarely, so they are kept
in the Django cache and dropped by post_save/post_delete signals.
"""
from django.core.cache import cache
import logging

logger = logging.getLogger(__name__)

WAREHOUSE_LIST_CACHE_KEY = 'warehouse_list:all'
SUPPLIER_LIST_CACHE_KEY = 'supplier_list:all'
SUPPLIER_FORMAT_KEY_PREFIX = 'supplier_csv_format:'

# Cache TTL (Time To Live) in seconds
WAREHOUSE_LIST_CACHE_TTL = 600  # 10 minutes
SUPPLIER_LIST_CACHE_TTL = 600  # 10 minutes
SUPPLIER_FORMAT_CACHE_TTL = 900  # 15 minutes


def invalidate_warehouse_list_cache():
    cache.delete(WAREHOUSE_LIST_CACHE_KEY)
    logger.debug("Invalidated warehouse list cache")


def invalidate_supplier_cache(supplier_obj=None):
    """Drop the supplier list and, if given, the cached CSV format of one supplier"""
    cache.delete(SUPPLIER_LIST_CACHE_KEY)
    if supplier_obj is not None:
        cache.delete(get_supplier_format_cache_key(supplier_obj.name))
    logger.debug("Invalidated supplier cache")


def get_supplier_format_cache_key(supplier_name: str) -> str:
    return f"{SUPPLIER_FORMAT_KEY_PREFIX}{(supplier_name or '').strip().lower()}"


def get_cached_supplier_formats(names):
    """
    Map supplier name -> (supplier_id, csv_format), reading through the cache.
    Unknown names map to (None, '').
    """
    from lagerapp.suppliers.models import Supplier

    result = {}
    missing = []
    for name in set(names):
        cached = cache.get(get_supplier_format_cache_key(name))
        if cached is not None:
            result[name] = tuple(cached)
        else:
            missing.append(name)

    if missing:
        found = {}
        for supplier in Supplier.objects.filter(name__in=missing):
            found[supplier.name] = (supplier.id, supplier.csv_format or '')
        for name in missing:
            value = found.get(name, (None, ''))
            cache.set(get_supplier_format_cache_key(name), list(value), SUPPLIER_FORMAT_CACHE_TTL)
            result[name] = value
    return result
