"""
Order proposals: under-stocked articles grouped per warehouse and supplier.

An article needs reordering when its stock is below the target stock and it
is not already on order (on_order_date unset).
"""
from collections import OrderedDict

from django.db.models import F

from lagerapp.core.model_cache import get_cached_supplier_formats
from lagerapp.core.utils import UNKNOWN_WAREHOUSE, filter_warehouse
from lagerapp.inventory.models import Article
from lagerapp.suppliers.models import DEFAULT_CSV_FORMAT

UNKNOWN_WAREHOUSE_ID = UNKNOWN_WAREHOUSE
UNKNOWN_WAREHOUSE_NAME = 'Unbekanntes Lager'
UNKNOWN_SUPPLIER = 'Unbekannt'


def articles_needing_order(warehouse_id=None):
    """warehouse_id as returned by warehouse_param(); 'unknown' selects articles without warehouse"""
    queryset = Article.objects.filter(
        stock__lt=F('target_stock'), on_order_date__isnull=True
    ).select_related('warehouse').order_by('supplier', 'name')
    return filter_warehouse(queryset, warehouse_id)


def proposal_key(article):
    warehouse_id = article.warehouse_id if article.warehouse_id else UNKNOWN_WAREHOUSE_ID
    return f"{warehouse_id}::{article.supplier or UNKNOWN_SUPPLIER}"


def build_order_proposals(articles=None, warehouse_id=None):
    """
    Group articles into proposals.

    Returns a list of dicts:
        key, warehouse_id, warehouse_name, supplier, supplier_id, csv_format,
        articles [{article, missing_amount}], total_items
    """
    if articles is None:
        articles = articles_needing_order(warehouse_id)

    groups = OrderedDict()
    for article in articles:
        if not (article.stock < article.target_stock and article.on_order_date is None):
            continue
        key = proposal_key(article)
        group = groups.get(key)
        if group is None:
            group = groups[key] = {
                'key': key,
                'warehouse_id': article.warehouse_id or UNKNOWN_WAREHOUSE_ID,
                'warehouse_name': article.warehouse.name if article.warehouse_id else UNKNOWN_WAREHOUSE_NAME,
                'supplier': article.supplier or UNKNOWN_SUPPLIER,
                'supplier_id': None,
                'csv_format': DEFAULT_CSV_FORMAT,
                'articles': [],
                'total_items': 0,
            }
        group['articles'].append({
            'article': article,
            'missing_amount': article.target_stock - article.stock,
        })
        group['total_items'] += 1

    formats = get_cached_supplier_formats(g['supplier'] for g in groups.values())
    for group in groups.values():
        supplier_id, csv_format = formats.get(group['supplier'], (None, ''))
        group['supplier_id'] = supplier_id
        group['csv_format'] = csv_format or DEFAULT_CSV_FORMAT

    return list(groups.values())


def group_by_supplier(proposals):
    """Supplier name -> proposals of that supplier (one per warehouse)"""
    grouped = OrderedDict()
    for proposal in sorted(proposals, key=lambda p: (p['supplier'].lower(), p['warehouse_name'].lower())):
        grouped.setdefault(proposal['supplier'], []).append(proposal)
    return grouped


def find_proposal(proposals, warehouse_id, supplier):
    warehouse_key = str(warehouse_id) if warehouse_id else UNKNOWN_WAREHOUSE_ID
    for proposal in proposals:
        if str(proposal['warehouse_id']) == warehouse_key and proposal['supplier'] == supplier:
            return proposal
    return None
