"""Creating, importing and cleaning up supplier orders"""
import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from lagerapp.core.utils import record_event
from lagerapp.inventory.models import Article
from lagerapp.inventory.services import set_supplier_links
from .models import Order, OrderItem, OrderEvent
from .proposals import UNKNOWN_WAREHOUSE_ID

logger = logging.getLogger('lagerapp.orders')

MANUAL_SUPPLIER = 'Manuell'


class OrderError(Exception):
    """Invalid order request"""


def next_commission_number(warehouse):
    """<warehouse name without special characters>-<running number, 4 digits>"""
    if warehouse is None:
        return f"Lager-{Order.objects.filter(warehouse__isnull=True).count() + 1:04d}"
    count = Order.objects.filter(warehouse=warehouse).count()
    return f"{warehouse.safe_name()}-{count + 1:04d}"


def create_order_from_proposal(proposal, article_ids, quantities=None, user=None,
                               commission_number='', supplier_order_number=''):
    """
    Turn the selected articles of a proposal into an Ordered order.

    quantities maps article id -> amount; default is the missing amount, minimum 1.
    Each ordered article gets on_order_date so it drops out of future proposals.
    """
    selected = set(int(a) for a in article_ids)
    entries = [e for e in proposal['articles'] if e['article'].pk in selected]
    if not entries:
        raise OrderError('Keine Artikel ausgewählt')

    quantities = quantities or {}
    warehouse_id = proposal['warehouse_id']
    if warehouse_id == UNKNOWN_WAREHOUSE_ID:
        warehouse_id = None
    warehouse = entries[0]['article'].warehouse if warehouse_id else None

    with transaction.atomic():
        order = Order.objects.create(
            supplier=proposal['supplier'],
            date=timezone.localdate(),
            status='Ordered',
            item_count=len(entries),
            total=0,
            warehouse=warehouse,
            created_by=user if user is not None and user.is_authenticated else None,
            supplier_order_number=supplier_order_number or '',
            commission_number=commission_number or next_commission_number(warehouse),
        )
        today = timezone.localdate()
        for entry in entries:
            article = entry['article']
            quantity = max(int(quantities.get(article.pk, entry['missing_amount']) or 0), 1)
            OrderItem.objects.create(order=order, article=article, quantity_ordered=quantity)
            Article.objects.filter(pk=article.pk).update(on_order_date=today, updated_at=timezone.now())

    record_event(
        OrderEvent, user=user, order=order, action='Neue Bestellung',
        details=f'Bestellung bei {order.supplier}',
    )
    logger.info(f"Order {order.pk} created for {order.supplier} with {len(entries)} items")
    return order


def match_extracted_items(items, warehouse_id=None):
    """
    Look up each extracted line in the catalog by SKU, supplier SKU or EAN.

    Matching is limited to the chosen warehouse so that identical articles in
    other warehouses are not booked by mistake.
    """
    matched = []
    for item in items:
        sku = item.get('sku') or ''
        article = None
        if sku:
            queryset = Article.objects.filter(Q(sku=sku) | Q(supplier_sku=sku) | Q(ean=sku))
            if warehouse_id:
                queryset = queryset.filter(warehouse_id=warehouse_id)
            article = queryset.order_by('id').first()
        matched.append({
            'sku': sku,
            'name': item.get('name') or '',
            'quantity': max(int(item.get('quantity') or 1), 1),
            'article': article,
            'is_found': article is not None,
        })
    return matched


def create_manual_order(items, warehouse=None, supplier_name='', supplier_order_number='',
                        commission_number='', user=None):
    """
    Save an order assembled by hand or from a scanned document.

    items: dicts with quantity and either article (Article) or sku/name.
    """
    if not items:
        raise OrderError('Keine Positionen angegeben')

    supplier = (supplier_name or '').strip() or MANUAL_SUPPLIER
    today = timezone.localdate()

    with transaction.atomic():
        order = Order.objects.create(
            supplier=supplier,
            date=today,
            status='Ordered',
            item_count=len(items),
            total=0,
            warehouse=warehouse,
            created_by=user if user is not None and user.is_authenticated else None,
            supplier_order_number=supplier_order_number or '',
            commission_number=commission_number or next_commission_number(warehouse),
        )
        for item in items:
            quantity = max(int(item.get('quantity') or 1), 1)
            article = item.get('article')
            if article is not None:
                OrderItem.objects.create(order=order, article=article, quantity_ordered=quantity)
                Article.objects.filter(pk=article.pk).update(on_order_date=today, updated_at=timezone.now())
            else:
                OrderItem.objects.create(
                    order=order,
                    custom_name=item.get('name') or item.get('sku') or 'Unbekannter Artikel',
                    custom_sku=item.get('sku') or '',
                    quantity_ordered=quantity,
                )

    record_event(
        OrderEvent, user=user, order=order, action='Neue Bestellung',
        details=f'Manuelle Bestellung bei {supplier}',
    )
    logger.info(f"Manual order {order.pk} created for {supplier} with {len(items)} items")
    return order


def pending_orders():
    return Order.objects.exclude(status__in=['Received', 'ReadyForPickup'])


def pickup_orders():
    return Order.objects.filter(status='ReadyForPickup')


def completed_orders():
    return Order.objects.filter(status='Received')


def cleanup_received_orders(days=None, now=None):
    """Delete orders received more than `days` days ago; returns the number deleted"""
    days = days if days is not None else settings.ORDER_RETENTION_DAYS
    cutoff = (now or timezone.now()) - timedelta(days=days)
    old = Order.objects.filter(status='Received', created_at__lt=cutoff)
    count = old.count()
    if count:
        old.delete()
        logger.info(f"Deleted {count} received orders older than {days} days")
    return count


def import_candidates(days=None, now=None):
    """
    Custom order lines of the last `days` days that are not in the catalog yet.
    Deduplicated by SKU and name, newest first.
    """
    days = days if days is not None else settings.IMPORT_CANDIDATE_DAYS
    cutoff = (now or timezone.now()) - timedelta(days=days)
    items = OrderItem.objects.filter(
        article__isnull=True, created_at__gte=cutoff
    ).select_related('order').order_by('-created_at', '-id')

    seen = set()
    candidates = []
    for item in items:
        key = f"{item.custom_sku or ''}-{item.custom_name}"
        if key in seen:
            continue
        seen.add(key)
        candidates.append(item)
    return candidates


def import_candidate(item, article_data, supplier_links=None):
    """
    Create a catalog article from a custom order line and link every
    matching custom line (same SKU and name) to it.
    """
    with transaction.atomic():
        article = Article.objects.create(**article_data)
        if supplier_links:
            set_supplier_links(article, supplier_links)
        linked = OrderItem.objects.filter(
            article__isnull=True, custom_sku=item.custom_sku, custom_name=item.custom_name
        ).update(article=article)
    logger.info(f"Imported '{article.name}' from order item {item.pk}, linked {linked} order lines")
    return article
