"""
Stock bookings, stocktaking and scan resolution for articles.

Every change of Article.stock goes through this module so that a
StockMovement row is written alongside it.
"""
import logging
import re
from datetime import timedelta

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from .models import Article, ArticleSupplier, StockMovement

logger = logging.getLogger('lagerapp.inventory')

LOCATION_PREFIX = 'LOC:'
COMMISSION_PREFIX = 'COMM:'
MACHINE_PREFIX = 'MACH:'
DEFAULT_CATEGORY = 'Sonstiges'

RECENT_COUNT_DAYS = 8
STALE_COUNT_DAYS = 30
MOVEMENT_WINDOW_DAYS = 30


class StockError(Exception):
    """Raised when a booking would leave the article in an invalid state"""


def record_movement(article, amount, movement_type, reference='', user=None):
    if user is not None and not user.is_authenticated:
        user = None
    return StockMovement.objects.create(
        article=article,
        user=user,
        amount=amount,
        type=movement_type,
        reference=reference,
    )


def book_stock(article, amount, user=None, reference='Schnellbuchung'):
    """
    Add (positive) or remove (negative) stock by hand.

    A positive booking means the goods arrived, so on_order_date is cleared.
    """
    amount = int(amount)
    if amount == 0:
        raise StockError('Menge darf nicht 0 sein')

    with transaction.atomic():
        locked = Article.objects.select_for_update().get(pk=article.pk)
        new_stock = locked.stock + amount
        if new_stock < 0:
            raise StockError(f'Nicht genügend Bestand (verfügbar: {locked.stock})')

        locked.stock = new_stock
        update_fields = ['stock', 'updated_at']
        if amount > 0 and locked.on_order_date is not None:
            locked.on_order_date = None
            update_fields.append('on_order_date')
        locked.save(update_fields=update_fields)

        record_movement(
            locked, amount,
            'manual_add' if amount > 0 else 'manual_remove',
            reference, user,
        )

    logger.info(f"Booked {amount:+d} on article {locked.pk} ({locked.name}), stock now {locked.stock}")
    return locked


def audit_count(article, counted, user=None):
    """Set stock to the counted quantity and record the correction, if any"""
    counted = int(counted)
    if counted < 0:
        raise StockError('Gezählte Menge darf nicht negativ sein')

    with transaction.atomic():
        locked = Article.objects.select_for_update().get(pk=article.pk)
        difference = counted - locked.stock
        locked.stock = counted
        locked.last_counted_at = timezone.now()
        locked.save(update_fields=['stock', 'last_counted_at', 'updated_at'])
        if difference != 0:
            record_movement(locked, difference, 'audit_correction', 'Inventur', user)

    logger.info(f"Audit count for article {locked.pk}: {counted} (difference {difference:+d})")
    return locked, difference


def parse_location_code(raw):
    """
    Split the payload of a location QR code.

    'Regal A::Fach 1' -> ('Regal A', 'Fach 1'); a legacy 'Fach 1' -> (None, 'Fach 1')
    """
    raw = (raw or '').strip()
    if '::' in raw:
        category, location = raw.split('::', 1)
        return category, location
    return None, raw


def location_code(category, location):
    return f"{LOCATION_PREFIX}{category or DEFAULT_CATEGORY}::{location}"


def articles_at_location(category, location, warehouse_id=None):
    queryset = Article.objects.filter(location=location)
    if warehouse_id:
        queryset = queryset.filter(warehouse_id=warehouse_id)
    if category is not None:
        if category == DEFAULT_CATEGORY:
            queryset = queryset.filter(Q(category=category) | Q(category=''))
        else:
            queryset = queryset.filter(category=category)
    return queryset.order_by('name')


def find_article_by_code(code, warehouse_id=None):
    """First article whose id, EAN, SKU or supplier SKU equals the scanned code"""
    code = (code or '').strip()
    if not code:
        return None
    condition = Q(ean=code) | Q(sku=code) | Q(supplier_sku=code)
    if code.isdigit():
        condition |= Q(pk=int(code))
    queryset = Article.objects.filter(condition)
    if warehouse_id:
        queryset = queryset.filter(warehouse_id=warehouse_id)
    return queryset.order_by('id').first()


def resolve_scan(code, warehouse_id=None):
    """
    Classify a scanned code.

    Returns a dict with 'type' in commission, machine, location, article
    or None if nothing matched.
    """
    code = (code or '').strip()
    if code.startswith(COMMISSION_PREFIX):
        return {'type': 'commission', 'id': code[len(COMMISSION_PREFIX):].strip()}
    if code.startswith(MACHINE_PREFIX):
        return {'type': 'machine', 'id': code[len(MACHINE_PREFIX):].strip()}
    if code.startswith(LOCATION_PREFIX):
        category, location = parse_location_code(code[len(LOCATION_PREFIX):])
        articles = list(articles_at_location(category, location, warehouse_id))
        categories = sorted({a.category or DEFAULT_CATEGORY for a in articles})
        return {
            'type': 'location',
            'category': category,
            'location': location,
            'articles': articles,
            # Legacy codes without a shelf can match several shelves
            'ambiguous_categories': categories if category is None and len(categories) > 1 else [],
        }

    article = find_article_by_code(code, warehouse_id)
    if article is None:
        return None
    return {'type': 'article', 'article': article}


def stale_articles(warehouse_id, now=None, limit=50):
    """
    Articles due for counting: never counted or not counted for 30 days.
    Never-counted articles come first, then the oldest counts.
    """
    now = now or timezone.now()
    recent = now - timedelta(days=STALE_COUNT_DAYS)
    queryset = Article.objects.filter(warehouse_id=warehouse_id).filter(
        Q(last_counted_at__isnull=True) | Q(last_counted_at__lt=recent)
    )
    never = list(queryset.filter(last_counted_at__isnull=True).order_by('name')[:limit])
    rest = list(queryset.filter(last_counted_at__isnull=False).order_by('last_counted_at')[:max(limit - len(never), 0)])
    return never + rest


def busy_shelves(warehouse_id, now=None, limit=20):
    """
    Shelves ranked by stock movements of the last 30 days.

    Shelves counted within the last 8 days and shelves without movements are left out.
    """
    now = now or timezone.now()
    since = now - timedelta(days=MOVEMENT_WINDOW_DAYS)
    recent = now - timedelta(days=RECENT_COUNT_DAYS)

    articles = Article.objects.filter(warehouse_id=warehouse_id).annotate(
        recent_moves=Count('movements', filter=Q(movements__created_at__gte=since))
    )

    shelves = {}
    for article in articles:
        category = article.category or DEFAULT_CATEGORY
        location = article.location or 'Unbekannt'
        shelf = shelves.setdefault((category, location), {
            'category': category, 'location': location, 'score': 0, 'last_counted_at': None,
        })
        shelf['score'] += article.recent_moves
        if article.last_counted_at and (shelf['last_counted_at'] is None or article.last_counted_at > shelf['last_counted_at']):
            shelf['last_counted_at'] = article.last_counted_at

    ranked = [
        s for s in shelves.values()
        if s['score'] > 0 and not (s['last_counted_at'] and s['last_counted_at'] > recent)
    ]
    ranked.sort(key=lambda s: s['score'], reverse=True)
    return ranked[:limit]


def suggest_location(warehouse_id, category):
    """Next free bin on a shelf: one above the highest 'Fach' number in use"""
    highest = 0
    locations = Article.objects.filter(warehouse_id=warehouse_id, category=category).values_list('location', flat=True)
    for location in locations:
        match = re.search(r'(\d+)', location or '')
        if match:
            highest = max(highest, int(match.group(1)))
    return f"Fach {highest + 1}"


def set_supplier_links(article, links):
    """
    Replace the supplier links of an article.

    links: iterable of dicts with supplier (Supplier), supplier_sku, url, is_preferred.
    The preferred link (or the first) is mirrored onto article.supplier / supplier_sku.
    """
    links = list(links)
    ArticleSupplier.objects.filter(article=article).delete()
    created = [
        ArticleSupplier.objects.create(
            article=article,
            supplier=link['supplier'],
            supplier_sku=link.get('supplier_sku') or '',
            url=link.get('url') or '',
            is_preferred=bool(link.get('is_preferred')),
        )
        for link in links
    ]
    if created:
        primary = next((link for link in created if link.is_preferred), created[0])
        article.supplier = primary.supplier.name
        article.supplier_sku = primary.supplier_sku or article.supplier_sku
        if primary.url and not article.product_url:
            article.product_url = primary.url
        article.save(update_fields=['supplier', 'supplier_sku', 'product_url', 'updated_at'])
    return created


@transaction.atomic
def copy_articles(articles, warehouse, category, location, stock=0, target_stock=0):
    """Duplicate master data of articles into another warehouse/shelf, including supplier links"""
    copies = []
    for source in articles:
        copy = Article.objects.create(
            name=source.name,
            sku=source.sku,
            manufacturer_skus=source.manufacturer_skus,
            ean=source.ean,
            category=category,
            location=location,
            stock=stock,
            target_stock=target_stock,
            price=source.price,
            supplier=source.supplier,
            supplier_sku=source.supplier_sku,
            product_url=source.product_url,
            image_url=source.image_url,
            warehouse=warehouse,
        )
        ArticleSupplier.objects.bulk_create([
            ArticleSupplier(
                article=copy,
                supplier_id=link.supplier_id,
                supplier_sku=link.supplier_sku,
                url=link.url,
                is_preferred=link.is_preferred,
            )
            for link in source.supplier_links.all()
        ])
        copies.append(copy)
    logger.info(f"Copied {len(copies)} articles to warehouse {warehouse.pk} ({category} / {location})")
    return copies


def find_duplicates(name='', warehouse_id=None, skus=(), supplier_skus=()):
    """
    Existing articles that look like a new one.

    Name matches are case-insensitive and limited to the warehouse. Manufacturer
    numbers are compared with sku and manufacturer_skus of all articles, supplier
    numbers with the supplier links and the mirrored supplier_sku. At most one
    conflict per kind is reported.
    """
    conflicts = []

    def add(kind, value, article):
        conflicts.append({'type': kind, 'value': value, 'article_id': article.pk, 'article_name': article.name})

    name = (name or '').strip()
    if name and warehouse_id:
        match = Article.objects.filter(warehouse_id=warehouse_id, name__iexact=name).first()
        if match:
            add('Name', match.name, match)

    skus = {sku.strip() for sku in skus if sku and sku.strip()}
    if skus:
        match = Article.objects.filter(sku__in=skus).first()
        if match:
            add('Hersteller-Nr.', match.sku, match)
        else:
            for article in Article.objects.only('id', 'name', 'manufacturer_skus'):
                found = next((e['sku'] for e in article.manufacturer_skus or [] if e.get('sku') in skus), None)
                if found:
                    add('Hersteller-Nr.', found, article)
                    break

    supplier_skus = {sku.strip() for sku in supplier_skus if sku and sku.strip()}
    if supplier_skus:
        link = ArticleSupplier.objects.filter(supplier_sku__in=supplier_skus).select_related('article').first()
        if link:
            add('Lieferanten-Art.Nr.', link.supplier_sku, link.article)
        else:
            match = Article.objects.filter(supplier_sku__in=supplier_skus).first()
            if match:
                add('Lieferanten-Art.Nr.', match.supplier_sku, match)
    return conflicts


def rename_category(warehouse_id, old, new):
    """Rename a shelf on every article of a warehouse; returns the number of articles changed"""
    old = str(old or '').strip()
    new = str(new or '').strip()
    if not new:
        raise ValueError('Neuer Regalname darf nicht leer sein')
    if not old or old == new:
        raise ValueError('Regalname ist unverändert')
    count = Article.objects.filter(warehouse_id=warehouse_id, category=old).update(
        category=new, updated_at=timezone.now(),
    )
    logger.info(f"Shelf '{old}' renamed to '{new}' in warehouse {warehouse_id} ({count} articles)")
    return count
