"""
Commission workflow.

A commission moves Draft -> Preparing -> Ready -> Withdrawn, with a return
branch (ReturnPending -> ReturnReady -> ReturnComplete) and Missing for
commissions that disappeared from the pickup shelf. Setting a commission
Ready books its stock items out of the warehouse.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from lagerapp.core.utils import record_event
from lagerapp.inventory.models import Article
from lagerapp.inventory.services import COMMISSION_PREFIX, record_movement
from .models import Commission, CommissionItem, CommissionEvent

logger = logging.getLogger('lagerapp.commissions')

TAB_STATUSES = {
    'active': ('Ready', 'Preparing', 'Draft'),
    'returns': ('ReturnReady', 'ReturnPending'),
    'withdrawn': ('Withdrawn', 'ReturnComplete'),
    'missing': ('Missing',),
}
TABS = tuple(TAB_STATUSES) + ('trash',)
PRINT_HISTORY_LIMIT = 15


class CommissionError(Exception):
    """Raised when a commission transition is not allowed"""


def log_event(commission, action, details='', user=None):
    return record_event(
        CommissionEvent, user=user, action=action, details=details,
        commission=commission, commission_name=commission.name if commission else '',
    )


def trash_days():
    return getattr(settings, 'COMMISSION_TRASH_DAYS', 7)


def _set_status(commission, new_status, details, user, extra_fields=()):
    commission.status = new_status
    commission.save(update_fields=['status', 'updated_at', *extra_fields])
    log_event(commission, 'status_change', details, user)
    logger.info(f"Commission {commission.pk} -> {new_status}")
    return commission


def _create_items(commission, items):
    CommissionItem.objects.bulk_create([
        CommissionItem(
            commission=commission,
            type=item.get('type', 'Stock'),
            article=item.get('article'),
            custom_name=item.get('custom_name', ''),
            external_reference=item.get('external_reference', ''),
            attachment_url=item.get('attachment_url', ''),
            amount=item.get('amount', 1),
            is_backorder=item.get('is_backorder', False),
            notes=item.get('notes', ''),
        )
        for item in items
    ])


def commissions_for_tab(tab, warehouse, now=None):
    """Commissions shown in one list tab of a warehouse"""
    if tab not in TABS:
        raise CommissionError(f'Unbekannter Reiter: {tab}')
    queryset = Commission.objects.filter(warehouse=warehouse)
    if tab == 'trash':
        cutoff = (now or timezone.now()) - timedelta(days=trash_days())
        queryset = queryset.filter(deleted_at__isnull=False, deleted_at__gte=cutoff)
    else:
        queryset = queryset.filter(deleted_at__isnull=True, status__in=TAB_STATUSES[tab])
    return queryset.select_related('supplier').order_by('name')


def tab_counts(warehouse):
    live = Commission.objects.filter(warehouse=warehouse, deleted_at__isnull=True)
    return {
        'missing': live.filter(status='Missing').count(),
        'returns': live.filter(status__in=TAB_STATUSES['returns']).count(),
    }


def create_commission(data, items, user):
    """Create a Draft commission in the user's primary warehouse"""
    warehouse = getattr(user, 'primary_warehouse', None)
    if warehouse is None:
        raise CommissionError('Bitte wähle zuerst ein Hauptlager im Dashboard.')

    with transaction.atomic():
        commission = Commission.objects.create(warehouse=warehouse, status='Draft', **data)
        _create_items(commission, items)
    log_event(commission, 'created', 'Neue Kommission erstellt', user)
    logger.info(f"Commission {commission.pk} ({commission.name}) created by {user.username}")
    return commission


def update_commission(commission, data, items, user):
    """
    Update header fields and, when items is not None, replace all items.

    Editing a Ready commission sends it back to Preparing.
    """
    with transaction.atomic():
        for field, value in data.items():
            setattr(commission, field, value)
        commission.save()
        if commission.status == 'Ready':
            _set_status(
                commission, 'Preparing',
                'Automatisch zurückgestellt auf "In Vorbereitung" wegen Bearbeitung', user,
            )
        if items is not None:
            commission.items.all().delete()
            _create_items(commission, items)
    log_event(commission, 'updated', 'Kommission bearbeitet', user)
    return commission


def toggle_pick(item, user=None):
    if item.is_backorder and not item.is_picked:
        raise CommissionError('Rückstand kann nicht gepickt werden')

    with transaction.atomic():
        item.is_picked = not item.is_picked
        item.save(update_fields=['is_picked'])
        commission = Commission.objects.select_for_update().get(pk=item.commission_id)
        item.commission = commission
        if item.is_picked and commission.status == 'Draft':
            _set_status(
                commission, 'Preparing',
                'Status automatisch auf "In Vorbereitung" gesetzt (Erster Artikel gepickt)', user,
            )
        elif not item.is_picked and commission.status == 'Ready':
            _set_status(
                commission, 'Preparing',
                'Automatisch zurückgestellt auf "In Vorbereitung" (Artikel abgewählt)', user,
            )
    return item


def toggle_backorder(item):
    item.is_backorder = not item.is_backorder
    update_fields = ['is_backorder']
    if item.is_backorder and item.is_picked:
        item.is_picked = False
        update_fields.append('is_picked')
    item.save(update_fields=update_fields)
    return item


def set_item_note(item, note):
    item.notes = note or ''
    item.save(update_fields=['notes'])
    return item


def set_ready(commission, user=None):
    """
    Mark the commission Ready and book stock items out.

    Stock is booked only on the first transition. stock_booked stays set when
    the commission later drops back to Preparing (unpick, edit), so a second
    Ready does not book again. Articles without enough stock are skipped.
    """
    items = list(commission.items.select_related('article'))
    if any(item.is_backorder for item in items):
        raise CommissionError('Kommission enthält Rückstände')
    if not all(item.is_picked for item in items):
        raise CommissionError('Nicht alle Artikel sind gepickt')

    with transaction.atomic():
        commission = Commission.objects.select_for_update().get(pk=commission.pk)
        if not commission.stock_booked:
            for item in items:
                if item.type != 'Stock' or not item.article_id:
                    continue
                article = Article.objects.select_for_update().filter(pk=item.article_id).first()
                if article is None or article.stock < item.amount:
                    logger.warning(f"Commission {commission.pk}: not enough stock for article {item.article_id}")
                    continue
                article.stock -= item.amount
                article.save(update_fields=['stock', 'updated_at'])
                record_movement(
                    article, -item.amount, 'commission_pick', f'Komm. {commission.order_number}', user,
                )
            commission.stock_booked = True
        _set_status(
            commission, 'Ready', 'Status auf BEREIT gesetzt. Bestand gebucht.', user, extra_fields=['stock_booked'],
        )
    return commission


def withdraw(commission, user=None):
    commission.withdrawn_at = timezone.now()
    return _set_status(
        commission, 'Withdrawn', 'Kommission entnommen (Abgeschlossen)', user, extra_fields=['withdrawn_at'],
    )


def revert_withdrawal(commission, user=None):
    if commission.status != 'Withdrawn':
        raise CommissionError('Kommission ist nicht entnommen')
    commission.withdrawn_at = None
    return _set_status(
        commission, 'Ready', 'Entnahme widerrufen (Status: Bereit)', user, extra_fields=['withdrawn_at'],
    )


def reset_to_preparing(commission, user=None):
    return _set_status(commission, 'Preparing', 'Status manuell zurückgestellt', user)


def init_return(commission, user=None):
    commission.is_processed = False
    return _set_status(commission, 'ReturnPending', 'Als Retoure markiert', user, extra_fields=['is_processed'])


def return_to_shelf(commission, user=None):
    if commission.status != 'ReturnPending':
        raise CommissionError('Keine angemeldete Retoure')
    return _set_status(commission, 'ReturnReady', 'Retoure ins Abholregal gelegt', user)


def complete_return(commission, user=None):
    if commission.status not in ('ReturnPending', 'ReturnReady'):
        raise CommissionError('Keine offene Retoure')
    return _set_status(commission, 'ReturnComplete', 'Retoure abgeholt (Abgeschlossen)', user)


def set_office_processing(commission, is_processed=None, office_notes=None):
    update_fields = ['updated_at']
    if is_processed is not None:
        commission.is_processed = is_processed
        update_fields.append('is_processed')
    if office_notes is not None:
        commission.office_notes = office_notes
        update_fields.append('office_notes')
    commission.save(update_fields=update_fields)
    return commission


def parse_commission_code(code):
    """Commission id from a scanned 'COMM:<id>' label or a plain id"""
    value = str(code).strip()
    if value.upper().startswith(COMMISSION_PREFIX):
        value = value[len(COMMISSION_PREFIX):]
    try:
        return int(value)
    except ValueError:
        return None


def cleanup_scan(warehouse, scanned_codes, user=None):
    """
    Compare a shelf scan with the commissions expected on the shelf.

    Every Ready/ReturnReady commission of the warehouse that was not scanned
    is marked Missing. Returns the commissions marked missing.
    """
    scanned = {pk for pk in (parse_commission_code(code) for code in scanned_codes) if pk is not None}
    expected = Commission.objects.filter(
        warehouse=warehouse, deleted_at__isnull=True, status__in=Commission.ON_SHELF_STATUSES,
    )
    missing = [c for c in expected if c.pk not in scanned]
    for commission in missing:
        _set_status(commission, 'Missing', 'Automatisch auf "Vermisst" gesetzt durch Aufräum-Scan', user)
    logger.info(f"Cleanup scan in warehouse {warehouse.pk}: {len(scanned)} scanned, {len(missing)} missing")
    return missing


# Trash

def move_to_trash(commission, user=None):
    commission.deleted_at = timezone.now()
    commission.save(update_fields=['deleted_at', 'updated_at'])
    log_event(commission, 'deleted', 'In Papierkorb verschoben', user)
    return commission


def restore(commission, user=None):
    if commission.deleted_at is None:
        raise CommissionError('Kommission ist nicht im Papierkorb')
    commission.deleted_at = None
    commission.save(update_fields=['deleted_at', 'updated_at'])
    log_event(commission, 'restored', 'Aus Papierkorb wiederhergestellt', user)
    return commission


def delete_permanently(commission, user=None):
    log_event(commission, 'permanently_deleted', 'Endgültig gelöscht', user)
    pk = commission.pk
    commission.delete()
    logger.info(f"Commission {pk} permanently deleted")


def purge_trash(days=None, now=None):
    """Permanently delete commissions that have been in the trash too long"""
    days = trash_days() if days is None else days
    cutoff = (now or timezone.now()) - timedelta(days=days)
    expired = Commission.objects.filter(deleted_at__isnull=False, deleted_at__lt=cutoff)
    count = 0
    for commission in expired:
        delete_permanently(commission)
        count += 1
    return count


# Print queue

def print_queue(warehouse=None):
    queryset = Commission.objects.filter(needs_label=True, deleted_at__isnull=True).exclude(status='Withdrawn')
    if warehouse is not None:
        queryset = queryset.filter(warehouse=warehouse)
    return queryset.order_by('name')


def queue_label(commission, user=None):
    commission.needs_label = True
    commission.save(update_fields=['needs_label', 'updated_at'])
    log_event(commission, 'queued', 'Zur Druckwarteschlange hinzugefügt', user)
    return commission


def mark_printed(commissions, user=None):
    for commission in commissions:
        commission.needs_label = False
        commission.save(update_fields=['needs_label', 'updated_at'])
        log_event(commission, 'labels_printed', 'Etiketten aus Warteschlange gedruckt', user)
    return commissions


def print_history():
    return (
        CommissionEvent.objects.filter(action='labels_printed')
        .select_related('user', 'commission')
        .order_by('-created_at')[:PRINT_HISTORY_LIMIT]
    )
