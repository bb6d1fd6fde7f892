"""Aggregations for the start page"""
from django.db.models import Case, Exists, IntegerField, OuterRef, Value, When

from lagerapp.commissions.models import Commission, CommissionEvent, CommissionItem
from lagerapp.machines.models import Machine, MachineEvent
from lagerapp.orders.models import OrderEvent
from lagerapp.orders.proposals import build_order_proposals
from lagerapp.orders.services import pending_orders

EVENTS_PER_SOURCE = 10
FEED_LENGTH = 15
DASHBOARD_COMMISSION_STATUSES = ('Draft', 'Preparing', 'Ready', 'ReturnPending', 'ReturnReady')


def dashboard_commissions(warehouse_id=None):
    """
    Open commissions split into the three dashboard columns.

    Ready: unprocessed first, then by name. Returns: ReturnReady first.
    """
    queryset = Commission.objects.filter(
        deleted_at__isnull=True, status__in=DASHBOARD_COMMISSION_STATUSES,
    ).annotate(
        has_backorder=Exists(CommissionItem.objects.filter(commission=OuterRef('pk'), is_backorder=True)),
    )
    if warehouse_id:
        queryset = queryset.filter(warehouse_id=warehouse_id)

    in_progress = queryset.filter(status__in=('Draft', 'Preparing')).order_by('name')
    ready = queryset.filter(status='Ready').order_by('is_processed', 'name')
    returns = queryset.filter(status__in=('ReturnPending', 'ReturnReady')).annotate(
        shelf_order=Case(When(status='ReturnReady', then=Value(0)), default=Value(1), output_field=IntegerField()),
    ).order_by('shelf_order', 'name')
    return {'in_progress': list(in_progress), 'ready': list(ready), 'returns': list(returns)}


def dashboard_machines():
    queryset = Machine.objects.select_related('assigned_to').filter(status__in=('Rented', 'In Repair')).order_by('name')
    machines = list(queryset)
    return {
        'rented': [m for m in machines if m.status == 'Rented'],
        'in_repair': [m for m in machines if m.status == 'In Repair'],
    }


def dashboard_counts(warehouse_id=None):
    orders = pending_orders()
    if warehouse_id:
        orders = orders.filter(warehouse_id=warehouse_id)
    return {
        'order_proposals': len(build_order_proposals(warehouse_id=warehouse_id)),
        'pending_orders': orders.count(),
    }


def _order_entity_name(order):
    if order is None:
        return 'Unbekannte Bestellung'
    if order.commission_number:
        return f'{order.supplier} ({order.commission_number})'
    return order.supplier


def recent_activity():
    """Latest machine, commission and order events merged, newest first"""
    events = []
    for event in MachineEvent.objects.select_related('user', 'machine').order_by('-created_at')[:EVENTS_PER_SOURCE]:
        events.append({
            'id': f'machine-{event.pk}',
            'type': 'machine',
            'user_name': event.user.display_name if event.user else 'Unbekannt',
            'action': event.action,
            'details': event.details,
            'created_at': event.created_at,
            'entity_name': event.machine.name if event.machine else 'Unbekanntes Gerät',
        })
    for event in CommissionEvent.objects.select_related('user').order_by('-created_at')[:EVENTS_PER_SOURCE]:
        events.append({
            'id': f'commission-{event.pk}',
            'type': 'commission',
            'user_name': event.user.display_name if event.user else 'Unbekannt',
            'action': event.action,
            'details': event.details,
            'created_at': event.created_at,
            'entity_name': event.commission_name or 'Unbekannte Kommission',
        })
    for event in OrderEvent.objects.select_related('user', 'order').order_by('-created_at')[:EVENTS_PER_SOURCE]:
        events.append({
            'id': f'order-{event.pk}',
            'type': 'order',
            'user_name': event.user_name,
            'action': event.action,
            'details': event.details,
            'created_at': event.created_at,
            'entity_name': _order_entity_name(event.order),
        })
    events.sort(key=lambda e: e['created_at'], reverse=True)
    return events[:FEED_LENGTH]
