"""
Goods receipt for supplier orders.

A receipt books received quantities onto the order items and, in Direct
mode, onto the article stock. Orders for vehicles can instead be parked as
ReadyForPickup (Commission mode); picking them up later books the stock.
"""
import logging

from django.db import transaction

from lagerapp.core.utils import record_event
from lagerapp.inventory.models import Article
from lagerapp.inventory.services import record_movement
from .models import Order, OrderEvent

logger = logging.getLogger('lagerapp.orders')

MODE_DIRECT = 'Direct'
MODE_COMMISSION = 'Commission'
RECEIVE_MODES = (MODE_DIRECT, MODE_COMMISSION)


class ReceivingError(Exception):
    """Invalid receipt input"""


class DecisionRequired(ReceivingError):
    """A full receipt for a vehicle needs Direct or Commission chosen explicitly"""


def receiving_lines(order):
    """
    Receipt defaults per item.

    For a normal order the open quantity is proposed; for an order waiting
    for pickup the already received quantity is what gets booked.
    """
    lines = []
    pickup = order.is_pickup
    for item in order.items.select_related('article').order_by('id'):
        remaining = item.quantity_ordered - item.quantity_received
        if pickup:
            max_qty = item.quantity_received
            default = item.quantity_received
        else:
            max_qty = remaining
            default = max(0, remaining)
        lines.append({
            'item': item,
            'remaining': remaining,
            'max_qty': max_qty,
            'default_amount': default,
        })
    return lines


def _resolve_amounts(lines, amounts):
    """Merge requested amounts (item id -> amount) over the defaults"""
    resolved = []
    for line in lines:
        item = line['item']
        amount = amounts.get(item.pk, line['default_amount']) if amounts is not None else line['default_amount']
        try:
            amount = int(amount)
        except (TypeError, ValueError):
            raise ReceivingError(f'Ungültige Menge für {item.display_name}')
        if amount < 0:
            raise ReceivingError(f'Negative Menge für {item.display_name}')
        if amount > max(line['max_qty'], 0):
            raise ReceivingError(f'Menge für {item.display_name} übersteigt die offene Menge ({line["max_qty"]})')
        resolved.append((line, amount))
    return resolved


def needs_vehicle_decision(order, resolved):
    """Full receipt of a vehicle order: the receiver must pick Direct or Commission"""
    if order.warehouse_type != 'Vehicle' or order.is_pickup:
        return False
    return all(amount == line['max_qty'] for line, amount in resolved)


def receive_order(order, amounts=None, mode=None, user=None):
    """
    Book a goods receipt.

    Args:
        order: Order being received
        amounts: dict item id -> amount received now; missing items use the default
        mode: 'Direct' books stock, 'Commission' parks the goods for pickup.
              None means Direct unless a vehicle decision is required.
        user: acting user for movements and the event

    Returns the updated order.
    """
    if mode is not None and mode not in RECEIVE_MODES:
        raise ReceivingError(f'Unbekannter Modus: {mode}')

    with transaction.atomic():
        order = Order.objects.select_for_update().select_related('warehouse').get(pk=order.pk)
        resolved = _resolve_amounts(receiving_lines(order), amounts)

        if sum(amount for _, amount in resolved) == 0:
            raise ReceivingError('Bitte Menge angeben.')

        if mode is None:
            if needs_vehicle_decision(order, resolved):
                raise DecisionRequired('Direkt einbuchen oder als Kommission bereitstellen?')
            mode = MODE_DIRECT

        pickup = order.is_pickup
        all_completed = True

        for line, amount in resolved:
            item = line['item']
            received_total = item.quantity_received + amount

            if amount > 0:
                if not pickup:
                    item.quantity_received = received_total
                    item.save(update_fields=['quantity_received'])

                # Custom items are only marked as received
                if mode == MODE_DIRECT and item.article_id:
                    article = Article.objects.select_for_update().filter(pk=item.article_id).first()
                    if article is not None:
                        article.stock += amount
                        update_fields = ['stock', 'updated_at']
                        if not pickup and received_total >= item.quantity_ordered:
                            article.on_order_date = None
                            update_fields.append('on_order_date')
                        article.save(update_fields=update_fields)
                        record_movement(article, amount, 'receive_goods', f'Bestellung: {order.supplier}', user)

            if not pickup and received_total < item.quantity_ordered:
                all_completed = False

        new_status = 'Received' if all_completed else 'PartiallyReceived'
        if mode == MODE_COMMISSION and all_completed:
            new_status = 'ReadyForPickup'
        if pickup:
            new_status = 'Received'

        order.status = new_status
        order.save(update_fields=['status', 'updated_at'])

    record_event(
        OrderEvent, user=user, order=order, action='Wareneingang',
        details=f'Status: {order.get_status_display()}',
    )
    logger.info(f"Receipt for order {order.pk} ({order.supplier}) in {mode} mode, status {new_status}")
    return order
