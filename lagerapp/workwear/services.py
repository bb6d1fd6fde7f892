"""Workwear budget accounting and order handling"""
import csv
import io
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum

from lagerapp.core.permissions import is_workwear_admin
from .models import WorkwearBudget, WorkwearOrder, WorkwearOrderItem, current_year

logger = logging.getLogger('lagerapp.workwear')

RESERVED_STATUSES = ('REQUESTED', 'ORDERED')
ADMIN_TRANSITIONS = {
    'ORDERED': ('REQUESTED',),
    'COMPLETED': ('ORDERED', 'REQUESTED'),
    'RETURNED': ('COMPLETED', 'ORDERED'),
}


class WorkwearError(Exception):
    pass


class BudgetExceeded(WorkwearError):
    def __init__(self, available):
        self.available = available
        super().__init__(f'Budget überschritten! Verfügbar: {available:.2f} €')


def budget_summary(user, year=None):
    """
    Budget for a year: limit, used (completed orders), reserved (open
    orders) and what is still available. Returned orders count for nothing.
    """
    year = year or current_year()
    budget = WorkwearBudget.objects.filter(user=user, year=year).first()
    limit = budget.budget_limit if budget else Decimal('0.00')

    orders = WorkwearOrder.objects.filter(user=user, created_at__year=year)
    used = orders.filter(status='COMPLETED').aggregate(total=Sum('total_amount'))['total'] or Decimal('0.00')
    reserved = (
        orders.filter(status__in=RESERVED_STATUSES).aggregate(total=Sum('total_amount'))['total']
        or Decimal('0.00')
    )
    return {
        'year': year,
        'limit': limit,
        'used': used,
        'reserved': reserved,
        'available': limit - used - reserved,
    }


def checkout(user, lines):
    """
    Create a REQUESTED order from cart lines (template, size, quantity).

    The chef may exceed the budget; everybody else gets BudgetExceeded.
    """
    if not lines:
        raise WorkwearError('Warenkorb ist leer')
    total = sum((line['template'].price * line['quantity'] for line in lines), Decimal('0.00'))

    with transaction.atomic():
        summary = budget_summary(user)
        if total > summary['available'] and user.workwear_role != 'chef':
            raise BudgetExceeded(summary['available'])

        order = WorkwearOrder.objects.create(user=user, status='REQUESTED', total_amount=total)
        WorkwearOrderItem.objects.bulk_create([
            WorkwearOrderItem(
                order=order,
                template=line['template'],
                size=line.get('size', ''),
                quantity=line['quantity'],
                price_at_order=line['template'].price,
                use_logo=line['template'].has_logo,
            )
            for line in lines
        ])
    logger.info(f"Workwear order {order.pk} requested by {user.username} over {total}")
    return order


def change_status(order, new_status):
    allowed_from = ADMIN_TRANSITIONS.get(new_status)
    if allowed_from is None:
        raise WorkwearError(f'Unbekannter Status: {new_status}')
    if order.status not in allowed_from:
        raise WorkwearError(f'Statuswechsel von {order.status} nach {new_status} nicht erlaubt')
    order.status = new_status
    order.save(update_fields=['status', 'updated_at'])
    logger.info(f"Workwear order {order.pk} -> {new_status}")
    return order


def can_delete_order(order, user):
    return is_workwear_admin(user) or (order.user_id == user.pk and order.status == 'REQUESTED')


def delete_item(item):
    """
    Remove one line and recalculate the order total.

    Returns the order, or None when the last line was removed and the
    order was deleted with it.
    """
    with transaction.atomic():
        order = WorkwearOrder.objects.select_for_update().get(pk=item.order_id)
        item.delete()
        if not order.items.exists():
            order.delete()
            return None
        order.recalculate_total()
        order.save(update_fields=['total_amount', 'updated_at'])
    return order


def upsert_budget(user, budget_limit, year=None):
    budget, _ = WorkwearBudget.objects.update_or_create(
        user=user, year=year or current_year(), defaults={'budget_limit': budget_limit},
    )
    return budget


def order_list_csv(orders):
    """Purchasing list of the given orders, one row per item"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=';')
    writer.writerow(['Mitarbeiter', 'Art.Nr.', 'Artikel', 'Größe', 'Menge', 'Logo', 'Ref.'])
    for order in orders:
        for item in order.items.all():
            writer.writerow([
                order.user.display_name,
                item.template.article_number if item.template else '',
                item.template.name if item.template else 'Unbekannter Artikel',
                item.size,
                item.quantity,
                'Ja' if item.use_logo else 'Nein',
                order.pk,
            ])
    return buffer.getvalue()

