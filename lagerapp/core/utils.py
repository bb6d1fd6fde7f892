"""Helpers for event logging, list pagination and query parameters"""
import logging

from django.core.paginator import Paginator
from rest_framework.response import Response

logger = logging.getLogger('lagerapp.core')

# Query value for records (articles, orders) without a warehouse
UNKNOWN_WAREHOUSE = 'unknown'


class InvalidParameter(ValueError):
    """A request parameter that cannot be used as a filter"""


def record_event(event_model, request=None, user=None, action=None, **fields):
    """
    Create a history entry on one of the EventLog tables.

    Args:
        event_model: Concrete EventLog subclass (OrderEvent, MachineEvent, ...)
        request: Django request object, used for the user when none is given
        user: Optional user override
        action: Action keyword stored on the event
        **fields: Remaining model fields (details, foreign keys)

    Never raises; a failed history write must not undo the business operation.
    """
    if not action:
        logger.warning(f"Event creation skipped: missing action for {event_model.__name__}")
        return None

    event_user = user
    if event_user is None and request is not None:
        event_user = getattr(request, 'user', None)
    if event_user is not None and not event_user.is_authenticated:
        event_user = None

    try:
        return event_model.objects.create(user=event_user, action=action, **fields)
    except Exception as e:
        logger.error(f"Failed to create {event_model.__name__}: {str(e)}")
        return None


def paginated_response(request, queryset, serializer_class, default_limit=25, context=None):
    """Paginate with page/limit query params and the standard envelope"""
    try:
        page = max(int(request.query_params.get('page', 1)), 1)
        limit = min(max(int(request.query_params.get('limit', default_limit)), 1), 200)
    except (TypeError, ValueError):
        page, limit = 1, default_limit

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return Response({
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })


def parse_bool(value):
    """Interpret 'true'/'1'/'yes' query parameters"""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def warehouse_param(value, allow_unknown=False):
    """
    Warehouse id from a query or body parameter.

    Returns None for an empty value, UNKNOWN_WAREHOUSE when allowed and
    requested, otherwise the id as int. Raises InvalidParameter for anything
    else so views can answer 400 instead of failing in the ORM.
    """
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    if allow_unknown and value == UNKNOWN_WAREHOUSE:
        return UNKNOWN_WAREHOUSE
    try:
        return int(value)
    except ValueError:
        raise InvalidParameter(f'Ungültiges Lager: {value}')


def filter_warehouse(queryset, warehouse_id, field='warehouse'):
    """Narrow a queryset to a value returned by warehouse_param()"""
    if warehouse_id is None:
        return queryset
    if warehouse_id == UNKNOWN_WAREHOUSE:
        return queryset.filter(**{f'{field}__isnull': True})
    return queryset.filter(**{f'{field}_id': warehouse_id})
