import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.contrib.auth import get_user_model
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from lagerapp.core.permissions import is_workwear_admin
from .models import WorkwearTemplate, UserSize, WorkwearOrder, WorkwearOrderItem, WorkwearSettings
from .serializers import (
    WorkwearTemplateSerializer, WorkwearBudgetSerializer, BudgetUpsertSerializer, RoleChangeSerializer,
    UserSizeSerializer, WorkwearOrderSerializer, CheckoutSerializer, StatusChangeSerializer,
    WorkwearSettingsSerializer, BudgetSummarySerializer,
)
from .services import (
    WorkwearError, BudgetExceeded, budget_summary, checkout, change_status, can_delete_order,
    delete_item, upsert_budget, order_list_csv,
)

logger = logging.getLogger('lagerapp.workwear')
User = get_user_model()

FORBIDDEN = {'error': 'Nur Chef oder Besteller dürfen Arbeitskleidung verwalten'}


def _year_param(request):
    try:
        return int(request.query_params['year'])
    except (KeyError, ValueError):
        return None


def _orders_queryset():
    return WorkwearOrder.objects.select_related('user').prefetch_related('items__template')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def template_list_create(request):
    """Catalog; only workwear admins see inactive entries and may add new ones"""
    if request.method == 'GET':
        queryset = WorkwearTemplate.objects.all()
        if not is_workwear_admin(request.user) or request.query_params.get('active') == 'true':
            queryset = queryset.filter(is_active=True)
        category = request.query_params.get('category')
        if category:
            queryset = queryset.filter(category=category)
        return Response(WorkwearTemplateSerializer(queryset, many=True).data)

    if not is_workwear_admin(request.user):
        return Response(FORBIDDEN, status=status.HTTP_403_FORBIDDEN)
    serializer = WorkwearTemplateSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def template_detail(request, pk):
    template = get_object_or_404(WorkwearTemplate, pk=pk)

    if request.method == 'GET':
        return Response(WorkwearTemplateSerializer(template).data)
    if not is_workwear_admin(request.user):
        return Response(FORBIDDEN, status=status.HTTP_403_FORBIDDEN)
    if request.method == 'PATCH':
        serializer = WorkwearTemplateSerializer(template, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        template.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_budget(request):
    """Budget summary of the current user for ?year= (default: this year)"""
    return Response(BudgetSummarySerializer(budget_summary(request.user, _year_param(request))).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def workwear_checkout(request):
    serializer = CheckoutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        order = checkout(request.user, serializer.validated_data['items'])
    except BudgetExceeded as e:
        return Response({'error': str(e), 'available': e.available}, status=status.HTTP_400_BAD_REQUEST)
    except WorkwearError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(WorkwearOrderSerializer(_orders_queryset().get(pk=order.pk)).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_orders(request):
    queryset = _orders_queryset().filter(user=request.user)
    return Response(WorkwearOrderSerializer(queryset, many=True).data)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def my_sizes(request):
    """GET own sizes; PUT upserts one size per category"""
    if request.method == 'GET':
        return Response(UserSizeSerializer(request.user.workwear_sizes.all(), many=True).data)

    serializer = UserSizeSerializer(data=request.data, many=isinstance(request.data, list))
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    entries = serializer.validated_data if isinstance(serializer.validated_data, list) else [serializer.validated_data]
    for entry in entries:
        UserSize.objects.update_or_create(
            user=request.user, category=entry['category'], defaults={'size_value': entry['size_value']},
        )
    return Response(UserSizeSerializer(request.user.workwear_sizes.all(), many=True).data)


# Administration (chef / besteller)

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def admin_order_list(request):
    """All orders; ?status=REQUESTED|ORDERED|... (default REQUESTED), ?export=csv for the purchasing list"""
    if not is_workwear_admin(request.user):
        return Response(FORBIDDEN, status=status.HTTP_403_FORBIDDEN)
    queryset = _orders_queryset()
    status_filter = request.query_params.get('status', 'REQUESTED')
    if status_filter != 'ALL':
        queryset = queryset.filter(status=status_filter)

    if request.query_params.get('export') == 'csv':
        response = HttpResponse(order_list_csv(queryset), content_type='text/csv; charset=utf-8')
        filename = f"Bestellung_Workwear_{timezone.localdate().isoformat()}.csv"
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response
    return Response(WorkwearOrderSerializer(queryset, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def admin_order_status(request, pk):
    if not is_workwear_admin(request.user):
        return Response(FORBIDDEN, status=status.HTTP_403_FORBIDDEN)
    order = get_object_or_404(WorkwearOrder, pk=pk)
    serializer = StatusChangeSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        change_status(order, serializer.validated_data['status'])
    except WorkwearError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(WorkwearOrderSerializer(_orders_queryset().get(pk=pk)).data)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def order_delete(request, pk):
    """Admins delete any order, employees only their own open requests"""
    order = get_object_or_404(WorkwearOrder, pk=pk)
    if not can_delete_order(order, request.user):
        return Response({'error': 'Bestellung kann nicht gelöscht werden'}, status=status.HTTP_403_FORBIDDEN)
    order.delete()
    logger.info(f"Workwear order {pk} deleted by {request.user.username}")
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def order_item_delete(request, pk):
    if not is_workwear_admin(request.user):
        return Response(FORBIDDEN, status=status.HTTP_403_FORBIDDEN)
    item = get_object_or_404(WorkwearOrderItem, pk=pk)
    order = delete_item(item)
    if order is None:
        return Response({'order_deleted': True})
    return Response(dict(WorkwearOrderSerializer(_orders_queryset().get(pk=order.pk)).data, order_deleted=False))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def admin_budgets(request):
    """
    GET: every user with role and budget for ?year=.
    POST: upsert a user's budget limit.
    """
    if not is_workwear_admin(request.user):
        return Response(FORBIDDEN, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'GET':
        year = _year_param(request)
        rows = []
        for user in User.objects.filter(is_active=True).order_by('full_name', 'username'):
            summary = budget_summary(user, year)
            rows.append(dict(
                BudgetSummarySerializer(summary).data,
                user=user.pk, user_name=user.display_name, workwear_role=user.workwear_role,
            ))
        return Response(rows)

    serializer = BudgetUpsertSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    budget = upsert_budget(data['user'], data['budget_limit'], data.get('year'))
    return Response(WorkwearBudgetSerializer(budget).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def admin_user_role(request, pk):
    if not is_workwear_admin(request.user):
        return Response(FORBIDDEN, status=status.HTTP_403_FORBIDDEN)
    user = get_object_or_404(User, pk=pk)
    serializer = RoleChangeSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    user.workwear_role = serializer.validated_data['workwear_role']
    user.save(update_fields=['workwear_role', 'updated_at'])
    return Response({'user': user.pk, 'workwear_role': user.workwear_role})


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def workwear_settings(request):
    settings_obj = WorkwearSettings.load()
    if request.method == 'GET':
        return Response(WorkwearSettingsSerializer(settings_obj).data)

    if not is_workwear_admin(request.user):
        return Response(FORBIDDEN, status=status.HTTP_403_FORBIDDEN)
    serializer = WorkwearSettingsSerializer(settings_obj, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
