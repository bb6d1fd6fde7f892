import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404
from lagerapp.core import blob_storage
from lagerapp.core.permissions import is_admin
from lagerapp.core.utils import paginated_response
from .models import Commission, CommissionItem, CommissionEvent
from .serializers import (
    CommissionSerializer, CommissionListSerializer, CommissionItemSerializer, CommissionEventSerializer,
    ItemNoteSerializer, OfficeProcessingSerializer, CleanupScanSerializer, MarkPrintedSerializer,
)
from . import services
from .services import CommissionError

logger = logging.getLogger('lagerapp.commissions')

NO_WAREHOUSE_ERROR = 'Bitte wähle zuerst ein Hauptlager im Dashboard.'


def _commission_queryset():
    return Commission.objects.select_related('warehouse', 'supplier').prefetch_related('items__article')


def _split_items(validated_data):
    data = dict(validated_data)
    items = data.pop('items', None)
    return data, items


def _detail(commission):
    return Response(CommissionSerializer(_commission_queryset().get(pk=commission.pk)).data)


def _transition(request, pk, operation):
    commission = get_object_or_404(Commission, pk=pk)
    try:
        commission = operation(commission, user=request.user)
    except CommissionError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return _detail(commission)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def commission_list_create(request):
    """
    GET: commissions of the user's primary warehouse for one tab
    (active, returns, withdrawn, missing, trash).
    POST: create a Draft commission with items.
    """
    if request.method == 'GET':
        warehouse = request.user.primary_warehouse
        if warehouse is None:
            return Response({'error': NO_WAREHOUSE_ERROR}, status=status.HTTP_400_BAD_REQUEST)
        try:
            queryset = services.commissions_for_tab(request.query_params.get('tab', 'active'), warehouse)
        except CommissionError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(order_number__icontains=search))
        return paginated_response(request, queryset.prefetch_related('items'), CommissionListSerializer, default_limit=50)

    serializer = CommissionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data, items = _split_items(serializer.validated_data)
    try:
        commission = services.create_commission(data, items or [], request.user)
    except CommissionError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(CommissionSerializer(_commission_queryset().get(pk=commission.pk)).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def commission_tab_counts(request):
    warehouse = request.user.primary_warehouse
    if warehouse is None:
        return Response({'missing': 0, 'returns': 0})
    return Response(services.tab_counts(warehouse))


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def commission_detail(request, pk):
    """Retrieve, edit (items are replaced when sent) or move to trash"""
    commission = get_object_or_404(_commission_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(CommissionSerializer(commission).data)
    elif request.method == 'PATCH':
        serializer = CommissionSerializer(commission, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data, items = _split_items(serializer.validated_data)
        services.update_commission(commission, data, items, request.user)
        return _detail(commission)
    else:  # DELETE
        services.move_to_trash(commission, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def commission_set_ready(request, pk):
    return _transition(request, pk, services.set_ready)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def commission_withdraw(request, pk):
    return _transition(request, pk, services.withdraw)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def commission_revert_withdrawal(request, pk):
    return _transition(request, pk, services.revert_withdrawal)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def commission_reset(request, pk):
    return _transition(request, pk, services.reset_to_preparing)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def commission_return_init(request, pk):
    return _transition(request, pk, services.init_return)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def commission_return_ready(request, pk):
    return _transition(request, pk, services.return_to_shelf)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def commission_return_complete(request, pk):
    return _transition(request, pk, services.complete_return)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def commission_restore(request, pk):
    return _transition(request, pk, services.restore)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def commission_delete_permanently(request, pk):
    commission = get_object_or_404(Commission, pk=pk)
    if commission.deleted_at is None:
        return Response({'error': 'Nur Kommissionen im Papierkorb können endgültig gelöscht werden'},
                        status=status.HTTP_400_BAD_REQUEST)
    for url in commission.items.exclude(attachment_url='').values_list('attachment_url', flat=True):
        blob_storage.delete_blob(url)
    services.delete_permanently(commission, request.user)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def commission_office(request, pk):
    """Office bookkeeping flags"""
    commission = get_object_or_404(Commission, pk=pk)
    serializer = OfficeProcessingSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    services.set_office_processing(commission, **serializer.validated_data)
    return _detail(commission)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def commission_events(request, pk=None):
    queryset = CommissionEvent.objects.select_related('user')
    if pk is not None:
        get_object_or_404(Commission, pk=pk)
        queryset = queryset.filter(commission_id=pk)
    return paginated_response(request, queryset.order_by('-created_at'), CommissionEventSerializer, default_limit=50)


# Items

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def commission_item_toggle_pick(request, pk):
    item = get_object_or_404(CommissionItem.objects.select_related('commission'), pk=pk)
    try:
        item = services.toggle_pick(item, request.user)
    except CommissionError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(dict(CommissionItemSerializer(item).data, commission_status=item.commission.status))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def commission_item_toggle_backorder(request, pk):
    item = get_object_or_404(CommissionItem, pk=pk)
    return Response(CommissionItemSerializer(services.toggle_backorder(item)).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def commission_item_note(request, pk):
    item = get_object_or_404(CommissionItem, pk=pk)
    serializer = ItemNoteSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    return Response(CommissionItemSerializer(services.set_item_note(item, serializer.validated_data['notes'])).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def commission_item_attachment(request, pk):
    """Upload an image or PDF for an external commission item"""
    item = get_object_or_404(CommissionItem, pk=pk)
    uploaded = request.FILES.get('file')
    if not uploaded:
        return Response({'error': 'Keine Datei übermittelt'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        url = blob_storage.upload_file('commission-attachments', uploaded, blob_storage.ALLOWED_ATTACHMENT_TYPES)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    if not url:
        return Response({'error': 'Speicher nicht verfügbar'}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

    old_url = item.attachment_url
    item.attachment_url = url
    item.save(update_fields=['attachment_url'])
    if old_url:
        blob_storage.delete_blob(old_url)
    return Response(CommissionItemSerializer(item).data)


# Shelf cleanup and print queue

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def commission_cleanup_scan(request):
    """Mark shelf commissions missing that were not part of the scan"""
    warehouse = request.user.primary_warehouse
    if warehouse is None:
        return Response({'error': NO_WAREHOUSE_ERROR}, status=status.HTTP_400_BAD_REQUEST)
    serializer = CleanupScanSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    missing = services.cleanup_scan(warehouse, serializer.validated_data['codes'], request.user)
    return Response({
        'missing_count': len(missing),
        'missing': CommissionListSerializer(missing, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def commission_print_queue(request):
    queryset = services.print_queue(request.user.primary_warehouse)
    return Response(CommissionListSerializer(queryset, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def commission_queue_label(request, pk):
    commission = get_object_or_404(Commission, pk=pk)
    services.queue_label(commission, request.user)
    return _detail(commission)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def commission_mark_printed(request):
    serializer = MarkPrintedSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    commissions = list(Commission.objects.filter(pk__in=serializer.validated_data['ids']))
    services.mark_printed(commissions, request.user)
    return Response({'printed': len(commissions)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def commission_print_history(request):
    return Response(CommissionEventSerializer(services.print_history(), many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def commission_purge_trash(request):
    """Delete trashed commissions past the retention period (admin only)"""
    if not is_admin(request.user):
        return Response({'error': 'Nur Administratoren dürfen den Papierkorb leeren'}, status=status.HTTP_403_FORBIDDEN)
    return Response({'deleted': services.purge_trash()})
