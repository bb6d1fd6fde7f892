import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from lagerapp.core.permissions import is_admin
from lagerapp.core.utils import (
    InvalidParameter, UNKNOWN_WAREHOUSE, filter_warehouse, paginated_response, warehouse_param,
)
from lagerapp.inventory.serializers import ArticleSerializer, ArticleListSerializer
from lagerapp.warehouses.models import Warehouse
from .csv_export import proposal_csv, proposal_csv_filename, order_csv, order_csv_filename
from .document_ai import DocumentExtractionError, extract_order_items
from .models import Order, OrderItem, OrderEvent
from .proposals import build_order_proposals, group_by_supplier, find_proposal
from .receiving import ReceivingError, DecisionRequired, receiving_lines, receive_order
from .serializers import (
    OrderSerializer, OrderListSerializer, OrderItemSerializer, OrderEventSerializer,
    ProposalSerializer, ProposalSelectionSerializer, ReceiveSerializer,
    ManualOrderSerializer, ImportCandidateSerializer,
)
from .services import (
    OrderError, next_commission_number, create_order_from_proposal, match_extracted_items,
    create_manual_order, pending_orders, pickup_orders, completed_orders,
    cleanup_received_orders, import_candidates, import_candidate,
)

logger = logging.getLogger('lagerapp.orders')


def _csv_response(content, filename):
    response = HttpResponse(content, content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


def _selected_proposal(data):
    return find_proposal(build_order_proposals(), data['warehouse'], data['supplier'])


# Proposals

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_proposals(request):
    """Articles below target stock grouped by warehouse and supplier"""
    try:
        warehouse_id = warehouse_param(request.query_params.get('warehouse'), allow_unknown=True)
    except InvalidParameter as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    proposals = build_order_proposals(warehouse_id=warehouse_id)
    by_supplier = group_by_supplier(proposals)
    return Response({
        'count': len(proposals),
        'results': ProposalSerializer(proposals, many=True).data,
        'by_supplier': {
            supplier: ProposalSerializer(entries, many=True).data
            for supplier, entries in by_supplier.items()
        },
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_proposal_csv(request):
    """CSV of the selected proposal articles in the supplier's format"""
    serializer = ProposalSelectionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    proposal = _selected_proposal(data)
    if proposal is None:
        return Response({'error': 'Bestellvorschlag nicht gefunden'}, status=status.HTTP_404_NOT_FOUND)

    selected = set(data['article_ids'])
    proposal = dict(proposal, articles=[e for e in proposal['articles'] if e['article'].pk in selected])
    if not proposal['articles']:
        return Response({'error': 'Keine Artikel ausgewählt'}, status=status.HTTP_400_BAD_REQUEST)
    return _csv_response(proposal_csv(proposal, data['quantities']), proposal_csv_filename(proposal['supplier']))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_from_proposal(request):
    """Create an order from the selected proposal articles"""
    serializer = ProposalSelectionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    proposal = _selected_proposal(data)
    if proposal is None:
        return Response({'error': 'Bestellvorschlag nicht gefunden'}, status=status.HTTP_404_NOT_FOUND)

    try:
        order = create_order_from_proposal(
            proposal, data['article_ids'], data['quantities'], user=request.user,
            commission_number=data['commission_number'],
            supplier_order_number=data['supplier_order_number'],
        )
    except OrderError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def commission_number_preview(request):
    """Next commission number for a warehouse"""
    try:
        warehouse_id = warehouse_param(request.query_params.get('warehouse'), allow_unknown=True)
    except InvalidParameter as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    warehouse = None
    if warehouse_id not in (None, UNKNOWN_WAREHOUSE):
        warehouse = get_object_or_404(Warehouse, pk=warehouse_id)
    return Response({'commission_number': next_commission_number(warehouse)})


# Orders

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_list(request):
    """
    List orders by tab.

    group=pending (default): still open, group=pickup: waiting for pickup,
    group=completed: received archive.
    """
    group = request.query_params.get('group', 'pending')
    if group == 'pickup':
        queryset = pickup_orders()
    elif group == 'completed':
        queryset = completed_orders()
    elif group == 'pending':
        queryset = pending_orders()
    else:
        return Response({'error': f'Unbekannte Gruppe: {group}'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        warehouse_id = warehouse_param(request.query_params.get('warehouse'), allow_unknown=True)
    except InvalidParameter as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    queryset = filter_warehouse(queryset, warehouse_id)
    supplier = request.query_params.get('supplier')
    if supplier:
        queryset = queryset.filter(supplier__icontains=supplier)

    queryset = queryset.select_related('warehouse').order_by('-created_at', '-id')
    response = paginated_response(request, queryset, OrderListSerializer, default_limit=25)
    response['Cache-Control'] = 'private, max-age=10, must-revalidate'
    return response


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    """Retrieve, update header fields or delete an order"""
    order = get_object_or_404(Order.objects.select_related('warehouse').prefetch_related('items__article'), pk=pk)

    if request.method == 'GET':
        return Response(OrderSerializer(order).data)
    elif request.method == 'PATCH':
        serializer = OrderSerializer(order, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        order.delete()
        logger.info(f"Order {pk} deleted by {request.user.username}")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_receive(request, pk):
    """
    GET: receipt defaults per item.
    POST: book the receipt. A full vehicle receipt without mode answers 409
    with decision_required so the client can ask Direct or Commission.
    """
    order = get_object_or_404(Order.objects.select_related('warehouse'), pk=pk)

    if request.method == 'GET':
        lines = receiving_lines(order)
        return Response({
            'order': OrderListSerializer(order).data,
            'is_pickup': order.is_pickup,
            'warehouse_type': order.warehouse_type,
            'items': [
                dict(
                    OrderItemSerializer(line['item']).data,
                    remaining=line['remaining'],
                    max_qty=line['max_qty'],
                    default_amount=line['default_amount'],
                )
                for line in lines
            ],
        })

    if order.status == 'Received':
        return Response({'error': 'Bestellung ist bereits vollständig erhalten'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = ReceiveSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        order = receive_order(
            order, amounts=serializer.get_amounts(), mode=serializer.validated_data.get('mode'), user=request.user,
        )
    except DecisionRequired as e:
        return Response({'error': str(e), 'decision_required': True}, status=status.HTTP_409_CONFLICT)
    except ReceivingError as e:
        logger.warning(f"Receipt rejected for order {pk}: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    order = Order.objects.select_related('warehouse').prefetch_related('items__article').get(pk=order.pk)
    return Response(OrderSerializer(order).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_csv_download(request, pk):
    order = get_object_or_404(Order, pk=pk)
    return _csv_response(order_csv(order), order_csv_filename(order))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_event_list(request, pk=None):
    """History of one order, or of all orders"""
    queryset = OrderEvent.objects.select_related('user', 'order')
    if pk is not None:
        get_object_or_404(Order, pk=pk)
        queryset = queryset.filter(order_id=pk)
    return paginated_response(request, queryset.order_by('-created_at'), OrderEventSerializer, default_limit=50)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def orders_cleanup(request):
    """Delete received orders past the retention period (admin only)"""
    if not is_admin(request.user):
        return Response({'error': 'Nur Administratoren dürfen aufräumen'}, status=status.HTTP_403_FORBIDDEN)
    deleted = cleanup_received_orders()
    return Response({'deleted': deleted})


# Manual orders

@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def manual_order_analyze(request):
    """Extract order lines from an uploaded document and match them to articles"""
    uploaded = request.FILES.get('file')
    if not uploaded:
        return Response({'error': 'Keine Datei übermittelt'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        warehouse_id = warehouse_param(request.data.get('warehouse'))
    except InvalidParameter as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    try:
        extraction = extract_order_items(uploaded.read(), uploaded.content_type)
    except DocumentExtractionError as e:
        return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

    matched = match_extracted_items(extraction['items'], warehouse_id)
    return Response({
        'supplier_name': extraction['supplier_name'],
        'items': [
            dict(
                sku=m['sku'], name=m['name'], quantity=m['quantity'], is_found=m['is_found'],
                article=ArticleListSerializer(m['article']).data if m['article'] else None,
            )
            for m in matched
        ],
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def manual_order_create(request):
    """Save a manual order; lines without article become custom items"""
    serializer = ManualOrderSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        order = create_manual_order(
            data['items'],
            warehouse=data.get('warehouse'),
            supplier_name=data['supplier_name'],
            supplier_order_number=data['supplier_order_number'],
            commission_number=data['commission_number'],
            user=request.user,
        )
    except OrderError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


# Import of custom order lines into the catalog

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def import_candidate_list(request):
    candidates = import_candidates()
    return Response(ImportCandidateSerializer(candidates, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def import_candidate_create(request, pk):
    """Create an article from a custom order line"""
    item = get_object_or_404(OrderItem.objects.select_related('order'), pk=pk, article__isnull=True)

    data = {
        'name': item.custom_name,
        'supplier_sku': item.custom_sku,
        'supplier': item.order.supplier,
        'warehouse': item.order.warehouse_id,
    }
    data.update(request.data)
    serializer = ArticleSerializer(data=data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    article_data = dict(serializer.validated_data)
    supplier_links = article_data.pop('suppliers', None)
    article = import_candidate(item, article_data, supplier_links)
    return Response(ArticleSerializer(article).data, status=status.HTTP_201_CREATED)
