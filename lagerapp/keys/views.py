import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from lagerapp.core.utils import paginated_response
from .models import Key, KeyCategory, KeyEvent
from .serializers import (
    KeySerializer, KeyCategorySerializer, KeyEventSerializer, HandoverSerializer, ProtocolSerializer,
)
from .services import HandoverError, checkout_keys, checkin_keys, log_key_change, protocol_html

logger = logging.getLogger('lagerapp.keys')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def key_list_create(request):
    """
    GET: keys by slot; tab=available|in_use, search over slot, name, address and holder.
    POST: create a key; new keys always start Available.
    """
    if request.method == 'GET':
        queryset = Key.objects.select_related('category', 'holder')
        tab = request.query_params.get('tab')
        if tab == 'available':
            queryset = queryset.filter(status='Available')
        elif tab == 'in_use':
            queryset = queryset.filter(status='InUse')
        category = request.query_params.get('category')
        if category:
            queryset = queryset.filter(category_id=category)
        search = request.query_params.get('search')
        if search:
            query = Q(name__icontains=search) | Q(address__icontains=search) | Q(holder_name__icontains=search)
            if search.isdigit():
                query |= Q(slot_number=int(search))
            queryset = queryset.filter(query)
        return Response(KeySerializer(queryset.order_by('slot_number'), many=True).data)

    serializer = KeySerializer(data=request.data)
    if serializer.is_valid():
        key = serializer.save(status='Available')
        log_key_change(key, 'create', request.user)
        return Response(KeySerializer(key).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def key_detail(request, pk):
    key = get_object_or_404(Key.objects.select_related('category', 'holder'), pk=pk)

    if request.method == 'GET':
        return Response(KeySerializer(key).data)
    elif request.method == 'PATCH':
        serializer = KeySerializer(key, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            log_key_change(key, 'update', request.user)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        log_key_change(key, 'delete', request.user)
        key.delete()
        logger.info(f"Key {pk} deleted by {request.user.username}")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def key_checkout(request):
    """Issue one or more keys to a partner (employee or customer)"""
    serializer = HandoverSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        keys = checkout_keys(
            serializer.keys, data['partner_name'], request.user, holder=data.get('holder'), notes=data['notes'],
        )
    except HandoverError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(KeySerializer(keys, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def key_checkin(request):
    serializer = HandoverSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        keys = checkin_keys(serializer.keys, data['partner_name'], request.user, notes=data['notes'])
    except HandoverError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(KeySerializer(keys, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def key_protocol(request):
    """Printable handover protocol (HTML)"""
    serializer = ProtocolSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    keys = list(Key.objects.filter(pk__in=data['key_ids']))
    if not keys:
        return Response({'error': 'Keine Schlüssel gefunden'}, status=status.HTTP_404_NOT_FOUND)
    html = protocol_html(
        data['direction'], keys, data['partner_name'],
        partner_address=data['partner_address'], notes=data['notes'], date=data.get('date'),
    )
    return HttpResponse(html, content_type='text/html; charset=utf-8')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def key_history(request, pk=None):
    """History of one key, or of all keys"""
    queryset = KeyEvent.objects.select_related('user', 'key')
    if pk is not None:
        get_object_or_404(Key, pk=pk)
        queryset = queryset.filter(key_id=pk)
    return paginated_response(request, queryset.order_by('-created_at'), KeyEventSerializer, default_limit=50)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def key_category_list_create(request):
    if request.method == 'GET':
        return Response(KeyCategorySerializer(KeyCategory.objects.all(), many=True).data)

    serializer = KeyCategorySerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def key_category_detail(request, pk):
    category = get_object_or_404(KeyCategory, pk=pk)

    if request.method == 'PATCH':
        serializer = KeyCategorySerializer(category, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        category.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
