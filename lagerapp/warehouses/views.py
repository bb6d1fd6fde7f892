import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.db.models import Count
from django.core.cache import cache
from lagerapp.core.model_cache import WAREHOUSE_LIST_CACHE_KEY, WAREHOUSE_LIST_CACHE_TTL
from lagerapp.core.permissions import is_admin
from .models import Warehouse
from .serializers import WarehouseSerializer

logger = logging.getLogger('lagerapp.warehouses')


def _annotated_warehouses():
    return Warehouse.objects.annotate(items_count=Count('articles')).order_by('name')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def warehouse_list_create(request):
    """List all warehouses or create a new warehouse (create requires admin)"""
    if request.method == 'GET':
        cached_data = cache.get(WAREHOUSE_LIST_CACHE_KEY)
        if cached_data is not None:
            logger.debug("Cache hit for warehouse list")
            return Response(cached_data)

        serializer = WarehouseSerializer(_annotated_warehouses(), many=True)
        response_data = serializer.data
        cache.set(WAREHOUSE_LIST_CACHE_KEY, response_data, WAREHOUSE_LIST_CACHE_TTL)
        logger.debug(f"Cached warehouse list with {len(response_data)} entries")
        return Response(response_data)

    if not is_admin(request.user):
        logger.warning(f"User {request.user.username} attempted to create warehouse without admin privileges")
        return Response({'error': 'Nur Administratoren dürfen Lager anlegen'}, status=status.HTTP_403_FORBIDDEN)

    serializer = WarehouseSerializer(data=request.data)
    if serializer.is_valid():
        warehouse = serializer.save()
        logger.info(f"Warehouse '{warehouse.name}' created by {request.user.username}")
        return Response(WarehouseSerializer(warehouse).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def warehouse_detail(request, pk):
    """Retrieve, update or delete a warehouse"""
    warehouse = get_object_or_404(_annotated_warehouses(), pk=pk)

    if request.method == 'GET':
        return Response(WarehouseSerializer(warehouse).data)

    if not is_admin(request.user):
        logger.warning(f"User {request.user.username} attempted to modify warehouse {pk} without admin privileges")
        return Response({'error': 'Nur Administratoren dürfen Lager bearbeiten'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'DELETE':
        name = warehouse.name
        warehouse.delete()
        logger.info(f"Warehouse '{name}' deleted by {request.user.username}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = WarehouseSerializer(warehouse, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
