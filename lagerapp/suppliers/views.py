import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.cache import cache
from django.db.models import Q, Count
from django.shortcuts import get_object_or_404
from lagerapp.core.model_cache import SUPPLIER_LIST_CACHE_KEY, SUPPLIER_LIST_CACHE_TTL
from .models import Supplier
from .serializers import SupplierSerializer

logger = logging.getLogger('lagerapp.suppliers')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def supplier_list_create(request):
    """
    List all suppliers or create a new supplier.

    ?sort=usage orders by how often commissions use the supplier, then by name.
    """
    if request.method == 'GET':
        search = request.query_params.get('search', None)
        sort = request.query_params.get('sort', 'name')

        if not search and sort == 'name':
            cached_data = cache.get(SUPPLIER_LIST_CACHE_KEY)
            if cached_data is not None:
                return Response(cached_data)

        queryset = Supplier.objects.annotate(usage_count=Count('commissions'))
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(customer_number__icontains=search) |
                Q(contact_email__icontains=search)
            )
        if sort == 'usage':
            queryset = queryset.order_by('-usage_count', 'name')
        else:
            queryset = queryset.order_by('name')

        data = SupplierSerializer(queryset, many=True).data
        if not search and sort == 'name':
            cache.set(SUPPLIER_LIST_CACHE_KEY, data, SUPPLIER_LIST_CACHE_TTL)
        return Response(data)

    serializer = SupplierSerializer(data=request.data)
    if serializer.is_valid():
        supplier = serializer.save()
        logger.info(f"Supplier '{supplier.name}' created by {request.user.username}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def supplier_detail(request, pk):
    """Retrieve, update or delete a supplier"""
    supplier = get_object_or_404(Supplier, pk=pk)

    if request.method == 'GET':
        return Response(SupplierSerializer(supplier).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SupplierSerializer(supplier, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        name = supplier.name
        supplier.delete()
        logger.info(f"Supplier '{name}' deleted by {request.user.username}")
        return Response(status=status.HTTP_204_NO_CONTENT)
