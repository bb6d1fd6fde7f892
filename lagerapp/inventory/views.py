import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import JSONParser, MultiPartParser, FormParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from lagerapp.core import blob_storage
from lagerapp.core.utils import InvalidParameter, filter_warehouse, paginated_response, parse_bool, warehouse_param
from lagerapp.orders.document_ai import DocumentExtractionError
from lagerapp.warehouses.models import Warehouse
from .filters import ArticleFilter
from .models import Article, StockMovement
from .serializers import (
    ArticleSerializer, ArticleListSerializer, StockMovementSerializer,
    StockBookingSerializer, AuditCountSerializer, CopyArticlesSerializer,
)
from .product_ai import IMAGE_TYPES, analyze_product
from .services import (
    StockError, book_stock, audit_count, resolve_scan, stale_articles, busy_shelves,
    suggest_location, copy_articles, find_duplicates, rename_category,
)

logger = logging.getLogger('lagerapp.inventory')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def article_list_create(request):
    """List articles (filterable, paginated) or create a new article"""
    if request.method == 'GET':
        queryset = Article.objects.select_related('warehouse')
        filterset = ArticleFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs.order_by('category', 'location', 'name')

        if not parse_bool(request.query_params.get('paginate', 'true')):
            return Response(ArticleListSerializer(queryset, many=True).data)
        return paginated_response(request, queryset, ArticleListSerializer, default_limit=50)

    serializer = ArticleSerializer(data=request.data)
    if serializer.is_valid():
        data = serializer.validated_data
        if not parse_bool(request.data.get('force')):
            warehouse = data.get('warehouse')
            conflicts = find_duplicates(
                name=data.get('name'),
                warehouse_id=warehouse.pk if warehouse else None,
                skus=[data.get('sku', '')] + [entry['sku'] for entry in data.get('manufacturer_skus', [])],
                supplier_skus=[data.get('supplier_sku', '')] + [
                    link.get('supplier_sku', '') for link in data.get('suppliers', [])
                ],
            )
            if conflicts:
                return Response(
                    {'error': 'Möglicherweise existiert der Artikel bereits', 'conflicts': conflicts},
                    status=status.HTTP_409_CONFLICT,
                )
        article = serializer.save()
        logger.info(f"Article '{article.name}' created by {request.user.username}")
        return Response(ArticleSerializer(article).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def article_detail(request, pk):
    """Retrieve, update or delete an article"""
    article = get_object_or_404(
        Article.objects.select_related('warehouse').prefetch_related('supplier_links__supplier'), pk=pk
    )

    if request.method == 'GET':
        return Response(ArticleSerializer(article).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ArticleSerializer(article, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            article = serializer.save()
            return Response(ArticleSerializer(article).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        image_url = article.image_url
        name = article.name
        article.delete()
        if image_url:
            blob_storage.delete_blob(image_url)
        logger.info(f"Article '{name}' deleted by {request.user.username}")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def article_book_stock(request, pk):
    """Quick booking: add or remove stock by hand"""
    article = get_object_or_404(Article, pk=pk)
    serializer = StockBookingSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        article = book_stock(article, serializer.validated_data['amount'], user=request.user)
    except StockError as e:
        logger.warning(f"Booking rejected for article {pk}: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(ArticleSerializer(article).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def article_audit(request, pk):
    """Stocktaking: store the counted quantity"""
    article = get_object_or_404(Article, pk=pk)
    serializer = AuditCountSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    article, difference = audit_count(article, serializer.validated_data['counted'], user=request.user)
    data = ArticleSerializer(article).data
    data['difference'] = difference
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def article_movements(request, pk):
    """Stock movement history of an article, newest first"""
    article = get_object_or_404(Article, pk=pk)
    queryset = StockMovement.objects.filter(article=article).select_related('user', 'article')
    return paginated_response(request, queryset, StockMovementSerializer, default_limit=25)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def article_image_upload(request, pk):
    """Upload an article picture to object storage and store its URL"""
    article = get_object_or_404(Article, pk=pk)
    uploaded = request.FILES.get('image')
    if not uploaded:
        return Response({'error': 'Kein Bild übermittelt'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        url = blob_storage.upload_file('articles', uploaded)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    if not url:
        return Response({'error': 'Speicher nicht verfügbar'}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

    old_url = article.image_url
    article.image_url = url
    article.save(update_fields=['image_url', 'updated_at'])
    if old_url:
        blob_storage.delete_blob(old_url)
    return Response(ArticleSerializer(article).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def scan_lookup(request):
    """Resolve a scanned QR or barcode value"""
    code = request.query_params.get('code', '').strip()
    if not code:
        return Response({'error': 'Parameter code fehlt'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        warehouse_id = warehouse_param(request.query_params.get('warehouse'))
    except InvalidParameter as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    result = resolve_scan(code, warehouse_id=warehouse_id)
    if result is None:
        return Response({'error': f'Code nicht erkannt: {code}'}, status=status.HTTP_404_NOT_FOUND)

    if result['type'] == 'article':
        result['article'] = ArticleSerializer(result['article']).data
    elif result['type'] == 'location':
        result['articles'] = ArticleListSerializer(result['articles'], many=True).data
    return Response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def articles_copy(request):
    """Copy selected articles into another warehouse and shelf"""
    serializer = CopyArticlesSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    sources = list(Article.objects.filter(pk__in=data['article_ids']).prefetch_related('supplier_links'))
    if not sources:
        return Response({'error': 'Keine Artikel gefunden'}, status=status.HTTP_404_NOT_FOUND)

    copies = copy_articles(
        sources, data['warehouse'], data['category'], data['location'],
        stock=data['stock'], target_stock=data['target_stock'],
    )
    return Response({
        'copied': len(copies),
        'results': ArticleListSerializer(copies, many=True).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def article_categories(request):
    """Distinct shelves (categories), optionally for one warehouse"""
    try:
        warehouse_id = warehouse_param(request.query_params.get('warehouse'))
    except InvalidParameter as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    queryset = filter_warehouse(Article.objects.exclude(category=''), warehouse_id)
    categories = sorted(set(queryset.values_list('category', flat=True)))
    return Response(categories)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def location_suggestion(request):
    """Next free bin name for a shelf"""
    category = request.query_params.get('category')
    try:
        warehouse = warehouse_param(request.query_params.get('warehouse'))
    except InvalidParameter as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    if not warehouse or not category:
        return Response({'error': 'warehouse und category sind erforderlich'}, status=status.HTTP_400_BAD_REQUEST)
    return Response({'location': suggest_location(warehouse, category)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_recommendations(request):
    """What to count next: stale articles or frequently moved shelves"""
    try:
        warehouse = warehouse_param(request.query_params.get('warehouse'))
    except InvalidParameter as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    warehouse = warehouse or getattr(request.user, 'primary_warehouse_id', None)
    if not warehouse:
        return Response({'error': 'Kein Lager ausgewählt'}, status=status.HTTP_400_BAD_REQUEST)

    mode = request.query_params.get('mode', 'stale')
    if mode == 'movement':
        return Response({
            'title': 'Häufig bewegte Lagerfächer (Top 20)',
            'type': 'shelf',
            'items': busy_shelves(warehouse),
        })
    return Response({
        'title': 'Lange nicht gezählt',
        'type': 'article',
        'items': ArticleListSerializer(stale_articles(warehouse), many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def category_rename(request):
    """Rename a shelf (category) on all articles of a warehouse"""
    try:
        warehouse_id = warehouse_param(request.data.get('warehouse'))
    except InvalidParameter as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    if warehouse_id is None:
        return Response({'error': 'Kein Lager ausgewählt'}, status=status.HTTP_400_BAD_REQUEST)
    warehouse = get_object_or_404(Warehouse, pk=warehouse_id)

    try:
        count = rename_category(warehouse.pk, request.data.get('old'), request.data.get('new'))
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response({'updated': count, 'category': str(request.data.get('new') or '').strip()})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def article_analyze(request):
    """Suggest article data from a product photo (file) or a shop link (url)"""
    uploaded = request.FILES.get('file')
    url = str(request.data.get('url') or '').strip()
    if not uploaded and not url:
        return Response({'error': 'Bild oder Link erforderlich'}, status=status.HTTP_400_BAD_REQUEST)
    if uploaded and uploaded.content_type not in IMAGE_TYPES:
        return Response(
            {'error': f'Dateityp {uploaded.content_type} wird nicht unterstützt'},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if not uploaded and not url.startswith(('http://', 'https://')):
        return Response({'error': 'Ungültiger Link'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        if uploaded:
            result = analyze_product(image=uploaded.read(), mime_type=uploaded.content_type)
        else:
            result = analyze_product(url=url)
    except DocumentExtractionError as e:
        logger.warning(f"Product analysis failed: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)
    return Response(result)
