import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from lagerapp.commissions.models import Commission
from lagerapp.core.utils import InvalidParameter, filter_warehouse, warehouse_param
from lagerapp.inventory.models import Article
from .generator import render_article_label, render_location_label, render_commission_label
from .layout import OCCUPANCY_FILTERS, location_groups, safe_filename_part
from .printing import print_html
from .serializers import (
    LabelConfigSerializer, ArticleLabelRequestSerializer, LocationLabelRequestSerializer,
    CommissionLabelRequestSerializer, LocationGroupSerializer,
)

logger = logging.getLogger('lagerapp.labels')


def _html_response(content):
    return HttpResponse(content, content_type='text/html; charset=utf-8')


def _location_articles(warehouse_id=None):
    return filter_warehouse(Article.objects.all(), warehouse_id).order_by('name')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def article_label_png(request, pk):
    """Single article label as downloadable PNG"""
    article = get_object_or_404(Article, pk=pk)
    config_serializer = LabelConfigSerializer(data=request.query_params)
    if not config_serializer.is_valid():
        return Response(config_serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    response = HttpResponse(render_article_label(article, config_serializer.to_config()), content_type='image/png')
    filename = f'Etikett_{safe_filename_part(article.sku or str(article.pk))}_{safe_filename_part(article.name)}.png'
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def article_labels_print(request):
    """Print document for the selected articles"""
    serializer = ArticleLabelRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    config = serializer.to_config()
    ids = serializer.validated_data['article_ids']
    articles = {a.pk: a for a in Article.objects.filter(pk__in=ids)}
    ordered = [articles[pk] for pk in ids if pk in articles]
    if not ordered:
        return Response({'error': 'Keine Artikel gefunden'}, status=status.HTTP_404_NOT_FOUND)

    rendered = [(a.name, render_article_label(a, config)) for a in ordered]
    single = ordered[0].name if len(ordered) == 1 else None
    logger.info(f"Printing {len(rendered)} article labels for {request.user.username}")
    return _html_response(print_html(rendered, config, single_name=single))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def location_label_list(request):
    """Shelf label groups; occupancy=all|single|multi, search over location and category"""
    occupancy = request.query_params.get('occupancy') or 'all'
    if occupancy not in OCCUPANCY_FILTERS:
        return Response({'error': f'Unbekannter Belegungsfilter: {occupancy}'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        warehouse_id = warehouse_param(request.query_params.get('warehouse'))
    except InvalidParameter as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    articles = _location_articles(warehouse_id)
    category = request.query_params.get('category')
    if category:
        articles = articles.filter(category=category)
    groups = location_groups(articles, occupancy=occupancy, search=request.query_params.get('search'))
    return Response(LocationGroupSerializer(groups, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def location_labels_print(request):
    serializer = LocationLabelRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    config = serializer.to_config()
    wanted = set(serializer.validated_data['keys'])
    groups = [
        g for g in location_groups(_location_articles(serializer.validated_data.get('warehouse')))
        if g['key'] in wanted
    ]
    if not groups:
        return Response({'error': 'Keine Lagerorte gefunden'}, status=status.HTTP_404_NOT_FOUND)

    rendered = [(g['location'], render_location_label(g, config)) for g in groups]
    single = groups[0]['location'] if len(groups) == 1 else None
    return _html_response(print_html(rendered, config, single_name=single))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def commission_labels_print(request):
    """Print document for commission shelf labels (also reprints from the print history)"""
    serializer = CommissionLabelRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    config = serializer.to_config()
    commissions = list(Commission.objects.filter(pk__in=serializer.validated_data['commission_ids']).order_by('name'))
    if not commissions:
        return Response({'error': 'Keine Kommissionen gefunden'}, status=status.HTTP_404_NOT_FOUND)

    is_return = serializer.validated_data['is_return']
    rendered = [(c.name, render_commission_label(c, config, is_return=is_return)) for c in commissions]
    single = commissions[0].name if len(commissions) == 1 else None
    return _html_response(print_html(rendered, config, single_name=single))
