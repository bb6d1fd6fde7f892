import django_filters
from django.db.models import F, Q
from .models import Article


class ArticleFilter(django_filters.FilterSet):
    """Filter for the article list using django-filter"""

    # Search across name, SKUs and EAN
    search = django_filters.CharFilter(method='filter_search', label='Search')

    warehouse = django_filters.NumberFilter(field_name='warehouse_id', lookup_expr='exact')
    category = django_filters.CharFilter(field_name='category', lookup_expr='exact')
    location = django_filters.CharFilter(field_name='location', lookup_expr='exact')
    supplier = django_filters.CharFilter(field_name='supplier', lookup_expr='iexact')

    below_target = django_filters.CharFilter(method='filter_below_target', label='Below target stock')
    on_order = django_filters.CharFilter(method='filter_on_order', label='On order')

    class Meta:
        model = Article
        fields = ['search', 'warehouse', 'category', 'location', 'supplier', 'below_target', 'on_order']

    def filter_search(self, queryset, name, value):
        """Every word must appear in name, SKU, supplier SKU or EAN"""
        if not value or not value.strip():
            return queryset
        for word in value.split():
            queryset = queryset.filter(
                Q(name__icontains=word) |
                Q(sku__icontains=word) |
                Q(supplier_sku__icontains=word) |
                Q(ean__icontains=word)
            )
        return queryset

    def filter_below_target(self, queryset, name, value):
        if str(value).lower() != 'true':
            return queryset
        return queryset.filter(stock__lt=F('target_stock'))

    def filter_on_order(self, queryset, name, value):
        if value is None or value == '':
            return queryset
        return queryset.filter(on_order_date__isnull=str(value).lower() != 'true')
