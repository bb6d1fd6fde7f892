from rest_framework import serializers
from lagerapp.suppliers.models import Supplier
from lagerapp.warehouses.models import Warehouse
from .models import Article, ArticleSupplier, StockMovement
from .services import set_supplier_links


class ArticleSupplierSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source='supplier.name', read_only=True)

    class Meta:
        model = ArticleSupplier
        fields = ['id', 'supplier', 'supplier_name', 'supplier_sku', 'url', 'is_preferred']


class SupplierLinkInputSerializer(serializers.Serializer):
    supplier = serializers.PrimaryKeyRelatedField(queryset=Supplier.objects.all())
    supplier_sku = serializers.CharField(required=False, allow_blank=True, default='')
    url = serializers.URLField(required=False, allow_blank=True, default='')
    is_preferred = serializers.BooleanField(required=False, default=False)


class ArticleSerializer(serializers.ModelSerializer):
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True, default=None)
    supplier_links = ArticleSupplierSerializer(many=True, read_only=True)
    suppliers = SupplierLinkInputSerializer(many=True, write_only=True, required=False)
    missing_amount = serializers.IntegerField(read_only=True)

    class Meta:
        model = Article
        fields = [
            'id', 'name', 'sku', 'manufacturer_skus', 'stock', 'target_stock', 'missing_amount',
            'location', 'category', 'price', 'supplier', 'supplier_sku', 'warehouse', 'warehouse_name',
            'ean', 'product_url', 'image_url', 'on_order_date', 'last_counted_at',
            'supplier_links', 'suppliers', 'created_at', 'updated_at',
        ]
        read_only_fields = ['last_counted_at', 'created_at', 'updated_at']

    def validate_manufacturer_skus(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Erwartet eine Liste')
        cleaned = []
        for entry in value:
            if not isinstance(entry, dict) or not str(entry.get('sku', '')).strip():
                raise serializers.ValidationError('Jeder Eintrag braucht eine sku')
            cleaned.append({'sku': str(entry['sku']).strip(), 'is_preferred': bool(entry.get('is_preferred', False))})
        return cleaned

    def validate_stock(self, value):
        if value < 0:
            raise serializers.ValidationError('Bestand darf nicht negativ sein')
        return value

    def validate_target_stock(self, value):
        if value < 0:
            raise serializers.ValidationError('Sollbestand darf nicht negativ sein')
        return value

    def create(self, validated_data):
        links = validated_data.pop('suppliers', None)
        article = super().create(validated_data)
        if links:
            set_supplier_links(article, links)
        return article

    def update(self, instance, validated_data):
        links = validated_data.pop('suppliers', None)
        article = super().update(instance, validated_data)
        if links is not None:
            set_supplier_links(article, links)
        return article


class ArticleListSerializer(serializers.ModelSerializer):
    """Lighter variant for list views"""
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True, default=None)

    class Meta:
        model = Article
        fields = [
            'id', 'name', 'sku', 'stock', 'target_stock', 'location', 'category', 'supplier',
            'supplier_sku', 'ean', 'warehouse', 'warehouse_name', 'image_url', 'on_order_date',
            'last_counted_at',
        ]


class StockMovementSerializer(serializers.ModelSerializer):
    user_name = serializers.SerializerMethodField()
    article_name = serializers.CharField(source='article.name', read_only=True)

    class Meta:
        model = StockMovement
        fields = ['id', 'article', 'article_name', 'user', 'user_name', 'amount', 'type', 'reference', 'created_at']

    def get_user_name(self, obj):
        return obj.user.display_name if obj.user else 'System'


class StockBookingSerializer(serializers.Serializer):
    amount = serializers.IntegerField()

    def validate_amount(self, value):
        if value == 0:
            raise serializers.ValidationError('Menge darf nicht 0 sein')
        return value


class AuditCountSerializer(serializers.Serializer):
    counted = serializers.IntegerField(min_value=0)


class CopyArticlesSerializer(serializers.Serializer):
    article_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    warehouse = serializers.PrimaryKeyRelatedField(queryset=Warehouse.objects.all())
    category = serializers.CharField(max_length=100)
    location = serializers.CharField(max_length=100)
    stock = serializers.IntegerField(min_value=0, default=0)
    target_stock = serializers.IntegerField(min_value=0, default=0)
