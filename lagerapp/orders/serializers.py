from rest_framework import serializers
from lagerapp.inventory.models import Article
from lagerapp.inventory.serializers import ArticleListSerializer
from lagerapp.warehouses.models import Warehouse
from .models import Order, OrderItem, OrderEvent
from .receiving import RECEIVE_MODES


class OrderItemSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)
    display_sku = serializers.CharField(read_only=True)
    article_stock = serializers.IntegerField(source='article.stock', read_only=True, default=None)
    article_location = serializers.CharField(source='article.location', read_only=True, default=None)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'article', 'custom_name', 'custom_sku', 'display_name', 'display_sku',
            'article_stock', 'article_location', 'quantity_ordered', 'quantity_received', 'created_at',
        ]
        read_only_fields = ['quantity_received', 'created_at']


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True, default=None)
    warehouse_type = serializers.CharField(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'supplier', 'date', 'item_count', 'status', 'status_display', 'total',
            'commission_number', 'supplier_order_number', 'warehouse', 'warehouse_name',
            'warehouse_type', 'items', 'created_at', 'updated_at',
        ]
        read_only_fields = ['item_count', 'created_at', 'updated_at']


class OrderListSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            'id', 'supplier', 'date', 'item_count', 'status', 'status_display',
            'commission_number', 'supplier_order_number', 'warehouse', 'warehouse_name', 'created_at',
        ]


class OrderEventSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(read_only=True)
    order_supplier = serializers.CharField(source='order.supplier', read_only=True, default=None)

    class Meta:
        model = OrderEvent
        fields = ['id', 'order', 'order_supplier', 'user', 'user_name', 'action', 'details', 'created_at']


class ProposalArticleSerializer(serializers.Serializer):
    article = ArticleListSerializer()
    missing_amount = serializers.IntegerField()


class ProposalSerializer(serializers.Serializer):
    key = serializers.CharField()
    warehouse_id = serializers.CharField()
    warehouse_name = serializers.CharField()
    supplier = serializers.CharField()
    supplier_id = serializers.IntegerField(allow_null=True)
    csv_format = serializers.CharField()
    articles = ProposalArticleSerializer(many=True)
    total_items = serializers.IntegerField()


class ProposalSelectionSerializer(serializers.Serializer):
    """Which proposal and which of its articles to order"""
    warehouse = serializers.CharField()
    supplier = serializers.CharField()
    article_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    quantities = serializers.DictField(child=serializers.IntegerField(min_value=1), required=False, default=dict)
    commission_number = serializers.CharField(required=False, allow_blank=True, default='')
    supplier_order_number = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_quantities(self, value):
        try:
            return {int(k): v for k, v in value.items()}
        except (TypeError, ValueError):
            raise serializers.ValidationError('Schlüssel müssen Artikel-IDs sein')


class ReceiveItemSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    amount = serializers.IntegerField(min_value=0)


class ReceiveSerializer(serializers.Serializer):
    items = ReceiveItemSerializer(many=True, required=False)
    mode = serializers.ChoiceField(choices=RECEIVE_MODES, required=False, allow_null=True, default=None)

    def get_amounts(self):
        items = self.validated_data.get('items')
        if items is None:
            return None
        return {entry['id']: entry['amount'] for entry in items}


class ManualOrderItemSerializer(serializers.Serializer):
    article = serializers.PrimaryKeyRelatedField(queryset=Article.objects.all(), required=False, allow_null=True)
    sku = serializers.CharField(required=False, allow_blank=True, default='')
    name = serializers.CharField(required=False, allow_blank=True, default='')
    quantity = serializers.IntegerField(min_value=1, default=1)

    def validate(self, attrs):
        if not attrs.get('article') and not attrs.get('sku') and not attrs.get('name'):
            raise serializers.ValidationError('Artikel, Artikelnummer oder Bezeichnung angeben')
        return attrs


class ManualOrderSerializer(serializers.Serializer):
    warehouse = serializers.PrimaryKeyRelatedField(queryset=Warehouse.objects.all(), required=False, allow_null=True)
    supplier_name = serializers.CharField(required=False, allow_blank=True, default='')
    supplier_order_number = serializers.CharField(required=False, allow_blank=True, default='')
    commission_number = serializers.CharField(required=False, allow_blank=True, default='')
    items = ManualOrderItemSerializer(many=True, allow_empty=False)


class ImportCandidateSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source='custom_name')
    sku = serializers.CharField(source='custom_sku')
    supplier = serializers.CharField(source='order.supplier')
    date = serializers.DateField(source='order.date')
    warehouse = serializers.IntegerField(source='order.warehouse_id', allow_null=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'name', 'sku', 'supplier', 'date', 'warehouse', 'quantity_ordered', 'created_at']
