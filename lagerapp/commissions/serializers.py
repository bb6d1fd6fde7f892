from rest_framework import serializers
from .models import Commission, CommissionItem, CommissionEvent


class CommissionItemSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)
    article_name = serializers.CharField(source='article.name', read_only=True, default=None)
    article_location = serializers.CharField(source='article.location', read_only=True, default=None)
    article_stock = serializers.IntegerField(source='article.stock', read_only=True, default=None)

    class Meta:
        model = CommissionItem
        fields = [
            'id', 'type', 'article', 'article_name', 'article_location', 'article_stock',
            'custom_name', 'external_reference', 'attachment_url', 'display_name',
            'amount', 'is_picked', 'is_backorder', 'notes', 'created_at',
        ]
        read_only_fields = ['is_picked', 'created_at']

    def validate_amount(self, value):
        if value < 1:
            raise serializers.ValidationError('Menge muss mindestens 1 sein')
        return value

    def validate(self, attrs):
        item_type = attrs.get('type', 'Stock')
        if item_type == 'Stock' and not attrs.get('article'):
            raise serializers.ValidationError({'article': 'Lagerartikel benötigt einen Artikel'})
        if item_type == 'External' and not attrs.get('custom_name'):
            raise serializers.ValidationError({'custom_name': 'Externe Position benötigt eine Bezeichnung'})
        return attrs


class CommissionSerializer(serializers.ModelSerializer):
    items = CommissionItemSerializer(many=True, required=False)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True, default=None)
    supplier_name = serializers.CharField(source='supplier.name', read_only=True, default=None)

    class Meta:
        model = Commission
        fields = [
            'id', 'order_number', 'name', 'notes', 'status', 'status_display',
            'warehouse', 'warehouse_name', 'supplier', 'supplier_name', 'supplier_order_number',
            'is_processed', 'office_notes', 'needs_label', 'stock_booked', 'items',
            'created_at', 'updated_at', 'withdrawn_at', 'deleted_at',
        ]
        read_only_fields = [
            'status', 'warehouse', 'is_processed', 'office_notes', 'needs_label', 'stock_booked',
            'created_at', 'updated_at', 'withdrawn_at', 'deleted_at',
        ]

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Name darf nicht leer sein')
        return value.strip()


class CommissionListSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    supplier_name = serializers.CharField(source='supplier.name', read_only=True, default=None)
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Commission
        fields = [
            'id', 'order_number', 'name', 'status', 'status_display', 'supplier', 'supplier_name',
            'is_processed', 'needs_label', 'item_count', 'created_at', 'withdrawn_at', 'deleted_at',
        ]

    def get_item_count(self, obj):
        return obj.items.count()


class CommissionEventSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(read_only=True)

    class Meta:
        model = CommissionEvent
        fields = ['id', 'commission', 'commission_name', 'user', 'user_name', 'action', 'details', 'created_at']


class ItemNoteSerializer(serializers.Serializer):
    notes = serializers.CharField(allow_blank=True)


class OfficeProcessingSerializer(serializers.Serializer):
    is_processed = serializers.BooleanField(required=False)
    office_notes = serializers.CharField(required=False, allow_blank=True)


class CleanupScanSerializer(serializers.Serializer):
    codes = serializers.ListField(child=serializers.CharField(), allow_empty=True)


class MarkPrintedSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
