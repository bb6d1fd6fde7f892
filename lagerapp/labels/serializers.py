from rest_framework import serializers
from .layout import LabelConfig


class LabelConfigSerializer(serializers.Serializer):
    width = serializers.FloatField(default=70, min_value=20, max_value=200)
    height = serializers.FloatField(default=37, min_value=10, max_value=200)
    font_scale = serializers.FloatField(default=1, min_value=0.5, max_value=3)

    def to_config(self):
        return LabelConfig(**self.validated_data)


class ArticleLabelRequestSerializer(LabelConfigSerializer):
    article_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)


class LocationLabelRequestSerializer(LabelConfigSerializer):
    keys = serializers.ListField(child=serializers.CharField(), allow_empty=False)
    warehouse = serializers.IntegerField(required=False)


class CommissionLabelRequestSerializer(LabelConfigSerializer):
    commission_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    is_return = serializers.BooleanField(default=False)


class LocationGroupSerializer(serializers.Serializer):
    key = serializers.CharField()
    category = serializers.CharField()
    location = serializers.CharField()
    qr_data = serializers.CharField()
    article_count = serializers.SerializerMethodField()
    articles = serializers.SerializerMethodField()

    def get_article_count(self, obj):
        return len(obj['articles'])

    def get_articles(self, obj):
        return [
            {'id': a.pk, 'name': a.name, 'supplier': a.supplier, 'supplier_sku': a.supplier_sku,
             'barcode_value': a.barcode_value}
            for a in obj['label_articles']
        ]

