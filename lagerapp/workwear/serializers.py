from django.contrib.auth import get_user_model
from rest_framework import serializers
from .models import (
    WorkwearTemplate, WorkwearBudget, UserSize, WorkwearOrder, WorkwearOrderItem, WorkwearSettings,
)

User = get_user_model()


class WorkwearTemplateSerializer(serializers.ModelSerializer):
    class Meta:
        model = WorkwearTemplate
        fields = ['id', 'name', 'category', 'article_number', 'price', 'image_url', 'is_active', 'has_logo', 'created_at']
        read_only_fields = ['created_at']

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError('Preis darf nicht negativ sein')
        return value


class WorkwearBudgetSerializer(serializers.ModelSerializer):
    class Meta:
        model = WorkwearBudget
        fields = ['id', 'user', 'year', 'budget_limit']


class BudgetUpsertSerializer(serializers.Serializer):
    user = serializers.PrimaryKeyRelatedField(queryset=User.objects.all())
    budget_limit = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    year = serializers.IntegerField(required=False, min_value=2000)


class RoleChangeSerializer(serializers.Serializer):
    workwear_role = serializers.ChoiceField(choices=User.WORKWEAR_ROLE_CHOICES)


class UserSizeSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserSize
        fields = ['id', 'category', 'size_value']


class WorkwearOrderItemSerializer(serializers.ModelSerializer):
    template_name = serializers.CharField(source='template.name', read_only=True, default='Unbekannter Artikel')
    template_image = serializers.CharField(source='template.image_url', read_only=True, default=None)
    article_number = serializers.CharField(source='template.article_number', read_only=True, default=None)

    class Meta:
        model = WorkwearOrderItem
        fields = [
            'id', 'template', 'template_name', 'template_image', 'article_number',
            'quantity', 'size', 'use_logo', 'price_at_order',
        ]


class WorkwearOrderSerializer(serializers.ModelSerializer):
    items = WorkwearOrderItemSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    user_name = serializers.CharField(source='user.display_name', read_only=True)

    class Meta:
        model = WorkwearOrder
        fields = ['id', 'user', 'user_name', 'status', 'status_display', 'total_amount', 'items', 'created_at', 'updated_at']


class CartLineSerializer(serializers.Serializer):
    template = serializers.PrimaryKeyRelatedField(queryset=WorkwearTemplate.objects.filter(is_active=True))
    size = serializers.CharField(required=False, allow_blank=True, default='')
    quantity = serializers.IntegerField(min_value=1, default=1)


class CheckoutSerializer(serializers.Serializer):
    items = CartLineSerializer(many=True, allow_empty=False)


class StatusChangeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['ORDERED', 'COMPLETED', 'RETURNED'])


class WorkwearSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = WorkwearSettings
        fields = ['logo_url', 'updated_at']
        read_only_fields = ['updated_at']


class BudgetSummarySerializer(serializers.Serializer):
    year = serializers.IntegerField()
    limit = serializers.DecimalField(max_digits=10, decimal_places=2)
    used = serializers.DecimalField(max_digits=10, decimal_places=2)
    reserved = serializers.DecimalField(max_digits=10, decimal_places=2)
    available = serializers.DecimalField(max_digits=10, decimal_places=2)
