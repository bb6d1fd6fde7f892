from django.contrib.auth import get_user_model
from rest_framework import serializers
from .models import Key, KeyCategory, KeyEvent
from .services import ISSUE, RETURN

User = get_user_model()


class KeyCategorySerializer(serializers.ModelSerializer):
    key_count = serializers.IntegerField(source='keys.count', read_only=True)

    class Meta:
        model = KeyCategory
        fields = ['id', 'name', 'color', 'key_count', 'created_at']
        read_only_fields = ['created_at']


class KeySerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    category_color = serializers.CharField(source='category.color', read_only=True, default=None)

    class Meta:
        model = Key
        fields = [
            'id', 'slot_number', 'name', 'address', 'status', 'status_display', 'holder',
            'holder_name', 'owner', 'notes', 'category', 'category_name', 'category_color',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['holder', 'holder_name', 'created_at', 'updated_at']

    def validate_status(self, value):
        # InUse is only entered and left through checkout/checkin
        current = self.instance.status if self.instance else 'Available'
        if value != current and 'InUse' in (value, current):
            raise serializers.ValidationError('Status wird über Ausgabe und Rücknahme gesetzt')
        return value


class KeyEventSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(read_only=True)
    key_name = serializers.CharField(source='key.name', read_only=True, default=None)
    slot_number = serializers.IntegerField(source='key.slot_number', read_only=True, default=None)

    class Meta:
        model = KeyEvent
        fields = ['id', 'key', 'key_name', 'slot_number', 'user', 'user_name', 'action', 'details', 'created_at']


class HandoverSerializer(serializers.Serializer):
    key_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    partner_name = serializers.CharField(required=False, allow_blank=True, default='')
    holder = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_key_ids(self, value):
        keys = list(Key.objects.filter(pk__in=value))
        if len(keys) != len(set(value)):
            raise serializers.ValidationError('Unbekannter Schlüssel')
        self.keys = keys
        return value


class ProtocolSerializer(serializers.Serializer):
    direction = serializers.ChoiceField(choices=[ISSUE, RETURN])
    key_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    partner_name = serializers.CharField()
    partner_address = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    date = serializers.DateField(required=False)
