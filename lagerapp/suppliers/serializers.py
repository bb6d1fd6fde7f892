from rest_framework import serializers
from .models import Supplier


class SupplierSerializer(serializers.ModelSerializer):
    usage_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Supplier
        fields = ['id', 'name', 'customer_number', 'contact_email', 'website', 'csv_format',
                  'usage_count', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_csv_format(self, value):
        if value and '{{' not in value:
            raise serializers.ValidationError('Format muss mindestens einen Platzhalter wie {{sku}} enthalten')
        return value
