from rest_framework import serializers
from lagerapp.commissions.serializers import CommissionListSerializer


class DashboardCommissionSerializer(CommissionListSerializer):
    has_backorder = serializers.BooleanField(read_only=True)

    class Meta(CommissionListSerializer.Meta):
        fields = CommissionListSerializer.Meta.fields + ['has_backorder', 'office_notes']


class ActivitySerializer(serializers.Serializer):
    id = serializers.CharField()
    type = serializers.CharField()
    user_name = serializers.CharField()
    action = serializers.CharField()
    details = serializers.CharField(allow_blank=True)
    created_at = serializers.DateTimeField()
    entity_name = serializers.CharField()
