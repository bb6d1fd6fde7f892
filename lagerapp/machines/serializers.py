from django.contrib.auth import get_user_model
from rest_framework import serializers
from .models import Machine, MachineEvent, MachineReservation

User = get_user_model()


class MachineSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    assigned_to_name = serializers.CharField(source='assigned_to.display_name', read_only=True, default=None)
    borrower_name = serializers.CharField(read_only=True)

    class Meta:
        model = Machine
        fields = [
            'id', 'name', 'status', 'status_display', 'assigned_to', 'assigned_to_name',
            'external_borrower', 'borrower_name', 'next_maintenance', 'image_url', 'notes',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['status', 'assigned_to', 'external_borrower', 'created_at', 'updated_at']


class MachineEventSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(read_only=True)
    machine_name = serializers.CharField(source='machine.name', read_only=True)

    class Meta:
        model = MachineEvent
        fields = ['id', 'machine', 'machine_name', 'user', 'user_name', 'action', 'details', 'created_at']


class MachineReservationSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.display_name', read_only=True, default=None)

    class Meta:
        model = MachineReservation
        fields = ['id', 'machine', 'user', 'user_name', 'start_date', 'end_date', 'note', 'created_at']
        read_only_fields = ['machine', 'user', 'created_at']

    def validate(self, attrs):
        if attrs['end_date'] < attrs['start_date']:
            raise serializers.ValidationError({'end_date': 'Enddatum liegt vor dem Startdatum'})
        return attrs


class BorrowSerializer(serializers.Serializer):
    user = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True), required=False, allow_null=True)
    external_name = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs.get('user') and not (attrs.get('external_name') or '').strip():
            raise serializers.ValidationError('Bitte Mitarbeiter oder externen Entleiher angeben')
        return attrs


class ReturnSerializer(serializers.Serializer):
    CONDITION_CHOICES = ['OK', 'Defect']

    condition = serializers.ChoiceField(choices=CONDITION_CHOICES, default='OK')
    defect_note = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs['condition'] == 'Defect' and not attrs['defect_note'].strip():
            raise serializers.ValidationError({'defect_note': 'Bitte Defekt beschreiben'})
        return attrs
