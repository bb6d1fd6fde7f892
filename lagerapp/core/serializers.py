from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User


class UserSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)
    primary_warehouse_name = serializers.CharField(source='primary_warehouse.name', read_only=True, default=None)
    secondary_warehouse_name = serializers.CharField(source='secondary_warehouse.name', read_only=True, default=None)

    class Meta:
        model = User
        fields = [
            'id', 'username', 'email', 'full_name', 'display_name', 'role', 'avatar_url',
            'primary_warehouse', 'primary_warehouse_name',
            'secondary_warehouse', 'secondary_warehouse_name',
            'collapsed_categories', 'has_seen_tour', 'workwear_role',
            'is_active', 'is_staff', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact representation for pickers (borrowers, key holders)"""
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'full_name', 'display_name', 'workwear_role']


class ProfileSerializer(serializers.ModelSerializer):
    """Fields a user may change on their own profile"""

    class Meta:
        model = User
        fields = [
            'full_name', 'avatar_url', 'primary_warehouse', 'secondary_warehouse',
            'collapsed_categories', 'has_seen_tour',
        ]

    def validate_collapsed_categories(self, value):
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise serializers.ValidationError('Erwartet eine Liste von Kategorienamen')
        return value


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'full_name']

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwörter stimmen nicht überein"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user
