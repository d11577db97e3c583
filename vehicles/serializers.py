from rest_framework import serializers

from utils.exceptions import DuplicateResource
from .models import UserVehicle, VehicleUsageStats
from .services import normalize_plate


class UserVehicleSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserVehicle
        fields = ['id', 'user', 'license_plate', 'type', 'brand', 'model', 'color',
                  'is_active', 'specifications', 'created_at', 'updated_at']
        read_only_fields = ['id', 'user', 'created_at', 'updated_at']
        # Uniqueness per user is checked in validate_license_plate (409, not 400)
        validators = []

    def validate_license_plate(self, value):
        plate = normalize_plate(value)
        if len(plate) < 2:
            raise serializers.ValidationError("License plate is too short")

        owner = self.instance.user if self.instance else self.context['request'].user
        existing = UserVehicle.objects.filter(user=owner, license_plate=plate)
        if self.instance:
            existing = existing.exclude(pk=self.instance.pk)
        if existing.exists():
            raise DuplicateResource('Vehicle with this license plate already exists')
        return plate


class VehicleUsageStatsSerializer(serializers.ModelSerializer):
    class Meta:
        model = VehicleUsageStats
        fields = ['date', 'booking_count', 'total_amount', 'total_hours']
