# ==================== PARKING/SERIALIZERS.PY ====================
from rest_framework import serializers

from .models import ParkingLocation, ParkingSlot, SlotOccupancyLog


class ParkingLocationListSerializer(serializers.ModelSerializer):
    """Simplified serializer for listing parking locations"""
    vendor_name = serializers.CharField(source='vendor.name', read_only=True)
    distance_km = serializers.SerializerMethodField()

    class Meta:
        model = ParkingLocation
        fields = ['id', 'name', 'address', 'city', 'state', 'latitude', 'longitude', 'type', 'status',
                  'hourly_rate', 'daily_rate', 'monthly_rate', 'total_slots', 'available_slots',
                  'amenities', 'rating', 'review_count', 'vendor_name', 'distance_km']

    def get_distance_km(self, obj):
        # Set by ParkingService.search_nearby when a point was given
        return getattr(obj, 'distance_km', None)


class ParkingLocationDetailSerializer(serializers.ModelSerializer):
    vendor_name = serializers.CharField(source='vendor.name', read_only=True)

    class Meta:
        model = ParkingLocation
        fields = '__all__'


class ParkingLocationCreateUpdateSerializer(serializers.ModelSerializer):
    """For creating/updating parking locations"""

    class Meta:
        model = ParkingLocation
        fields = ['id', 'name', 'description', 'address', 'city', 'state', 'zip_code', 'country',
                  'latitude', 'longitude', 'type', 'status', 'hourly_rate', 'daily_rate',
                  'monthly_rate', 'contact_phone', 'contact_email', 'amenities',
                  'operating_hours', 'images', 'is_active']
        read_only_fields = ['id']

    def validate_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError("Name must be at least 2 characters")
        return value

    def validate_amenities(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Amenities must be a list")
        return value


class ParkingSlotSerializer(serializers.ModelSerializer):
    location_name = serializers.CharField(source='location.name', read_only=True)
    effective_hourly_rate = serializers.DecimalField(
        source='hourly_rate', max_digits=10, decimal_places=2, read_only=True
    )

    class Meta:
        model = ParkingSlot
        fields = ['id', 'location', 'location_name', 'slot_number', 'floor', 'section', 'type',
                  'status', 'custom_hourly_rate', 'custom_daily_rate', 'effective_hourly_rate',
                  'length', 'width', 'is_active', 'current_booking_id', 'last_occupied_at',
                  'notes', 'features', 'created_at', 'updated_at']
        read_only_fields = ['id', 'location', 'current_booking_id', 'last_occupied_at',
                            'created_at', 'updated_at']
        # slot_number uniqueness is checked by ParkingService (409)
        validators = []


class SlotOccupancyLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = SlotOccupancyLog
        fields = ['id', 'slot', 'booking_id', 'occupied_at', 'vacated_at',
                  'duration_minutes', 'revenue', 'was_reserved']


class AvailabilityQuerySerializer(serializers.Serializer):
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    type = serializers.ChoiceField(choices=ParkingSlot.TYPE_CHOICES, required=False)

    def validate(self, data):
        if data['end_time'] <= data['start_time']:
            raise serializers.ValidationError("End time must be after start time")
        return data


class NearbyQuerySerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    radius = serializers.FloatField(min_value=0.1, max_value=100, default=5)
