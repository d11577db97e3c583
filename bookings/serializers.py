# ==================== BOOKINGS/SERIALIZERS.PY ====================
from django.conf import settings
from rest_framework import serializers

from parking.serializers import ParkingSlotSerializer
from vehicles.serializers import UserVehicleSerializer
from .models import Booking, BookingExtension


class BookingCreateSerializer(serializers.Serializer):
    """Input for a new booking; availability and pricing are handled by BookingService"""
    slot_id = serializers.UUIDField()
    vehicle_id = serializers.UUIDField(required=False, allow_null=True)
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    type = serializers.ChoiceField(choices=Booking.TYPE_CHOICES, default=Booking.TYPE_HOURLY)
    license_plate = serializers.CharField(min_length=2, max_length=20, required=False, allow_blank=True)
    special_instructions = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def validate(self, data):
        if data['end_time'] <= data['start_time']:
            raise serializers.ValidationError({'end_time': 'End time must be after start time'})
        return data


class BookingListSerializer(serializers.ModelSerializer):
    slot_number = serializers.CharField(source='slot.slot_number', read_only=True)
    location_id = serializers.UUIDField(source='slot.location_id', read_only=True)
    location_name = serializers.CharField(source='slot.location.name', read_only=True)
    user_email = serializers.EmailField(source='user.email', read_only=True)
    outstanding_amount = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = Booking
        fields = ['id', 'slot', 'slot_number', 'location_id', 'location_name', 'user_email', 'type',
                  'start_time', 'end_time', 'status', 'total_amount', 'paid_amount',
                  'outstanding_amount', 'license_plate', 'confirmation_code', 'created_at']


class BookingExtensionSerializer(serializers.ModelSerializer):
    class Meta:
        model = BookingExtension
        fields = ['id', 'original_end_time', 'new_end_time', 'extension_minutes',
                  'extension_fee', 'reason', 'created_at']


class BookingDetailSerializer(serializers.ModelSerializer):
    slot = ParkingSlotSerializer(read_only=True)
    vehicle = UserVehicleSerializer(read_only=True)
    extensions = BookingExtensionSerializer(many=True, read_only=True)
    outstanding_amount = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    location_name = serializers.CharField(source='slot.location.name', read_only=True)
    location_address = serializers.CharField(source='slot.location.address', read_only=True)

    class Meta:
        model = Booking
        fields = '__all__'


class BookingUpdateSerializer(serializers.Serializer):
    end_time = serializers.DateTimeField(required=False)
    license_plate = serializers.CharField(min_length=2, max_length=20, required=False)
    special_instructions = serializers.CharField(max_length=500, required=False, allow_blank=True)


class BookingExtendSerializer(serializers.Serializer):
    extension_minutes = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(max_length=200, required=False, allow_blank=True)

    def validate_extension_minutes(self, value):
        limit = settings.PARKING['MAX_EXTENSION_MINUTES']
        if value > limit:
            raise serializers.ValidationError(f"Extension cannot exceed {limit} minutes")
        return value


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(min_length=5, max_length=200)


class CheckInSerializer(serializers.Serializer):
    actual_license_plate = serializers.CharField(min_length=2, max_length=20, required=False)


class CheckOutSerializer(serializers.Serializer):
    notes = serializers.CharField(max_length=200, required=False, allow_blank=True)
