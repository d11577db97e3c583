import logging

from django.db import transaction
from django.db.models import Count, Q

from utils.exceptions import DuplicateResource, ResourceInUse
from utils.distance_calculator import DistanceCalculator
from .models import ParkingLocation, ParkingSlot

logger = logging.getLogger(__name__)


class ParkingService:
    """Location and slot management"""

    @staticmethod
    def create_location(vendor, data):
        if ParkingLocation.objects.filter(vendor=vendor, name__iexact=data['name']).exists():
            raise DuplicateResource('Parking location with this name already exists')
        location = ParkingLocation.objects.create(vendor=vendor, **data)
        logger.info(f"Parking location {location.id} created by vendor {vendor.id}")
        return location

    @staticmethod
    def ensure_unique_name(location, name):
        duplicate = ParkingLocation.objects.filter(
            vendor=location.vendor, name__iexact=name
        ).exclude(pk=location.pk)
        if duplicate.exists():
            raise DuplicateResource('Parking location with this name already exists')

    @staticmethod
    @transaction.atomic
    def deactivate_location(location):
        if location.slots.filter(status=ParkingSlot.STATUS_OCCUPIED).exists():
            raise ResourceInUse('Cannot delete location with occupied slots')
        location.status = 'inactive'
        location.is_active = False
        location.save(update_fields=['status', 'is_active', 'updated_at'])
        logger.info(f"Parking location {location.id} deactivated")

    @staticmethod
    def search_nearby(queryset, latitude, longitude, radius_km):
        """Locations within radius_km of a point, each annotated with distance_km"""
        min_lat, max_lat, min_lng, max_lng = DistanceCalculator.bounding_box(latitude, longitude, radius_km)
        in_lng = Q()
        for low, high in DistanceCalculator.longitude_ranges(min_lng, max_lng):
            in_lng |= Q(longitude__gte=low, longitude__lte=high)
        candidates = queryset.filter(in_lng, latitude__gte=min_lat, latitude__lte=max_lat)
        return DistanceCalculator.filter_within_radius(candidates, latitude, longitude, radius_km)

    @staticmethod
    def location_stats(location):
        counts = location.slots.filter(is_active=True).aggregate(
            total=Count('id'),
            available=Count('id', filter=Q(status=ParkingSlot.STATUS_AVAILABLE)),
            occupied=Count('id', filter=Q(status=ParkingSlot.STATUS_OCCUPIED)),
            reserved=Count('id', filter=Q(status=ParkingSlot.STATUS_RESERVED)),
            maintenance=Count('id', filter=Q(status__in=ParkingSlot.UNBOOKABLE_STATUSES)),
        )
        total = counts['total']
        in_use = counts['occupied'] + counts['reserved']
        return {
            'total_slots': total,
            'available_slots': counts['available'],
            'occupied_slots': counts['occupied'],
            'reserved_slots': counts['reserved'],
            'maintenance_slots': counts['maintenance'],
            'occupancy_rate': round(in_use / total * 100, 2) if total > 0 else 0,
        }

    @staticmethod
    def create_slot(location, data):
        if location.slots.filter(slot_number__iexact=data['slot_number']).exists():
            raise DuplicateResource('Slot number already exists in this location')
        slot = ParkingSlot.objects.create(location=location, **data)
        return slot

    @staticmethod
    def ensure_unique_slot_number(slot, slot_number):
        duplicate = slot.location.slots.filter(slot_number__iexact=slot_number).exclude(pk=slot.pk)
        if duplicate.exists():
            raise DuplicateResource('Slot number already exists in this location')

    @staticmethod
    def ensure_slot_editable(slot, data):
        """An occupied slot keeps its status and stays active until check-out"""
        if slot.status != ParkingSlot.STATUS_OCCUPIED:
            return
        if data.get('is_active') is False or data.get('status', slot.status) != slot.status:
            raise ResourceInUse('Cannot change the status of an occupied slot')

    @staticmethod
    def deactivate_slot(slot):
        if slot.status == ParkingSlot.STATUS_OCCUPIED:
            raise ResourceInUse('Cannot delete an occupied slot')
        slot.is_active = False
        slot.save()
        logger.info(f"Slot {slot.id} deactivated")

    @staticmethod
    def available_slots(location, start_time, end_time, slot_type=None):
        """Active, bookable slots with no blocking booking overlapping [start_time, end_time)"""
        from bookings.models import Booking

        busy_slot_ids = Booking.objects.filter(
            slot__location=location,
            status__in=Booking.BLOCKING_STATUSES,
            start_time__lt=end_time,
            end_time__gt=start_time,
        ).values('slot_id')

        slots = location.slots.filter(is_active=True).exclude(
            status__in=ParkingSlot.UNBOOKABLE_STATUSES
        ).exclude(id__in=busy_slot_ids)
        if slot_type:
            slots = slots.filter(type=slot_type)
        return slots
