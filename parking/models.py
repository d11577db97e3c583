# parking/models.py

import uuid

from django.conf import settings
from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator

from utils.money import to_money


class ParkingLocation(models.Model):
    TYPE_CHOICES = (
        ('indoor', 'Indoor'),
        ('outdoor', 'Outdoor'),
        ('covered', 'Covered'),
        ('street', 'Street'),
    )
    STATUS_CHOICES = (
        ('active', 'Active'),
        ('inactive', 'Inactive'),
        ('maintenance', 'Maintenance'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vendor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='parking_locations')

    # Location info
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    address = models.CharField(max_length=500)
    city = models.CharField(max_length=100, db_index=True)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)
    country = models.CharField(max_length=100, default='India')
    latitude = models.DecimalField(
        max_digits=9, decimal_places=6,
        validators=[MinValueValidator(-90), MaxValueValidator(90)]
    )
    longitude = models.DecimalField(
        max_digits=9, decimal_places=6,
        validators=[MinValueValidator(-180), MaxValueValidator(180)]
    )

    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='outdoor')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active', db_index=True)

    # Pricing
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    daily_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True,
                                     validators=[MinValueValidator(0)])
    monthly_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True,
                                       validators=[MinValueValidator(0)])

    # Kept in sync with the slots by signals
    total_slots = models.PositiveIntegerField(default=0)
    available_slots = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)
    contact_phone = models.CharField(max_length=20, blank=True)
    contact_email = models.EmailField(blank=True)
    amenities = models.JSONField(default=list, blank=True)  # ["cctv", "ev_charging"]
    operating_hours = models.JSONField(default=dict, blank=True)  # {"mon": "06:00-23:00"}
    images = models.JSONField(default=list, blank=True)  # List of image URLs

    # Stats
    rating = models.DecimalField(max_digits=3, decimal_places=2, default=0)
    review_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-rating', '-created_at']
        indexes = [
            models.Index(fields=['latitude', 'longitude'], name='location_coords_idx'),
        ]

    def __str__(self):
        return f"{self.name} - {self.city}"

    def refresh_slot_counts(self):
        """Recount active and available slots"""
        slots = self.slots.filter(is_active=True)
        self.total_slots = slots.count()
        self.available_slots = slots.filter(status=ParkingSlot.STATUS_AVAILABLE).count()
        ParkingLocation.objects.filter(pk=self.pk).update(
            total_slots=self.total_slots,
            available_slots=self.available_slots,
        )


class ParkingSlot(models.Model):
    TYPE_CHOICES = (
        ('regular', 'Regular'),
        ('compact', 'Compact'),
        ('large', 'Large'),
        ('handicapped', 'Handicapped'),
        ('electric', 'Electric'),
        ('motorcycle', 'Motorcycle'),
    )

    STATUS_AVAILABLE = 'available'
    STATUS_OCCUPIED = 'occupied'
    STATUS_RESERVED = 'reserved'
    STATUS_MAINTENANCE = 'maintenance'
    STATUS_OUT_OF_ORDER = 'out_of_order'
    STATUS_CHOICES = (
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_OCCUPIED, 'Occupied'),
        (STATUS_RESERVED, 'Reserved'),
        (STATUS_MAINTENANCE, 'Maintenance'),
        (STATUS_OUT_OF_ORDER, 'Out of Order'),
    )
    # Slots in these states cannot take new bookings at all
    UNBOOKABLE_STATUSES = (STATUS_MAINTENANCE, STATUS_OUT_OF_ORDER)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    location = models.ForeignKey(ParkingLocation, on_delete=models.CASCADE, related_name='slots')
    slot_number = models.CharField(max_length=20)
    floor = models.CharField(max_length=20, blank=True)
    section = models.CharField(max_length=50, blank=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='regular')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_AVAILABLE, db_index=True)

    # Overrides of the location rates
    custom_hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True,
                                             validators=[MinValueValidator(0)])
    custom_daily_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True,
                                            validators=[MinValueValidator(0)])

    length = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)  # In meters
    width = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)

    is_active = models.BooleanField(default=True)
    current_booking_id = models.UUIDField(null=True, blank=True)
    last_occupied_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    features = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['slot_number']
        unique_together = ('location', 'slot_number')

    def __str__(self):
        return f"{self.location.name} #{self.slot_number}"

    @property
    def is_bookable(self):
        return self.is_active and self.status not in self.UNBOOKABLE_STATUSES

    @property
    def hourly_rate(self):
        if self.custom_hourly_rate is not None:
            return to_money(self.custom_hourly_rate)
        return to_money(self.location.hourly_rate)

    @property
    def daily_rate(self):
        if self.custom_daily_rate is not None:
            return to_money(self.custom_daily_rate)
        if self.location.daily_rate is not None:
            return to_money(self.location.daily_rate)
        return to_money(self.hourly_rate * 24)

    @property
    def monthly_rate(self):
        if self.location.monthly_rate is not None:
            return to_money(self.location.monthly_rate)
        return to_money(self.daily_rate * 30)


class SlotOccupancyLog(models.Model):
    """One row per physical stay in a slot (check-in to check-out)"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    slot = models.ForeignKey(ParkingSlot, on_delete=models.CASCADE, related_name='occupancy_logs')
    booking_id = models.UUIDField(null=True, blank=True, db_index=True)
    occupied_at = models.DateTimeField()
    vacated_at = models.DateTimeField(null=True, blank=True)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    revenue = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    was_reserved = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-occupied_at']

    def __str__(self):
        return f"{self.slot} occupied at {self.occupied_at}"
