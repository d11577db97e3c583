import uuid

from django.conf import settings
from django.db import models

from utils.money import ZERO, to_money
from parking.models import ParkingSlot
from vehicles.models import UserVehicle


class Booking(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_ACTIVE = 'active'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_NO_SHOW = 'no_show'
    STATUS_EXPIRED = 'expired'
    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending Payment'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_ACTIVE, 'Active - Vehicle Parked'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_NO_SHOW, 'No Show'),
        (STATUS_EXPIRED, 'Expired'),
    )

    # Bookings in these states hold their slot for [start_time, end_time)
    BLOCKING_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_ACTIVE)
    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED, STATUS_NO_SHOW, STATUS_EXPIRED)
    HISTORY_STATUSES = TERMINAL_STATUSES

    TRANSITIONS = {
        STATUS_PENDING: (STATUS_CONFIRMED, STATUS_CANCELLED, STATUS_EXPIRED),
        STATUS_CONFIRMED: (STATUS_ACTIVE, STATUS_CANCELLED, STATUS_NO_SHOW),
        STATUS_ACTIVE: (STATUS_COMPLETED,),
    }

    TYPE_HOURLY = 'hourly'
    TYPE_DAILY = 'daily'
    TYPE_MONTHLY = 'monthly'
    TYPE_INSTANT = 'instant'
    TYPE_CHOICES = (
        (TYPE_HOURLY, 'Hourly'),
        (TYPE_DAILY, 'Daily'),
        (TYPE_MONTHLY, 'Monthly'),
        (TYPE_INSTANT, 'Instant'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Relations
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='bookings')
    slot = models.ForeignKey(ParkingSlot, on_delete=models.CASCADE, related_name='bookings')
    vehicle = models.ForeignKey(UserVehicle, on_delete=models.SET_NULL, null=True, blank=True, related_name='bookings')

    # Booking details
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_HOURLY)
    start_time = models.DateTimeField(db_index=True)
    end_time = models.DateTimeField(db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)

    # Pricing
    base_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    tax_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    paid_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    license_plate = models.CharField(max_length=20, blank=True)
    confirmation_code = models.CharField(max_length=6, db_index=True)
    qr_code = models.CharField(max_length=100, unique=True)
    special_instructions = models.TextField(blank=True)

    # Extensions
    is_extended = models.BooleanField(default=False)
    original_end_time = models.DateTimeField(null=True, blank=True)
    extension_minutes = models.PositiveIntegerField(default=0)

    # Cancellation
    cancellation_reason = models.TextField(blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='cancelled_bookings'
    )

    # Actual usage
    checked_in_at = models.DateTimeField(null=True, blank=True)
    checked_out_at = models.DateTimeField(null=True, blank=True)
    actual_start_time = models.DateTimeField(null=True, blank=True)
    actual_end_time = models.DateTimeField(null=True, blank=True)
    actual_duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    overstay_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    checkout_notes = models.CharField(max_length=200, blank=True)

    requires_payment = models.BooleanField(default=True)
    payment_deadline = models.DateTimeField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'status'], name='booking_user_status_idx'),
            models.Index(fields=['slot', 'status'], name='booking_slot_status_idx'),
            models.Index(fields=['slot', 'start_time', 'end_time'], name='booking_slot_window_idx'),
        ]

    def __str__(self):
        return f"Booking {self.confirmation_code} - {self.user.email} at {self.slot}"

    @property
    def outstanding_amount(self):
        return max(to_money(self.total_amount) - to_money(self.paid_amount), ZERO)

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    def can_transition_to(self, new_status):
        return new_status in self.TRANSITIONS.get(self.status, ())


class BookingExtension(models.Model):
    """Audit record of every end-time extension"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='extensions')
    original_end_time = models.DateTimeField()
    new_end_time = models.DateTimeField()
    extension_minutes = models.PositiveIntegerField()
    extension_fee = models.DecimalField(max_digits=10, decimal_places=2)
    reason = models.CharField(max_length=200, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Extension of {self.booking.confirmation_code} by {self.extension_minutes} min"
