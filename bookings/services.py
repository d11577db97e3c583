# ==================== BOOKINGS/SERVICES.PY ====================
import logging
import uuid
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.crypto import get_random_string
from rest_framework.exceptions import NotFound, ValidationError

from parking.models import ParkingSlot, SlotOccupancyLog
from users.services import ActivityService
from utils.exceptions import (
    BookingConflict, InvalidStateTransition, PaymentFailed, SlotUnavailable, VehicleNotFound,
)
from utils.money import ZERO, percentage_of, to_money
from vehicles.models import UserVehicle
from vehicles.services import VehicleService
from .models import Booking, BookingExtension

logger = logging.getLogger(__name__)

CONFIRMATION_CODE_CHARS = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789'
# Allowance for client clock skew on "start now" bookings
START_TIME_TOLERANCE = timedelta(minutes=1)


def rules():
    return settings.PARKING


def ceil_div(seconds, unit_seconds):
    return -(-int(seconds) // unit_seconds)


def elapsed_minutes(start, end):
    """Whole minutes between two datetimes, rounded up"""
    return max(ceil_div((end - start).total_seconds(), 60), 0)


class BookingPricing:
    """Fee arithmetic; every result is quantized to two decimal places"""

    HOUR = 3600
    DAY = 24 * HOUR
    MONTH = 30 * DAY

    @staticmethod
    def base_amount(slot, booking_type, start_time, end_time):
        seconds = (end_time - start_time).total_seconds()
        if booking_type == Booking.TYPE_DAILY:
            return to_money(slot.daily_rate * ceil_div(seconds, BookingPricing.DAY))
        if booking_type == Booking.TYPE_MONTHLY:
            return to_money(slot.monthly_rate * ceil_div(seconds, BookingPricing.MONTH))
        return to_money(slot.hourly_rate * ceil_div(seconds, BookingPricing.HOUR))

    @staticmethod
    def tax(amount):
        return percentage_of(amount, rules()['TAX_PERCENTAGE'])

    @staticmethod
    def extension_fee(slot, minutes):
        return to_money(slot.hourly_rate * ceil_div(minutes * 60, BookingPricing.HOUR))

    @staticmethod
    def overstay_fee(slot, overstay_minutes):
        hours = ceil_div(overstay_minutes * 60, BookingPricing.HOUR)
        return to_money(slot.hourly_rate * hours * Decimal(rules()['OVERSTAY_MULTIPLIER']))

    @staticmethod
    def cancellation_refund(booking, now):
        """Paid amount returned on cancellation, less the late fee inside the free window"""
        paid = to_money(booking.paid_amount)
        if paid <= ZERO:
            return ZERO
        free_until = booking.start_time - timedelta(hours=rules()['FREE_CANCELLATION_HOURS'])
        if now <= free_until:
            return paid
        fee = percentage_of(paid, rules()['LATE_CANCELLATION_FEE_PERCENTAGE'])
        return max(paid - fee, ZERO)


def find_conflicts(slot, start_time, end_time, exclude=None):
    """Blocking bookings on the slot whose window overlaps [start_time, end_time)"""
    conflicts = Booking.objects.filter(
        slot=slot,
        status__in=Booking.BLOCKING_STATUSES,
        start_time__lt=end_time,
        end_time__gt=start_time,
    )
    if exclude is not None:
        conflicts = conflicts.exclude(pk=exclude.pk)
    return conflicts


def notify(booking, event):
    from .tasks import send_booking_notification

    booking_id = str(booking.id)
    transaction.on_commit(lambda: send_booking_notification.delay(booking_id, event))


class BookingService:
    """Booking lifecycle. Every mutating method locks the booking row first."""

    @staticmethod
    def _lock(booking):
        return Booking.objects.select_for_update().get(pk=booking.pk)

    @staticmethod
    def _lock_slot(slot_id):
        return ParkingSlot.objects.select_for_update().get(pk=slot_id)

    @staticmethod
    def _require_status(booking, allowed, action):
        if booking.status not in allowed:
            raise InvalidStateTransition(f'Cannot {action} a booking that is {booking.status}')

    @staticmethod
    def _release_slot(booking, vacated_at=None):
        slot = BookingService._lock_slot(booking.slot_id)
        if slot.current_booking_id != booking.id:
            return slot
        slot.current_booking_id = None
        if slot.status in (ParkingSlot.STATUS_RESERVED, ParkingSlot.STATUS_OCCUPIED):
            slot.status = ParkingSlot.STATUS_AVAILABLE
        if vacated_at is not None:
            slot.last_occupied_at = vacated_at
        slot.save()
        return slot

    @staticmethod
    @transaction.atomic
    def create_booking(user, slot_id, start_time, end_time, booking_type=Booking.TYPE_HOURLY,
                       vehicle_id=None, license_plate='', special_instructions='', request=None):
        try:
            slot = BookingService._lock_slot(slot_id)
        except ParkingSlot.DoesNotExist:
            raise NotFound('Parking slot not found')
        if not slot.is_active or not slot.location.is_active:
            raise NotFound('Parking slot not found')
        if not slot.is_bookable:
            raise SlotUnavailable(f'Parking slot is {slot.get_status_display().lower()}')

        now = timezone.now()
        if start_time < now - START_TIME_TOLERANCE:
            raise ValidationError({'start_time': 'Start time cannot be in the past'})
        if end_time <= start_time:
            raise ValidationError({'end_time': 'End time must be after start time'})

        vehicle = None
        if vehicle_id:
            vehicle = UserVehicle.objects.filter(pk=vehicle_id, user=user, is_active=True).first()
            if vehicle is None:
                raise VehicleNotFound()
            license_plate = license_plate or vehicle.license_plate

        if find_conflicts(slot, start_time, end_time).exists():
            logger.warning(f"Booking conflict on slot {slot.id} for {start_time} - {end_time}")
            raise BookingConflict()

        base_amount = BookingPricing.base_amount(slot, booking_type, start_time, end_time)
        tax_amount = BookingPricing.tax(base_amount)
        total_amount = to_money(base_amount + tax_amount)
        is_free = total_amount <= ZERO

        booking = Booking.objects.create(
            user=user,
            slot=slot,
            vehicle=vehicle,
            type=booking_type,
            start_time=start_time,
            end_time=end_time,
            status=Booking.STATUS_CONFIRMED if is_free else Booking.STATUS_PENDING,
            base_amount=base_amount,
            tax_amount=tax_amount,
            total_amount=total_amount,
            license_plate=license_plate.upper() if license_plate else '',
            special_instructions=special_instructions or '',
            confirmation_code=get_random_string(6, CONFIRMATION_CODE_CHARS),
            qr_code=f"PARKING-{uuid.uuid4().hex.upper()}",
            requires_payment=not is_free,
            payment_deadline=None if is_free else now + timedelta(minutes=rules()['PAYMENT_WINDOW_MINUTES']),
        )

        if slot.status == ParkingSlot.STATUS_AVAILABLE:
            slot.status = ParkingSlot.STATUS_RESERVED
            slot.current_booking_id = booking.id
            slot.save()

        ActivityService.log(user, 'booking_created', request, {
            'booking_id': str(booking.id), 'slot_id': str(slot.id), 'total_amount': str(total_amount)
        })
        logger.info(f"Booking {booking.id} created for slot {slot.id}: {booking.status}, total {total_amount}")
        notify(booking, 'created')
        return booking

    @staticmethod
    @transaction.atomic
    def update_booking(booking, end_time=None, license_plate=None, special_instructions=None):
        booking = BookingService._lock(booking)
        BookingService._require_status(
            booking, (Booking.STATUS_PENDING, Booking.STATUS_CONFIRMED), 'update'
        )

        if end_time is not None and end_time != booking.end_time:
            if end_time <= booking.start_time:
                raise ValidationError({'end_time': 'End time must be after start time'})
            if find_conflicts(booking.slot, booking.start_time, end_time, exclude=booking).exists():
                raise BookingConflict()

            booking.end_time = end_time
            booking.base_amount = BookingPricing.base_amount(
                booking.slot, booking.type, booking.start_time, end_time
            )
            booking.tax_amount = BookingPricing.tax(booking.base_amount)
            booking.total_amount = to_money(
                booking.base_amount + booking.tax_amount - booking.discount_amount
            )
            booking.requires_payment = booking.outstanding_amount > ZERO
            logger.info(f"Booking {booking.id} re-priced to {booking.total_amount}")

        if license_plate is not None:
            booking.license_plate = license_plate.upper()
        if special_instructions is not None:
            booking.special_instructions = special_instructions

        booking.save()
        if booking.status == Booking.STATUS_PENDING and not booking.requires_payment:
            BookingService._confirm(booking)
        return booking

    @staticmethod
    @transaction.atomic
    def extend_booking(booking, extension_minutes, reason=''):
        booking = BookingService._lock(booking)
        BookingService._require_status(
            booking, (Booking.STATUS_CONFIRMED, Booking.STATUS_ACTIVE), 'extend'
        )

        current_end = booking.end_time
        new_end = current_end + timedelta(minutes=extension_minutes)
        if find_conflicts(booking.slot, current_end, new_end, exclude=booking).exists():
            raise BookingConflict('Slot is booked by someone else during the extension period')

        fee = BookingPricing.extension_fee(booking.slot, extension_minutes)

        extension = BookingExtension.objects.create(
            booking=booking,
            original_end_time=current_end,
            new_end_time=new_end,
            extension_minutes=extension_minutes,
            extension_fee=fee,
            reason=reason or '',
        )

        if not booking.is_extended:
            booking.original_end_time = current_end
        booking.is_extended = True
        booking.extension_minutes += extension_minutes
        booking.end_time = new_end
        booking.total_amount = to_money(booking.total_amount + fee)
        booking.requires_payment = booking.outstanding_amount > ZERO
        booking.save()

        logger.info(f"Booking {booking.id} extended by {extension_minutes} min, fee {fee}")
        notify(booking, 'extended')
        return booking, extension

    @staticmethod
    @transaction.atomic
    def cancel_booking(booking, cancelled_by, reason, request=None):
        from payments.services import PaymentService

        booking = BookingService._lock(booking)
        BookingService._require_status(
            booking, (Booking.STATUS_PENDING, Booking.STATUS_CONFIRMED), 'cancel'
        )

        now = timezone.now()
        refund_amount = BookingPricing.cancellation_refund(booking, now)
        PaymentService.cancel_open_payments(booking)
        if refund_amount > ZERO:
            PaymentService.refund_booking(booking, refund_amount, f'Booking cancelled: {reason}')
            booking.refresh_from_db()

        booking.status = Booking.STATUS_CANCELLED
        booking.cancellation_reason = reason
        booking.cancelled_at = now
        booking.cancelled_by = cancelled_by
        booking.requires_payment = False
        booking.save()
        BookingService._release_slot(booking)

        ActivityService.log(booking.user, 'booking_cancelled', request, {
            'booking_id': str(booking.id), 'refund_amount': str(refund_amount)
        })
        logger.info(f"Booking {booking.id} cancelled by {cancelled_by.id}, refunded {refund_amount}")
        notify(booking, 'cancelled')
        return booking, refund_amount

    @staticmethod
    @transaction.atomic
    def check_in(booking, actual_license_plate=None):
        booking = BookingService._lock(booking)
        BookingService._require_status(booking, (Booking.STATUS_CONFIRMED,), 'check in')
        if booking.outstanding_amount > ZERO:
            raise PaymentFailed(f'Outstanding amount {booking.outstanding_amount} must be paid before check-in')

        slot = BookingService._lock_slot(booking.slot_id)
        if slot.status == ParkingSlot.STATUS_OCCUPIED and slot.current_booking_id != booking.id:
            raise SlotUnavailable('Slot is still occupied by another vehicle')
        if slot.status in ParkingSlot.UNBOOKABLE_STATUSES:
            raise SlotUnavailable(f'Parking slot is {slot.get_status_display().lower()}')

        now = timezone.now()
        was_reserved = slot.status == ParkingSlot.STATUS_RESERVED and slot.current_booking_id == booking.id

        booking.status = Booking.STATUS_ACTIVE
        booking.checked_in_at = now
        booking.actual_start_time = now
        if actual_license_plate:
            booking.license_plate = actual_license_plate.upper()
        booking.save()

        slot.status = ParkingSlot.STATUS_OCCUPIED
        slot.current_booking_id = booking.id
        slot.save()

        SlotOccupancyLog.objects.create(
            slot=slot, booking_id=booking.id, occupied_at=now, was_reserved=was_reserved
        )
        logger.info(f"Booking {booking.id} checked in at slot {slot.id}")
        return booking

    @staticmethod
    @transaction.atomic
    def check_out(booking, notes=''):
        booking = BookingService._lock(booking)
        BookingService._require_status(booking, (Booking.STATUS_ACTIVE,), 'check out')

        now = timezone.now()
        started = booking.actual_start_time or booking.start_time
        booking.actual_duration_minutes = elapsed_minutes(started, now)

        if now > booking.end_time:
            overstay_minutes = elapsed_minutes(booking.end_time, now)
            booking.overstay_amount = BookingPricing.overstay_fee(booking.slot, overstay_minutes)
            booking.total_amount = to_money(booking.total_amount + booking.overstay_amount)
            logger.info(f"Booking {booking.id} overstayed {overstay_minutes} min, fee {booking.overstay_amount}")

        booking.status = Booking.STATUS_COMPLETED
        booking.checked_out_at = now
        booking.actual_end_time = now
        booking.checkout_notes = notes or ''
        booking.requires_payment = booking.outstanding_amount > ZERO
        booking.save()

        BookingService._release_slot(booking, vacated_at=now)
        SlotOccupancyLog.objects.filter(
            slot_id=booking.slot_id, booking_id=booking.id, vacated_at__isnull=True
        ).update(
            vacated_at=now,
            duration_minutes=booking.actual_duration_minutes,
            revenue=booking.total_amount,
        )

        if booking.vehicle_id:
            VehicleService.record_usage(
                booking.vehicle, booking.user, started.date(),
                booking.total_amount, booking.actual_duration_minutes
            )

        logger.info(f"Booking {booking.id} checked out after {booking.actual_duration_minutes} min")
        notify(booking, 'completed')
        return booking

    @staticmethod
    @transaction.atomic
    def expire_booking(booking):
        """Pending booking whose payment deadline passed"""
        booking = BookingService._lock(booking)
        if booking.status != Booking.STATUS_PENDING:
            return booking
        from payments.services import PaymentService

        PaymentService.cancel_open_payments(booking)
        if booking.paid_amount > ZERO:
            PaymentService.refund_booking(booking, booking.paid_amount, 'Booking expired before full payment')
            booking.refresh_from_db()
        booking.status = Booking.STATUS_EXPIRED
        booking.requires_payment = False
        booking.save()
        BookingService._release_slot(booking)
        logger.info(f"Booking {booking.id} expired unpaid")
        return booking

    @staticmethod
    @transaction.atomic
    def mark_no_show(booking):
        """Confirmed booking never checked in"""
        booking = BookingService._lock(booking)
        if booking.status != Booking.STATUS_CONFIRMED:
            return booking
        booking.status = Booking.STATUS_NO_SHOW
        booking.save()
        BookingService._release_slot(booking)
        logger.info(f"Booking {booking.id} marked as no-show")
        notify(booking, 'no_show')
        return booking

    @staticmethod
    def _confirm(booking):
        if booking.can_transition_to(Booking.STATUS_CONFIRMED):
            booking.status = Booking.STATUS_CONFIRMED
            booking.payment_deadline = None
            booking.save()
            logger.info(f"Booking {booking.id} confirmed")
            notify(booking, 'confirmed')

    @staticmethod
    @transaction.atomic
    def record_payment(booking, amount):
        """Apply a completed payment; runs inside the payment's transaction"""
        booking = BookingService._lock(booking)
        booking.paid_amount = to_money(booking.paid_amount + amount)
        if not booking.is_terminal or booking.status == Booking.STATUS_COMPLETED:
            booking.requires_payment = booking.outstanding_amount > ZERO
        booking.save()
        if booking.status == Booking.STATUS_PENDING and not booking.requires_payment:
            BookingService._confirm(booking)
        return booking

    @staticmethod
    @transaction.atomic
    def record_refund(booking, amount):
        booking = BookingService._lock(booking)
        booking.paid_amount = max(to_money(booking.paid_amount - amount), ZERO)
        if not booking.is_terminal:
            booking.requires_payment = booking.outstanding_amount > ZERO
        booking.save()
        return booking
