# ==================== BOOKINGS/TASKS.PY (CELERY TASKS) ====================
from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone
from datetime import timedelta
import logging

from .models import Booking

logger = logging.getLogger(__name__)

NOTIFICATION_SUBJECTS = {
    'created': 'Booking received',
    'confirmed': 'Booking confirmed',
    'extended': 'Booking extended',
    'cancelled': 'Booking cancelled',
    'completed': 'Thank you for parking with us',
    'no_show': 'Booking marked as no-show',
}


@shared_task
def expire_unpaid_bookings():
    """Expire pending bookings whose payment window has passed"""
    from .services import BookingService

    overdue = Booking.objects.filter(
        status=Booking.STATUS_PENDING,
        payment_deadline__lt=timezone.now()
    )

    expired = 0
    for booking in overdue:
        BookingService.expire_booking(booking)
        expired += 1

    logger.info(f"Expired {expired} unpaid bookings")
    return expired


@shared_task
def mark_no_show_bookings():
    """Confirmed bookings never checked in within the grace period"""
    from .services import BookingService

    cutoff = timezone.now() - timedelta(minutes=settings.PARKING['NO_SHOW_GRACE_MINUTES'])
    missed = Booking.objects.filter(
        status=Booking.STATUS_CONFIRMED,
        start_time__lt=cutoff,
        checked_in_at__isnull=True
    )

    marked = 0
    for booking in missed:
        BookingService.mark_no_show(booking)
        marked += 1

    logger.info(f"Marked {marked} bookings as no-show")
    return marked


@shared_task
def send_booking_notification(booking_id, event):
    """E-mail the booking holder about a lifecycle event"""
    try:
        booking = Booking.objects.select_related('user', 'slot__location').get(id=booking_id)
    except Booking.DoesNotExist:
        logger.warning(f"Notification skipped, booking {booking_id} not found")
        return

    location = booking.slot.location
    subject = f"{NOTIFICATION_SUBJECTS.get(event, 'Booking update')} - {location.name}"
    message = f'''
    Hi {booking.user.name},

    Confirmation code: {booking.confirmation_code}
    Location: {location.name}, {location.address}
    Slot: {booking.slot.slot_number}
    From: {booking.start_time}
    Until: {booking.end_time}
    Status: {booking.get_status_display()}
    Total: {booking.total_amount} {settings.PARKING['CURRENCY']}
    Outstanding: {booking.outstanding_amount} {settings.PARKING['CURRENCY']}
    '''
    try:
        send_mail(subject, message, settings.DEFAULT_FROM_EMAIL, [booking.user.email], fail_silently=False)
    except Exception as e:
        logger.error(f"Error sending booking notification for {booking_id}: {str(e)}")
