from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.core import mail
from django.utils import timezone

from bookings.models import Booking
from bookings.services import BookingService
from bookings.tasks import expire_unpaid_bookings, mark_no_show_bookings, send_booking_notification
from parking.models import ParkingSlot
from payments.models import Payment, WalletTransaction
from payments.services import PaymentService, RazorpayService, WalletService
from payments.tasks import expire_stale_payments, reconcile_gateway_payments
from utils.exceptions import GatewayError

from .factories import (
    APITestBase, hours_from_now, make_confirmed_booking, make_gateway_payment, make_location,
    make_slot, make_user, make_vendor,
)


class BookingTaskTests(APITestBase):

    def setUp(self):
        super().setUp()
        self.user = make_user()
        self.slot = make_slot(make_location(make_vendor()))

    def test_unpaid_booking_expires(self):
        booking = BookingService.create_booking(self.user, self.slot.id, hours_from_now(1), hours_from_now(2))
        payment = make_gateway_payment(self.user, booking)
        Booking.objects.filter(pk=booking.pk).update(payment_deadline=timezone.now() - timedelta(minutes=1))

        self.assertEqual(expire_unpaid_bookings(), 1)

        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.STATUS_EXPIRED)
        payment.refresh_from_db()
        self.assertEqual(payment.status, Payment.STATUS_CANCELLED)
        self.slot.refresh_from_db()
        self.assertEqual(self.slot.status, ParkingSlot.STATUS_AVAILABLE)

    def test_expired_booking_refunds_partial_payment(self):
        booking = BookingService.create_booking(self.user, self.slot.id, hours_from_now(1), hours_from_now(2))
        WalletService.credit(self.user, Decimal('10.00'), 'Test funds')
        payment = PaymentService.create_payment(self.user, booking.id, 'wallet', amount=Decimal('10.00'))
        Booking.objects.filter(pk=booking.pk).update(payment_deadline=timezone.now() - timedelta(minutes=1))

        self.assertEqual(expire_unpaid_bookings(), 1)

        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.STATUS_EXPIRED)
        self.assertEqual(booking.paid_amount, Decimal('0.00'))
        payment.refresh_from_db()
        self.assertEqual(payment.status, Payment.STATUS_REFUNDED)
        self.user.refresh_from_db()
        self.assertEqual(self.user.wallet_balance, Decimal('10.00'))
        self.assertTrue(WalletTransaction.objects.filter(
            user=self.user, reference_type=WalletTransaction.REFERENCE_REFUND, reference_id=payment.id
        ).exists())

    def test_booking_within_deadline_untouched(self):
        booking = BookingService.create_booking(self.user, self.slot.id, hours_from_now(1), hours_from_now(2))

        self.assertEqual(expire_unpaid_bookings(), 0)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.STATUS_PENDING)

    def test_missed_booking_marked_no_show(self):
        booking = make_confirmed_booking(self.user, self.slot, hours_from_now(1), hours_from_now(2))
        Booking.objects.filter(pk=booking.pk).update(start_time=timezone.now() - timedelta(hours=1))

        self.assertEqual(mark_no_show_bookings(), 1)

        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.STATUS_NO_SHOW)
        self.slot.refresh_from_db()
        self.assertEqual(self.slot.status, ParkingSlot.STATUS_AVAILABLE)

    def test_booking_inside_grace_period_not_no_show(self):
        booking = make_confirmed_booking(self.user, self.slot, hours_from_now(1), hours_from_now(2))
        Booking.objects.filter(pk=booking.pk).update(start_time=timezone.now() - timedelta(minutes=10))

        self.assertEqual(mark_no_show_bookings(), 0)

    def test_notification_email(self):
        booking = BookingService.create_booking(self.user, self.slot.id, hours_from_now(1), hours_from_now(2))

        send_booking_notification(str(booking.id), 'confirmed')

        self.assertEqual(len(mail.outbox), 1)
        self.assertTrue(mail.outbox[0].subject.startswith('Booking confirmed'))
        self.assertIn(booking.confirmation_code, mail.outbox[0].body)
        self.assertEqual(mail.outbox[0].to, [self.user.email])

    def test_notification_for_missing_booking_is_skipped(self):
        send_booking_notification('00000000-0000-0000-0000-000000000000', 'created')
        self.assertEqual(len(mail.outbox), 0)


class PaymentTaskTests(APITestBase):

    def setUp(self):
        super().setUp()
        self.user = make_user()
        slot = make_slot(make_location(make_vendor()))
        self.booking = BookingService.create_booking(self.user, slot.id, hours_from_now(1), hours_from_now(2))
        self.payment = make_gateway_payment(self.user, self.booking, order_id='order_TASK0001')

    def test_stale_gateway_payment_cancelled(self):
        Payment.objects.filter(pk=self.payment.pk).update(expires_at=timezone.now() - timedelta(minutes=1))

        self.assertEqual(expire_stale_payments(), 1)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_CANCELLED)

    def test_reconcile_captured(self):
        attempts = [{'id': 'pay_TASK0001', 'status': 'captured', 'order_id': 'order_TASK0001'}]
        with patch.object(RazorpayService, 'fetch_order_payments', return_value=attempts):
            self.assertEqual(reconcile_gateway_payments(), 1)

        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_COMPLETED)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.STATUS_CONFIRMED)

    def test_reconcile_failed(self):
        attempts = [{'id': 'pay_TASK0002', 'status': 'failed', 'error_description': 'Bank declined'}]
        with patch.object(RazorpayService, 'fetch_order_payments', return_value=attempts):
            reconcile_gateway_payments()

        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_FAILED)
        self.assertEqual(self.payment.failure_reason, 'Bank declined')

    def test_reconcile_leaves_payment_open_on_gateway_error(self):
        with patch.object(RazorpayService, 'fetch_order_payments', side_effect=GatewayError('timeout')):
            self.assertEqual(reconcile_gateway_payments(), 0)

        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_PROCESSING)
