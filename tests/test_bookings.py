from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.utils import timezone

from bookings.models import Booking
from bookings.services import BookingPricing, BookingService
from parking.models import ParkingSlot, SlotOccupancyLog
from vehicles.models import VehicleUsageStats

from .factories import (
    APITestBase, hours_from_now, make_admin, make_confirmed_booking, make_location,
    make_slot, make_user, make_vehicle, make_vendor,
)

BOOKINGS_URL = '/api/v1/bookings/'


class BookingTestBase(APITestBase):

    def setUp(self):
        super().setUp()
        self.vendor = make_vendor()
        self.location = make_location(self.vendor)
        self.slot = make_slot(self.location)
        self.user = make_user()
        self.login_as(self.user)

    def book(self, start, end, **extra):
        data = {
            'slot_id': str(self.slot.id),
            'start_time': start.isoformat(),
            'end_time': end.isoformat(),
        }
        data.update(extra)
        return self.client.post(BOOKINGS_URL, data, format='json')


class CreateBookingTests(BookingTestBase):

    def test_create_prices_and_reserves(self):
        response = self.book(hours_from_now(1), hours_from_now(3))

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['status'], Booking.STATUS_PENDING)
        self.assertEqual(response.data['total_amount'], '100.00')
        self.assertTrue(response.data['requires_payment'])
        self.assertIsNotNone(response.data['payment_deadline'])
        self.assertEqual(len(response.data['confirmation_code']), 6)

        self.slot.refresh_from_db()
        self.assertEqual(self.slot.status, ParkingSlot.STATUS_RESERVED)
        self.assertEqual(str(self.slot.current_booking_id), str(response.data['id']))

    def test_partial_hour_rounds_up(self):
        start = hours_from_now(1)
        response = self.book(start, start + timedelta(minutes=90))
        self.assertEqual(response.data['total_amount'], '100.00')

    def test_daily_booking_charges_whole_days(self):
        start = hours_from_now(1)
        response = self.book(start, start + timedelta(hours=30), type='daily')
        self.assertEqual(response.data['total_amount'], '800.00')

    def test_overlap_is_conflict(self):
        self.book(hours_from_now(1), hours_from_now(3))

        response = self.book(hours_from_now(2), hours_from_now(4))
        self.assertEqual(response.status_code, 409)

    def test_adjacent_booking_allowed(self):
        first = self.book(hours_from_now(1), hours_from_now(3))
        end = Booking.objects.get(pk=first.data['id']).end_time

        response = self.book(end, end + timedelta(hours=1))
        self.assertEqual(response.status_code, 201)

    def test_cancelled_booking_frees_window(self):
        booking = BookingService.create_booking(make_user(), self.slot.id, hours_from_now(1), hours_from_now(3))
        BookingService.cancel_booking(booking, booking.user, 'Plans changed')

        response = self.book(hours_from_now(1), hours_from_now(3))
        self.assertEqual(response.status_code, 201)

    def test_maintenance_slot_is_unavailable(self):
        self.slot.status = ParkingSlot.STATUS_MAINTENANCE
        self.slot.save()

        response = self.book(hours_from_now(1), hours_from_now(3))
        self.assertEqual(response.status_code, 409)

    def test_inactive_slot_not_found(self):
        self.slot.is_active = False
        self.slot.save()

        response = self.book(hours_from_now(1), hours_from_now(3))
        self.assertEqual(response.status_code, 404)

    def test_start_in_past_rejected(self):
        response = self.book(hours_from_now(-2), hours_from_now(1))
        self.assertEqual(response.status_code, 400)

    def test_end_before_start_rejected(self):
        response = self.book(hours_from_now(3), hours_from_now(1))
        self.assertEqual(response.status_code, 400)

    def test_vehicle_must_belong_to_user(self):
        vehicle = make_vehicle(make_user())
        response = self.book(hours_from_now(1), hours_from_now(2), vehicle_id=str(vehicle.id))
        self.assertEqual(response.status_code, 404)

    def test_plate_taken_from_vehicle(self):
        vehicle = make_vehicle(self.user, license_plate='KA05MN4321')
        response = self.book(hours_from_now(1), hours_from_now(2), vehicle_id=str(vehicle.id))

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['license_plate'], 'KA05MN4321')

    def test_free_slot_is_confirmed_immediately(self):
        self.slot.custom_hourly_rate = Decimal('0.00')
        self.slot.save()

        response = self.book(hours_from_now(1), hours_from_now(2))

        self.assertEqual(response.data['status'], Booking.STATUS_CONFIRMED)
        self.assertFalse(response.data['requires_payment'])

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.book(hours_from_now(1), hours_from_now(2))
        self.assertEqual(response.status_code, 401)


class ManageBookingTests(BookingTestBase):

    def test_list_and_status_filter(self):
        BookingService.create_booking(self.user, self.slot.id, hours_from_now(1), hours_from_now(2))
        make_confirmed_booking(self.user, self.slot, hours_from_now(3), hours_from_now(4))
        BookingService.create_booking(make_user(), self.slot.id, hours_from_now(5), hours_from_now(6))

        response = self.client.get(BOOKINGS_URL)
        self.assertEqual(response.data['count'], 2)

        response = self.client.get(BOOKINGS_URL, {'status': 'confirmed'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['outstanding_amount'], '0.00')

    def test_update_end_time_reprices(self):
        booking = BookingService.create_booking(self.user, self.slot.id, hours_from_now(1), hours_from_now(2))

        response = self.client.patch(
            f'{BOOKINGS_URL}{booking.id}/',
            {'end_time': (booking.start_time + timedelta(hours=3)).isoformat()},
            format='json'
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['total_amount'], '150.00')

    def test_update_into_other_booking_is_conflict(self):
        booking = BookingService.create_booking(self.user, self.slot.id, hours_from_now(1), hours_from_now(2))
        BookingService.create_booking(make_user(), self.slot.id, hours_from_now(3), hours_from_now(4))

        response = self.client.patch(
            f'{BOOKINGS_URL}{booking.id}/', {'end_time': hours_from_now(3.5).isoformat()}, format='json'
        )
        self.assertEqual(response.status_code, 409)

    def test_other_users_booking_is_forbidden(self):
        booking = BookingService.create_booking(make_user(), self.slot.id, hours_from_now(1), hours_from_now(2))

        self.assertEqual(self.client.get(f'{BOOKINGS_URL}{booking.id}/').status_code, 403)
        response = self.client.post(f'{BOOKINGS_URL}{booking.id}/cancel/', {'reason': 'Not mine'}, format='json')
        self.assertEqual(response.status_code, 403)

    def test_vendor_and_admin_can_view(self):
        booking = BookingService.create_booking(self.user, self.slot.id, hours_from_now(1), hours_from_now(2))

        self.login_as(self.vendor)
        self.assertEqual(self.client.get(f'{BOOKINGS_URL}{booking.id}/').status_code, 200)

        self.login_as(make_admin())
        response = self.client.get(f'{BOOKINGS_URL}{booking.id}/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['location_name'], self.location.name)

    def test_vendor_sees_location_bookings(self):
        BookingService.create_booking(self.user, self.slot.id, hours_from_now(1), hours_from_now(2))
        make_confirmed_booking(make_user(), self.slot, hours_from_now(3), hours_from_now(4))
        url = f'/api/v1/parking/locations/{self.location.id}/bookings/'

        self.assertEqual(self.client.get(url).status_code, 403)

        self.login_as(self.vendor)
        self.assertEqual(self.client.get(url).data['count'], 2)
        self.assertEqual(self.client.get(url, {'status': 'confirmed'}).data['count'], 1)

    def test_history_lists_finished_bookings(self):
        booking = BookingService.create_booking(self.user, self.slot.id, hours_from_now(1), hours_from_now(2))
        BookingService.create_booking(self.user, self.slot.id, hours_from_now(3), hours_from_now(4))
        BookingService.cancel_booking(booking, self.user, 'Plans changed')

        response = self.client.get(f'{BOOKINGS_URL}history/')

        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['status'], Booking.STATUS_CANCELLED)


class ExtendBookingTests(BookingTestBase):

    def setUp(self):
        super().setUp()
        self.booking = make_confirmed_booking(self.user, self.slot, hours_from_now(1), hours_from_now(2))

    def extend(self, minutes, booking=None):
        booking = booking or self.booking
        return self.client.post(
            f'{BOOKINGS_URL}{booking.id}/extend/', {'extension_minutes': minutes, 'reason': 'Meeting ran late'},
            format='json'
        )

    def test_extension_adds_fee_and_outstanding(self):
        original_end = self.booking.end_time
        response = self.extend(60)

        self.assertEqual(response.status_code, 200)
        booking = response.data['booking']
        self.assertEqual(booking['total_amount'], '100.00')
        self.assertEqual(booking['outstanding_amount'], '50.00')
        self.assertTrue(booking['requires_payment'])
        self.assertTrue(booking['is_extended'])
        self.assertEqual(response.data['extension']['extension_fee'], '50.00')

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.end_time, original_end + timedelta(minutes=60))
        self.assertEqual(self.booking.original_end_time, original_end)

    def test_second_extension_keeps_original_end(self):
        original_end = self.booking.end_time
        self.extend(60)
        self.extend(30)

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.original_end_time, original_end)
        self.assertEqual(self.booking.extension_minutes, 90)
        self.assertEqual(self.booking.total_amount, Decimal('150.00'))
        self.assertEqual(self.booking.extensions.count(), 2)

    def test_extension_into_next_booking_is_conflict(self):
        BookingService.create_booking(make_user(), self.slot.id, self.booking.end_time, hours_from_now(4))

        response = self.extend(30)
        self.assertEqual(response.status_code, 409)

    def test_extension_fee_is_not_taxed(self):
        with self.settings(PARKING={**settings.PARKING, 'TAX_PERCENTAGE': Decimal('18')}):
            booking = make_confirmed_booking(self.user, self.slot, hours_from_now(5), hours_from_now(6))
            self.assertEqual(booking.total_amount, Decimal('59.00'))

            booking, extension = BookingService.extend_booking(booking, 60)

        self.assertEqual(extension.extension_fee, Decimal('50.00'))
        self.assertEqual(booking.total_amount, Decimal('109.00'))
        self.assertEqual(booking.tax_amount, Decimal('9.00'))
        self.assertEqual(booking.outstanding_amount, Decimal('50.00'))

    def test_pending_booking_cannot_extend(self):
        pending = BookingService.create_booking(self.user, self.slot.id, hours_from_now(5), hours_from_now(6))

        response = self.extend(30, booking=pending)
        self.assertEqual(response.status_code, 400)

    def test_extension_limit(self):
        self.assertEqual(self.extend(24 * 60 + 1).status_code, 400)
        self.assertEqual(self.extend(0).status_code, 400)


class CancelBookingTests(BookingTestBase):

    def cancel(self, booking):
        return self.client.post(f'{BOOKINGS_URL}{booking.id}/cancel/', {'reason': 'Plans changed'}, format='json')

    def test_cancel_unpaid_releases_slot(self):
        booking = BookingService.create_booking(self.user, self.slot.id, hours_from_now(1), hours_from_now(2))

        response = self.cancel(booking)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['refund_amount'], Decimal('0.00'))
        self.assertEqual(response.data['booking']['status'], Booking.STATUS_CANCELLED)
        self.slot.refresh_from_db()
        self.assertEqual(self.slot.status, ParkingSlot.STATUS_AVAILABLE)
        self.assertIsNone(self.slot.current_booking_id)

    def test_early_cancel_refunds_in_full(self):
        booking = make_confirmed_booking(self.user, self.slot, hours_from_now(5), hours_from_now(7))

        response = self.cancel(booking)

        self.assertEqual(response.data['refund_amount'], Decimal('100.00'))
        self.user.refresh_from_db()
        self.assertEqual(self.user.wallet_balance, Decimal('100.00'))
        booking.refresh_from_db()
        self.assertEqual(booking.paid_amount, Decimal('0.00'))
        self.assertEqual(booking.cancelled_by_id, self.user.id)

    def test_late_cancel_keeps_fee(self):
        booking = make_confirmed_booking(self.user, self.slot, hours_from_now(1), hours_from_now(3))

        response = self.cancel(booking)

        self.assertEqual(response.data['refund_amount'], Decimal('80.00'))
        self.user.refresh_from_db()
        self.assertEqual(self.user.wallet_balance, Decimal('80.00'))
        payment = booking.payments.get()
        self.assertEqual(payment.status, 'partially_refunded')
        self.assertEqual(payment.refunded_amount, Decimal('80.00'))

    def test_reason_too_short(self):
        booking = BookingService.create_booking(self.user, self.slot.id, hours_from_now(1), hours_from_now(2))
        response = self.client.post(f'{BOOKINGS_URL}{booking.id}/cancel/', {'reason': 'no'}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_cannot_cancel_twice(self):
        booking = BookingService.create_booking(self.user, self.slot.id, hours_from_now(1), hours_from_now(2))
        self.cancel(booking)

        response = self.cancel(booking)
        self.assertEqual(response.status_code, 400)


class CheckInOutTests(BookingTestBase):

    def setUp(self):
        super().setUp()
        self.vehicle = make_vehicle(self.user)
        start = timezone.now()
        self.booking = make_confirmed_booking(
            self.user, self.slot, start, start + timedelta(hours=1), vehicle_id=self.vehicle.id
        )

    def check_in(self, booking=None, **data):
        booking = booking or self.booking
        return self.client.post(f'{BOOKINGS_URL}{booking.id}/checkin/', data, format='json')

    def check_out(self, **data):
        return self.client.post(f'{BOOKINGS_URL}{self.booking.id}/checkout/', data, format='json')

    def test_check_in_occupies_slot(self):
        response = self.check_in(actual_license_plate='ka01xy9999')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], Booking.STATUS_ACTIVE)
        self.assertEqual(response.data['license_plate'], 'KA01XY9999')
        self.slot.refresh_from_db()
        self.assertEqual(self.slot.status, ParkingSlot.STATUS_OCCUPIED)
        log = SlotOccupancyLog.objects.get(slot=self.slot)
        self.assertTrue(log.was_reserved)

    def test_pending_booking_cannot_check_in(self):
        pending = BookingService.create_booking(self.user, self.slot.id, hours_from_now(2), hours_from_now(3))
        self.assertEqual(self.check_in(booking=pending).status_code, 400)

    def test_outstanding_amount_blocks_check_in(self):
        BookingService.extend_booking(self.booking, 60)

        response = self.check_in()
        self.assertEqual(response.status_code, 402)

    def test_vendor_can_check_in_stranger_cannot(self):
        self.login_as(make_user())
        self.assertEqual(self.check_in().status_code, 403)

        self.login_as(self.vendor)
        self.assertEqual(self.check_in().status_code, 200)

    def test_check_out_completes_and_frees_slot(self):
        self.check_in()

        response = self.check_out(notes='All good')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], Booking.STATUS_COMPLETED)
        self.assertEqual(response.data['overstay_amount'], '0.00')
        self.assertFalse(response.data['requires_payment'])

        self.slot.refresh_from_db()
        self.assertEqual(self.slot.status, ParkingSlot.STATUS_AVAILABLE)
        self.assertIsNotNone(self.slot.last_occupied_at)
        log = SlotOccupancyLog.objects.get(slot=self.slot)
        self.assertIsNotNone(log.vacated_at)
        self.assertEqual(log.revenue, Decimal('50.00'))
        self.assertTrue(VehicleUsageStats.objects.filter(vehicle=self.vehicle).exists())

    def test_overstay_is_charged(self):
        self.check_in()
        Booking.objects.filter(pk=self.booking.pk).update(end_time=timezone.now() - timedelta(minutes=90))

        response = self.check_out()

        self.assertEqual(response.data['overstay_amount'], '150.00')
        self.assertEqual(response.data['total_amount'], '200.00')
        self.assertEqual(response.data['outstanding_amount'], '150.00')
        self.assertTrue(response.data['requires_payment'])

    def test_check_out_requires_active_booking(self):
        self.assertEqual(self.check_out().status_code, 400)


class BookingPricingTests(APITestBase):

    def setUp(self):
        super().setUp()
        self.slot = make_slot(make_location(make_vendor()))

    def test_monthly_rate_defaults_to_thirty_days(self):
        start = hours_from_now(1)
        amount = BookingPricing.base_amount(self.slot, Booking.TYPE_MONTHLY, start, start + timedelta(days=31))
        self.assertEqual(amount, Decimal('24000.00'))

    def test_overstay_fee_rounds_to_hours(self):
        self.assertEqual(BookingPricing.overstay_fee(self.slot, 1), Decimal('75.00'))
        self.assertEqual(BookingPricing.overstay_fee(self.slot, 61), Decimal('150.00'))

    def test_cancellation_refund_window(self):
        booking = Booking(start_time=hours_from_now(3), paid_amount=Decimal('100.00'))
        self.assertEqual(BookingPricing.cancellation_refund(booking, timezone.now()), Decimal('100.00'))

        booking.start_time = hours_from_now(1)
        self.assertEqual(BookingPricing.cancellation_refund(booking, timezone.now()), Decimal('80.00'))
