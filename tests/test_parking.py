from decimal import Decimal

from bookings.services import BookingService
from parking.models import ParkingLocation, ParkingSlot
from parking.services import ParkingService
from utils.distance_calculator import DistanceCalculator

from .factories import (
    APITestBase, hours_from_now, make_admin, make_location, make_slot, make_user, make_vendor,
)

LOCATIONS_URL = '/api/v1/parking/locations/'
SLOTS_URL = '/api/v1/parking/slots/'


class LocationTests(APITestBase):

    def setUp(self):
        super().setUp()
        self.vendor = make_vendor()

    def location_payload(self, **overrides):
        data = {
            'name': 'Forum Mall Parking',
            'address': '21 Hosur Road',
            'city': 'Bengaluru',
            'latitude': '12.934533',
            'longitude': '77.611284',
            'type': 'indoor',
            'hourly_rate': '40.00',
            'amenities': ['cctv', 'ev_charging'],
        }
        data.update(overrides)
        return data

    def test_vendor_creates_location(self):
        self.login_as(self.vendor)
        response = self.client.post(LOCATIONS_URL, self.location_payload(), format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(str(response.data['vendor']), str(self.vendor.id))
        self.assertEqual(response.data['total_slots'], 0)

    def test_plain_user_cannot_create_location(self):
        self.login_as(make_user())
        response = self.client.post(LOCATIONS_URL, self.location_payload(), format='json')
        self.assertEqual(response.status_code, 403)

    def test_duplicate_name_for_vendor_is_conflict(self):
        make_location(self.vendor, name='Forum Mall Parking')
        self.login_as(self.vendor)

        response = self.client.post(LOCATIONS_URL, self.location_payload(name='forum mall parking'), format='json')
        self.assertEqual(response.status_code, 409)

    def test_invalid_coordinates(self):
        self.login_as(self.vendor)
        response = self.client.post(LOCATIONS_URL, self.location_payload(latitude='95.000000'), format='json')
        self.assertEqual(response.status_code, 400)

    def test_public_list_hides_inactive(self):
        make_location(self.vendor)
        make_location(self.vendor, is_active=False)

        response = self.client.get(LOCATIONS_URL)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 1)

    def test_filter_by_city_and_rate(self):
        make_location(self.vendor, city='Mumbai', hourly_rate=Decimal('80.00'))
        make_location(self.vendor, city='Mumbai', hourly_rate=Decimal('30.00'))
        make_location(self.vendor, city='Pune')

        response = self.client.get(LOCATIONS_URL, {'city': 'mumbai', 'rate_max': 50})
        self.assertEqual(response.data['count'], 1)

    def test_nearby_search_with_distance(self):
        make_location(self.vendor, name='Near', latitude=Decimal('12.971599'), longitude=Decimal('77.594566'))
        make_location(self.vendor, name='Far', latitude=Decimal('13.198635'), longitude=Decimal('77.706593'))

        response = self.client.get(LOCATIONS_URL, {'latitude': 12.972442, 'longitude': 77.580643, 'radius': 5})

        self.assertEqual(response.data['count'], 1)
        result = response.data['results'][0]
        self.assertEqual(result['name'], 'Near')
        self.assertLess(result['distance_km'], 5)

    def test_only_owner_updates(self):
        location = make_location(self.vendor)

        self.login_as(make_vendor())
        response = self.client.patch(f'{LOCATIONS_URL}{location.id}/', {'hourly_rate': '10.00'}, format='json')
        self.assertEqual(response.status_code, 403)

        self.login_as(self.vendor)
        response = self.client.patch(f'{LOCATIONS_URL}{location.id}/', {'hourly_rate': '10.00'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['hourly_rate'], '10.00')

    def test_delete_is_soft(self):
        location = make_location(self.vendor)
        self.login_as(self.vendor)

        response = self.client.delete(f'{LOCATIONS_URL}{location.id}/')

        self.assertEqual(response.status_code, 200)
        location.refresh_from_db()
        self.assertFalse(location.is_active)

    def test_delete_with_occupied_slot_rejected(self):
        location = make_location(self.vendor)
        make_slot(location, status=ParkingSlot.STATUS_OCCUPIED)
        self.login_as(self.vendor)

        response = self.client.delete(f'{LOCATIONS_URL}{location.id}/')
        self.assertEqual(response.status_code, 400)

    def test_vendor_locations(self):
        make_location(self.vendor)
        make_location(make_vendor())
        self.login_as(self.vendor)

        response = self.client.get(f'{LOCATIONS_URL}vendor/')
        self.assertEqual(response.data['count'], 1)


class SlotTests(APITestBase):

    def setUp(self):
        super().setUp()
        self.vendor = make_vendor()
        self.location = make_location(self.vendor)

    def test_create_slot_updates_counts(self):
        self.login_as(self.vendor)
        response = self.client.post(
            f'{LOCATIONS_URL}{self.location.id}/slots/',
            {'slot_number': 'B-01', 'floor': '1', 'type': 'electric'},
            format='json'
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['effective_hourly_rate'], '50.00')
        self.location.refresh_from_db()
        self.assertEqual(self.location.total_slots, 1)
        self.assertEqual(self.location.available_slots, 1)

    def test_duplicate_slot_number_is_conflict(self):
        make_slot(self.location, slot_number='B-01')
        self.login_as(self.vendor)

        response = self.client.post(f'{LOCATIONS_URL}{self.location.id}/slots/', {'slot_number': 'b-01'}, format='json')
        self.assertEqual(response.status_code, 409)

    def test_other_vendor_cannot_add_slots(self):
        self.login_as(make_vendor())
        response = self.client.post(f'{LOCATIONS_URL}{self.location.id}/slots/', {'slot_number': 'C-1'}, format='json')
        self.assertEqual(response.status_code, 403)

    def test_public_slot_listing_filters(self):
        make_slot(self.location, type='electric')
        make_slot(self.location, type='regular')
        make_slot(self.location, type='regular', is_active=False)

        response = self.client.get(f'{LOCATIONS_URL}{self.location.id}/slots/', {'type': 'regular'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 1)

    def test_custom_rate_overrides_location_rate(self):
        slot = make_slot(self.location, custom_hourly_rate=Decimal('75.00'))
        self.assertEqual(slot.hourly_rate, Decimal('75.00'))
        self.assertEqual(slot.daily_rate, Decimal('400.00'))

    def test_slot_status_update_and_stats(self):
        slot = make_slot(self.location)
        make_slot(self.location)
        self.login_as(self.vendor)

        response = self.client.patch(f'{SLOTS_URL}{slot.id}/', {'status': 'maintenance'}, format='json')
        self.assertEqual(response.status_code, 200)

        response = self.client.get(f'{LOCATIONS_URL}{self.location.id}/stats/')
        stats = response.data['stats']
        self.assertEqual(stats['total_slots'], 2)
        self.assertEqual(stats['available_slots'], 1)
        self.assertEqual(stats['maintenance_slots'], 1)

    def test_occupied_slot_cannot_be_switched_off(self):
        slot = make_slot(self.location, status=ParkingSlot.STATUS_OCCUPIED)
        self.login_as(self.vendor)

        response = self.client.patch(f'{SLOTS_URL}{slot.id}/', {'is_active': False}, format='json')
        self.assertEqual(response.status_code, 400)
        response = self.client.patch(f'{SLOTS_URL}{slot.id}/', {'status': 'available'}, format='json')
        self.assertEqual(response.status_code, 400)

        slot.refresh_from_db()
        self.assertTrue(slot.is_active)
        self.assertEqual(slot.status, ParkingSlot.STATUS_OCCUPIED)

        response = self.client.patch(f'{SLOTS_URL}{slot.id}/', {'notes': 'Near the lift'}, format='json')
        self.assertEqual(response.status_code, 200)

    def test_delete_slot_deactivates(self):
        slot = make_slot(self.location)
        self.login_as(self.vendor)

        response = self.client.delete(f'{SLOTS_URL}{slot.id}/')

        self.assertEqual(response.status_code, 200)
        slot.refresh_from_db()
        self.assertFalse(slot.is_active)
        self.location.refresh_from_db()
        self.assertEqual(self.location.total_slots, 0)

    def test_stats_require_owner(self):
        self.login_as(make_user())
        response = self.client.get(f'{LOCATIONS_URL}{self.location.id}/stats/')
        self.assertEqual(response.status_code, 403)

        self.login_as(make_admin())
        response = self.client.get(f'{LOCATIONS_URL}{self.location.id}/stats/')
        self.assertEqual(response.status_code, 200)


class AvailabilityTests(APITestBase):

    def setUp(self):
        super().setUp()
        self.vendor = make_vendor()
        self.location = make_location(self.vendor)
        self.busy = make_slot(self.location, slot_number='A-1')
        self.free = make_slot(self.location, slot_number='A-2')
        make_slot(self.location, slot_number='A-3', status=ParkingSlot.STATUS_MAINTENANCE)
        BookingService.create_booking(make_user(), self.busy.id, hours_from_now(2), hours_from_now(4))

    def query(self, start, end):
        return self.client.get(f'{LOCATIONS_URL}{self.location.id}/availability/', {
            'start_time': start.isoformat(),
            'end_time': end.isoformat(),
        })

    def test_overlapping_window_excludes_booked_slot(self):
        response = self.query(hours_from_now(3), hours_from_now(5))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['available_count'], 1)
        self.assertEqual(str(response.data['slots'][0]['id']), str(self.free.id))

    def test_adjacent_window_is_free(self):
        booking_end = self.busy.bookings.get().end_time
        response = self.query(booking_end, hours_from_now(6))
        self.assertEqual(response.data['available_count'], 2)

    def test_end_before_start_rejected(self):
        response = self.query(hours_from_now(5), hours_from_now(3))
        self.assertEqual(response.status_code, 400)


class DistanceCalculatorTests(APITestBase):

    def test_bounding_box_contains_radius(self):
        min_lat, max_lat, min_lng, max_lng = DistanceCalculator.bounding_box(12.97, 77.59, 10)
        self.assertLess(min_lat, 12.97 - 0.08)
        self.assertGreater(max_lat, 12.97 + 0.08)
        self.assertLess(min_lng, 77.59 - 0.09)
        self.assertGreater(max_lng, 77.59 + 0.09)

    def test_longitude_ranges_wrap_antimeridian(self):
        self.assertEqual(DistanceCalculator.longitude_ranges(10.0, 20.0), [(10.0, 20.0)])
        self.assertEqual(DistanceCalculator.longitude_ranges(179.0, 181.0), [(179.0, 180.0), (-180.0, -179.0)])
        self.assertEqual(DistanceCalculator.longitude_ranges(-181.0, -179.0), [(179.0, 180.0), (-180.0, -179.0)])

    def test_search_across_antimeridian(self):
        location = make_location(make_vendor(), latitude=Decimal('-16.500000'), longitude=Decimal('179.990000'))

        nearby = ParkingService.search_nearby(ParkingLocation.objects.all(), -16.5, -179.99, 10)

        self.assertEqual([found.id for found in nearby], [location.id])
        self.assertLess(nearby[0].distance_km, 3)

    def test_distance(self):
        km = DistanceCalculator.get_distance_km(12.971599, 77.594566, 13.198635, 77.706593)
        self.assertAlmostEqual(km, 27.9, delta=0.5)

    def test_location_counter_fields(self):
        location = make_location(make_vendor())
        make_slot(location)
        slot = make_slot(location)
        slot.status = ParkingSlot.STATUS_OCCUPIED
        slot.save()

        location = ParkingLocation.objects.get(pk=location.pk)
        self.assertEqual(location.total_slots, 2)
        self.assertEqual(location.available_slots, 1)
