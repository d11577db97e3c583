# ============================= PARKING/FILTERS.PY =============================
import django_filters
from .models import ParkingLocation, ParkingSlot


class ParkingLocationFilter(django_filters.FilterSet):
    """Filtering for parking locations"""

    city = django_filters.CharFilter(field_name='city', lookup_expr='iexact')
    rate_max = django_filters.NumberFilter(
        field_name='hourly_rate',
        lookup_expr='lte',
        label='Maximum Hourly Rate'
    )
    rating_min = django_filters.NumberFilter(
        field_name='rating',
        lookup_expr='gte',
        label='Minimum Rating'
    )
    has_availability = django_filters.BooleanFilter(
        method='filter_has_availability',
        label='Has Available Slots'
    )

    class Meta:
        model = ParkingLocation
        fields = {
            'type': ['exact'],
            'state': ['iexact'],
        }

    def filter_has_availability(self, queryset, name, value):
        if value:
            return queryset.filter(available_slots__gt=0)
        return queryset.filter(available_slots=0)


class ParkingSlotFilter(django_filters.FilterSet):
    class Meta:
        model = ParkingSlot
        fields = {
            'type': ['exact'],
            'status': ['exact'],
            'floor': ['exact'],
        }
