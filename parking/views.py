# ============================= PARKING VIEWS =============================
import logging

from rest_framework import viewsets, mixins, status, permissions, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from utils.permissions import IsVendorOrAdmin, IsLocationVendorOrAdmin
from bookings.models import Booking
from bookings.serializers import BookingListSerializer
from .models import ParkingLocation, ParkingSlot
from .serializers import (
    ParkingLocationListSerializer,
    ParkingLocationDetailSerializer,
    ParkingLocationCreateUpdateSerializer,
    ParkingSlotSerializer,
    SlotOccupancyLogSerializer,
    AvailabilityQuerySerializer,
    NearbyQuerySerializer,
)
from .filters import ParkingLocationFilter, ParkingSlotFilter
from .services import ParkingService

logger = logging.getLogger(__name__)


class ParkingLocationViewSet(viewsets.ModelViewSet):
    """Parking location listing, creation, and management"""

    filter_backends = [
        DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter
    ]
    filterset_class = ParkingLocationFilter
    search_fields = ['name', 'address', 'city', 'description']
    ordering_fields = ['created_at', 'rating', 'hourly_rate', 'available_slots']
    ordering = ['-rating', '-created_at']

    def get_queryset(self):
        if self.action == 'list':
            return ParkingLocation.objects.filter(is_active=True, status='active').select_related('vendor')
        return ParkingLocation.objects.select_related('vendor')

    def filter_queryset(self, queryset):
        # Location filters apply to the public listing only; detail actions reuse
        # query params such as ?type= for slots
        if self.action == 'list':
            return super().filter_queryset(queryset)
        return queryset

    def get_serializer_class(self):
        if self.action in ['list', 'my_locations']:
            return ParkingLocationListSerializer
        elif self.action in ['create', 'update', 'partial_update']:
            return ParkingLocationCreateUpdateSerializer
        return ParkingLocationDetailSerializer

    def get_permissions(self):
        if self.action in ['list', 'retrieve', 'availability']:
            permission_classes = [permissions.AllowAny]
        elif self.action == 'slots' and self.request.method == 'GET':
            permission_classes = [permissions.AllowAny]
        elif self.action in ['create', 'my_locations']:
            permission_classes = [IsVendorOrAdmin]
        else:
            permission_classes = [permissions.IsAuthenticated, IsLocationVendorOrAdmin]
        return [permission() for permission in permission_classes]

    def list(self, request, *args, **kwargs):
        """Active locations; with latitude/longitude, only those within radius km"""
        queryset = self.filter_queryset(self.get_queryset())

        if 'latitude' in request.query_params or 'longitude' in request.query_params:
            point = NearbyQuerySerializer(data=request.query_params)
            point.is_valid(raise_exception=True)
            queryset = ParkingService.search_nearby(
                queryset,
                point.validated_data['latitude'],
                point.validated_data['longitude'],
                point.validated_data['radius'],
            )

        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        location = ParkingService.create_location(request.user, serializer.validated_data)
        return Response(ParkingLocationDetailSerializer(location).data, status=status.HTTP_201_CREATED)

    def perform_update(self, serializer):
        if 'name' in serializer.validated_data:
            ParkingService.ensure_unique_name(serializer.instance, serializer.validated_data['name'])
        serializer.save()

    def update(self, request, *args, **kwargs):
        super().update(request, *args, **kwargs)
        return Response(ParkingLocationDetailSerializer(self.get_object()).data)

    def destroy(self, request, *args, **kwargs):
        location = self.get_object()
        ParkingService.deactivate_location(location)
        return Response({'message': 'Parking location deleted successfully'}, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'], url_path='vendor')
    def my_locations(self, request):
        """Locations owned by the current vendor"""
        queryset = ParkingLocation.objects.filter(vendor=request.user)
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @action(detail=True, methods=['get'])
    def stats(self, request, pk=None):
        """Slot occupancy statistics (owner/admin only)"""
        location = self.get_object()
        return Response({
            'location': ParkingLocationListSerializer(location).data,
            'stats': ParkingService.location_stats(location),
        })

    @action(detail=True, methods=['get', 'post'])
    def slots(self, request, pk=None):
        """List active slots of a location, or add a slot (owner/admin)"""
        location = self.get_object()

        if request.method == 'POST':
            serializer = ParkingSlotSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            slot = ParkingService.create_slot(location, serializer.validated_data)
            logger.info(f"Slot {slot.slot_number} created at {location.id} by {request.user.id}")
            return Response(ParkingSlotSerializer(slot).data, status=status.HTTP_201_CREATED)

        slots = ParkingSlotFilter(request.query_params, queryset=location.slots.filter(is_active=True)).qs
        page = self.paginate_queryset(slots)
        serializer = ParkingSlotSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @action(detail=True, methods=['get'])
    def availability(self, request, pk=None):
        """Slots free for the whole requested window

        Query params: start_time, end_time (ISO 8601), type (optional)
        """
        location = self.get_object()
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        slots = ParkingService.available_slots(
            location,
            query.validated_data['start_time'],
            query.validated_data['end_time'],
            query.validated_data.get('type'),
        )
        return Response({
            'location_id': location.id,
            'start_time': query.validated_data['start_time'],
            'end_time': query.validated_data['end_time'],
            'available_count': slots.count(),
            'slots': ParkingSlotSerializer(slots, many=True).data,
        })

    @action(detail=True, methods=['get'])
    def bookings(self, request, pk=None):
        """Bookings at this location (owner/admin only)"""
        location = self.get_object()
        bookings = Booking.objects.filter(slot__location=location).select_related('slot', 'user')
        status_filter = request.query_params.get('status')
        if status_filter:
            bookings = bookings.filter(status=status_filter)
        page = self.paginate_queryset(bookings.order_by('-start_time'))
        serializer = BookingListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)


class ParkingSlotViewSet(mixins.RetrieveModelMixin,
                         mixins.UpdateModelMixin,
                         mixins.DestroyModelMixin,
                         viewsets.GenericViewSet):
    """Single slot management; slots are created through their location"""
    queryset = ParkingSlot.objects.select_related('location')
    serializer_class = ParkingSlotSerializer

    def get_permissions(self):
        if self.action == 'retrieve':
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated(), IsLocationVendorOrAdmin()]

    def perform_update(self, serializer):
        ParkingService.ensure_slot_editable(serializer.instance, serializer.validated_data)
        if 'slot_number' in serializer.validated_data:
            ParkingService.ensure_unique_slot_number(serializer.instance, serializer.validated_data['slot_number'])
        slot = serializer.save()
        logger.info(f"Slot {slot.id} updated by {self.request.user.id}: status={slot.status}")

    def destroy(self, request, *args, **kwargs):
        slot = self.get_object()
        ParkingService.deactivate_slot(slot)
        return Response({'message': 'Parking slot deleted successfully'}, status=status.HTTP_200_OK)

    @action(detail=True, methods=['get'])
    def occupancy(self, request, pk=None):
        """Occupancy history of a slot"""
        slot = self.get_object()
        page = self.paginate_queryset(slot.occupancy_logs.all())
        serializer = SlotOccupancyLogSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)
