# ============================= BOOKINGS VIEWS =============================
import logging

from rest_framework import viewsets, mixins, status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response

from utils.permissions import IsOwnerOrAdmin, IsBookingParticipant
from .models import Booking
from .serializers import (
    BookingCreateSerializer,
    BookingListSerializer,
    BookingDetailSerializer,
    BookingUpdateSerializer,
    BookingExtendSerializer,
    BookingExtensionSerializer,
    BookingCancelSerializer,
    CheckInSerializer,
    CheckOutSerializer,
)
from .services import BookingService

logger = logging.getLogger(__name__)


class BookingViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     viewsets.GenericViewSet):
    """Booking creation, management, and check-in/check-out"""

    def get_queryset(self):
        queryset = Booking.objects.select_related('slot', 'slot__location', 'user', 'vehicle')
        if self.action in ['list', 'history']:
            queryset = queryset.filter(user=self.request.user)
        return queryset.order_by('-created_at')

    def get_serializer_class(self):
        if self.action in ['list', 'history']:
            return BookingListSerializer
        return BookingDetailSerializer

    def get_permissions(self):
        if self.action in ['retrieve', 'check_in', 'check_out']:
            permission_classes = [permissions.IsAuthenticated, IsBookingParticipant]
        else:
            permission_classes = [permissions.IsAuthenticated, IsOwnerOrAdmin]
        return [permission() for permission in permission_classes]

    def list(self, request, *args, **kwargs):
        """Own bookings, newest first; optional ?status="""
        queryset = self.get_queryset()
        status_filter = request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def create(self, request, *args, **kwargs):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = BookingService.create_booking(
            user=request.user,
            slot_id=data['slot_id'],
            start_time=data['start_time'],
            end_time=data['end_time'],
            booking_type=data['type'],
            vehicle_id=data.get('vehicle_id'),
            license_plate=data.get('license_plate', ''),
            special_instructions=data.get('special_instructions', ''),
            request=request,
        )
        return Response(BookingDetailSerializer(booking).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        """Change end time, license plate or instructions of a pending/confirmed booking"""
        booking = self.get_object()
        serializer = BookingUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = BookingService.update_booking(booking, **serializer.validated_data)
        return Response(BookingDetailSerializer(booking).data)

    @action(detail=False, methods=['get'])
    def history(self, request):
        """Own bookings that reached a final state"""
        queryset = self.get_queryset().filter(status__in=Booking.HISTORY_STATUSES)
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @action(detail=True, methods=['post'])
    def extend(self, request, pk=None):
        """Push the end time back

        Body: { "extension_minutes": 60, "reason": "..." }
        """
        booking = self.get_object()
        serializer = BookingExtendSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking, extension = BookingService.extend_booking(
            booking,
            serializer.validated_data['extension_minutes'],
            serializer.validated_data.get('reason', ''),
        )
        return Response({
            'booking': BookingDetailSerializer(booking).data,
            'extension': BookingExtensionSerializer(extension).data,
            'message': 'Booking extended successfully'
        })

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel a booking; paid money is refunded to the wallet"""
        booking = self.get_object()
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking, refund_amount = BookingService.cancel_booking(
            booking, request.user, serializer.validated_data['reason'], request
        )
        return Response({
            'booking': BookingDetailSerializer(booking).data,
            'refund_amount': refund_amount,
            'message': 'Booking cancelled successfully'
        })

    @action(detail=True, methods=['post'], url_path='checkin')
    def check_in(self, request, pk=None):
        booking = self.get_object()
        serializer = CheckInSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = BookingService.check_in(booking, serializer.validated_data.get('actual_license_plate'))
        return Response(BookingDetailSerializer(booking).data)

    @action(detail=True, methods=['post'], url_path='checkout')
    def check_out(self, request, pk=None):
        booking = self.get_object()
        serializer = CheckOutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = BookingService.check_out(booking, serializer.validated_data.get('notes', ''))
        return Response(BookingDetailSerializer(booking).data)
