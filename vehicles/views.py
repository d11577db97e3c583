# ==================== VEHICLES/VIEWS.PY ====================
import logging

from rest_framework import viewsets, status, permissions, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from utils.permissions import IsAdmin, IsOwnerOrAdmin
from .models import UserVehicle
from .serializers import UserVehicleSerializer, VehicleUsageStatsSerializer
from .services import VehicleService

logger = logging.getLogger(__name__)


class VehicleViewSet(viewsets.ModelViewSet):
    """Register and manage user vehicles"""
    serializer_class = UserVehicleSerializer
    permission_classes = [permissions.IsAuthenticated, IsOwnerOrAdmin]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_active', 'type']
    search_fields = ['license_plate', 'brand', 'model']
    ordering = ['-created_at']

    def get_queryset(self):
        if self.action in ('list', 'create'):
            return UserVehicle.objects.filter(user=self.request.user)
        # Object access is decided by IsOwnerOrAdmin so strangers get 403
        return UserVehicle.objects.select_related('user')

    def get_permissions(self):
        if self.action in ('all_vehicles', 'stats'):
            return [IsAdmin()]
        return super().get_permissions()

    def list(self, request, *args, **kwargs):
        # Own vehicles are returned unpaginated
        queryset = self.filter_queryset(self.get_queryset())
        serializer = self.get_serializer(queryset, many=True)
        return Response(serializer.data)

    def perform_create(self, serializer):
        vehicle = serializer.save(user=self.request.user)
        logger.info(f"Vehicle {vehicle.license_plate} registered by user {self.request.user.id}")

    def destroy(self, request, *args, **kwargs):
        vehicle = self.get_object()
        vehicle.delete()
        logger.info(f"Vehicle {vehicle.license_plate} deleted by user {request.user.id}")
        return Response({'message': 'Vehicle deleted successfully'}, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'], url_path='all')
    def all_vehicles(self, request):
        """All vehicles on the platform (admin)"""
        queryset = self.filter_queryset(UserVehicle.objects.select_related('user'))
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response(VehicleService.get_stats())

    @action(detail=True, methods=['get'])
    def usage(self, request, pk=None):
        """Daily usage totals for a vehicle"""
        vehicle = self.get_object()
        serializer = VehicleUsageStatsSerializer(vehicle.usage_stats.all(), many=True)
        return Response(serializer.data)
