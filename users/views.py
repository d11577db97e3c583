# ==================== USERS/VIEWS.PY ====================
import logging

from rest_framework import viewsets, mixins, status, permissions, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.exceptions import PermissionDenied
from rest_framework_simplejwt.tokens import RefreshToken
from django_filters.rest_framework import DjangoFilterBackend

from utils.permissions import IsAdmin
from .models import User
from .serializers import (
    UserRegistrationSerializer, UserLoginSerializer, UserProfileSerializer,
    UserProfileUpdateSerializer, UserListSerializer, UserStatusSerializer,
    UserRoleSerializer, UserActivityLogSerializer,
)
from .services import ActivityService, UserService

logger = logging.getLogger(__name__)


def token_response(user, message, status_code):
    refresh = RefreshToken.for_user(user)
    return Response({
        'user': UserProfileSerializer(user).data,
        'refresh': str(refresh),
        'access': str(refresh.access_token),
        'message': message
    }, status=status_code)


class UserViewSet(viewsets.ViewSet):
    """User registration, login, and profile management"""
    permission_classes = [permissions.AllowAny]

    def get_permissions(self):
        # Hand-routed actions do not pick up @action permission kwargs
        if self.action == 'profile':
            return [permissions.IsAuthenticated()]
        return super().get_permissions()

    @action(detail=False, methods=['post'])
    def register(self, request):
        """Register new user"""
        serializer = UserRegistrationSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            logger.info(f"User registered: {user.id} ({user.role})")
            return token_response(user, 'User registered successfully', status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    @action(detail=False, methods=['post'])
    def login(self, request):
        """User login"""
        serializer = UserLoginSerializer(data=request.data, context={'request': request})
        if serializer.is_valid():
            user = serializer.validated_data['user']
            ActivityService.log(user, 'login', request)
            return token_response(user, 'Login successful', status.HTTP_200_OK)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    @action(detail=False, methods=['get', 'put', 'patch'], permission_classes=[permissions.IsAuthenticated])
    def profile(self, request):
        """Get or update user profile"""
        if request.method == 'GET':
            serializer = UserProfileSerializer(request.user)
            return Response(serializer.data)

        serializer = UserProfileUpdateSerializer(request.user, data=request.data, partial=True)
        if serializer.is_valid():
            user = serializer.save()
            ActivityService.log(
                user, 'profile_update', request, {'fields': sorted(serializer.validated_data.keys())}
            )
            return Response(UserProfileSerializer(user).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


class AdminUserViewSet(mixins.ListModelMixin,
                       mixins.RetrieveModelMixin,
                       mixins.DestroyModelMixin,
                       viewsets.GenericViewSet):
    """User administration (admin only)"""
    queryset = User.objects.all()
    serializer_class = UserListSerializer
    permission_classes = [IsAdmin]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['role', 'status']
    search_fields = ['name', 'email', 'mobile']
    ordering_fields = ['created_at', 'name', 'wallet_balance']
    ordering = ['-created_at']

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return UserProfileSerializer
        return UserListSerializer

    def perform_destroy(self, instance):
        if instance == self.request.user:
            raise PermissionDenied('You cannot delete your own account')
        logger.info(f"User {instance.id} deleted by admin {self.request.user.id}")
        instance.delete()

    def destroy(self, request, *args, **kwargs):
        super().destroy(request, *args, **kwargs)
        return Response({'message': 'User deleted successfully'}, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        """User counts by role and status"""
        return Response(UserService.get_stats())

    @action(detail=True, methods=['patch'], url_path='status')
    def update_status(self, request, pk=None):
        user = self.get_object()
        serializer = UserStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        if user == request.user:
            return Response(
                {'error': 'You cannot change your own status'},
                status=status.HTTP_400_BAD_REQUEST
            )

        UserService.change_status(user, serializer.validated_data['status'], request.user, request)
        return Response(UserProfileSerializer(user).data)

    @action(detail=True, methods=['patch'], url_path='role')
    def update_role(self, request, pk=None):
        user = self.get_object()
        serializer = UserRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        if user == request.user:
            return Response(
                {'error': 'You cannot change your own role'},
                status=status.HTTP_400_BAD_REQUEST
            )

        UserService.change_role(user, serializer.validated_data['role'], request.user, request)
        return Response(UserProfileSerializer(user).data)

    @action(detail=True, methods=['get'])
    def activity(self, request, pk=None):
        """Paginated activity log for a user"""
        user = self.get_object()
        logs = user.activity_logs.all()
        page = self.paginate_queryset(logs)
        serializer = UserActivityLogSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)
