# ==================== PARKING_API/URLS.PY ====================
from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from users.views import UserViewSet, AdminUserViewSet
from vehicles.views import VehicleViewSet
from parking.views import ParkingLocationViewSet, ParkingSlotViewSet
from bookings.views import BookingViewSet
from payments.views import PaymentViewSet, WalletViewSet
from payments.webhooks import razorpay_webhook

# Create router and register viewsets
router = DefaultRouter()
router.register(r'users', AdminUserViewSet, basename='user')
router.register(r'vehicles', VehicleViewSet, basename='vehicle')
router.register(r'parking/locations', ParkingLocationViewSet, basename='parking-location')
router.register(r'parking/slots', ParkingSlotViewSet, basename='parking-slot')
router.register(r'bookings', BookingViewSet, basename='booking')
router.register(r'payments', PaymentViewSet, basename='payment')
router.register(r'wallet', WalletViewSet, basename='wallet')

urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # API versioning
    path('api/v1/', include([
        # Authentication endpoints
        path('auth/', include([
            path('register/', UserViewSet.as_view({'post': 'register'}), name='register'),
            path('login/', UserViewSet.as_view({'post': 'login'}), name='login'),
            path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
            path('profile/', UserViewSet.as_view({'get': 'profile', 'put': 'profile', 'patch': 'profile'}), name='profile'),
        ])),

        # API routes
        path('', include(router.urls)),
    ])),

    path('webhooks/', include([
        path('razorpay/payment/', razorpay_webhook, name='razorpay_webhook'),
    ])),
]

if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
