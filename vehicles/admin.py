from django.contrib import admin
from .models import UserVehicle, VehicleUsageStats


@admin.register(UserVehicle)
class UserVehicleAdmin(admin.ModelAdmin):
    list_display = ['license_plate', 'user', 'type', 'brand', 'is_active', 'created_at']
    list_filter = ['type', 'is_active']
    search_fields = ['license_plate', 'user__email']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(VehicleUsageStats)
class VehicleUsageStatsAdmin(admin.ModelAdmin):
    list_display = ['vehicle', 'date', 'booking_count', 'total_amount', 'total_hours']
    list_filter = ['date']
    search_fields = ['vehicle__license_plate']
