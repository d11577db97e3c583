# ==================== PARKING/ADMIN.PY ====================
from django.contrib import admin
from .models import ParkingLocation, ParkingSlot, SlotOccupancyLog


class ParkingSlotInline(admin.TabularInline):
    model = ParkingSlot
    extra = 1
    fields = ['slot_number', 'floor', 'type', 'status', 'custom_hourly_rate', 'is_active']


@admin.register(ParkingLocation)
class ParkingLocationAdmin(admin.ModelAdmin):
    list_display = ['name', 'vendor', 'city', 'type', 'status', 'available_slots', 'total_slots', 'rating', 'created_at']
    list_filter = ['type', 'status', 'city', 'created_at']
    search_fields = ['name', 'address', 'vendor__email']
    readonly_fields = ['created_at', 'updated_at', 'total_slots', 'available_slots', 'rating', 'review_count']
    inlines = [ParkingSlotInline]
    fieldsets = (
        ('Basic Info', {'fields': ('vendor', 'name', 'description', 'type', 'status', 'is_active')}),
        ('Address', {'fields': ('address', 'city', 'state', 'zip_code', 'country', 'latitude', 'longitude')}),
        ('Pricing', {'fields': ('hourly_rate', 'daily_rate', 'monthly_rate')}),
        ('Contact & Amenities', {'fields': ('contact_phone', 'contact_email', 'amenities', 'operating_hours', 'images')}),
        ('Stats', {'fields': ('total_slots', 'available_slots', 'rating', 'review_count')}),
        ('Timestamps', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )


@admin.register(ParkingSlot)
class ParkingSlotAdmin(admin.ModelAdmin):
    list_display = ['slot_number', 'location', 'type', 'status', 'is_active', 'last_occupied_at']
    list_filter = ['type', 'status', 'is_active']
    search_fields = ['slot_number', 'location__name']
    readonly_fields = ['current_booking_id', 'last_occupied_at', 'created_at', 'updated_at']


@admin.register(SlotOccupancyLog)
class SlotOccupancyLogAdmin(admin.ModelAdmin):
    list_display = ['slot', 'booking_id', 'occupied_at', 'vacated_at', 'duration_minutes', 'revenue']
    list_filter = ['was_reserved', 'occupied_at']
