from django.contrib import admin
from .models import Booking, BookingExtension


class BookingExtensionInline(admin.TabularInline):
    model = BookingExtension
    extra = 0
    readonly_fields = ['original_end_time', 'new_end_time', 'extension_minutes', 'extension_fee', 'reason', 'created_at']


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['confirmation_code', 'user', 'slot', 'status', 'start_time', 'end_time', 'total_amount', 'paid_amount']
    list_filter = ['status', 'type', 'created_at']
    search_fields = ['confirmation_code', 'user__email', 'license_plate', 'slot__location__name']
    readonly_fields = ['qr_code', 'created_at', 'updated_at']
    inlines = [BookingExtensionInline]
