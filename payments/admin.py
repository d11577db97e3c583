# ==================== PAYMENTS/ADMIN.PY ====================
from django.contrib import admin
from django.utils.html import format_html
from .models import Payment, WalletTransaction


class PaymentAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'booking_code', 'user', 'amount', 'method',
        'type', 'status_badge', 'created_at'
    ]
    list_filter = ['status', 'method', 'gateway', 'type', 'created_at']
    search_fields = ['booking__confirmation_code', 'user__email', 'gateway_payment_id', 'gateway_order_id']
    readonly_fields = [
        'created_at', 'updated_at', 'gateway_order_id', 'gateway_payment_id',
        'gateway_response', 'refunded_amount', 'refunded_at', 'processed_at'
    ]

    def booking_code(self, obj):
        return obj.booking.confirmation_code if obj.booking else '-'
    booking_code.short_description = 'Booking'

    def status_badge(self, obj):
        colors = {
            'pending': 'orange',
            'processing': 'gray',
            'completed': 'green',
            'failed': 'red',
            'cancelled': 'gray',
            'refunded': 'blue',
            'partially_refunded': 'blue',
        }
        color = colors.get(obj.status, 'gray')
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 10px; border-radius: 3px;">{}</span>',
            color,
            obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class WalletTransactionAdmin(admin.ModelAdmin):
    list_display = ['user', 'type', 'amount', 'balance_before', 'balance_after', 'reference_type', 'created_at']
    list_filter = ['type', 'reference_type', 'created_at']
    search_fields = ['user__email', 'description']
    readonly_fields = [
        'user', 'amount', 'balance_before', 'balance_after', 'type',
        'description', 'reference_id', 'reference_type', 'created_at'
    ]

    # Ledger rows are written only by WalletService
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


admin.site.register(Payment, PaymentAdmin)
admin.site.register(WalletTransaction, WalletTransactionAdmin)
