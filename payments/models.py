# ==================== PAYMENTS/MODELS.PY ====================
import uuid

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from decimal import Decimal

from bookings.models import Booking


class Payment(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_PROCESSING = 'processing'
    STATUS_COMPLETED = 'completed'
    STATUS_FAILED = 'failed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_REFUNDED = 'refunded'
    STATUS_PARTIALLY_REFUNDED = 'partially_refunded'
    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_PROCESSING, 'Processing'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_FAILED, 'Failed'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_REFUNDED, 'Refunded'),
        (STATUS_PARTIALLY_REFUNDED, 'Partially Refunded'),
    )
    OPEN_STATUSES = (STATUS_PENDING, STATUS_PROCESSING)
    REFUNDABLE_STATUSES = (STATUS_COMPLETED, STATUS_PARTIALLY_REFUNDED)

    METHOD_CREDIT_CARD = 'credit_card'
    METHOD_DEBIT_CARD = 'debit_card'
    METHOD_WALLET = 'wallet'
    METHOD_UPI = 'upi'
    METHOD_NET_BANKING = 'net_banking'
    METHOD_CASH = 'cash'
    METHOD_APPLE_PAY = 'apple_pay'
    METHOD_GOOGLE_PAY = 'google_pay'
    METHOD_CHOICES = (
        (METHOD_CREDIT_CARD, 'Credit Card'),
        (METHOD_DEBIT_CARD, 'Debit Card'),
        (METHOD_WALLET, 'Wallet'),
        (METHOD_UPI, 'UPI'),
        (METHOD_NET_BANKING, 'Net Banking'),
        (METHOD_CASH, 'Cash'),
        (METHOD_APPLE_PAY, 'Apple Pay'),
        (METHOD_GOOGLE_PAY, 'Google Pay'),
    )

    GATEWAY_STRIPE = 'stripe'
    GATEWAY_RAZORPAY = 'razorpay'
    GATEWAY_PAYPAL = 'paypal'
    GATEWAY_SQUARE = 'square'
    GATEWAY_INTERNAL = 'internal'
    GATEWAY_CHOICES = (
        (GATEWAY_STRIPE, 'Stripe'),
        (GATEWAY_RAZORPAY, 'Razorpay'),
        (GATEWAY_PAYPAL, 'PayPal'),
        (GATEWAY_SQUARE, 'Square'),
        (GATEWAY_INTERNAL, 'Internal'),
    )

    TYPE_BOOKING = 'booking'
    TYPE_EXTENSION = 'extension'
    TYPE_OVERSTAY = 'overstay'
    TYPE_PENALTY = 'penalty'
    TYPE_REFUND = 'refund'
    TYPE_WALLET_TOPUP = 'wallet_topup'
    TYPE_CHOICES = (
        (TYPE_BOOKING, 'Booking'),
        (TYPE_EXTENSION, 'Extension'),
        (TYPE_OVERSTAY, 'Overstay'),
        (TYPE_PENALTY, 'Penalty'),
        (TYPE_REFUND, 'Refund'),
        (TYPE_WALLET_TOPUP, 'Wallet Top-up'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(
        Booking, on_delete=models.SET_NULL, null=True, blank=True, related_name='payments'
    )
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='payments')

    # Amounts
    amount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    gateway_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    tax_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    refunded_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    method = models.CharField(max_length=20, choices=METHOD_CHOICES)
    gateway = models.CharField(max_length=20, choices=GATEWAY_CHOICES, default=GATEWAY_RAZORPAY)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_BOOKING)

    # Gateway details
    gateway_transaction_id = models.CharField(max_length=100, blank=True, db_index=True)
    gateway_payment_id = models.CharField(max_length=100, blank=True, db_index=True)
    gateway_order_id = models.CharField(max_length=100, blank=True, db_index=True)
    gateway_response = models.JSONField(default=dict, blank=True)
    failure_reason = models.CharField(max_length=500, blank=True)

    description = models.CharField(max_length=255, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    processed_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True, help_text="Open gateway payments are cancelled after this")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'status'], name='payment_user_status_idx'),
            models.Index(fields=['booking', 'status'], name='payment_booking_status_idx'),
        ]

    def __str__(self):
        return f"Payment {self.id} - {self.amount} ({self.status})"

    @property
    def refundable_amount(self):
        return self.amount - self.refunded_amount


class WalletTransaction(models.Model):
    """Append-only wallet ledger; balance_after of the latest row equals the user's wallet_balance"""
    TYPE_CREDIT = 'credit'
    TYPE_DEBIT = 'debit'
    TYPE_CHOICES = (
        (TYPE_CREDIT, 'Credit'),
        (TYPE_DEBIT, 'Debit'),
    )

    REFERENCE_PAYMENT = 'payment'
    REFERENCE_REFUND = 'refund'
    REFERENCE_TOPUP = 'top-up'
    REFERENCE_BOOKING = 'booking'
    REFERENCE_CHOICES = (
        (REFERENCE_PAYMENT, 'Payment'),
        (REFERENCE_REFUND, 'Refund'),
        (REFERENCE_TOPUP, 'Top-up'),
        (REFERENCE_BOOKING, 'Booking'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='wallet_transactions')
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    balance_before = models.DecimalField(max_digits=12, decimal_places=2)
    balance_after = models.DecimalField(max_digits=12, decimal_places=2)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    description = models.CharField(max_length=255, blank=True)
    reference_id = models.UUIDField(null=True, blank=True, db_index=True)
    reference_type = models.CharField(max_length=20, choices=REFERENCE_CHOICES, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'type'], name='wallet_user_type_idx'),
        ]

    def __str__(self):
        return f"{self.type} {self.amount} for {self.user.email}"
