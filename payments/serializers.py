# ==================== PAYMENTS/SERIALIZERS.PY ====================
from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from .models import Payment, WalletTransaction


class PaymentSerializer(serializers.ModelSerializer):
    booking_id = serializers.UUIDField(source='booking.id', read_only=True, allow_null=True)
    confirmation_code = serializers.CharField(source='booking.confirmation_code', read_only=True, allow_null=True)
    user_email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'booking_id', 'confirmation_code', 'user', 'user_email', 'amount',
            'gateway_fee', 'tax_amount', 'total_amount', 'status', 'method', 'gateway', 'type',
            'gateway_transaction_id', 'gateway_payment_id', 'gateway_order_id',
            'failure_reason', 'refunded_amount', 'refunded_at', 'description', 'metadata',
            'processed_at', 'expires_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    booking_id = serializers.UUIDField()
    method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'), required=False)
    gateway = serializers.ChoiceField(choices=Payment.GATEWAY_CHOICES, required=False)
    metadata = serializers.DictField(required=False)


class PaymentUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Payment.STATUS_CHOICES, required=False)
    gateway_transaction_id = serializers.CharField(max_length=100, required=False, allow_blank=True)
    failure_reason = serializers.CharField(max_length=500, required=False, allow_blank=True)
    metadata = serializers.DictField(required=False)


class PaymentVerifySerializer(serializers.Serializer):
    razorpay_order_id = serializers.CharField()
    razorpay_payment_id = serializers.CharField()
    razorpay_signature = serializers.CharField()


class RefundSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    reason = serializers.CharField(min_length=5, max_length=200)


class SummaryQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, data):
        if data.get('start_date') and data.get('end_date') and data['end_date'] < data['start_date']:
            raise serializers.ValidationError("end_date must not be before start_date")
        return data


class WalletTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = WalletTransaction
        fields = ['id', 'amount', 'balance_before', 'balance_after', 'type', 'description',
                  'reference_id', 'reference_type', 'created_at']


class WalletTopupSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES)
    gateway = serializers.ChoiceField(choices=Payment.GATEWAY_CHOICES, required=False)

    def validate_amount(self, value):
        low = settings.PARKING['WALLET_TOPUP_MIN']
        high = settings.PARKING['WALLET_TOPUP_MAX']
        if value < low or value > high:
            raise serializers.ValidationError(f"Top-up amount must be between {low} and {high}")
        return value

    def validate_method(self, value):
        if value == Payment.METHOD_WALLET:
            raise serializers.ValidationError("Wallet cannot be topped up from itself")
        return value
