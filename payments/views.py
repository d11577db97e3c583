# ==================== PAYMENTS/VIEWS.PY ====================
from rest_framework import viewsets, mixins, status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from django.conf import settings
import logging

from utils.permissions import IsAdmin, IsOwnerOrAdmin
from .filters import PaymentFilter, MyPaymentFilter, WalletTransactionFilter
from .models import Payment, WalletTransaction
from .serializers import (
    PaymentSerializer, PaymentCreateSerializer, PaymentUpdateSerializer,
    PaymentVerifySerializer, RefundSerializer, SummaryQuerySerializer,
    WalletTransactionSerializer, WalletTopupSerializer,
)
from .services import PaymentService

logger = logging.getLogger(__name__)


def checkout_details(payment):
    """Fields the client needs to open the gateway checkout"""
    if payment.status != Payment.STATUS_PROCESSING or not payment.gateway_order_id:
        return None
    return {
        'razorpay_order_id': payment.gateway_order_id,
        'amount': payment.total_amount,
        'currency': settings.PARKING['CURRENCY'],
        'key_id': settings.RAZORPAY_KEY_ID,
    }


class PaymentViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     viewsets.GenericViewSet):
    """Handle payment processing, verification, refunds and reporting"""
    queryset = Payment.objects.select_related('booking', 'user')
    serializer_class = PaymentSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = PaymentFilter

    def get_permissions(self):
        if self.action in ['list', 'update', 'summary']:
            permission_classes = [IsAdmin]
        elif self.action in ['retrieve', 'refund']:
            permission_classes = [permissions.IsAuthenticated, IsOwnerOrAdmin]
        else:
            permission_classes = [permissions.IsAuthenticated]
        return [permission() for permission in permission_classes]

    def filter_queryset(self, queryset):
        if self.action == 'list':
            return super().filter_queryset(queryset)
        return queryset

    def create(self, request, *args, **kwargs):
        """Pay (part of) a booking's outstanding amount

        Body: { "booking_id": "...", "method": "wallet|upi|cash|...", "amount": "100.00" }
        """
        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payment = PaymentService.create_payment(
            user=request.user,
            booking_id=data['booking_id'],
            method=data['method'],
            amount=data.get('amount'),
            gateway=data.get('gateway'),
            metadata=data.get('metadata'),
            request=request,
        )
        return Response({
            'payment': PaymentSerializer(payment).data,
            'checkout': checkout_details(payment),
        }, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        """Staff update of a payment (admin only)"""
        payment = self.get_object()
        serializer = PaymentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payment = PaymentService.update_payment(payment, serializer.validated_data, request.user, request)
        return Response(PaymentSerializer(payment).data)

    @action(detail=False, methods=['get'], url_path='my-payments')
    def my_payments(self, request):
        payments = MyPaymentFilter(
            request.query_params, queryset=self.get_queryset().filter(user=request.user)
        ).qs
        page = self.paginate_queryset(payments)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @action(detail=False, methods=['post'])
    def verify(self, request):
        """Verify a Razorpay checkout

        Body: { "razorpay_order_id": "...", "razorpay_payment_id": "...", "razorpay_signature": "..." }
        """
        serializer = PaymentVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payment = PaymentService.verify(
            request.user,
            serializer.validated_data['razorpay_order_id'],
            serializer.validated_data['razorpay_payment_id'],
            serializer.validated_data['razorpay_signature'],
            request,
        )
        return Response({
            'payment': PaymentSerializer(payment).data,
            'message': 'Payment verified successfully'
        })

    @action(detail=True, methods=['post'])
    def refund(self, request, pk=None):
        """Refund to the payer's wallet

        Body: { "amount": "50.00", "reason": "..." }
        """
        payment = self.get_object()
        serializer = RefundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payment = PaymentService.refund_payment(
            payment,
            serializer.validated_data['amount'],
            serializer.validated_data['reason'],
            request,
        )
        return Response({
            'payment': PaymentSerializer(payment).data,
            'message': 'Refund processed successfully'
        })

    @action(detail=False, methods=['get'])
    def summary(self, request):
        """Revenue report (admin only)"""
        query = SummaryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response(PaymentService.summary(
            query.validated_data.get('start_date'),
            query.validated_data.get('end_date'),
        ))


class WalletViewSet(viewsets.GenericViewSet):
    """Wallet balance, ledger and top-ups of the current user"""
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = WalletTransactionSerializer

    def get_queryset(self):
        return WalletTransaction.objects.filter(user=self.request.user)

    @action(detail=False, methods=['get'])
    def balance(self, request):
        request.user.refresh_from_db(fields=['wallet_balance'])
        return Response({
            'balance': request.user.wallet_balance,
            'currency': settings.PARKING['CURRENCY'],
        })

    @action(detail=False, methods=['get'])
    def transactions(self, request):
        """Ledger, newest first; optional ?type=credit|debit"""
        request.user.refresh_from_db(fields=['wallet_balance'])
        transactions = WalletTransactionFilter(request.query_params, queryset=self.get_queryset()).qs
        page = self.paginate_queryset(transactions)
        serializer = self.get_serializer(page, many=True)
        response = self.get_paginated_response(serializer.data)
        response.data['current_balance'] = request.user.wallet_balance
        return response

    @action(detail=False, methods=['post'])
    def topup(self, request):
        """Add money to the wallet

        Body: { "amount": "500.00", "method": "upi|credit_card|cash|..." }
        """
        serializer = WalletTopupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payment, txn = PaymentService.topup(
            request.user,
            serializer.validated_data['amount'],
            serializer.validated_data['method'],
            serializer.validated_data.get('gateway'),
            request,
        )
        return Response({
            'payment': PaymentSerializer(payment).data,
            'transaction': WalletTransactionSerializer(txn).data if txn else None,
            'checkout': checkout_details(payment),
        }, status=status.HTTP_201_CREATED)
