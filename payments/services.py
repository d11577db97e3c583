# ==================== PAYMENTS/SERVICES.PY ====================
import razorpay
import logging
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone
from datetime import timedelta
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from bookings.models import Booking
from bookings.services import BookingService
from users.services import ActivityService
from utils.exceptions import (
    AlreadyPaid, GatewayError, InsufficientWalletBalance, InvalidStateTransition,
)
from utils.money import ZERO, to_money, to_paise
from utils.permissions import is_admin
from .models import Payment, WalletTransaction

logger = logging.getLogger(__name__)

PAYABLE_BOOKING_STATUSES = (
    Booking.STATUS_PENDING, Booking.STATUS_CONFIRMED, Booking.STATUS_ACTIVE, Booking.STATUS_COMPLETED,
)
# Bookings closed without service; money captured for them goes back to the wallet
CLOSED_BOOKING_STATUSES = (Booking.STATUS_CANCELLED, Booking.STATUS_EXPIRED, Booking.STATUS_NO_SHOW)


class RazorpayService:
    """Razorpay payment gateway integration"""

    def __init__(self):
        self.client = razorpay.Client(
            auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET)
        )

    def create_order(self, amount, receipt, notes=None):
        """Create Razorpay order"""
        order_data = {
            'amount': to_paise(amount),  # Amount in paise
            'currency': settings.PARKING['CURRENCY'],
            'receipt': receipt,
            'notes': notes or {},
        }
        try:
            razorpay_order = self.client.order.create(data=order_data)
        except Exception as e:
            logger.error(f"Error creating Razorpay order: {str(e)}")
            raise GatewayError(f"Failed to create order: {str(e)}")

        logger.info(f"Razorpay order created: {razorpay_order['id']} for receipt {receipt}")
        return razorpay_order

    def verify_payment(self, razorpay_order_id, razorpay_payment_id, razorpay_signature):
        """Verify Razorpay payment signature"""
        try:
            self.client.utility.verify_payment_signature({
                'razorpay_order_id': razorpay_order_id,
                'razorpay_payment_id': razorpay_payment_id,
                'razorpay_signature': razorpay_signature
            })
        except razorpay.errors.SignatureVerificationError:
            logger.warning(f"Signature verification failed for payment: {razorpay_payment_id}")
            return False

        logger.info(f"Payment verified: {razorpay_payment_id}")
        return True

    def verify_webhook_signature(self, body, signature):
        try:
            self.client.utility.verify_webhook_signature(
                body.decode('utf-8'), signature, settings.RAZORPAY_WEBHOOK_SECRET
            )
        except razorpay.errors.SignatureVerificationError:
            return False
        return True

    def fetch_order_payments(self, razorpay_order_id):
        """Gateway payments attempted against an order"""
        try:
            response = self.client.order.payments(razorpay_order_id)
        except Exception as e:
            logger.error(f"Error fetching payments for order {razorpay_order_id}: {str(e)}")
            raise GatewayError(str(e))
        return response.get('items', [])


class WalletService:
    """Wallet balance changes; each one writes a ledger row under a row lock on the user"""

    @staticmethod
    def _locked_user(user):
        return get_user_model().objects.select_for_update().get(pk=user.pk)

    @staticmethod
    def _write(user, amount, txn_type, description, reference_id, reference_type):
        before = to_money(user.wallet_balance)
        after = before + amount if txn_type == WalletTransaction.TYPE_CREDIT else before - amount
        user.wallet_balance = after
        user.save(update_fields=['wallet_balance', 'updated_at'])

        txn = WalletTransaction.objects.create(
            user=user,
            amount=amount,
            balance_before=before,
            balance_after=after,
            type=txn_type,
            description=description,
            reference_id=reference_id,
            reference_type=reference_type,
        )
        logger.info(f"Wallet {txn_type} of {amount} for user {user.id}: {before} -> {after}")
        return txn

    @staticmethod
    @transaction.atomic
    def credit(user, amount, description, reference_id=None, reference_type=''):
        amount = to_money(amount)
        if amount <= ZERO:
            raise ValidationError({'amount': 'Amount must be positive'})
        user = WalletService._locked_user(user)
        return WalletService._write(
            user, amount, WalletTransaction.TYPE_CREDIT, description, reference_id, reference_type
        )

    @staticmethod
    @transaction.atomic
    def debit(user, amount, description, reference_id=None, reference_type=''):
        amount = to_money(amount)
        if amount <= ZERO:
            raise ValidationError({'amount': 'Amount must be positive'})
        user = WalletService._locked_user(user)
        if user.wallet_balance < amount:
            logger.warning(f"Wallet debit of {amount} rejected for user {user.id}: balance {user.wallet_balance}")
            raise InsufficientWalletBalance(
                f'Insufficient wallet balance. Available: {user.wallet_balance}, required: {amount}'
            )
        return WalletService._write(
            user, amount, WalletTransaction.TYPE_DEBIT, description, reference_id, reference_type
        )


class PaymentService:
    """Payment lifecycle for bookings and wallet top-ups"""

    @staticmethod
    def _lock(payment):
        return Payment.objects.select_for_update().get(pk=payment.pk)

    @staticmethod
    def ensure_access(payment, user):
        if payment.user_id != user.id and not is_admin(user):
            raise PermissionDenied('You do not have access to this payment')

    @staticmethod
    def _payment_type(booking):
        if booking.paid_amount <= ZERO:
            return Payment.TYPE_BOOKING
        if booking.status == Booking.STATUS_COMPLETED and booking.overstay_amount > ZERO:
            return Payment.TYPE_OVERSTAY
        return Payment.TYPE_EXTENSION

    @staticmethod
    def _open_gateway_order(payment):
        """Hand an open payment to its gateway"""
        if payment.gateway != Payment.GATEWAY_RAZORPAY:
            raise ValidationError({'gateway': f'{payment.get_gateway_display()} is not supported for {payment.method}'})

        order = RazorpayService().create_order(
            payment.total_amount,
            receipt=str(payment.id),
            notes={
                'payment_id': str(payment.id),
                'booking_id': str(payment.booking_id) if payment.booking_id else '',
                'type': payment.type,
            },
        )
        payment.gateway_order_id = order['id']
        payment.gateway_response = order
        payment.status = Payment.STATUS_PROCESSING
        payment.expires_at = timezone.now() + timedelta(minutes=settings.PARKING['PAYMENT_EXPIRY_MINUTES'])
        payment.save()
        return payment

    @staticmethod
    def create_payment(user, booking_id, method, amount=None, gateway=None, metadata=None, request=None):
        payment = PaymentService._start_booking_payment(
            user, booking_id, method, amount, gateway, metadata, request
        )
        if payment.status == Payment.STATUS_FAILED:
            raise InsufficientWalletBalance(payment.failure_reason)
        return payment

    @staticmethod
    @transaction.atomic
    def _start_booking_payment(user, booking_id, method, amount, gateway, metadata, request):
        try:
            booking = Booking.objects.select_for_update().get(pk=booking_id)
        except Booking.DoesNotExist:
            raise NotFound('Booking not found')
        if booking.user_id != user.id:
            raise PermissionDenied('You can only pay for your own bookings')
        if booking.status not in PAYABLE_BOOKING_STATUSES:
            raise InvalidStateTransition(f'Cannot pay for a {booking.status} booking')

        outstanding = booking.outstanding_amount
        if outstanding <= ZERO:
            raise AlreadyPaid()
        in_flight = Payment.objects.filter(
            booking=booking, status__in=Payment.OPEN_STATUSES
        ).aggregate(total=Sum('amount'))['total'] or ZERO
        outstanding = to_money(outstanding - in_flight)
        if outstanding <= ZERO:
            raise AlreadyPaid('An open payment already covers this booking')
        amount = to_money(amount) if amount is not None else outstanding
        if amount > outstanding:
            raise ValidationError({'amount': f'Amount cannot exceed the outstanding {outstanding}'})

        if method in (Payment.METHOD_WALLET, Payment.METHOD_CASH):
            gateway = Payment.GATEWAY_INTERNAL
        payment = Payment.objects.create(
            booking=booking,
            user=user,
            amount=amount,
            total_amount=amount,
            method=method,
            gateway=gateway or Payment.GATEWAY_RAZORPAY,
            type=PaymentService._payment_type(booking),
            description=f'Payment for booking {booking.confirmation_code}',
            metadata=metadata or {},
        )
        logger.info(f"Payment {payment.id} created for booking {booking.id}: {amount} via {method}")

        if method == Payment.METHOD_WALLET:
            return PaymentService._pay_from_wallet(payment, request)
        if method == Payment.METHOD_CASH:
            # Collected at the location; staff complete it through the admin update
            return payment
        return PaymentService._open_gateway_order(payment)

    @staticmethod
    def _pay_from_wallet(payment, request=None):
        try:
            WalletService.debit(
                payment.user, payment.total_amount,
                f"Payment for booking {payment.booking.confirmation_code}",
                payment.id, WalletTransaction.REFERENCE_PAYMENT,
            )
        except InsufficientWalletBalance as e:
            payment.status = Payment.STATUS_FAILED
            payment.failure_reason = str(e.detail)
            payment.save()
            return payment
        return PaymentService.complete_payment(payment, request=request)

    @staticmethod
    @transaction.atomic
    def complete_payment(payment, gateway_payment_id='', gateway_response=None, request=None):
        """Mark a payment completed and apply it; repeated calls are no-ops"""
        payment = PaymentService._lock(payment)
        if payment.status == Payment.STATUS_COMPLETED:
            return payment
        # A gateway may capture money after the payment was cancelled locally
        if payment.status not in Payment.OPEN_STATUSES + (Payment.STATUS_CANCELLED,):
            raise InvalidStateTransition(f'Cannot complete a {payment.status} payment')

        payment.status = Payment.STATUS_COMPLETED
        payment.processed_at = timezone.now()
        if gateway_payment_id:
            payment.gateway_payment_id = gateway_payment_id
        if gateway_response:
            payment.gateway_response = gateway_response
        payment.failure_reason = ''
        payment.save()

        if payment.type == Payment.TYPE_WALLET_TOPUP:
            WalletService.credit(
                payment.user, payment.amount, 'Wallet top-up',
                payment.id, WalletTransaction.REFERENCE_TOPUP,
            )
            ActivityService.log(payment.user, 'wallet_topup', request, {
                'payment_id': str(payment.id), 'amount': str(payment.amount)
            })
        elif payment.booking_id:
            BookingService.record_payment(payment.booking, payment.amount)
            ActivityService.log(payment.user, 'payment', request, {
                'payment_id': str(payment.id), 'booking_id': str(payment.booking_id),
                'amount': str(payment.amount), 'method': payment.method
            })
            booking = Booking.objects.get(pk=payment.booking_id)
            if booking.status in CLOSED_BOOKING_STATUSES:
                logger.warning(f"Payment {payment.id} captured for closed booking {booking.id}, refunding")
                return PaymentService.refund_payment(payment, payment.amount, f'Booking {booking.status}')
            excess = to_money(booking.paid_amount - booking.total_amount)
            if excess > ZERO:
                logger.warning(f"Payment {payment.id} overpaid booking {booking.id} by {excess}, refunding")
                return PaymentService.refund_payment(payment, excess, 'Booking already paid')

        logger.info(f"Payment {payment.id} completed: {payment.amount}")
        return payment

    @staticmethod
    @transaction.atomic
    def fail_payment(payment, reason, gateway_response=None):
        payment = PaymentService._lock(payment)
        if payment.status not in Payment.OPEN_STATUSES:
            logger.warning(f"Ignoring failure for payment {payment.id} in status {payment.status}")
            return payment

        payment.status = Payment.STATUS_FAILED
        payment.failure_reason = reason[:500]
        if gateway_response:
            payment.gateway_response = gateway_response
        payment.processed_at = timezone.now()
        payment.save()
        logger.warning(f"Payment {payment.id} failed: {reason}")
        return payment

    @staticmethod
    def verify(user, gateway_order_id, gateway_payment_id, signature, request=None):
        """Confirm a gateway checkout with its signature"""
        payment = Payment.objects.filter(gateway_order_id=gateway_order_id).first()
        if payment is None:
            raise NotFound('Payment not found for this order')
        PaymentService.ensure_access(payment, user)

        if not RazorpayService().verify_payment(gateway_order_id, gateway_payment_id, signature):
            PaymentService.fail_payment(payment, 'Signature verification failed')
            raise ValidationError({'signature': 'Payment signature verification failed'})

        return PaymentService.complete_payment(payment, gateway_payment_id=gateway_payment_id, request=request)

    @staticmethod
    @transaction.atomic
    def refund_payment(payment, amount, reason, request=None):
        """Refund part or all of a completed payment to the payer's wallet"""
        payment = PaymentService._lock(payment)
        if payment.status not in Payment.REFUNDABLE_STATUSES:
            raise InvalidStateTransition(f'Cannot refund a {payment.status} payment')
        if payment.type == Payment.TYPE_WALLET_TOPUP:
            raise ValidationError("Wallet top-ups are not refundable")

        amount = to_money(amount) if amount is not None else payment.refundable_amount
        if amount <= ZERO:
            raise ValidationError({'amount': 'Refund amount must be positive'})
        if amount > payment.refundable_amount:
            raise ValidationError({'amount': f'Refund cannot exceed {payment.refundable_amount}'})

        payment.refunded_amount = to_money(payment.refunded_amount + amount)
        payment.refunded_at = timezone.now()
        if payment.refunded_amount >= payment.amount:
            payment.status = Payment.STATUS_REFUNDED
        else:
            payment.status = Payment.STATUS_PARTIALLY_REFUNDED
        payment.save()

        WalletService.credit(
            payment.user, amount, f'Refund: {reason}',
            payment.id, WalletTransaction.REFERENCE_REFUND,
        )
        if payment.booking_id:
            BookingService.record_refund(payment.booking, amount)

        ActivityService.log(payment.user, 'refund', request, {
            'payment_id': str(payment.id), 'amount': str(amount), 'reason': reason
        })
        logger.info(f"Refunded {amount} of payment {payment.id} to wallet: {reason}")
        return payment

    @staticmethod
    @transaction.atomic
    def refund_booking(booking, amount, reason):
        """Spread a booking refund over its completed payments, newest first"""
        remaining = to_money(amount)
        payments = Payment.objects.select_for_update().filter(
            booking=booking, status__in=Payment.REFUNDABLE_STATUSES
        ).order_by('-processed_at')

        for payment in payments:
            if remaining <= ZERO:
                break
            portion = min(remaining, payment.refundable_amount)
            if portion <= ZERO:
                continue
            PaymentService.refund_payment(payment, portion, reason)
            remaining -= portion

        if remaining > ZERO:
            logger.warning(f"Booking {booking.id} refund left {remaining} without a matching payment")
        return to_money(amount) - remaining

    @staticmethod
    def cancel_open_payments(booking):
        cancelled = Payment.objects.filter(
            booking=booking, status__in=Payment.OPEN_STATUSES
        ).update(
            status=Payment.STATUS_CANCELLED,
            failure_reason=f'Booking {booking.confirmation_code} closed',
            updated_at=timezone.now(),
        )
        if cancelled:
            logger.info(f"Cancelled {cancelled} open payments of booking {booking.id}")
        return cancelled

    @staticmethod
    def update_payment(payment, data, updated_by, request=None):
        """Staff update; moving to completed runs the normal completion path"""
        new_status = data.get('status')
        if new_status in (Payment.STATUS_REFUNDED, Payment.STATUS_PARTIALLY_REFUNDED):
            raise ValidationError({'status': 'Use the refund endpoint to refund a payment'})

        with transaction.atomic():
            locked = PaymentService._lock(payment)
            if 'gateway_transaction_id' in data:
                locked.gateway_transaction_id = data['gateway_transaction_id']
            if 'failure_reason' in data:
                locked.failure_reason = data['failure_reason']
            if 'metadata' in data:
                locked.metadata = {**locked.metadata, **data['metadata']}
            locked.save()

            if new_status == Payment.STATUS_COMPLETED:
                locked = PaymentService.complete_payment(locked, request=request)
            elif new_status == Payment.STATUS_FAILED:
                locked = PaymentService.fail_payment(locked, data.get('failure_reason') or 'Marked failed by staff')
            elif new_status and new_status != locked.status:
                if locked.status not in Payment.OPEN_STATUSES:
                    raise InvalidStateTransition(f'Cannot move a {locked.status} payment to {new_status}')
                locked.status = new_status
                locked.save()

        logger.info(f"Payment {payment.id} updated by {updated_by.id}: {data}")
        return locked

    @staticmethod
    def topup(user, amount, method, gateway=None, request=None):
        """Start a wallet top-up; the wallet is credited when the payment completes"""
        amount = to_money(amount)
        with transaction.atomic():
            payment = Payment.objects.create(
                user=user,
                amount=amount,
                total_amount=amount,
                method=method,
                gateway=Payment.GATEWAY_INTERNAL if method == Payment.METHOD_CASH else (gateway or Payment.GATEWAY_RAZORPAY),
                type=Payment.TYPE_WALLET_TOPUP,
                description='Wallet top-up',
            )
            if method != Payment.METHOD_CASH:
                payment = PaymentService._open_gateway_order(payment)

        logger.info(f"Wallet top-up {payment.id} of {amount} started for user {user.id}")
        txn = WalletTransaction.objects.filter(
            reference_id=payment.id, reference_type=WalletTransaction.REFERENCE_TOPUP
        ).first()
        return payment, txn

    @staticmethod
    def summary(start_date=None, end_date=None):
        payments = Payment.objects.all()
        if start_date:
            payments = payments.filter(created_at__date__gte=start_date)
        if end_date:
            payments = payments.filter(created_at__date__lte=end_date)

        collected = payments.filter(
            status__in=(Payment.STATUS_COMPLETED, Payment.STATUS_PARTIALLY_REFUNDED, Payment.STATUS_REFUNDED)
        ).exclude(type=Payment.TYPE_WALLET_TOPUP)

        totals = collected.aggregate(revenue=Sum('amount'), refunded=Sum('refunded_amount'))
        revenue = to_money(totals['revenue'] or ZERO)
        refunded = to_money(totals['refunded'] or ZERO)

        by_status = {
            row['status']: row['count']
            for row in payments.order_by().values('status').annotate(count=Count('id'))
        }
        by_method = {
            row['method']: to_money(row['total'])
            for row in collected.order_by().values('method').annotate(total=Sum('amount'))
        }
        return {
            'total_revenue': revenue,
            'total_refunded': refunded,
            'net_revenue': to_money(revenue - refunded),
            'total_payments': payments.count(),
            'completed_payments': payments.filter(status=Payment.STATUS_COMPLETED).count(),
            'failed_payments': payments.filter(status=Payment.STATUS_FAILED).count(),
            'topups': to_money(
                payments.filter(type=Payment.TYPE_WALLET_TOPUP, status=Payment.STATUS_COMPLETED)
                .aggregate(total=Sum('amount'))['total'] or ZERO
            ),
            'by_status': by_status,
            'revenue_by_method': by_method,
        }
