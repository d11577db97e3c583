# ==================== PAYMENTS/TASKS.PY (CELERY TASKS) ====================
from celery import shared_task
from django.utils import timezone
import logging

logger = logging.getLogger(__name__)


@shared_task
def expire_stale_payments():
    """Cancel open gateway payments past their expiry"""
    from .models import Payment

    expired = Payment.objects.filter(
        status__in=Payment.OPEN_STATUSES,
        expires_at__lt=timezone.now()
    ).exclude(gateway=Payment.GATEWAY_INTERNAL).update(
        status=Payment.STATUS_CANCELLED,
        failure_reason='Payment window expired',
        updated_at=timezone.now(),
    )

    logger.info(f"Cancelled {expired} stale payments")
    return expired


@shared_task
def reconcile_gateway_payments():
    """Pull the outcome of processing Razorpay payments from the gateway"""
    from .models import Payment
    from .services import PaymentService, RazorpayService
    from utils.exceptions import GatewayError

    processing = Payment.objects.filter(
        status=Payment.STATUS_PROCESSING,
        gateway=Payment.GATEWAY_RAZORPAY
    ).exclude(gateway_order_id='')

    if not processing.exists():
        return 0

    gateway = RazorpayService()
    reconciled = 0
    for payment in processing:
        try:
            attempts = gateway.fetch_order_payments(payment.gateway_order_id)
        except GatewayError as e:
            logger.warning(f"Could not reconcile payment {payment.id}: {str(e)}")
            continue

        captured = next((a for a in attempts if a.get('status') == 'captured'), None)
        if captured:
            PaymentService.complete_payment(payment, gateway_payment_id=captured['id'], gateway_response=captured)
            reconciled += 1
        elif attempts and all(a.get('status') == 'failed' for a in attempts):
            last = attempts[0]
            PaymentService.fail_payment(payment, last.get('error_description') or 'Payment failed', gateway_response=last)
            reconciled += 1

    logger.info(f"Reconciled {reconciled} gateway payments")
    return reconciled
