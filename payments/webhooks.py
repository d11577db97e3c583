# ==================== PAYMENTS/WEBHOOKS.PY ====================
from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST
import json
import logging

from utils.exceptions import InvalidStateTransition
from .models import Payment
from .services import PaymentService, RazorpayService

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def razorpay_webhook(request):
    """Handle Razorpay payment webhooks"""
    if settings.RAZORPAY_WEBHOOK_SECRET:
        webhook_signature = request.META.get('HTTP_X_RAZORPAY_SIGNATURE', '')
        if not RazorpayService().verify_webhook_signature(request.body, webhook_signature):
            logger.warning(f"Invalid webhook signature: {webhook_signature}")
            return JsonResponse({'status': 'invalid_signature'}, status=400)

    try:
        webhook_data = json.loads(request.body)
    except ValueError:
        logger.warning("Webhook body is not valid JSON")
        return JsonResponse({'status': 'invalid_payload'}, status=400)

    event = webhook_data.get('event')
    payload = webhook_data.get('payload', {})

    if event in ('payment.captured', 'order.paid'):
        handle_payment_captured(payload)
    elif event == 'payment.failed':
        handle_payment_failed(payload)
    else:
        logger.info(f"Ignoring webhook event: {event}")

    return JsonResponse({'status': 'success'})


def _payment_entity(payload):
    return payload.get('payment', {}).get('entity', {})


def _find_payment(order_id):
    payment = Payment.objects.filter(gateway_order_id=order_id).first() if order_id else None
    if payment is None:
        logger.warning(f"Payment not found for order: {order_id}")
    return payment


def handle_payment_captured(payload):
    """payment.captured / order.paid - complete the payment for the order"""
    entity = _payment_entity(payload)
    order_id = entity.get('order_id') or payload.get('order', {}).get('entity', {}).get('id')
    payment = _find_payment(order_id)
    if payment is None:
        return

    try:
        PaymentService.complete_payment(payment, gateway_payment_id=entity.get('id', ''), gateway_response=entity)
    except InvalidStateTransition as e:
        logger.warning(f"Capture for order {order_id} not applied: {e.detail}")
        return
    logger.info(f"Payment captured: {entity.get('id')} for order {order_id}")


def handle_payment_failed(payload):
    """payment.failed - record the gateway's error"""
    entity = _payment_entity(payload)
    order_id = entity.get('order_id')
    payment = _find_payment(order_id)
    if payment is None:
        return

    error_description = entity.get('error_description') or 'Unknown error'
    PaymentService.fail_payment(payment, error_description, gateway_response=entity)
    logger.warning(f"Payment failed for order {order_id}: {error_description}")
