# ==================== UTILS/EXCEPTIONS.PY ====================
from rest_framework.exceptions import APIException
from rest_framework import status


class SlotUnavailable(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Parking slot is not available for booking.'
    default_code = 'slot_unavailable'


class BookingConflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Slot is already booked for the selected time period.'
    default_code = 'booking_conflict'


class DuplicateResource(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'duplicate_resource'


class AlreadyPaid(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Payment already exists for this booking.'
    default_code = 'already_paid'


class VehicleNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Vehicle not found or not active.'
    default_code = 'vehicle_not_found'


class InvalidStateTransition(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Operation not allowed in the current state.'
    default_code = 'invalid_state'


class ResourceInUse(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Resource is currently in use.'
    default_code = 'resource_in_use'


class InsufficientWalletBalance(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Insufficient wallet balance.'
    default_code = 'insufficient_balance'


class PaymentFailed(APIException):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_detail = 'Payment processing failed.'
    default_code = 'payment_failed'


class GatewayError(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'Payment gateway request failed.'
    default_code = 'gateway_error'
