# ==================== UTILS/PERMISSIONS.PY ====================
from rest_framework import permissions


def is_admin(user):
    return bool(user and user.is_authenticated and (user.role == 'admin' or user.is_superuser))


class IsAdmin(permissions.BasePermission):
    """Only platform administrators"""
    message = 'Admin access required.'

    def has_permission(self, request, view):
        return is_admin(request.user)


class IsVendorOrAdmin(permissions.BasePermission):
    """Parking vendors and administrators"""
    message = 'Only vendors or admins can perform this action.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and (user.role == 'vendor' or is_admin(user)))


class IsOwnerOrAdmin(permissions.BasePermission):
    """Object belongs to the requesting user (obj.user) or the user is an admin"""
    message = 'You do not have access to this resource.'

    def has_object_permission(self, request, view, obj):
        return obj.user_id == request.user.id or is_admin(request.user)


class IsLocationVendorOrAdmin(permissions.BasePermission):
    """User owns the parking location (or the slot's location)"""
    message = 'You can only manage your own parking locations.'

    def has_object_permission(self, request, view, obj):
        location = getattr(obj, 'location', obj)
        return location.vendor_id == request.user.id or is_admin(request.user)


class IsBookingParticipant(permissions.BasePermission):
    """Booking holder, vendor of the booked location, or an admin"""
    message = 'You do not have access to this booking.'

    def has_object_permission(self, request, view, obj):
        user = request.user
        return (
            obj.user_id == user.id
            or obj.slot.location.vendor_id == user.id
            or is_admin(user)
        )
