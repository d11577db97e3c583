import logging

from django.db.models import Count, Q

from .models import User, UserActivityLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


class ActivityService:
    """Record user activity for auditing"""

    @staticmethod
    def log(user, activity_type, request=None, metadata=None):
        ip_address = None
        user_agent = ''
        if request is not None:
            ip_address = get_client_ip(request)
            user_agent = request.META.get('HTTP_USER_AGENT', '')[:500]

        return UserActivityLog.objects.create(
            user=user,
            activity_type=activity_type,
            metadata=metadata or {},
            ip_address=ip_address,
            user_agent=user_agent,
        )


class UserService:

    @staticmethod
    def get_stats():
        stats = User.objects.aggregate(
            total_users=Count('id', filter=Q(role=User.ROLE_USER)),
            total_vendors=Count('id', filter=Q(role=User.ROLE_VENDOR)),
            active_users=Count('id', filter=Q(status=User.STATUS_ACTIVE)),
            inactive_users=Count('id', filter=~Q(status=User.STATUS_ACTIVE)),
        )
        return stats

    @staticmethod
    def change_status(user, new_status, changed_by, request=None):
        old_status = user.status
        user.status = new_status
        user.save()
        ActivityService.log(
            user, 'status_change', request,
            {'from': old_status, 'to': new_status, 'changed_by': str(changed_by.id)}
        )
        logger.info(f"User {user.id} status changed {old_status} -> {new_status} by {changed_by.id}")
        return user

    @staticmethod
    def change_role(user, new_role, changed_by, request=None):
        old_role = user.role
        user.role = new_role
        user.save()
        ActivityService.log(
            user, 'role_change', request,
            {'from': old_role, 'to': new_role, 'changed_by': str(changed_by.id)}
        )
        logger.info(f"User {user.id} role changed {old_role} -> {new_role} by {changed_by.id}")
        return user
