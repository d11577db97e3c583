# ==================== USERS/ADMIN.PY ====================
from django.contrib import admin
from .models import User, UserActivityLog


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ['email', 'name', 'mobile', 'role', 'status', 'wallet_balance', 'created_at']
    list_filter = ['role', 'status', 'is_email_verified', 'created_at']
    search_fields = ['email', 'name', 'mobile']
    readonly_fields = ['wallet_balance', 'last_login', 'created_at', 'updated_at']
    exclude = ['password', 'groups', 'user_permissions']


@admin.register(UserActivityLog)
class UserActivityLogAdmin(admin.ModelAdmin):
    list_display = ['user', 'activity_type', 'ip_address', 'created_at']
    list_filter = ['activity_type', 'created_at']
    search_fields = ['user__email']
    readonly_fields = ['created_at']
