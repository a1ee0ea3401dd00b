"""
Django admin configuration for authentication models.
"""

from django.contrib import admin
from django.contrib.auth import get_user_model
from .models import Role, UserRole, AuditLog

User = get_user_model()


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    """Admin interface for User model."""
    list_display = ['email', 'username', 'display_name', 'is_verified', 'is_active', 'created_at']
    list_filter = ['is_verified', 'is_active', 'is_superuser']
    search_fields = ['email', 'username', 'display_name', 'first_name', 'last_name']
    readonly_fields = ['created_at', 'updated_at', 'last_login', 'date_joined']
    # 'roles' uses a through model (UserRole), so filter_horizontal cannot be used.
    # Use UserRoleAdmin to manage user roles instead.


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    """Admin interface for Role model."""
    list_display = ['name', 'display_name', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'display_name']


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    """Admin interface for UserRole model."""
    list_display = ['user', 'role', 'assigned_by', 'assigned_at']
    list_filter = ['role', 'assigned_at']
    search_fields = ['user__email', 'role__name']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Admin interface for AuditLog model."""
    list_display = ['action', 'resource_type', 'resource_id', 'user', 'status', 'timestamp']
    list_filter = ['action', 'resource_type', 'status', 'timestamp']
    search_fields = ['user__email', 'ip_address', 'action', 'resource_type', 'resource_id']
    readonly_fields = ['timestamp', 'user', 'action', 'resource_type', 'resource_id',
                       'ip_address', 'user_agent', 'request_path', 'request_method',
                       'status', 'metadata']
    date_hierarchy = 'timestamp'

    def has_add_permission(self, request):
        """Audit logs are written by the application only."""
        return False
