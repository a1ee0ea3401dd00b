"""
Audit log helpers shared by every app.

Writing an audit entry must never break the request that triggered it, so
failures are logged and swallowed here and nowhere else.
"""

import logging

from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """
    Get client IP address from request.

    Handles proxies and load balancers that add X-Forwarded-For header.
    """
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def log_action(request, action, resource_type, resource_id, status, metadata=None):
    """
    Create an audit log entry for the current request.

    Args:
        request: HTTP request object
        action: Action type (CREATE, UPDATE, APPROVE, REJECT, etc.)
        resource_type: Type of resource (BRAND, PRODUCT, REVIEW, ARTICLE, USER)
        resource_id: ID of the resource
        status: Status of the action (SUCCESS, FAILURE, BLOCKED)
        metadata: Additional metadata to log

    Returns:
        The AuditLog row, or None if it could not be written.
    """
    user = getattr(request, 'user', None)
    try:
        return AuditLog.objects.create(
            user=user if user is not None and user.is_authenticated else None,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            ip_address=get_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', ''),
            request_path=request.path,
            request_method=request.method,
            status=status,
            metadata=metadata or {},
        )
    except Exception as e:
        logger.error(f"Error writing audit log for {action} {resource_type}: {e}")
        return None
