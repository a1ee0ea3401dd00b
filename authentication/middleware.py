"""
Request middleware for the sparkling water API.

- AuditLoggingMiddleware records every write request to the API
- SecurityHeadersMiddleware adds browser hardening headers
"""

import logging

from django.utils.deprecation import MiddlewareMixin

from .audit import get_client_ip
from .models import AuditLog

logger = logging.getLogger(__name__)


class AuditLoggingMiddleware(MiddlewareMixin):
    """
    Middleware to automatically log write requests.

    Logging failures never affect request processing.
    """

    LOGGED_METHODS = ['POST', 'PUT', 'PATCH', 'DELETE']

    EXCLUDED_PATHS = [
        '/api/auth/token/refresh/',  # Too frequent
        '/static/',
        '/media/',
    ]

    RESOURCE_TYPES = [
        ('/auth/', 'USER'),
        ('/brands', 'BRAND'),
        ('/product-lines', 'PRODUCT'),
        ('/products', 'PRODUCT'),
        ('/reviews', 'REVIEW'),
        ('/articles', 'ARTICLE'),
        ('/admin', 'ADMIN'),
    ]

    def process_request(self, request):
        if any(request.path.startswith(path) for path in self.EXCLUDED_PATHS):
            return None

        if request.path.startswith('/api/') and request.method in self.LOGGED_METHODS:
            request._audit_log_data = {
                'action': self._determine_action(request),
                'resource_type': self._determine_resource_type(request.path),
                'ip_address': get_client_ip(request),
                'user_agent': request.META.get('HTTP_USER_AGENT', ''),
                'request_path': request.path,
                'request_method': request.method,
            }
        return None

    def process_response(self, request, response):
        data = getattr(request, '_audit_log_data', None)
        if data is None:
            return response

        if 200 <= response.status_code < 300:
            status = AuditLog.Status.SUCCESS
        elif response.status_code in (403, 429):
            status = AuditLog.Status.BLOCKED
        else:
            status = AuditLog.Status.FAILURE

        resource_id = None
        if hasattr(response, 'data') and isinstance(response.data, dict):
            resource_id = response.data.get('id') or response.data.get('slug')

        user = getattr(request, 'user', None)
        try:
            AuditLog.objects.create(
                user=user if user is not None and user.is_authenticated else None,
                resource_id=str(resource_id) if resource_id else None,
                status=status,
                metadata={'status_code': response.status_code},
                **data,
            )
        except Exception as e:
            logger.error(f"Error completing audit log: {e}")
        return response

    def process_exception(self, request, exception):
        data = getattr(request, '_audit_log_data', None)
        if data is None:
            return None

        user = getattr(request, 'user', None)
        try:
            AuditLog.objects.create(
                user=user if user is not None and user.is_authenticated else None,
                resource_id=None,
                status=AuditLog.Status.FAILURE,
                metadata={
                    'exception_type': type(exception).__name__,
                    'exception_message': str(exception),
                },
                **data,
            )
        except Exception as e:
            logger.error(f"Error logging exception: {e}")
        # The exception is re-raised by Django; don't log it twice in process_response.
        del request._audit_log_data
        return None

    def _determine_action(self, request):
        method = request.method
        path = request.path.lower()

        if method == 'POST':
            if 'login' in path:
                return 'LOGIN'
            if 'register' in path:
                return 'REGISTER'
            for verb in ('approve', 'reject', 'publish', 'archive'):
                if path.rstrip('/').endswith(verb):
                    return verb.upper()
            return 'CREATE'
        if method in ('PUT', 'PATCH'):
            return 'UPDATE'
        if method == 'DELETE':
            return 'DELETE'
        return 'UNKNOWN'

    def _determine_resource_type(self, path):
        path_lower = path.lower()
        for fragment, resource_type in self.RESOURCE_TYPES:
            if fragment in path_lower:
                return resource_type
        return 'UNKNOWN'


class SecurityHeadersMiddleware(MiddlewareMixin):
    """
    Adds security headers to all responses, even if settings are misconfigured.
    """

    CONTENT_SECURITY_POLICY = (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline'; "  # Admin needs inline scripts
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data: https:; "
        "font-src 'self' https:; "
        "connect-src 'self'; "
        "frame-ancestors 'none';"
    )

    PERMISSIONS_POLICY = (
        "camera=(), "
        "geolocation=(), "
        "microphone=(), "
        "payment=(), "
        "usb=()"
    )

    def process_response(self, request, response):
        response['X-Content-Type-Options'] = 'nosniff'
        response['X-Frame-Options'] = 'DENY'
        response['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response['Content-Security-Policy'] = self.CONTENT_SECURITY_POLICY
        response['Permissions-Policy'] = self.PERMISSIONS_POLICY
        return response
