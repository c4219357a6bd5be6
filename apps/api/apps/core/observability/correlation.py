"""
Request correlation.

Every request gets an X-Request-ID (taken from the incoming header when
present) that is echoed on the response and stamped on each log line.
The caller is bound by BearerTokenAuthentication, which runs after the
middleware, so log lines emitted from views carry the caller's id and roles.
"""
import logging
import time
import uuid
from threading import local

from django.utils.deprecation import MiddlewareMixin

_context = local()

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = 'HTTP_X_REQUEST_ID'
REQUEST_ID_RESPONSE_HEADER = 'X-Request-ID'
_CONTEXT_KEYS = ('request_id', 'user_id', 'user_roles')


def get_request_id():
    return getattr(_context, 'request_id', None)


def get_user_id():
    return getattr(_context, 'user_id', None)


def get_user_roles():
    return getattr(_context, 'user_roles', [])


def bind_user_context(user_id, roles):
    """Attach the authenticated caller to the current request context."""
    _context.user_id = str(user_id) if user_id is not None else None
    _context.user_roles = list(roles or [])


def clear_request_context():
    for key in _CONTEXT_KEYS:
        if hasattr(_context, key):
            delattr(_context, key)


class RequestCorrelationMiddleware(MiddlewareMixin):
    """Assigns the request id and logs one line per completed request."""

    def process_request(self, request):
        request.request_id = request.META.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.started_at = time.monotonic()

        clear_request_context()
        _context.request_id = request.request_id

    def process_response(self, request, response):
        request_id = getattr(request, 'request_id', None)
        if request_id:
            response[REQUEST_ID_RESPONSE_HEADER] = request_id

        started_at = getattr(request, 'started_at', None)
        if started_at is not None:
            level = logging.ERROR if response.status_code >= 500 else logging.INFO
            logger.log(
                level,
                'Request completed',
                extra={
                    'event': 'http_request_completed',
                    'path': request.path,
                    'method': request.method,
                    'status_code': response.status_code,
                    'duration_ms': round((time.monotonic() - started_at) * 1000, 2),
                },
            )

        clear_request_context()
        return response

    def process_exception(self, request, exception):
        logger.error(
            'Request failed: %s',
            exception.__class__.__name__,
            exc_info=True,
            extra={
                'event': 'http_request_exception',
                'path': request.path,
                'method': request.method,
                'exception_type': exception.__class__.__name__,
            },
        )
