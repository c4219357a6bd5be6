"""
Structured logging with PII protection.

Client records carry personal data (RUT, name, phone, email, address) and
accounts carry credentials. None of it may reach a log line: keys listed in
SENSITIVE_FIELDS are replaced with ``[REDACTED]`` at any nesting depth,
both by ``sanitize_dict`` and by the JSON formatter.
"""
import json
import logging
from datetime import datetime, timezone

from .correlation import get_request_id, get_user_id, get_user_roles

REDACTED = '[REDACTED]'

SENSITIVE_FIELDS = frozenset({
    # credentials
    'password',
    'new_password',
    'token',
    'authorization',
    'secret',
    'signing_key',
    # client / account personal data
    'rut',
    'full_name',
    'first_name',
    'last_name',
    'name',
    'email',
    'phone',
    'address',
})

# LogRecord attributes that are not caller-supplied extras.
_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord('', 0, '', 0, '', None, None).__dict__
) | {'message', 'asctime', 'request_id', 'user_id', 'user_roles'}


def _is_sensitive(key):
    return str(key).lower() in SENSITIVE_FIELDS


def redact(value):
    """Recursively redact sensitive keys inside dicts, lists and tuples."""
    if isinstance(value, dict):
        return {k: REDACTED if _is_sensitive(k) else redact(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact(v) for v in value]
    return value


def sanitize_dict(data):
    """
    Sanitized copy of ``data`` for logging.

    Non-dict input is returned unchanged.
    """
    if not isinstance(data, dict):
        return data
    return redact(data)


class CorrelationFilter(logging.Filter):
    """Stamps request id and caller onto every record."""

    def filter(self, record):
        record.request_id = getattr(record, 'request_id', None) or get_request_id() or '-'
        record.user_id = getattr(record, 'user_id', None) or get_user_id() or '-'
        record.user_roles = ','.join(get_user_roles()) or '-'
        return True


class SanitizedJSONFormatter(logging.Formatter):
    """One JSON object per line; extras are redacted before serialization."""

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'request_id': getattr(record, 'request_id', '-'),
            'user_id': getattr(record, 'user_id', '-'),
            'user_roles': getattr(record, 'user_roles', '-'),
        }

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES or key.startswith('_'):
                continue
            entry[key] = REDACTED if _is_sensitive(key) else redact(value)

        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def get_sanitized_logger(name):
    """
    Logger with the correlation filter attached.

    Usage:
        logger = get_sanitized_logger(__name__)
        logger.info('Client created', extra={'event': 'client_created', 'client_id': client.pk})
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationFilter) for f in logger.filters):
        logger.addFilter(CorrelationFilter())
    return logger
