"""
Best-effort audit recorder.

``record_audit`` captures the request metadata synchronously and hands the
entry to the ``write_audit_entry`` Celery task. Nothing raised while
building or enqueuing the entry reaches the caller: the triggering change
has already been written and is never rolled back because of the audit
trail.
"""
import json
import logging

from django.core.serializers.json import DjangoJSONEncoder

from apps.core.observability.events import log_domain_event

logger = logging.getLogger(__name__)

USER_AGENT_MAX_LENGTH = 255


def get_client_ip(request):
    """First hop of X-Forwarded-For, else REMOTE_ADDR."""
    if request is None:
        return None
    forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def get_user_agent(request):
    if request is None:
        return None
    return request.META.get('HTTP_USER_AGENT', '')[:USER_AGENT_MAX_LENGTH]


def snapshot(data):
    """JSON-safe copy of ``data`` (datetimes, decimals and UUIDs as strings)."""
    if data is None:
        return None
    return json.loads(json.dumps(data, cls=DjangoJSONEncoder))


def build_audit_payload(request, table, operation, record_id, before=None, after=None, actor=None):
    if actor is None and request is not None:
        user = getattr(request, 'user', None)
        if user is not None and user.is_authenticated:
            actor = user

    return {
        'actor_id': actor.pk if actor is not None else None,
        'table_name': table,
        'operation': operation,
        'record_id': str(record_id),
        'before': snapshot(before),
        'after': snapshot(after),
        'ip_address': get_client_ip(request),
        'user_agent': get_user_agent(request),
    }


def record_audit(request, table, operation, record_id, before=None, after=None, actor=None):
    """
    Queue one audit entry. Returns True when it was handed off.

    Args:
        request: triggering request (IP and user agent are read from it)
        table: logical table name, e.g. 'client'
        operation: 'CREATE' | 'UPDATE' | 'DELETE'
        record_id: primary key of the changed record
        before, after: snapshots; either may be None
        actor: defaults to the authenticated request user
    """
    from apps.ops.tasks import write_audit_entry

    try:
        payload = build_audit_payload(request, table, operation, record_id, before, after, actor)
        write_audit_entry.delay(payload)
        return True
    except Exception as exc:
        logger.exception('Audit entry could not be queued')
        log_domain_event(
            'audit_write_failed',
            entity_type=table,
            entity_id=str(record_id),
            result='failure',
            operation=operation,
            error_type=exc.__class__.__name__,
        )
        return False
