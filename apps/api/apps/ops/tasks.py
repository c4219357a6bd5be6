"""
Celery tasks for the audit trail.
"""
import logging

from celery import shared_task
from django.db import DatabaseError, transaction

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    name='apps.ops.tasks.write_audit_entry',
    max_retries=3,
    default_retry_delay=10,
)
def write_audit_entry(self, payload):
    """
    Persist one audit entry built by ``record_audit``.

    Database errors are retried; after the last retry the entry is logged
    and dropped.
    """
    from .models import AuditEntry

    try:
        with transaction.atomic():
            entry = AuditEntry.objects.create(**payload)
    except DatabaseError as exc:
        if self.request.retries < self.max_retries:
            raise self.retry(exc=exc)
        logger.error(
            'Audit entry dropped after retries',
            extra={
                'event': 'audit_write_failed',
                'table_name': payload.get('table_name'),
                'record_id': payload.get('record_id'),
                'operation': payload.get('operation'),
            },
        )
        return None

    return entry.pk
