"""
Ops models: audit_entry
"""
from django.conf import settings
from django.db import models


class AuditOperationChoices(models.TextChoices):
    CREATE = 'CREATE', 'Create'
    UPDATE = 'UPDATE', 'Update'
    DELETE = 'DELETE', 'Delete'


class AuditEntry(models.Model):
    """
    Append-only audit trail of back-office changes.

    Rows are written once by the audit recorder. ``save()`` on an existing
    row and ``delete()`` both raise, so no update or delete path exists
    through the ORM.

    Fields:
    - actor: account that made the change (null for system/anonymous)
    - table_name: logical table of the changed record (client, appointment, ...)
    - operation: CREATE|UPDATE|DELETE
    - record_id: primary key of the changed record
    - before / after: JSON snapshots (null when not applicable)
    - ip_address, user_agent: taken from the triggering request
    """
    created_at = models.DateTimeField(auto_now_add=True)

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='audit_entries',
        help_text='Account that performed the action (null for system actions)'
    )
    table_name = models.CharField(max_length=50)
    operation = models.CharField(
        max_length=10,
        choices=AuditOperationChoices.choices
    )
    record_id = models.CharField(max_length=64)
    before = models.JSONField(blank=True, null=True)
    after = models.JSONField(blank=True, null=True)
    ip_address = models.CharField(max_length=45, blank=True, null=True)
    user_agent = models.CharField(max_length=255, blank=True, null=True)

    class Meta:
        db_table = 'audit_entry'
        verbose_name = 'Audit Entry'
        verbose_name_plural = 'Audit Entries'
        indexes = [
            models.Index(fields=['created_at'], name='idx_audit_entry_created'),
            models.Index(fields=['table_name', 'record_id'], name='idx_audit_entry_record'),
            models.Index(fields=['actor'], name='idx_audit_entry_actor'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        actor = self.actor.email if self.actor else 'system'
        return f"{self.operation} {self.table_name}[{self.record_id}] by {actor}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise RuntimeError('Audit entries are append-only')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError('Audit entries are append-only')
