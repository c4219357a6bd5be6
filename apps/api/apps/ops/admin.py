from django.contrib import admin
from .models import AuditEntry


@admin.register(AuditEntry)
class AuditEntryAdmin(admin.ModelAdmin):
    """Read-only view of the audit trail."""
    list_display = ['created_at', 'operation', 'table_name', 'record_id', 'actor', 'ip_address']
    list_filter = ['operation', 'table_name']
    search_fields = ['record_id', 'actor__email']
    readonly_fields = [f.name for f in AuditEntry._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
