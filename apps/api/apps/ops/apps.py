"""Ops app configuration."""
from django.apps import AppConfig


class OpsConfig(AppConfig):
    """Configuration for the audit trail app."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.ops'
    verbose_name = 'Operations & Audit'
