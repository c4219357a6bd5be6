"""Authz app configuration."""
from django.apps import AppConfig


class AuthzConfig(AppConfig):
    """Accounts, roles and bearer-token authentication."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.authz'
    verbose_name = 'Accounts & Roles'
