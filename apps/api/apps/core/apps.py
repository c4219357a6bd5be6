"""Core app configuration."""
from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Error handling and observability shared by every app."""
    name = 'apps.core'
    verbose_name = 'Core'
