"""
Observability module for the optical clinic API.

Provides structured logging, correlation context, domain events and
health checks with PII protection.
"""
from .events import log_domain_event
from .logging import get_sanitized_logger

__all__ = ['log_domain_event', 'get_sanitized_logger']
