"""
Domain events logging helpers.

Provides structured event logging for business operations.
"""
from typing import Dict, Iterable, Optional
from .logging import get_sanitized_logger, sanitize_dict

logger = get_sanitized_logger(__name__)

FAILURE_RESULTS = {'failure', 'error'}
WARNING_RESULTS = {'warning', 'blocked', 'throttled', 'coerced'}


def log_domain_event(
    event_name: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    entity_ids: Optional[Dict[str, str]] = None,
    result: str = 'success',
    **extra_fields
):
    """
    Log a domain event with structured data.

    Args:
        event_name: Name of the event (e.g., 'appointment_created')
        entity_type: Type of entity (e.g., 'Appointment', 'Operativo')
        entity_id: ID of primary entity
        entity_ids: Dictionary of related entity IDs
        result: Result of operation (success, blocked, coerced, failure, ...)
        **extra_fields: Additional fields to log (will be sanitized)

    Example:
        log_domain_event(
            'operativo_delete_blocked',
            entity_type='Operativo',
            entity_id=str(operativo.id),
            result='blocked',
            appointment_count=3
        )
    """
    event_data = {
        'event': event_name,
        'result': result,
    }

    if entity_type:
        event_data['entity_type'] = entity_type

    if entity_id:
        event_data['entity_id'] = str(entity_id)

    if entity_ids:
        event_data.update({key: str(value) for key, value in entity_ids.items()})

    event_data.update(sanitize_dict(extra_fields))

    if result in FAILURE_RESULTS:
        logger.error(f'Domain event: {event_name}', extra=event_data)
    elif result in WARNING_RESULTS:
        logger.warning(f'Domain event: {event_name}', extra=event_data)
    else:
        logger.info(f'Domain event: {event_name}', extra=event_data)


def log_authorization_denied(
    caller_roles: Iterable[str],
    required: Iterable[str],
    path: str,
    method: str,
    reason: str = 'capability',
):
    """Log a rejected request with the roles it carried and the roles it needed."""
    log_domain_event(
        'authorization_denied' if reason == 'capability' else 'ownership_denied',
        result='blocked',
        caller_roles=sorted(caller_roles),
        required_roles=sorted(str(r) for r in required),
        path=path,
        method=method,
    )


def log_appointment_transition(appointment, from_status, to_status, result='success', **extra):
    """Log appointment status change event."""
    log_domain_event(
        'appointment_status_changed',
        entity_type='Appointment',
        entity_id=str(appointment.id),
        entity_ids={'client_id': str(appointment.client_id)},
        result=result,
        from_status=from_status,
        to_status=to_status,
        **extra
    )


def log_reference_coerced(field, value, appointment=None):
    """Log an optional booking reference that did not resolve and was dropped."""
    log_domain_event(
        'appointment_reference_coerced',
        entity_type='Appointment',
        entity_id=str(appointment.id) if appointment is not None else None,
        result='coerced',
        field=field,
        value=value,
    )
