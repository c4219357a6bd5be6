"""
Operativo capacity ("cupos").

Remaining slots are derived on every read from the number of appointments
attached to the operativo. Every appointment counts, whatever its status,
and booking does not check availability: an operativo can go negative.
"""
from django.db.models import Count

from apps.core.exceptions import Conflict
from apps.core.observability.events import log_domain_event


def available_slots(capacity, booked):
    """capacity - booked, or None when capacity is unlimited."""
    if capacity is None:
        return None
    return capacity - booked


def with_availability(queryset):
    """Annotate an Operativo queryset with ``booked_count``."""
    return queryset.annotate(booked_count=Count('appointments'))


def booked_count(operativo):
    count = getattr(operativo, 'booked_count', None)
    if count is None:
        count = operativo.appointments.count()
    return count


def ensure_deletable(operativo):
    """
    Refuse to delete an operativo that still has appointments.

    Raises:
        Conflict: with ``citas_asociadas`` set to the dependent count
    """
    count = operativo.appointments.count()
    if count:
        log_domain_event(
            'operativo_delete_blocked',
            entity_type='Operativo',
            entity_id=str(operativo.pk),
            result='blocked',
            appointment_count=count,
        )
        raise Conflict(
            'No se puede eliminar el operativo: tiene citas asociadas',
            citas_asociadas=count,
        )
