"""
Appointment lifecycle: booking, status changes and rescheduling.

Each operation writes the appointment first, then records the audit entry
and, for bookings, queues the client notification. Neither side effect can
fail the operation.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework.exceptions import ValidationError

from apps.clinical.models import Appointment, AppointmentStatus, Client, Operativo
from apps.clinical.notifications import dispatch_booking_notification
from apps.core.observability.events import (
    log_appointment_transition,
    log_domain_event,
    log_reference_coerced,
)
from apps.ops.audit import record_audit
from apps.ops.models import AuditOperationChoices


AUDIT_TABLE = 'appointment'
WARNING_COERCED_TO_NULL = 'coerced_to_null'


@dataclass
class BookingResult:
    appointment: Appointment
    warnings: List[Dict[str, Any]] = field(default_factory=list)


def appointment_snapshot(appointment):
    return {
        'id': appointment.pk,
        'client_id': appointment.client_id,
        'operativo_id': appointment.operativo_id,
        'ophthalmologist_id': appointment.ophthalmologist_id,
        'scheduled_at': appointment.scheduled_at,
        'status': appointment.status,
    }


def client_snapshot(client):
    return {
        'id': client.pk,
        'rut': client.rut,
        'full_name': client.full_name,
        'phone': client.phone,
        'email': client.email,
        'address': client.address,
        'sector': client.sector,
        'captured_by_id': client.captured_by_id,
    }


def operativo_snapshot(operativo):
    return {
        'id': operativo.pk,
        'name': operativo.name,
        'date': operativo.date,
        'location': operativo.location,
        'capacity': operativo.capacity,
    }


def resolve_client(client_id):
    """The booked client. A missing or unknown id is a 400."""
    if client_id is None:
        raise ValidationError({'client_id': ['client_id (o lead_id) es requerido']})
    try:
        return Client.objects.get(pk=client_id)
    except Client.DoesNotExist:
        raise ValidationError({'client_id': ['Cliente no existe']})


def _resolve_optional(model, field_name, value, warnings):
    if value is None:
        return None
    instance = model.objects.filter(pk=value).first()
    if instance is None:
        log_reference_coerced(field_name, value)
        warnings.append({'field': field_name, 'code': WARNING_COERCED_TO_NULL, 'value': value})
    return instance


def book_appointment(caller, data, request=None) -> BookingResult:
    """
    Create an appointment from validated booking input.

    ``data`` keys: client_id, scheduled_at, and optionally operativo_id,
    ophthalmologist_id and status (scheduled or confirmed).

    Unresolvable operativo or ophthalmologist ids do not fail the booking:
    they are stored as null and reported in ``BookingResult.warnings``.
    Capacity is not checked.
    """
    warnings = []
    client = resolve_client(data.get('client_id'))
    operativo = _resolve_optional(Operativo, 'operativo_id', data.get('operativo_id'), warnings)
    ophthalmologist = _resolve_optional(
        get_user_model(), 'ophthalmologist_id', data.get('ophthalmologist_id'), warnings
    )

    appointment = Appointment.objects.create(
        client=client,
        operativo=operativo,
        ophthalmologist=ophthalmologist,
        scheduled_at=data['scheduled_at'],
        status=data.get('status') or AppointmentStatus.SCHEDULED,
    )

    log_domain_event(
        'appointment_created',
        entity_type='Appointment',
        entity_id=str(appointment.pk),
        entity_ids={'client_id': str(client.pk)},
        status=appointment.status,
        actor_id=caller.subject_id if caller is not None else None,
        warning_count=len(warnings),
    )

    record_audit(
        request,
        AUDIT_TABLE,
        AuditOperationChoices.CREATE,
        appointment.pk,
        after=appointment_snapshot(appointment),
    )
    dispatch_booking_notification(appointment)

    return BookingResult(appointment=appointment, warnings=warnings)


def change_status(appointment, target, request=None):
    """
    Move ``appointment`` to ``target`` under a row lock.

    Raises:
        django.core.exceptions.ValidationError: target not allowed
    """
    with transaction.atomic():
        locked = Appointment.objects.select_for_update().get(pk=appointment.pk)
        before = appointment_snapshot(locked)
        previous = locked.transition_status(target)
        locked.save(update_fields=['status', 'updated_at'])

    log_appointment_transition(locked, previous, locked.status)
    record_audit(
        request,
        AUDIT_TABLE,
        AuditOperationChoices.UPDATE,
        locked.pk,
        before=before,
        after=appointment_snapshot(locked),
    )
    return locked


def reschedule(appointment, scheduled_at, request=None):
    """Change only the appointment timestamp, whatever its status."""
    before = appointment_snapshot(appointment)
    appointment.scheduled_at = scheduled_at
    appointment.save(update_fields=['scheduled_at', 'updated_at'])

    log_domain_event(
        'appointment_rescheduled',
        entity_type='Appointment',
        entity_id=str(appointment.pk),
        entity_ids={'client_id': str(appointment.client_id)},
        status=appointment.status,
    )
    record_audit(
        request,
        AUDIT_TABLE,
        AuditOperationChoices.UPDATE,
        appointment.pk,
        before=before,
        after=appointment_snapshot(appointment),
    )
    return appointment
