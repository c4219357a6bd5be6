"""
Client notifications (email and SMS).

``send_notification`` is the delivery collaborator: it reports a per-channel
outcome and never raises. ``dispatch_booking_notification`` is what the
booking flow calls; it queues the send on Celery so the HTTP response never
waits for, or depends on, delivery.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

from apps.clinical.models import AppointmentStatus
from apps.core.observability.events import log_domain_event

logger = logging.getLogger(__name__)

CHANNEL_EMAIL = 'email'
CHANNEL_SMS = 'sms'

TEMPLATE_BOOKING_CONFIRMED = 'booking_confirmed'
TEMPLATE_BOOKING_SCHEDULED = 'booking_scheduled'

TEMPLATES = {
    TEMPLATE_BOOKING_CONFIRMED: {
        'subject': 'Confirmación de Cita - {clinic}',
        'body': (
            'Hola {name},\n\n'
            'Tu cita ha sido confirmada:\n'
            'Fecha y Hora: {when}\n'
            'Lugar: {location}\n\n'
            'Te esperamos.\n\n'
            'Saludos,\nEquipo {clinic}'
        ),
    },
    TEMPLATE_BOOKING_SCHEDULED: {
        'subject': 'Cita Agendada - {clinic}',
        'body': (
            'Hola {name},\n\n'
            'Tu cita ha sido agendada para:\n'
            'Fecha y Hora: {when}\n'
            'Lugar: {location}\n\n'
            'Te esperamos.\n\n'
            'Saludos,\nEquipo {clinic}'
        ),
    },
}


@dataclass
class NotificationOutcome:
    email_sent: bool = False
    sms_sent: bool = False
    errors: List[str] = field(default_factory=list)

    def as_dict(self):
        return {
            'email_sent': self.email_sent,
            'sms_sent': self.sms_sent,
            'errors': list(self.errors),
        }


def template_for_status(status):
    if status == AppointmentStatus.CONFIRMED:
        return TEMPLATE_BOOKING_CONFIRMED
    return TEMPLATE_BOOKING_SCHEDULED


def render_template(template, name, scheduled_at, location):
    """Return ``(subject, body)`` for ``template``."""
    parts = TEMPLATES[template]
    context = {
        'clinic': settings.CLINIC_NAME,
        'name': name,
        'when': timezone.localtime(scheduled_at).strftime('%d/%m/%Y %H:%M'),
        'location': location or settings.CLINIC_DEFAULT_LOCATION,
    }
    return parts['subject'].format(**context), parts['body'].format(**context)


def channels_for(email, phone):
    channels = []
    if email:
        channels.append(CHANNEL_EMAIL)
    if phone:
        channels.append(CHANNEL_SMS)
    return channels


def send_sms(phone, message):
    """
    Deliver an SMS through SMS_BACKEND.

    Only the 'simulated' backend exists: it logs the message and reports
    success. Any other configured backend reports failure.
    """
    backend = getattr(settings, 'SMS_BACKEND', 'simulated')
    if backend == 'simulated':
        logger.info(
            'Simulated SMS sent',
            extra={'event': 'sms_simulated', 'message_length': len(message)},
        )
        return True

    logger.warning('Unsupported SMS backend', extra={'event': 'sms_backend_unsupported', 'backend': backend})
    return False


def send_notification(email, phone, subject, body, channels) -> NotificationOutcome:
    """
    Send ``subject``/``body`` on each requested channel that has a recipient.

    Never raises: each channel failure is captured in ``errors``.
    """
    outcome = NotificationOutcome()

    if not getattr(settings, 'NOTIFICATIONS_ENABLED', True):
        outcome.errors.append('notifications disabled')
        return outcome

    if CHANNEL_EMAIL in channels and email:
        try:
            send_mail(
                subject,
                body,
                settings.NOTIFICATIONS_FROM_EMAIL,
                [email],
                fail_silently=False,
            )
            outcome.email_sent = True
        except Exception as exc:
            logger.warning('Email notification failed', extra={'event': 'email_failed', 'error_type': exc.__class__.__name__})
            outcome.errors.append(f'email: {exc}')

    if CHANNEL_SMS in channels and phone:
        try:
            outcome.sms_sent = send_sms(phone, body)
            if not outcome.sms_sent:
                outcome.errors.append('sms: backend unavailable')
        except Exception as exc:
            logger.warning('SMS notification failed', extra={'event': 'sms_failed', 'error_type': exc.__class__.__name__})
            outcome.errors.append(f'sms: {exc}')

    return outcome


def dispatch_booking_notification(appointment) -> Optional[str]:
    """
    Queue the booking notification for ``appointment``.

    Returns the template name when a send was queued, None when the client
    has no contact data or queuing failed. Never raises.
    """
    client = appointment.client
    channels = channels_for(client.email, client.phone)
    if not channels:
        return None

    template = template_for_status(appointment.status)
    location = appointment.operativo.location if appointment.operativo_id else None
    subject, body = render_template(template, client.full_name, appointment.scheduled_at, location)

    from apps.clinical.tasks import send_appointment_notification

    try:
        send_appointment_notification.delay(
            appointment.pk,
            client.email,
            client.phone,
            subject,
            body,
            channels,
        )
    except Exception as exc:
        log_domain_event(
            'notification_failed',
            entity_type='Appointment',
            entity_id=str(appointment.pk),
            result='failure',
            template=template,
            error_type=exc.__class__.__name__,
        )
        return None

    return template
