"""
Celery tasks for clinical notifications.
"""
from celery import shared_task

from apps.core.observability.events import log_domain_event


@shared_task(name='apps.clinical.tasks.send_appointment_notification')
def send_appointment_notification(appointment_id, email, phone, subject, body, channels):
    """
    Deliver a booking notification. Outcome is logged only.

    Args:
        appointment_id: Appointment the notification is about
        email, phone: recipients (either may be None)
        subject, body: rendered template
        channels: subset of ['email', 'sms']
    """
    from .notifications import send_notification

    outcome = send_notification(email, phone, subject, body, channels)
    delivered = outcome.email_sent or outcome.sms_sent

    log_domain_event(
        'notification_dispatched' if delivered else 'notification_failed',
        entity_type='Appointment',
        entity_id=str(appointment_id),
        result='success' if delivered else 'failure',
        channels=channels,
        email_sent=outcome.email_sent,
        sms_sent=outcome.sms_sent,
        error_count=len(outcome.errors),
    )
    return outcome.as_dict()
