"""
Clinical models: client, operativo, appointment
"""
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


# ============================================================================
# Enums
# ============================================================================

class AppointmentStatus(models.TextChoices):
    """
    Appointment status.

    scheduled is the only initial state besides booking straight into
    confirmed. See Appointment.ALLOWED_TRANSITIONS.
    """
    SCHEDULED = 'scheduled', 'Programada'
    CONFIRMED = 'confirmed', 'Confirmada'
    CANCELLED = 'cancelled', 'Cancelada'
    NO_SHOW = 'no_show', 'No asistió'
    ATTENDED = 'attended', 'Atendida'


# Spellings accepted from older clients of the API.
LEGACY_STATUS_ALIASES = {
    'pendiente': AppointmentStatus.SCHEDULED,
    'programada': AppointmentStatus.SCHEDULED,
    'confirmada': AppointmentStatus.CONFIRMED,
    'cancelada': AppointmentStatus.CANCELLED,
    'no-show': AppointmentStatus.NO_SHOW,
    'noshow': AppointmentStatus.NO_SHOW,
    'atendida': AppointmentStatus.ATTENDED,
}


def parse_status(raw):
    """Canonical AppointmentStatus for ``raw`` (value, label or legacy spelling), or None."""
    if not isinstance(raw, str):
        return None
    key = raw.strip().lower()
    if key in AppointmentStatus.values:
        return AppointmentStatus(key)
    return LEGACY_STATUS_ALIASES.get(key)


# ============================================================================
# Client
# ============================================================================

class Client(models.Model):
    """
    Customer/patient record.

    - rut: national ID, unique, stored normalized (12345678-K)
    - phone / email: at least one is required by the API serializers
    - captured_by: account that originated the lead; set on create and never
      changed afterwards. Drives captador visibility.
    """
    rut = models.CharField(max_length=12, unique=True)
    full_name = models.CharField(max_length=100)
    phone = models.CharField(max_length=20, blank=True, null=True)
    email = models.EmailField(max_length=120, blank=True, null=True)
    address = models.CharField(max_length=150, blank=True, null=True)
    sector = models.CharField(max_length=80, blank=True, null=True)

    captured_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        blank=True,
        null=True,
        related_name='captured_clients',
        help_text='Account that captured this client (immutable)'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'client'
        verbose_name = 'Client'
        verbose_name_plural = 'Clients'
        indexes = [
            models.Index(fields=['captured_by'], name='idx_client_captured_by'),
            models.Index(fields=['created_at'], name='idx_client_created'),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.rut})"


# ============================================================================
# Operativo
# ============================================================================

class Operativo(models.Model):
    """
    Capacity-limited clinical outreach event.

    capacity ("cupos") null means unlimited. Remaining slots are derived on
    read (see apps.clinical.capacity), never stored.
    """
    name = models.CharField(max_length=120)
    date = models.DateField()
    location = models.CharField(max_length=150, blank=True, null=True)
    capacity = models.PositiveIntegerField(
        blank=True,
        null=True,
        validators=[MinValueValidator(1)],
        help_text='Total slots (null = unlimited)'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'operativo'
        verbose_name = 'Operativo'
        verbose_name_plural = 'Operativos'
        indexes = [
            models.Index(fields=['date'], name='idx_operativo_date'),
        ]

    def __str__(self):
        return f"{self.name} ({self.date})"


# ============================================================================
# Appointment
# ============================================================================

_OUTCOMES = (
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
    AppointmentStatus.ATTENDED,
)


class Appointment(models.Model):
    """
    Booking of a client, optionally inside an operativo and optionally
    assigned to an ophthalmologist. Never deleted.
    """
    client = models.ForeignKey(
        'Client',
        on_delete=models.PROTECT,
        related_name='appointments'
    )
    operativo = models.ForeignKey(
        'Operativo',
        on_delete=models.PROTECT,
        blank=True,
        null=True,
        related_name='appointments'
    )
    ophthalmologist = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='assigned_appointments'
    )
    scheduled_at = models.DateTimeField()
    status = models.CharField(
        max_length=20,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.SCHEDULED
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'appointment'
        verbose_name = 'Appointment'
        verbose_name_plural = 'Appointments'
        indexes = [
            models.Index(fields=['client'], name='idx_appointment_client'),
            models.Index(fields=['operativo'], name='idx_appointment_operativo'),
            models.Index(fields=['scheduled_at'], name='idx_appointment_scheduled'),
            models.Index(fields=['status'], name='idx_appointment_status'),
        ]

    INITIAL_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)

    # Permissive policy: every state may move to any outcome, including from
    # one outcome to another (cancelled -> attended). Nothing returns to
    # scheduled.
    ALLOWED_TRANSITIONS = {
        AppointmentStatus.SCHEDULED: _OUTCOMES,
        AppointmentStatus.CONFIRMED: _OUTCOMES,
        AppointmentStatus.CANCELLED: _OUTCOMES,
        AppointmentStatus.NO_SHOW: _OUTCOMES,
        AppointmentStatus.ATTENDED: _OUTCOMES,
    }

    def __str__(self):
        return f"Appointment {self.scheduled_at:%Y-%m-%d %H:%M} - {self.client}"

    def transition_status(self, new_status):
        """
        Move to ``new_status`` if ALLOWED_TRANSITIONS permits it.

        Does not save. Returns the previous status.

        Raises:
            ValidationError: target not reachable from the current status
        """
        allowed = self.ALLOWED_TRANSITIONS.get(AppointmentStatus(self.status), ())
        if new_status not in allowed:
            raise ValidationError({
                'status': (
                    f'Transición no permitida: {self.status} → {new_status}. '
                    f'Transiciones válidas: {", ".join(allowed)}'
                )
            })

        previous = self.status
        self.status = new_status
        return previous
