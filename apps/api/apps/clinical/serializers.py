"""
Serializers for clients, operativos and appointments.
"""
import re

from rest_framework import serializers

from apps.clinical.capacity import available_slots, booked_count
from apps.clinical.models import Appointment, AppointmentStatus, Client, Operativo, parse_status
from apps.clinical.rut import format_rut, is_valid_rut
from apps.core.exceptions import Conflict

PHONE_PATTERN = re.compile(r'^\+?[1-9]\d{1,14}$')


# ============================================================================
# Clients
# ============================================================================

class ClientSerializer(serializers.ModelSerializer):
    """
    Client read/write serializer.

    - rut is checksum-validated and stored as 12345678-K
    - at least one of phone or email must remain set
    - captured_by is assigned by the view on create and is read-only
    """
    captured_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Client
        fields = [
            'id',
            'rut',
            'full_name',
            'phone',
            'email',
            'address',
            'sector',
            'captured_by',
            'captured_by_name',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'captured_by', 'captured_by_name', 'created_at', 'updated_at']
        # Duplicate RUTs are a 409, raised in validate_rut.
        extra_kwargs = {'rut': {'validators': []}}

    def get_captured_by_name(self, obj):
        return obj.captured_by.full_name if obj.captured_by_id else None

    def validate_rut(self, value):
        if not is_valid_rut(value):
            raise serializers.ValidationError('RUT inválido')
        rut = format_rut(value)

        duplicates = Client.objects.filter(rut=rut)
        if self.instance is not None:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise Conflict('RUT ya existe')
        return rut

    def validate_full_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError('El nombre debe tener al menos 2 caracteres')
        return value

    def validate_phone(self, value):
        if not value:
            return None
        value = re.sub(r'[\s\-()]', '', value)
        if not PHONE_PATTERN.match(value):
            raise serializers.ValidationError('Teléfono inválido')
        return value

    def validate_email(self, value):
        return value.lower() if value else None

    def validate(self, attrs):
        phone = attrs.get('phone', getattr(self.instance, 'phone', None))
        email = attrs.get('email', getattr(self.instance, 'email', None))
        if not phone and not email:
            raise serializers.ValidationError({
                'contact': ['Debe proporcionar al menos teléfono o correo']
            })
        return attrs


class LeadSerializer(serializers.Serializer):
    """
    Quick lead capture form.

    ``contacto`` holds either an email (contains '@') or a phone number.
    The mapped fields are then validated by ClientSerializer.
    """
    nombre = serializers.CharField(
        error_messages={'required': 'nombre es requerido', 'blank': 'nombre es requerido'},
    )
    documento = serializers.CharField(
        error_messages={'required': 'documento (RUT) es requerido', 'blank': 'documento (RUT) es requerido'},
    )
    contacto = serializers.CharField(required=False, allow_blank=True)
    direccion = serializers.CharField(required=False, allow_blank=True)
    sector = serializers.CharField(required=False, allow_blank=True)

    def to_client_data(self):
        data = self.validated_data
        client = {
            'rut': data['documento'],
            'full_name': data['nombre'],
            'address': data.get('direccion') or None,
            'sector': data.get('sector') or None,
        }
        contact = (data.get('contacto') or '').strip()
        if '@' in contact:
            client['email'] = contact
        elif contact:
            client['phone'] = contact
        return client


class ClientSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Client
        fields = ['id', 'rut', 'full_name', 'phone', 'email']
        read_only_fields = fields


# ============================================================================
# Operativos
# ============================================================================

class OperativoSerializer(serializers.ModelSerializer):
    """
    Operativo with derived availability.

    citas_agendadas counts every attached appointment (any status);
    cupos_disponibles is capacity - citas_agendadas, null when unlimited,
    and may be negative.
    """
    citas_agendadas = serializers.SerializerMethodField()
    cupos_disponibles = serializers.SerializerMethodField()

    class Meta:
        model = Operativo
        fields = [
            'id',
            'name',
            'date',
            'location',
            'capacity',
            'citas_agendadas',
            'cupos_disponibles',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'citas_agendadas', 'cupos_disponibles', 'created_at', 'updated_at']

    def get_citas_agendadas(self, obj):
        return booked_count(obj)

    def get_cupos_disponibles(self, obj):
        return available_slots(obj.capacity, booked_count(obj))

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('El nombre es requerido')
        return value


class OperativoSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Operativo
        fields = ['id', 'name', 'date', 'location']
        read_only_fields = fields


# ============================================================================
# Appointments
# ============================================================================

class AppointmentSerializer(serializers.ModelSerializer):
    """Appointment representation (read-only)."""
    client = ClientSummarySerializer(read_only=True)
    operativo = OperativoSummarySerializer(read_only=True)
    ophthalmologist_name = serializers.SerializerMethodField()

    class Meta:
        model = Appointment
        fields = [
            'id',
            'client',
            'client_id',
            'operativo',
            'operativo_id',
            'ophthalmologist_id',
            'ophthalmologist_name',
            'scheduled_at',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_ophthalmologist_name(self, obj):
        return obj.ophthalmologist.full_name if obj.ophthalmologist_id else None


def _parse_status_field(value):
    status = parse_status(value)
    if status is None:
        raise serializers.ValidationError(
            f"Estado inválido: '{value}'. Valores válidos: {', '.join(AppointmentStatus.values)}"
        )
    return status


class AppointmentCreateSerializer(serializers.Serializer):
    """
    Booking input.

    ``lead_id`` is accepted as an older name for ``client_id``. Reference
    existence is resolved by the booking service, not here.
    """
    client_id = serializers.IntegerField(required=False, allow_null=True)
    lead_id = serializers.IntegerField(required=False, allow_null=True)
    operativo_id = serializers.IntegerField(required=False, allow_null=True)
    ophthalmologist_id = serializers.IntegerField(required=False, allow_null=True)
    scheduled_at = serializers.DateTimeField()
    status = serializers.CharField(required=False)

    def validate_status(self, value):
        status = _parse_status_field(value)
        if status not in Appointment.INITIAL_STATUSES:
            raise serializers.ValidationError(
                'Una cita nueva solo puede crearse como scheduled o confirmed'
            )
        return status

    def validate(self, attrs):
        lead_id = attrs.pop('lead_id', None)
        if attrs.get('client_id') is None:
            attrs['client_id'] = lead_id
        if attrs['client_id'] is None:
            raise serializers.ValidationError({'client_id': ['client_id (o lead_id) es requerido']})
        return attrs


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.CharField()

    def validate_status(self, value):
        return _parse_status_field(value)


class AppointmentRescheduleSerializer(serializers.Serializer):
    scheduled_at = serializers.DateTimeField()
