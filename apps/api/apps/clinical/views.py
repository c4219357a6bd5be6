"""
Clinical viewsets: clients, operativos, appointments, leads and the dashboard.
"""
import datetime

from django.db.models import Count, Max, Q
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authz.authentication import get_caller
from apps.authz.permissions import (
    AppointmentPermission,
    ClientPermission,
    IsAdmin,
    LeadPermission,
    scope_clients,
)
from apps.clinical.capacity import ensure_deletable, with_availability
from apps.clinical.dashboard import dashboard_metrics
from apps.clinical.models import Appointment, AppointmentStatus, Client, Operativo, parse_status
from apps.clinical.rut import clean_rut, format_rut, is_valid_rut
from apps.clinical.serializers import (
    AppointmentCreateSerializer,
    AppointmentRescheduleSerializer,
    AppointmentSerializer,
    AppointmentStatusSerializer,
    ClientSerializer,
    LeadSerializer,
    OperativoSerializer,
)
from apps.clinical.services import (
    book_appointment,
    change_status,
    client_snapshot,
    operativo_snapshot,
    reschedule,
)
from apps.ops.audit import record_audit
from apps.ops.models import AuditOperationChoices


LIST_LIMIT = 200
# Shorter digit runs match most RUTs in the table.
PARTIAL_RUT_MIN_DIGITS = 4


def parse_bound(value, param, end_of_day=False):
    """
    Parse a date or datetime query parameter into an aware datetime.

    A bare date means the start of that day, or its last instant when
    ``end_of_day`` is set.
    """
    try:
        parsed = parse_datetime(value)
    except ValueError:
        parsed = None
    if parsed is None:
        day = parse_day(value, param)
        parsed = datetime.datetime.combine(
            day, datetime.time.max if end_of_day else datetime.time.min
        )
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def parse_day(value, param):
    try:
        day = parse_date(value)
    except ValueError:
        day = None
    if day is None:
        raise ValidationError({param: [f'Fecha inválida: {value}']})
    return day


def parse_int(value, param):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError({param: [f'Debe ser un número entero: {value}']})


# ============================================================================
# Clients
# ============================================================================

class ClientViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Client endpoints.

    Endpoints:
    - GET /api/v1/clients/            (?rut= / ?q= returns the newest match)
    - POST /api/v1/clients/
    - GET /api/v1/clients/{id}/
    - PATCH /api/v1/clients/{id}/
    - GET /api/v1/clients/{id}/history/

    Captadores only list the clients they captured. Detail and write
    requests fetch the record unscoped so that another agent's client is a
    403 from the ownership check, not a 404.
    """
    permission_classes = [ClientPermission]
    serializer_class = ClientSerializer
    http_method_names = ['get', 'post', 'patch', 'head', 'options']
    pagination_class = None

    def get_queryset(self):
        queryset = Client.objects.select_related('captured_by')
        if self.action == 'list':
            queryset = scope_clients(queryset, get_caller(self.request))
        return queryset.order_by('-created_at', '-id')

    def list(self, request, *args, **kwargs):
        queryset = self.get_queryset()

        term = request.query_params.get('rut') or request.query_params.get('q')
        if term:
            term = term.strip()
            conditions = Q(full_name__icontains=term)
            if is_valid_rut(term):
                conditions |= Q(rut=format_rut(term))
            digits = clean_rut(term)
            if digits.isdigit() and len(digits) >= PARTIAL_RUT_MIN_DIGITS:
                conditions |= Q(rut__icontains=digits)
            match = queryset.filter(conditions).first()
            data = [self.get_serializer(match).data] if match else []
            return Response(data)

        serializer = self.get_serializer(queryset[:LIST_LIMIT], many=True)
        return Response(serializer.data)

    def perform_create(self, serializer):
        client = serializer.save(captured_by=self.request.user)
        record_audit(
            self.request,
            'client',
            AuditOperationChoices.CREATE,
            client.pk,
            after=client_snapshot(client),
        )

    def perform_update(self, serializer):
        before = client_snapshot(serializer.instance)
        client = serializer.save()
        record_audit(
            self.request,
            'client',
            AuditOperationChoices.UPDATE,
            client.pk,
            before=before,
            after=client_snapshot(client),
        )

    @action(detail=True, methods=['get'], url_path='history')
    def history(self, request, pk=None):
        """
        GET /api/v1/clients/{id}/history/

        The client, its appointments newest first and summary statistics.
        """
        client = self.get_object()
        appointments = (
            client.appointments.select_related('operativo', 'ophthalmologist')
            .order_by('-scheduled_at')
        )

        stats = appointments.aggregate(
            total=Count('id'),
            confirmed=Count('id', filter=Q(status=AppointmentStatus.CONFIRMED)),
            cancelled=Count('id', filter=Q(status=AppointmentStatus.CANCELLED)),
            no_show=Count('id', filter=Q(status=AppointmentStatus.NO_SHOW)),
            last_appointment=Max('scheduled_at'),
        )

        return Response({
            'client': ClientSerializer(client, context=self.get_serializer_context()).data,
            'appointments': AppointmentSerializer(appointments, many=True).data,
            'stats': stats,
        })


# ============================================================================
# Operativos
# ============================================================================

class OperativoViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Operativo endpoints (Admin only).

    Filters: ?date_from=YYYY-MM-DD, ?date_to=YYYY-MM-DD. Ordered by date,
    newest first. Delete is refused with 409 while appointments reference
    the operativo.
    """
    permission_classes = [IsAdmin]
    serializer_class = OperativoSerializer
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']
    pagination_class = None

    def get_queryset(self):
        queryset = with_availability(Operativo.objects.all())

        date_from = self.request.query_params.get('date_from')
        if date_from:
            queryset = queryset.filter(date__gte=parse_day(date_from, 'date_from'))

        date_to = self.request.query_params.get('date_to')
        if date_to:
            queryset = queryset.filter(date__lte=parse_day(date_to, 'date_to'))

        return queryset.order_by('-date', '-id')

    def perform_create(self, serializer):
        operativo = serializer.save()
        record_audit(
            self.request,
            'operativo',
            AuditOperationChoices.CREATE,
            operativo.pk,
            after=operativo_snapshot(operativo),
        )

    def perform_update(self, serializer):
        before = operativo_snapshot(serializer.instance)
        operativo = serializer.save()
        record_audit(
            self.request,
            'operativo',
            AuditOperationChoices.UPDATE,
            operativo.pk,
            before=before,
            after=operativo_snapshot(operativo),
        )

    def perform_destroy(self, instance):
        ensure_deletable(instance)
        before = operativo_snapshot(instance)
        pk = instance.pk
        instance.delete()
        record_audit(self.request, 'operativo', AuditOperationChoices.DELETE, pk, before=before)


# ============================================================================
# Appointments
# ============================================================================

class AppointmentViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Appointment endpoints.

    Endpoints:
    - GET /api/v1/appointments/
    - POST /api/v1/appointments/
    - GET /api/v1/appointments/{id}/
    - PATCH /api/v1/appointments/{id}/          (reschedule: scheduled_at only)
    - POST|PATCH /api/v1/appointments/{id}/status/

    Appointments are never deleted.
    """
    permission_classes = [AppointmentPermission]
    serializer_class = AppointmentSerializer
    http_method_names = ['get', 'post', 'patch', 'head', 'options']
    pagination_class = None

    def get_queryset(self):
        return Appointment.objects.select_related(
            'client', 'operativo', 'ophthalmologist'
        ).order_by('-scheduled_at', '-id')

    def filter_list(self, queryset):
        """
        Filters:
        - date_from / from: scheduled_at >= bound
        - date_to / to: scheduled_at <= bound (a bare date covers the whole day)
        - client_id / lead_id
        - status (legacy spellings accepted)
        """
        params = self.request.query_params

        date_from = params.get('date_from') or params.get('from')
        if date_from:
            queryset = queryset.filter(scheduled_at__gte=parse_bound(date_from, 'date_from'))

        date_to = params.get('date_to') or params.get('to')
        if date_to:
            queryset = queryset.filter(
                scheduled_at__lte=parse_bound(date_to, 'date_to', end_of_day=True)
            )

        client_id = params.get('client_id') or params.get('lead_id')
        if client_id:
            queryset = queryset.filter(client_id=parse_int(client_id, 'client_id'))

        status_param = params.get('status')
        if status_param:
            parsed = parse_status(status_param)
            if parsed is None:
                raise ValidationError({'status': [f'Estado inválido: {status_param}']})
            queryset = queryset.filter(status=parsed)

        return queryset

    def list(self, request, *args, **kwargs):
        queryset = self.filter_list(self.get_queryset())[:LIST_LIMIT]
        return Response(AppointmentSerializer(queryset, many=True).data)

    def create(self, request, *args, **kwargs):
        """POST /api/v1/appointments/ - book; unresolved optional ids come back as warnings."""
        serializer = AppointmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = book_appointment(get_caller(request), serializer.validated_data, request)

        data = AppointmentSerializer(result.appointment).data
        data['warnings'] = result.warnings
        return Response(data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        """PATCH /api/v1/appointments/{id}/ - reschedule."""
        appointment = self.get_object()
        serializer = AppointmentRescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = reschedule(appointment, serializer.validated_data['scheduled_at'], request)
        return Response(AppointmentSerializer(appointment).data)

    def update(self, request, *args, **kwargs):
        return self.partial_update(request, *args, **kwargs)

    @action(detail=True, methods=['post', 'patch'], url_path='status')
    def set_status(self, request, pk=None):
        """
        POST|PATCH /api/v1/appointments/{id}/status/

        Body: {"status": "<target>"}. Any outcome state is reachable from
        any state; nothing returns to scheduled.
        """
        appointment = self.get_object()
        serializer = AppointmentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = change_status(appointment, serializer.validated_data['status'], request)
        return Response(AppointmentSerializer(appointment).data)


# ============================================================================
# Leads and dashboard
# ============================================================================

LEAD_LIMIT_DEFAULT = 100
LEAD_LIMIT_MAX = 500
LEAD_SEARCH_FIELDS = ('full_name', 'rut', 'phone', 'email', 'sector')


def lead_limit(value):
    """Clamp ``?limit`` to 1..500; anything unparsable or zero means the default."""
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return LEAD_LIMIT_DEFAULT
    if limit == 0:
        return LEAD_LIMIT_DEFAULT
    return min(max(limit, 1), LEAD_LIMIT_MAX)


class LeadViewSet(viewsets.ViewSet):
    """
    Lead capture for field agents.

    - GET /api/v1/leads/?q=&limit=
    - POST /api/v1/leads/

    A lead is a client created from the short capture form; it is owned by
    the caller and listed under the same captador scoping as clients.
    """
    permission_classes = [LeadPermission]

    def list(self, request):
        queryset = scope_clients(Client.objects.select_related('captured_by'), get_caller(request))

        term = (request.query_params.get('q') or '').strip()
        if term:
            conditions = Q()
            for field in LEAD_SEARCH_FIELDS:
                conditions |= Q(**{f'{field}__icontains': term})
            queryset = queryset.filter(conditions)

        queryset = queryset.order_by('-created_at', '-id')[:lead_limit(request.query_params.get('limit'))]
        return Response(ClientSerializer(queryset, many=True).data)

    def create(self, request):
        lead = LeadSerializer(data=request.data)
        lead.is_valid(raise_exception=True)

        serializer = ClientSerializer(data=lead.to_client_data())
        serializer.is_valid(raise_exception=True)
        client = serializer.save(captured_by=request.user)
        record_audit(
            request,
            'client',
            AuditOperationChoices.CREATE,
            client.pk,
            after=client_snapshot(client),
        )
        return Response(ClientSerializer(client).data, status=status.HTTP_201_CREATED)


class DashboardMetricsView(APIView):
    """GET /api/v1/dashboard/metrics/ - client and appointment KPIs (admin only)."""
    permission_classes = [IsAdmin]

    def get(self, request):
        return Response(dashboard_metrics())
