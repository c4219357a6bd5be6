"""
Administrative dashboard metrics.

Monthly figures use the calendar month of the server's local time zone:
from the first instant of the month up to, not including, the first
instant of the next one.
"""
from django.db.models import Count, Q
from django.utils import timezone

from apps.authz.models import Role, User, UserRole
from apps.authz.roles import RoleChoices
from apps.clinical.models import Appointment, AppointmentStatus, Client

TOP_CAPTADORES = 5


def month_window(now=None):
    """(start, end) of the local calendar month containing ``now``."""
    local = timezone.localtime(now or timezone.now())
    start = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def no_show_rate(no_shows, total):
    """Percentage rounded to two decimals; 0 when there is nothing to measure."""
    if not total:
        return 0
    return round(no_shows / total * 100, 2)


def top_captadores(start, end, limit=TOP_CAPTADORES):
    role_ids = [role.pk for role in Role.objects.all() if role.canonical == RoleChoices.CAPTADOR]
    in_month = Q(captured_clients__created_at__gte=start, captured_clients__created_at__lt=end)

    agents = (
        User.objects
        .filter(pk__in=UserRole.objects.filter(role_id__in=role_ids).values('user_id'))
        .annotate(clients_captured=Count('captured_clients', filter=in_month))
        .order_by('-clients_captured', 'id')[:limit]
    )
    return [
        {'id': agent.pk, 'name': agent.full_name, 'clients_captured': agent.clients_captured}
        for agent in agents
    ]


def dashboard_metrics(now=None):
    start, end = month_window(now)
    month_appointments = Appointment.objects.filter(scheduled_at__gte=start, scheduled_at__lt=end)

    appointment_counts = month_appointments.aggregate(
        total=Count('id'),
        no_show=Count('id', filter=Q(status=AppointmentStatus.NO_SHOW)),
    )
    by_status = (
        Appointment.objects.values('status')
        .annotate(count=Count('id'))
        .order_by('status')
    )

    return {
        'kpis': {
            'total_clients': Client.objects.count(),
            'new_clients_month': Client.objects.filter(created_at__gte=start, created_at__lt=end).count(),
            'total_appointments': Appointment.objects.count(),
            'appointments_month': appointment_counts['total'],
            'no_show_rate': no_show_rate(appointment_counts['no_show'], appointment_counts['total']),
        },
        'appointments_by_status': [
            {'status': row['status'], 'count': row['count']} for row in by_status
        ],
        'top_captadores': top_captadores(start, end),
        'period': {'start': start.isoformat(), 'end': end.isoformat()},
    }
