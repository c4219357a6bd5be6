"""
Tests for the appointment lifecycle API.

Covers booking (including optional references that do not resolve),
status transitions, rescheduling and list filters.
"""
import datetime

import pytest
from django.utils import timezone
from rest_framework import status

from apps.clinical.models import Appointment, AppointmentStatus, parse_status


class TestParseStatus:

    @pytest.mark.parametrize('raw,expected', [
        ('scheduled', AppointmentStatus.SCHEDULED),
        ('pendiente', AppointmentStatus.SCHEDULED),
        ('Programada', AppointmentStatus.SCHEDULED),
        ('confirmada', AppointmentStatus.CONFIRMED),
        ('cancelada', AppointmentStatus.CANCELLED),
        ('no-show', AppointmentStatus.NO_SHOW),
        ('noshow', AppointmentStatus.NO_SHOW),
        ('no_show', AppointmentStatus.NO_SHOW),
        ('ATENDIDA', AppointmentStatus.ATTENDED),
    ])
    def test_accepted_inputs(self, raw, expected):
        assert parse_status(raw) == expected

    @pytest.mark.parametrize('raw', ['done', '', None, 3])
    def test_rejected_inputs(self, raw):
        assert parse_status(raw) is None


@pytest.mark.django_db
class TestBooking:

    endpoint = '/api/v1/appointments/'

    def test_book_with_client_id(self, admin_client, captured_client, operativo, oftalmologo_user):
        response = admin_client.post(self.endpoint, {
            'client_id': captured_client.id,
            'operativo_id': operativo.id,
            'ophthalmologist_id': oftalmologo_user.id,
            'scheduled_at': '2026-11-20T10:00:00Z',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data['status'] == 'scheduled'
        assert data['client']['id'] == captured_client.id
        assert data['operativo_id'] == operativo.id
        assert data['ophthalmologist_id'] == oftalmologo_user.id
        assert data['warnings'] == []

    def test_book_with_legacy_lead_id(self, oftalmologo_client, captured_client):
        response = oftalmologo_client.post(self.endpoint, {
            'lead_id': captured_client.id,
            'scheduled_at': '2026-11-20T10:00:00Z',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()['client_id'] == captured_client.id

    def test_book_directly_confirmed(self, admin_client, captured_client):
        response = admin_client.post(self.endpoint, {
            'client_id': captured_client.id,
            'scheduled_at': '2026-11-20T10:00:00Z',
            'status': 'confirmada',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()['status'] == 'confirmed'

    @pytest.mark.parametrize('initial', ['cancelled', 'attended', 'no-show'])
    def test_book_with_outcome_status_is_400(self, admin_client, captured_client, initial):
        response = admin_client.post(self.endpoint, {
            'client_id': captured_client.id,
            'scheduled_at': '2026-11-20T10:00:00Z',
            'status': initial,
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'status' in response.json()['issues']

    def test_missing_client_reference_is_400(self, admin_client):
        response = admin_client.post(self.endpoint, {'scheduled_at': '2026-11-20T10:00:00Z'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'client_id' in response.json()['issues']

    def test_unknown_client_is_400(self, admin_client):
        response = admin_client.post(self.endpoint, {
            'client_id': 999999,
            'scheduled_at': '2026-11-20T10:00:00Z',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['issues'] == {'client_id': ['Cliente no existe']}
        assert not Appointment.objects.exists()

    def test_invalid_timestamp_is_400(self, admin_client, captured_client):
        response = admin_client.post(self.endpoint, {
            'client_id': captured_client.id,
            'scheduled_at': 'mañana',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_operativo_is_coerced_to_null(self, admin_client, captured_client):
        response = admin_client.post(self.endpoint, {
            'client_id': captured_client.id,
            'operativo_id': 424242,
            'scheduled_at': '2026-11-20T10:00:00Z',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data['operativo_id'] is None
        assert data['warnings'] == [
            {'field': 'operativo_id', 'code': 'coerced_to_null', 'value': 424242}
        ]
        assert Appointment.objects.get(pk=data['id']).operativo_id is None

    def test_unknown_ophthalmologist_is_coerced_to_null(self, admin_client, captured_client):
        response = admin_client.post(self.endpoint, {
            'client_id': captured_client.id,
            'ophthalmologist_id': 777777,
            'scheduled_at': '2026-11-20T10:00:00Z',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()['ophthalmologist_id'] is None
        assert response.json()['warnings'][0]['field'] == 'ophthalmologist_id'


@pytest.mark.django_db
class TestStatusTransitions:

    def url(self, appointment):
        return f'/api/v1/appointments/{appointment.id}/status/'

    @pytest.mark.parametrize('target,expected', [
        ('confirmed', 'confirmed'),
        ('cancelada', 'cancelled'),
        ('no-show', 'no_show'),
        ('attended', 'attended'),
    ])
    def test_scheduled_to_any_outcome(self, admin_client, appointment, target, expected):
        response = admin_client.patch(self.url(appointment), {'status': target}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.json()['status'] == expected

    def test_cancelled_then_attended_is_permitted(self, oftalmologo_client, appointment):
        """Outcome states can be overwritten by another outcome."""
        first = oftalmologo_client.post(self.url(appointment), {'status': 'cancelled'}, format='json')
        second = oftalmologo_client.post(self.url(appointment), {'status': 'attended'}, format='json')

        assert first.status_code == status.HTTP_200_OK
        assert second.status_code == status.HTTP_200_OK
        appointment.refresh_from_db()
        assert appointment.status == AppointmentStatus.ATTENDED

    def test_back_to_scheduled_is_rejected(self, admin_client, make_appointment, captured_client):
        appointment = make_appointment(captured_client, status=AppointmentStatus.CONFIRMED)

        response = admin_client.patch(self.url(appointment), {'status': 'scheduled'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        appointment.refresh_from_db()
        assert appointment.status == AppointmentStatus.CONFIRMED

    def test_unknown_status_is_400(self, admin_client, appointment):
        response = admin_client.patch(self.url(appointment), {'status': 'terminada'}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_appointment_is_404(self, admin_client):
        response = admin_client.patch('/api/v1/appointments/999999/status/', {'status': 'confirmed'}, format='json')
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_transition_table_is_explicit(self):
        outcomes = {
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
            AppointmentStatus.ATTENDED,
        }
        assert set(Appointment.ALLOWED_TRANSITIONS) == set(AppointmentStatus)
        for targets in Appointment.ALLOWED_TRANSITIONS.values():
            assert set(targets) == outcomes


@pytest.mark.django_db
class TestReschedule:

    def test_reschedule_changes_only_timestamp(self, admin_client, make_appointment, captured_client):
        appointment = make_appointment(captured_client, status=AppointmentStatus.CANCELLED)

        response = admin_client.patch(
            f'/api/v1/appointments/{appointment.id}/',
            {'scheduled_at': '2026-12-01T15:30:00Z', 'status': 'confirmed'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        appointment.refresh_from_db()
        assert appointment.scheduled_at == datetime.datetime(2026, 12, 1, 15, 30, tzinfo=datetime.timezone.utc)
        assert appointment.status == AppointmentStatus.CANCELLED

    def test_reschedule_requires_timestamp(self, admin_client, appointment):
        response = admin_client.patch(f'/api/v1/appointments/{appointment.id}/', {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'scheduled_at' in response.json()['issues']


@pytest.mark.django_db
class TestAppointmentList:

    endpoint = '/api/v1/appointments/'

    def test_newest_first(self, admin_client, make_appointment, captured_client):
        now = timezone.now()
        older = make_appointment(captured_client, scheduled_at=now - datetime.timedelta(days=2))
        newer = make_appointment(captured_client, scheduled_at=now + datetime.timedelta(days=2))

        response = admin_client.get(self.endpoint)

        assert [row['id'] for row in response.json()] == [newer.id, older.id]

    def test_filter_by_client_and_legacy_alias(self, admin_client, make_appointment, captured_client, foreign_client):
        mine = make_appointment(captured_client)
        make_appointment(foreign_client)

        by_client = admin_client.get(self.endpoint, {'client_id': captured_client.id})
        by_lead = admin_client.get(self.endpoint, {'lead_id': captured_client.id})

        assert [row['id'] for row in by_client.json()] == [mine.id]
        assert [row['id'] for row in by_lead.json()] == [mine.id]

    def test_filter_by_status_accepts_legacy_spelling(self, admin_client, make_appointment, captured_client):
        confirmed = make_appointment(captured_client, status=AppointmentStatus.CONFIRMED)
        make_appointment(captured_client, status=AppointmentStatus.SCHEDULED)

        response = admin_client.get(self.endpoint, {'status': 'confirmada'})

        assert [row['id'] for row in response.json()] == [confirmed.id]

    def test_filter_by_date_range(self, admin_client, make_appointment, captured_client):
        tz = datetime.timezone.utc
        make_appointment(captured_client, scheduled_at=datetime.datetime(2026, 11, 1, 9, 0, tzinfo=tz))
        inside = make_appointment(captured_client, scheduled_at=datetime.datetime(2026, 11, 15, 18, 0, tzinfo=tz))
        make_appointment(captured_client, scheduled_at=datetime.datetime(2026, 11, 30, 9, 0, tzinfo=tz))

        response = admin_client.get(self.endpoint, {'from': '2026-11-10T00:00:00Z', 'to': '2026-11-20T00:00:00Z'})

        assert [row['id'] for row in response.json()] == [inside.id]

    def test_invalid_date_filter_is_400(self, admin_client):
        response = admin_client.get(self.endpoint, {'date_from': 'ayer'})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_is_capped(self, admin_client, captured_client):
        now = timezone.now()
        Appointment.objects.bulk_create([
            Appointment(client=captured_client, scheduled_at=now + datetime.timedelta(minutes=i))
            for i in range(205)
        ])

        response = admin_client.get(self.endpoint)

        assert len(response.json()) == 200
