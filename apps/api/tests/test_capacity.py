"""
Tests for operativo capacity.

Availability is derived from the appointment count and booking never checks
it, so an operativo can be oversold. These tests pin that behavior.
"""
import datetime

import pytest
from rest_framework import status

from apps.authz.tokens import Caller
from apps.clinical.capacity import available_slots, with_availability
from apps.clinical.models import AppointmentStatus, Operativo
from apps.clinical.services import book_appointment


class TestAvailableSlots:

    @pytest.mark.parametrize('capacity,booked,expected', [
        (5, 0, 5),
        (5, 5, 0),
        (5, 6, -1),
        (None, 10, None),
    ])
    def test_subtraction(self, capacity, booked, expected):
        assert available_slots(capacity, booked) == expected


@pytest.mark.django_db
class TestOperativoAvailability:

    endpoint = '/api/v1/operativos/'

    def test_six_bookings_on_five_slots_all_succeed(self, admin_client, captured_client, operativo):
        for hour in range(6):
            response = admin_client.post('/api/v1/appointments/', {
                'client_id': captured_client.id,
                'operativo_id': operativo.id,
                'scheduled_at': f'2026-11-20T{10 + hour:02d}:00:00Z',
            }, format='json')
            assert response.status_code == status.HTTP_201_CREATED

        response = admin_client.get(f'{self.endpoint}{operativo.id}/')

        assert response.json()['citas_agendadas'] == 6
        assert response.json()['cupos_disponibles'] == -1

    def test_every_status_consumes_a_slot(self, admin_client, make_appointment, captured_client, make_operativo):
        operativo = make_operativo(capacity=3)
        make_appointment(captured_client, operativo=operativo, status=AppointmentStatus.CANCELLED)
        make_appointment(captured_client, operativo=operativo, status=AppointmentStatus.NO_SHOW)

        response = admin_client.get(f'{self.endpoint}{operativo.id}/')

        assert response.json()['cupos_disponibles'] == 1

    def test_unlimited_operativo(self, admin_client, make_appointment, captured_client, make_operativo):
        operativo = make_operativo(capacity=None)
        make_appointment(captured_client, operativo=operativo)

        response = admin_client.get(f'{self.endpoint}{operativo.id}/')

        assert response.json()['citas_agendadas'] == 1
        assert response.json()['cupos_disponibles'] is None

    def test_concurrent_bookings_on_last_slot_both_succeed(self, captured_client, make_operativo, admin_user):
        """
        Two requests that each saw one free slot both book: nothing between
        the availability read and the insert stops the second one.
        """
        operativo = make_operativo(capacity=1)
        caller = Caller.from_user(admin_user)

        seen = [
            with_availability(Operativo.objects.filter(pk=operativo.pk)).get()
            for _ in range(2)
        ]
        assert [available_slots(o.capacity, o.booked_count) for o in seen] == [1, 1]

        first = book_appointment(caller, {
            'client_id': captured_client.id,
            'operativo_id': operativo.id,
            'scheduled_at': datetime.datetime(2026, 11, 20, 10, 0, tzinfo=datetime.timezone.utc),
        })
        second = book_appointment(caller, {
            'client_id': captured_client.id,
            'operativo_id': operativo.id,
            'scheduled_at': datetime.datetime(2026, 11, 20, 10, 30, tzinfo=datetime.timezone.utc),
        })

        assert first.appointment.operativo_id == operativo.id
        assert second.appointment.operativo_id == operativo.id
        refreshed = with_availability(Operativo.objects.filter(pk=operativo.pk)).get()
        assert available_slots(refreshed.capacity, refreshed.booked_count) == -1

    def test_list_filters_and_order(self, admin_client, make_operativo):
        early = make_operativo(name='Temprano', date=datetime.date(2026, 1, 10))
        middle = make_operativo(name='Medio', date=datetime.date(2026, 6, 10))
        make_operativo(name='Tarde', date=datetime.date(2026, 12, 10))

        response = admin_client.get(self.endpoint, {'date_from': '2026-01-01', 'date_to': '2026-07-01'})

        assert [row['id'] for row in response.json()] == [middle.id, early.id]

    @pytest.mark.parametrize('capacity', [0, -3])
    def test_capacity_must_be_positive(self, admin_client, capacity):
        response = admin_client.post(
            self.endpoint, {'name': 'Operativo', 'date': '2026-11-20', 'capacity': capacity}, format='json'
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestOperativoDeletion:

    def test_delete_with_appointments_is_409_with_count(self, admin_client, make_appointment, captured_client, operativo):
        make_appointment(captured_client, operativo=operativo, status=AppointmentStatus.CANCELLED)
        make_appointment(captured_client, operativo=operativo)

        response = admin_client.delete(f'/api/v1/operativos/{operativo.id}/')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()['citas_asociadas'] == 2
        assert 'error' in response.json()
        assert Operativo.objects.filter(pk=operativo.pk).exists()

    def test_delete_without_appointments(self, admin_client, operativo):
        response = admin_client.delete(f'/api/v1/operativos/{operativo.id}/')

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Operativo.objects.filter(pk=operativo.pk).exists()
