"""
Smoke tests for API permissions by role.

Fast HTTP status code validation without deep content checks.
Validates the capability matrix across endpoints.
"""
import pytest
from rest_framework import status


# ============================================================================
# Client Endpoints
# ============================================================================

@pytest.mark.django_db
class TestClientPermissions:
    """Test client endpoint permissions by role."""

    endpoint = '/api/v1/clients/'

    @pytest.mark.parametrize('client_fixture,expected_status', [
        ('admin_client', status.HTTP_200_OK),
        ('captador_client', status.HTTP_200_OK),
        ('oftalmologo_client', status.HTTP_200_OK),
        ('no_role_client', status.HTTP_403_FORBIDDEN),
        ('api_client', status.HTTP_401_UNAUTHORIZED),
    ])
    def test_list_clients_by_role(self, client_fixture, expected_status, request):
        client = request.getfixturevalue(client_fixture)
        response = client.get(self.endpoint)
        assert response.status_code == expected_status

    @pytest.mark.parametrize('client_fixture,expected_status', [
        ('admin_client', status.HTTP_201_CREATED),
        ('captador_client', status.HTTP_201_CREATED),
        ('oftalmologo_client', status.HTTP_403_FORBIDDEN),
        ('no_role_client', status.HTTP_403_FORBIDDEN),
    ])
    def test_create_client_by_role(self, client_fixture, expected_status, request):
        client = request.getfixturevalue(client_fixture)
        payload = {
            'rut': '33333333-3',
            'full_name': 'Rosa Díaz',
            'phone': '+56911112222',
        }
        response = client.post(self.endpoint, payload, format='json')
        assert response.status_code == expected_status

    @pytest.mark.parametrize('client_fixture,expected_status', [
        ('admin_client', status.HTTP_200_OK),
        ('captador_client', status.HTTP_200_OK),
        ('oftalmologo_client', status.HTTP_403_FORBIDDEN),
    ])
    def test_update_client_by_role(self, client_fixture, expected_status, request, captured_client):
        client = request.getfixturevalue(client_fixture)
        response = client.patch(
            f'{self.endpoint}{captured_client.id}/', {'sector': 'Norte'}, format='json'
        )
        assert response.status_code == expected_status

    def test_no_role_may_delete_clients(self, admin_client, captured_client):
        response = admin_client.delete(f'{self.endpoint}{captured_client.id}/')
        assert response.status_code == status.HTTP_403_FORBIDDEN


# ============================================================================
# Operativo Endpoints
# ============================================================================

@pytest.mark.django_db
class TestOperativoPermissions:

    endpoint = '/api/v1/operativos/'

    @pytest.mark.parametrize('client_fixture,expected_status', [
        ('admin_client', status.HTTP_200_OK),
        ('captador_client', status.HTTP_403_FORBIDDEN),
        ('oftalmologo_client', status.HTTP_403_FORBIDDEN),
    ])
    def test_list_operativos_by_role(self, client_fixture, expected_status, request):
        client = request.getfixturevalue(client_fixture)
        response = client.get(self.endpoint)
        assert response.status_code == expected_status

    @pytest.mark.parametrize('client_fixture,expected_status', [
        ('admin_client', status.HTTP_201_CREATED),
        ('captador_client', status.HTTP_403_FORBIDDEN),
        ('oftalmologo_client', status.HTTP_403_FORBIDDEN),
    ])
    def test_create_operativo_by_role(self, client_fixture, expected_status, request):
        client = request.getfixturevalue(client_fixture)
        payload = {'name': 'Operativo Sur', 'date': '2026-11-20', 'capacity': 10}
        response = client.post(self.endpoint, payload, format='json')
        assert response.status_code == expected_status


# ============================================================================
# Appointment Endpoints
# ============================================================================

@pytest.mark.django_db
class TestAppointmentPermissions:

    endpoint = '/api/v1/appointments/'

    @pytest.mark.parametrize('client_fixture,expected_status', [
        ('admin_client', status.HTTP_200_OK),
        ('oftalmologo_client', status.HTTP_200_OK),
        ('captador_client', status.HTTP_403_FORBIDDEN),
        ('no_role_client', status.HTTP_403_FORBIDDEN),
    ])
    def test_list_appointments_by_role(self, client_fixture, expected_status, request):
        client = request.getfixturevalue(client_fixture)
        response = client.get(self.endpoint)
        assert response.status_code == expected_status

    @pytest.mark.parametrize('client_fixture,expected_status', [
        ('admin_client', status.HTTP_201_CREATED),
        ('oftalmologo_client', status.HTTP_201_CREATED),
        ('captador_client', status.HTTP_403_FORBIDDEN),
    ])
    def test_create_appointment_by_role(self, client_fixture, expected_status, request, captured_client):
        client = request.getfixturevalue(client_fixture)
        payload = {'client_id': captured_client.id, 'scheduled_at': '2026-11-20T10:00:00Z'}
        response = client.post(self.endpoint, payload, format='json')
        assert response.status_code == expected_status

    def test_delete_appointment_not_allowed(self, admin_client, appointment):
        response = admin_client.delete(f'{self.endpoint}{appointment.id}/')
        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED


# ============================================================================
# User Management Endpoints
# ============================================================================

@pytest.mark.django_db
class TestUserAdminPermissions:

    endpoint = '/api/v1/users/'

    @pytest.mark.parametrize('client_fixture,expected_status', [
        ('admin_client', status.HTTP_200_OK),
        ('captador_client', status.HTTP_403_FORBIDDEN),
        ('oftalmologo_client', status.HTTP_403_FORBIDDEN),
        ('api_client', status.HTTP_401_UNAUTHORIZED),
    ])
    def test_list_users_by_role(self, client_fixture, expected_status, request):
        client = request.getfixturevalue(client_fixture)
        response = client.get(self.endpoint)
        assert response.status_code == expected_status

    def test_legacy_admin_spelling_is_admin(self, make_account, make_token_client):
        legacy_admin = make_account('legacy.admin@test.com', ['Administrador'])
        response = make_token_client(legacy_admin).get(self.endpoint)

        assert response.status_code == status.HTTP_200_OK
