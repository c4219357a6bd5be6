"""
Tests for client ownership scoping.

A captador only lists and mutates the clients it captured; admin and
oftalmologo see every client regardless of who captured it.
"""
import pytest
from rest_framework import status

from apps.clinical.models import Client


@pytest.mark.django_db
class TestClientVisibility:

    endpoint = '/api/v1/clients/'

    def test_captador_lists_only_own_clients(self, captador_client, captured_client, foreign_client):
        response = captador_client.get(self.endpoint)

        assert response.status_code == status.HTTP_200_OK
        assert [row['id'] for row in response.json()] == [captured_client.id]

    @pytest.mark.parametrize('client_fixture', ['admin_client', 'oftalmologo_client'])
    def test_unrestricted_roles_list_every_client(self, client_fixture, request, captured_client, foreign_client, make_client):
        orphan = make_client(rut='33333333-3', full_name='Sin Captador', captured_by=None)
        client = request.getfixturevalue(client_fixture)

        response = client.get(self.endpoint)

        ids = {row['id'] for row in response.json()}
        assert ids == {captured_client.id, foreign_client.id, orphan.id}

    @pytest.mark.parametrize('client_fixture', ['admin_client', 'oftalmologo_client'])
    def test_unrestricted_roles_retrieve_any_client(self, client_fixture, request, foreign_client):
        client = request.getfixturevalue(client_fixture)
        response = client.get(f'{self.endpoint}{foreign_client.id}/')
        assert response.status_code == status.HTTP_200_OK

    def test_captador_retrieve_foreign_client_is_403(self, captador_client, foreign_client):
        response = captador_client.get(f'{self.endpoint}{foreign_client.id}/')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {'error': 'No tienes acceso a este cliente'}

    def test_captador_search_does_not_leak_foreign_client(self, captador_client, foreign_client):
        response = captador_client.get(self.endpoint, {'rut': foreign_client.rut})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == []


@pytest.mark.django_db
class TestClientMutationOwnership:

    endpoint = '/api/v1/clients/'

    def test_captador_updates_own_client(self, captador_client, captured_client):
        response = captador_client.patch(
            f'{self.endpoint}{captured_client.id}/', {'sector': 'Centro'}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        captured_client.refresh_from_db()
        assert captured_client.sector == 'Centro'

    def test_captador_cannot_update_foreign_client(self, captador_client, foreign_client):
        """Authenticated, holds the base capability, still forbidden."""
        response = captador_client.patch(
            f'{self.endpoint}{foreign_client.id}/', {'sector': 'Centro'}, format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        foreign_client.refresh_from_db()
        assert foreign_client.sector is None

    def test_admin_updates_any_client(self, admin_client, foreign_client):
        response = admin_client.patch(
            f'{self.endpoint}{foreign_client.id}/', {'full_name': 'José Pérez Soto'}, format='json'
        )
        assert response.status_code == status.HTTP_200_OK

    def test_captador_with_admin_role_is_unrestricted(self, make_account, make_token_client, foreign_client):
        from apps.authz.roles import RoleChoices

        both = make_account('ambos@test.com', [RoleChoices.CAPTADOR, RoleChoices.ADMIN])
        response = make_token_client(both).patch(
            f'{self.endpoint}{foreign_client.id}/', {'sector': 'Sur'}, format='json'
        )
        assert response.status_code == status.HTTP_200_OK

    def test_create_sets_captured_by_to_caller(self, captador_client, captador_user):
        response = captador_client.post(
            self.endpoint,
            {'rut': '33.333.333-3', 'full_name': 'Rosa Díaz', 'email': 'rosa@example.com'},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        created = Client.objects.get(pk=response.json()['id'])
        assert created.captured_by_id == captador_user.id
        assert created.rut == '33333333-3'

    def test_captured_by_cannot_be_reassigned(self, admin_client, captured_client, other_captador_user, captador_user):
        response = admin_client.patch(
            f'{self.endpoint}{captured_client.id}/',
            {'captured_by': other_captador_user.id},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        captured_client.refresh_from_db()
        assert captured_client.captured_by_id == captador_user.id
