"""
Global test fixtures for pytest.

Provides reusable fixtures for API testing:
- API clients authenticated with real bearer tokens, one per role
- Accounts by role
- Client, Operativo and Appointment factories
"""
import datetime

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from apps.authz.models import Role, User, UserRole
from apps.authz.roles import RoleChoices
from apps.authz.services import role_for
from apps.authz.tokens import issue_access_token
from apps.clinical.models import Appointment, AppointmentStatus, Client, Operativo


# Valid RUTs (check digit computed modulo 11)
RUT_A = '11111111-1'
RUT_B = '22222222-2'
RUT_C = '33333333-3'
RUT_K = '10000030-K'


# ============================================================================
# Accounts
# ============================================================================

@pytest.fixture
def make_account(db):
    """
    Factory: make_account(email, roles=(...), is_active=True, password=...).

    ``roles`` are canonical RoleChoices or any stored spelling.
    """
    def _make(email, roles=(), is_active=True, password='testpass123', first_name='Test', last_name='User'):
        user = User.objects.create_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            is_active=is_active,
        )
        for role in roles:
            if isinstance(role, RoleChoices):
                stored = role_for(role)
            else:
                stored, _ = Role.objects.get_or_create(name=role)
            UserRole.objects.create(user=user, role=stored)
        return user
    return _make


@pytest.fixture
def admin_user(make_account):
    return make_account('admin@test.com', [RoleChoices.ADMIN], first_name='Ana', last_name='Admin')


@pytest.fixture
def captador_user(make_account):
    return make_account('captador@test.com', [RoleChoices.CAPTADOR], first_name='Carla', last_name='Captadora')


@pytest.fixture
def other_captador_user(make_account):
    return make_account('otro.captador@test.com', [RoleChoices.CAPTADOR], first_name='Pedro', last_name='Captador')


@pytest.fixture
def oftalmologo_user(make_account):
    return make_account('oftalmologo@test.com', [RoleChoices.OFTALMOLOGO], first_name='Olga', last_name='Oftalmóloga')


@pytest.fixture
def no_role_user(make_account):
    return make_account('sinrol@test.com', [])


# ============================================================================
# API Clients
# ============================================================================

def token_client(user):
    """APIClient carrying a bearer token issued for ``user``."""
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_access_token(user)}')
    return client


@pytest.fixture
def api_client():
    """Unauthenticated DRF API client."""
    return APIClient()


@pytest.fixture
def admin_client(admin_user):
    return token_client(admin_user)


@pytest.fixture
def captador_client(captador_user):
    return token_client(captador_user)


@pytest.fixture
def other_captador_client(other_captador_user):
    return token_client(other_captador_user)


@pytest.fixture
def oftalmologo_client(oftalmologo_user):
    return token_client(oftalmologo_user)


@pytest.fixture
def no_role_client(no_role_user):
    return token_client(no_role_user)


# ============================================================================
# Clinical factories
# ============================================================================

@pytest.fixture
def make_client(db):
    def _make(rut=RUT_A, full_name='María González', phone='+56912345678',
              email='maria@example.com', captured_by=None, **extra):
        return Client.objects.create(
            rut=rut,
            full_name=full_name,
            phone=phone,
            email=email,
            captured_by=captured_by,
            **extra
        )
    return _make


@pytest.fixture
def make_operativo(db):
    def _make(name='Operativo Centro', capacity=None, date=None, location='Plaza de Armas'):
        return Operativo.objects.create(
            name=name,
            capacity=capacity,
            date=date or timezone.localdate(),
            location=location,
        )
    return _make


@pytest.fixture
def make_appointment(db):
    def _make(client, operativo=None, status=AppointmentStatus.SCHEDULED, scheduled_at=None, ophthalmologist=None):
        return Appointment.objects.create(
            client=client,
            operativo=operativo,
            ophthalmologist=ophthalmologist,
            status=status,
            scheduled_at=scheduled_at or timezone.now() + datetime.timedelta(days=1),
        )
    return _make


@pytest.fixture
def captured_client(make_client, captador_user):
    """Client captured by ``captador_user``."""
    return make_client(rut=RUT_A, full_name='María González', captured_by=captador_user)


@pytest.fixture
def foreign_client(make_client, other_captador_user):
    """Client captured by a different captador."""
    return make_client(
        rut=RUT_B,
        full_name='José Pérez',
        phone='+56987654321',
        email='jose@example.com',
        captured_by=other_captador_user,
    )


@pytest.fixture
def operativo(make_operativo):
    return make_operativo(capacity=5)


@pytest.fixture
def appointment(make_appointment, captured_client):
    return make_appointment(captured_client)


@pytest.fixture
def make_token_client(db):
    """Factory: APIClient authenticated as any account."""
    return token_client
