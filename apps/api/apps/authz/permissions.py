"""
Authorization gate.

Each permission class declares the roles that may use an endpoint, as a
logical OR. Caller roles come from the verified token and are compared
through the role normalizer. Client records are additionally partitioned by
owner: a captador without admin only sees and mutates the clients it
captured.
"""
from rest_framework import permissions
from rest_framework.exceptions import PermissionDenied

from apps.authz.authentication import get_caller
from apps.authz.roles import RoleChoices, satisfies_any
from apps.core.observability.events import log_authorization_denied


UNRESTRICTED_CLIENT_ROLES = frozenset({RoleChoices.ADMIN, RoleChoices.OFTALMOLOGO})


class OwnershipDenied(PermissionDenied):
    default_detail = 'No tienes acceso a este cliente'
    default_code = 'ownership_denied'


class CapabilityPermission(permissions.BasePermission):
    """
    Base class: allow when the caller holds any of the required roles.

    Subclasses set ``required_capabilities`` or, when reads and writes
    differ, ``capabilities_by_method`` keyed by 'read', 'create', 'update'
    and 'delete'.
    """
    required_capabilities = frozenset()
    capabilities_by_method = None
    message = 'No tienes permisos para realizar esta acción'

    def get_required_capabilities(self, request, view):
        if self.capabilities_by_method is None:
            return self.required_capabilities
        return self.capabilities_by_method.get(_method_kind(request.method), frozenset())

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        caller = get_caller(request)
        required = self.get_required_capabilities(request, view)
        if satisfies_any(required, caller.roles):
            return True

        log_authorization_denied(caller.roles, required, request.path, request.method)
        return False


def _method_kind(method):
    if method in permissions.SAFE_METHODS:
        return 'read'
    if method == 'POST':
        return 'create'
    if method in ('PUT', 'PATCH'):
        return 'update'
    if method == 'DELETE':
        return 'delete'
    return None


def has_unrestricted_client_access(caller):
    return bool(caller.capabilities & UNRESTRICTED_CLIENT_ROLES)


def scope_clients(queryset, caller):
    """Narrow a Client queryset to what ``caller`` may list."""
    if has_unrestricted_client_access(caller):
        return queryset
    if caller.has(RoleChoices.CAPTADOR):
        return queryset.filter(captured_by_id=caller.subject_id)
    return queryset.none()


class IsAdmin(CapabilityPermission):
    """Only administrators (user management, operativos)."""
    required_capabilities = frozenset({RoleChoices.ADMIN})


class LeadPermission(CapabilityPermission):
    """Lead capture and listing: admin and captador."""
    required_capabilities = frozenset({RoleChoices.ADMIN, RoleChoices.CAPTADOR})


class ClientPermission(CapabilityPermission):
    """
    Permission for Client endpoints.

    - Admin: read, create, update
    - Oftalmologo: read
    - Captador: read, create, update on the clients it captured

    The owner check runs per record after the row is fetched and raises
    OwnershipDenied (403) rather than hiding the record.
    """
    capabilities_by_method = {
        'read': frozenset({RoleChoices.ADMIN, RoleChoices.CAPTADOR, RoleChoices.OFTALMOLOGO}),
        'create': frozenset({RoleChoices.ADMIN, RoleChoices.CAPTADOR}),
        'update': frozenset({RoleChoices.ADMIN, RoleChoices.CAPTADOR}),
        'delete': frozenset(),
    }

    def has_object_permission(self, request, view, obj):
        caller = get_caller(request)
        if _method_kind(request.method) == 'read' and has_unrestricted_client_access(caller):
            return True
        if caller.has(RoleChoices.ADMIN):
            return True
        if obj.captured_by_id is not None and obj.captured_by_id == caller.subject_id:
            return True

        log_authorization_denied(
            caller.roles, [RoleChoices.ADMIN], request.path, request.method, reason='ownership'
        )
        raise OwnershipDenied()


class AppointmentPermission(CapabilityPermission):
    """Admin and oftalmologo: full appointment access."""
    required_capabilities = frozenset({RoleChoices.ADMIN, RoleChoices.OFTALMOLOGO})


class AccountDirectoryPermission(CapabilityPermission):
    """Any operational role may list ophthalmologists for booking forms."""
    required_capabilities = frozenset({
        RoleChoices.ADMIN,
        RoleChoices.CAPTADOR,
        RoleChoices.OFTALMOLOGO,
    })
