"""
Account services shared by the API views and management commands.
"""
import logging

from django.conf import settings
from django.db import transaction

from apps.authz.models import Role, User, UserRole
from apps.authz.roles import RoleChoices, parse_role

logger = logging.getLogger(__name__)

# Roles an administrator may hand out through the user management API.
ASSIGNABLE_ROLES = frozenset({RoleChoices.CAPTADOR, RoleChoices.OFTALMOLOGO})


def ensure_roles():
    """Create the canonical role rows if missing. Returns {role: Role}."""
    roles = {}
    for choice in RoleChoices:
        roles[choice] = Role.objects.get_or_create(name=choice.value)[0]
    return roles


def role_for(canonical):
    """Stored Role row for a canonical role, reusing a legacy spelling if present."""
    for role in Role.objects.all():
        if role.canonical == canonical:
            return role
    return Role.objects.create(name=canonical.value)


@transaction.atomic
def assign_roles(user, canonical_roles):
    """Replace the user's role assignments with ``canonical_roles``."""
    wanted = {role_for(canonical).pk for canonical in canonical_roles}
    UserRole.objects.filter(user=user).exclude(role_id__in=wanted).delete()
    for role_id in wanted:
        UserRole.objects.get_or_create(user=user, role_id=role_id)


def split_name(name):
    first, _, last = (name or '').strip().partition(' ')
    return first, last


def user_snapshot(user):
    """Audit snapshot of an account (never includes the password hash)."""
    return {
        'id': user.pk,
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'is_active': user.is_active,
        'roles': sorted(user.role_names()),
    }


@transaction.atomic
def seed_default_accounts(accounts=None):
    """
    Idempotently create the canonical roles and the default accounts.

    Existing accounts get their name and password reset and are reactivated.
    Returns one dict per account: {email, role, created}.
    """
    ensure_roles()
    accounts = settings.SEED_ACCOUNTS if accounts is None else accounts

    results = []
    for account in accounts:
        canonical = parse_role(account['role'])
        if canonical is None:
            raise ValueError(f"Unknown role in seed account: {account['role']!r}")

        first_name, last_name = split_name(account.get('name'))
        user, created = User.objects.get_or_create(
            email=account['email'].lower(),
            defaults={'first_name': first_name, 'last_name': last_name},
        )
        user.first_name = first_name
        user.last_name = last_name
        user.is_active = True
        user.is_staff = canonical == RoleChoices.ADMIN
        user.set_password(account['password'])
        user.save()

        UserRole.objects.get_or_create(user=user, role=role_for(canonical))
        results.append({'email': user.email, 'role': canonical.value, 'created': created})
        logger.info(
            'Seed account ensured',
            extra={'event': 'seed_account', 'role': canonical.value, 'account_created': created},
        )

    return results
