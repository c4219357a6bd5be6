"""
Signed access tokens.

Tokens are HS256 JWTs carrying ``sub`` (account id), ``email`` and
``roles`` (stored role names), valid for ``SIMPLE_JWT['ACCESS_TOKEN_LIFETIME']``
(8 hours by default). The signing secret is re-read from settings on every
call and checked before anything is signed or verified.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

from django.conf import settings
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.backends import TokenBackend
from rest_framework_simplejwt.exceptions import TokenBackendError
from rest_framework_simplejwt.utils import aware_utcnow, datetime_to_epoch

from apps.authz.roles import RoleChoices, normalize_roles
from apps.core.exceptions import MisconfiguredSecret

REQUIRED_CLAIMS = ('sub', 'email', 'roles', 'exp')


@dataclass(frozen=True)
class Caller:
    """Identity recovered from a verified token."""
    subject_id: int
    identifier: str
    roles: Tuple[str, ...]
    capabilities: FrozenSet[RoleChoices] = field(default=frozenset())

    @classmethod
    def build(cls, subject_id, identifier, roles):
        roles = tuple(roles)
        return cls(
            subject_id=subject_id,
            identifier=identifier,
            roles=roles,
            capabilities=normalize_roles(roles),
        )

    @classmethod
    def from_user(cls, user):
        return cls.build(user.pk, user.email, user.role_names())

    def has(self, role):
        return role in self.capabilities


def get_signing_secret():
    """
    Return the configured signing secret.

    Raises MisconfiguredSecret when it is empty, a known placeholder, or
    shorter than JWT_SECRET_MIN_LENGTH outside DEBUG.
    """
    secret = settings.SIMPLE_JWT.get('SIGNING_KEY') or ''
    placeholders = {value.lower() for value in getattr(settings, 'INSECURE_SIGNING_SECRETS', [])}

    if not secret.strip() or secret.strip().lower() in placeholders:
        raise MisconfiguredSecret()

    min_length = getattr(settings, 'JWT_SECRET_MIN_LENGTH', 0)
    if not settings.DEBUG and len(secret) < min_length:
        raise MisconfiguredSecret()

    return secret


def _backend():
    return TokenBackend(
        settings.SIMPLE_JWT.get('ALGORITHM', 'HS256'),
        signing_key=get_signing_secret(),
    )


def issue_access_token(user):
    """Sign a token for ``user``. Raises MisconfiguredSecret before signing."""
    backend = _backend()
    issued_at = aware_utcnow()
    expires_at = issued_at + settings.SIMPLE_JWT['ACCESS_TOKEN_LIFETIME']
    payload = {
        'sub': str(user.pk),
        'email': user.email,
        'roles': user.role_names(),
        'iat': datetime_to_epoch(issued_at),
        'exp': datetime_to_epoch(expires_at),
    }
    return backend.encode(payload)


def verify_access_token(raw_token):
    """
    Verify ``raw_token`` and return the Caller it carries.

    Raises MisconfiguredSecret (500) or AuthenticationFailed (401).
    """
    backend = _backend()
    if isinstance(raw_token, bytes):
        raw_token = raw_token.decode('utf-8', errors='replace')

    try:
        payload = backend.decode(raw_token, verify=True)
    except TokenBackendError:
        raise AuthenticationFailed('Token inválido o expirado', code='token_not_valid')

    if any(claim not in payload for claim in REQUIRED_CLAIMS):
        raise AuthenticationFailed('Token incompleto', code='token_not_valid')

    roles = payload['roles']
    if not isinstance(roles, list):
        raise AuthenticationFailed('Token incompleto', code='token_not_valid')

    try:
        subject_id = int(payload['sub'])
    except (TypeError, ValueError):
        raise AuthenticationFailed('Token inválido o expirado', code='token_not_valid')

    return Caller.build(subject_id, payload['email'], roles)
