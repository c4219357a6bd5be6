"""
Bearer-token authentication for the API.
"""
from django.contrib.auth import get_user_model
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication

from apps.authz.tokens import Caller, verify_access_token
from apps.core.observability.correlation import bind_user_context


class BearerTokenAuthentication(JWTAuthentication):
    """
    Reads ``Authorization: Bearer <token>``, verifies it and returns
    ``(user, caller)``. ``request.auth`` is the Caller built from the token
    claims; authorization decisions use its roles.

    No header means anonymous (401 from IsAuthenticated). A malformed,
    forged or expired token is 401; a misconfigured secret is 500.
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header is None:
            return None

        raw_token = self.get_raw_token(header)
        if raw_token is None:
            return None

        caller = verify_access_token(raw_token)
        user = self.get_account(caller)

        bind_user_context(caller.subject_id, caller.roles)
        return user, caller

    def get_account(self, caller):
        User = get_user_model()
        try:
            user = User.objects.get(pk=caller.subject_id)
        except User.DoesNotExist:
            raise AuthenticationFailed('Usuario no encontrado', code='user_not_found')

        if not user.is_active:
            raise AuthenticationFailed('Usuario inactivo', code='user_inactive')

        return user


def get_caller(request):
    """The Caller for ``request``, derived from the account for non-token auth."""
    auth = getattr(request, 'auth', None)
    if isinstance(auth, Caller):
        return auth
    return Caller.from_user(request.user)
