"""
Authentication endpoints: login, seed, current user, ophthalmologist directory.
"""
from django.conf import settings
from django.contrib.auth.models import update_last_login
from django.http import Http404
from rest_framework import generics, status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from apps.authz.models import Role, User
from apps.authz.permissions import AccountDirectoryPermission
from apps.authz.roles import RoleChoices
from apps.authz.serializers import AccountSerializer, LoginSerializer
from apps.authz.services import seed_default_accounts
from apps.authz.tokens import issue_access_token
from apps.core.observability.events import log_domain_event


INVALID_CREDENTIALS = 'Credenciales inválidas'


class LoginRateThrottle(AnonRateThrottle):
    scope = 'login'


class LoginView(APIView):
    """
    POST /api/auth/login/

    Request: {"email": "...", "password": "..."}
    Response: {"token": "...", "user": {id, name, email, roles}}

    Unknown email, wrong password and inactive accounts all answer 401
    with the same message.
    """
    permission_classes = [AllowAny]
    throttle_classes = [LoginRateThrottle]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data['email'].lower()
        password = serializer.validated_data['password']

        user = User.objects.filter(email__iexact=email).first()
        if user is None or not user.is_active or not user.check_password(password):
            reason = 'unknown_account' if user is None else (
                'inactive_account' if not user.is_active else 'bad_password'
            )
            log_domain_event('login_failed', entity_type='User', result='blocked', reason=reason)
            raise AuthenticationFailed(INVALID_CREDENTIALS)

        token = issue_access_token(user)
        update_last_login(None, user)
        log_domain_event('login_succeeded', entity_type='User', entity_id=str(user.pk))

        return Response({'token': token, 'user': AccountSerializer(user).data})


class SeedView(APIView):
    """
    POST /api/auth/seed/

    Creates the canonical roles and the default accounts. Disabled (404)
    unless AUTH_SEED_ENABLED.
    """
    permission_classes = [AllowAny]

    def post(self, request):
        if not getattr(settings, 'AUTH_SEED_ENABLED', False):
            raise Http404

        accounts = seed_default_accounts()
        return Response(
            {
                'roles': [choice.value for choice in RoleChoices],
                'accounts': accounts,
            },
            status=status.HTTP_200_OK,
        )


class CurrentUserView(APIView):
    """
    GET /api/auth/me/

    Profile of the authenticated caller with stored role names.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(AccountSerializer(request.user).data)


class OphthalmologistListView(generics.ListAPIView):
    """
    GET /api/auth/ophthalmologists/

    Active accounts holding the ophthalmologist role, for booking forms.
    """
    permission_classes = [AccountDirectoryPermission]
    serializer_class = AccountSerializer
    pagination_class = None

    def get_queryset(self):
        role_ids = [
            role.pk for role in Role.objects.all()
            if role.canonical == RoleChoices.OFTALMOLOGO
        ]
        return (
            User.objects.filter(is_active=True, user_roles__role_id__in=role_ids)
            .distinct()
            .order_by('first_name', 'last_name')
        )
