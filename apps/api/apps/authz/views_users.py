"""
User Administration ViewSet.
"""
from django.db import transaction
from django.db import models
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.authz.models import User, Role
from apps.authz.permissions import IsAdmin
from apps.authz.roles import parse_role
from apps.authz.serializers_users import (
    UserListSerializer,
    UserCreateSerializer,
    UserUpdateSerializer,
)
from apps.authz.services import ASSIGNABLE_ROLES, user_snapshot
from apps.ops.audit import record_audit


class UserAdminViewSet(viewsets.ModelViewSet):
    """
    ViewSet for User Administration endpoints (Admin only).

    Endpoints:
    - GET /api/v1/users/ - List users
    - GET /api/v1/users/{id}/ - Get user detail
    - POST /api/v1/users/ - Create user
    - PATCH /api/v1/users/{id}/ - Update user
    - DELETE /api/v1/users/{id}/ - Deactivate user (soft)
    - GET /api/v1/users/roles/ - Roles an admin may assign

    Query parameters for list:
    - ?q=search_term - Search by email, first_name, last_name
    - ?is_active=true|false - Filter by active status
    - ?role=<name> - Filter by role (any accepted spelling)
    """
    permission_classes = [IsAdmin]
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']
    pagination_class = None

    def get_queryset(self):
        queryset = User.objects.prefetch_related('user_roles__role').all()

        q = self.request.query_params.get('q')
        if q:
            queryset = queryset.filter(
                models.Q(email__icontains=q) |
                models.Q(first_name__icontains=q) |
                models.Q(last_name__icontains=q)
            )

        is_active = self.request.query_params.get('is_active')
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active.lower() == 'true')

        role = self.request.query_params.get('role')
        if role:
            wanted = parse_role(role)
            role_ids = [r.pk for r in Role.objects.all() if wanted and r.canonical == wanted]
            queryset = queryset.filter(user_roles__role_id__in=role_ids).distinct()

        return queryset.order_by('-created_at')

    def get_serializer_class(self):
        if self.action == 'create':
            return UserCreateSerializer
        if self.action in ['update', 'partial_update']:
            return UserUpdateSerializer
        return UserListSerializer

    @transaction.atomic
    def create(self, request, *args, **kwargs):
        """Create user with audit entry."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        record_audit(request, 'user', 'CREATE', user.pk, after=user_snapshot(user))

        return Response(UserListSerializer(user).data, status=status.HTTP_201_CREATED)

    @transaction.atomic
    def update(self, request, *args, **kwargs):
        """Update user with audit entry (before/after)."""
        partial = kwargs.pop('partial', True)
        instance = self.get_object()
        before = user_snapshot(instance)

        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        after = user_snapshot(user)
        if 'password' in serializer.validated_data:
            after['password_changed'] = True
        record_audit(request, 'user', 'UPDATE', user.pk, before=before, after=after)

        return Response(UserListSerializer(user).data)

    @transaction.atomic
    def destroy(self, request, *args, **kwargs):
        """Soft delete: clear is_active, keep the row."""
        instance = self.get_object()
        before = user_snapshot(instance)

        instance.is_active = False
        instance.save(update_fields=['is_active', 'updated_at'])

        record_audit(request, 'user', 'DELETE', instance.pk, before=before, after=user_snapshot(instance))

        return Response(
            {'message': 'Usuario desactivado correctamente', 'id': instance.pk},
            status=status.HTTP_200_OK,
        )

    @action(detail=False, methods=['get'], url_path='roles')
    def roles(self, request):
        """Roles an admin may assign through this API."""
        return Response([
            {'name': role.value, 'label': role.label}
            for role in sorted(ASSIGNABLE_ROLES, key=lambda r: r.value)
        ])
