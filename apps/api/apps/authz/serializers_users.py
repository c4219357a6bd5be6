"""
User Administration Serializers.
"""
from rest_framework import serializers
from rest_framework.exceptions import PermissionDenied

from apps.authz.models import User
from apps.authz.roles import parse_role
from apps.authz.services import ASSIGNABLE_ROLES, assign_roles
from apps.core.exceptions import Conflict


def _parse_assignable_roles(values):
    """Canonical roles from request values; 400 for unknown, 403 for non-assignable."""
    parsed = []
    for value in values:
        canonical = parse_role(value)
        if canonical is None:
            raise serializers.ValidationError(f"Rol desconocido: '{value}'")
        if canonical not in ASSIGNABLE_ROLES:
            raise PermissionDenied(
                'Solo se pueden asignar los roles: '
                + ', '.join(sorted(role.value for role in ASSIGNABLE_ROLES))
            )
        parsed.append(canonical)
    return parsed


class UserListSerializer(serializers.ModelSerializer):
    """
    Serializer for User list/detail (Admin only).
    """
    roles = serializers.SerializerMethodField()
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'first_name',
            'last_name',
            'full_name',
            'is_active',
            'roles',
            'last_login',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_roles(self, obj):
        return obj.role_names()


class UserCreateSerializer(serializers.ModelSerializer):
    """
    Serializer for User creation (Admin only).

    Only captador and oftalmologo may be assigned here; administrators are
    created by seeding or the Django admin.
    """
    roles = serializers.ListField(
        child=serializers.CharField(),
        allow_empty=False,
        help_text='Role names to assign (captador, oftalmologo)'
    )
    password = serializers.CharField(write_only=True, min_length=8, trim_whitespace=False)

    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'is_active', 'roles', 'password']
        read_only_fields = ['id']
        extra_kwargs = {'email': {'validators': []}}

    def validate_email(self, value):
        value = value.lower()
        if User.objects.filter(email__iexact=value).exists():
            raise Conflict('El correo ya está en uso')
        return value

    def validate_roles(self, value):
        return _parse_assignable_roles(value)

    def create(self, validated_data):
        roles = validated_data.pop('roles')
        password = validated_data.pop('password')
        user = User.objects.create_user(password=password, **validated_data)
        assign_roles(user, roles)
        return user


class UserUpdateSerializer(serializers.ModelSerializer):
    """
    Serializer for User update (Admin only). All fields optional.
    """
    roles = serializers.ListField(
        child=serializers.CharField(),
        allow_empty=False,
        required=False,
    )
    password = serializers.CharField(
        write_only=True, min_length=8, required=False, trim_whitespace=False
    )

    class Meta:
        model = User
        fields = ['email', 'first_name', 'last_name', 'is_active', 'roles', 'password']
        extra_kwargs = {'email': {'validators': [], 'required': False}}

    def validate_email(self, value):
        value = value.lower()
        duplicate = User.objects.filter(email__iexact=value).exclude(pk=self.instance.pk)
        if duplicate.exists():
            raise Conflict('El correo ya está en uso')
        return value

    def validate_roles(self, value):
        return _parse_assignable_roles(value)

    def update(self, instance, validated_data):
        roles = validated_data.pop('roles', None)
        password = validated_data.pop('password', None)

        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()

        if roles is not None:
            assign_roles(instance, roles)
        return instance
