"""
Authentication serializers: login and the caller's own profile.
"""
from rest_framework import serializers

from apps.authz.models import User


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class AccountSerializer(serializers.ModelSerializer):
    """
    Account summary used by login, /auth/me/ and the ophthalmologist directory.
    """
    name = serializers.CharField(source='full_name', read_only=True)
    roles = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'first_name', 'last_name', 'is_active', 'roles']
        read_only_fields = fields

    def get_roles(self, obj):
        return obj.role_names()
