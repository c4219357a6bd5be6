"""
Authz models: auth_user, auth_role, auth_user_role
"""
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models

from apps.authz.roles import parse_role


class UserManager(BaseUserManager):
    """Accounts are identified by a lower-cased email."""

    use_in_migrations = True

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')
        user = self.model(email=self.normalize_email(email).lower(), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Back-office account.

    Deactivation is soft: ``is_active`` is cleared and the row stays, so
    clients captured by the account keep their owner. Roles live in
    ``auth_user_role``; ``is_staff`` only gates the Django admin site.
    """
    email = models.EmailField(unique=True, max_length=255)
    first_name = models.CharField(max_length=150, blank=True)
    last_name = models.CharField(max_length=150, blank=True)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'auth_user'
        verbose_name = 'Account'
        verbose_name_plural = 'Accounts'
        indexes = [
            models.Index(fields=['is_active'], name='idx_account_active'),
        ]

    def __str__(self):
        return self.email

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip() or self.email

    def role_names(self):
        """Stored role names, as written in auth_role."""
        return list(self.user_roles.values_list('role__name', flat=True))


class Role(models.Model):
    """
    A role row. ``name`` is free text: rows written by older tooling carry
    localized spellings ("Administrador", "oftalmólogo") and ``canonical``
    maps them onto RoleChoices.
    """
    name = models.CharField(max_length=50, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'auth_role'
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def canonical(self):
        return parse_role(self.name)


class UserRole(models.Model):
    """Account to role assignment. The pair (user, role) is unique."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='user_roles')
    role = models.ForeignKey(Role, on_delete=models.PROTECT, related_name='assignments')
    assigned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'auth_user_role'
        constraints = [
            models.UniqueConstraint(fields=['user', 'role'], name='uq_user_role'),
        ]

    def __str__(self):
        return f"{self.user.email} - {self.role.name}"
