# Bootstrap the canonical roles

from django.db import migrations

CANONICAL_ROLES = ['admin', 'captador', 'oftalmologo']


def create_roles(apps, schema_editor):
    """Idempotent: existing rows are left untouched."""
    Role = apps.get_model('authz', 'Role')
    for name in CANONICAL_ROLES:
        Role.objects.get_or_create(name=name)


def remove_unused_roles(apps, schema_editor):
    """Only roles with no assignments are removed."""
    Role = apps.get_model('authz', 'Role')
    Role.objects.filter(name__in=CANONICAL_ROLES, assignments__isnull=True).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('authz', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(create_roles, remove_unused_roles),
    ]
