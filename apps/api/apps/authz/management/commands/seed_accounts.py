"""
Management command to ensure the canonical roles and default accounts exist.

Usage:
    python manage.py seed_accounts

This command is idempotent and safe to run multiple times. Account names,
emails and passwords come from the SEED_* environment variables.
"""
from django.core.management.base import BaseCommand

from apps.authz.services import seed_default_accounts


class Command(BaseCommand):
    help = 'Ensure canonical roles and default seed accounts exist'

    def handle(self, *args, **options):
        self.stdout.write("Ensuring roles and seed accounts exist...")

        for result in seed_default_accounts():
            if result['created']:
                self.stdout.write(self.style.SUCCESS(
                    f"  ✓ Created {result['role']} account: {result['email']}"
                ))
            else:
                self.stdout.write(f"  - Updated {result['role']} account: {result['email']}")

        self.stdout.write(self.style.SUCCESS('\nSeed accounts ready.'))
