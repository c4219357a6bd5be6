"""
Health check endpoints.

/healthz answers while the process is up; /readyz also verifies the
database and that tokens can be signed.
"""
import logging
from django.http import JsonResponse
from django.views import View
from django.db import connection
from django.conf import settings

from apps.core.exceptions import MisconfiguredSecret

logger = logging.getLogger(__name__)


class HealthzView(View):
    """Liveness probe. No dependency checks."""

    def get(self, request):
        health_data = {
            'status': 'ok',
            'version': getattr(settings, 'VERSION', 'unknown'),
        }

        commit_hash = getattr(settings, 'COMMIT_HASH', None)
        if commit_hash:
            health_data['commit'] = commit_hash

        return JsonResponse(health_data, status=200)


class ReadyzView(View):
    """Readiness probe: 503 until the database answers and the signing secret is usable."""

    def get(self, request):
        checks = {
            'database': self._check_database(),
            'signing_secret': self._check_signing_secret(),
        }

        all_healthy = all(checks.values())

        return JsonResponse(
            {
                'status': 'ready' if all_healthy else 'not_ready',
                'checks': checks,
            },
            status=200 if all_healthy else 503,
        )

    def _check_database(self):
        try:
            with connection.cursor() as cursor:
                cursor.execute('SELECT 1')
                return True
        except Exception as e:
            logger.error(
                'Database health check failed',
                extra={
                    'event': 'health_check_failed',
                    'check': 'database',
                    'error': str(e)
                }
            )
            return False

    def _check_signing_secret(self):
        from apps.authz.tokens import get_signing_secret

        try:
            get_signing_secret()
            return True
        except MisconfiguredSecret:
            logger.error(
                'Signing secret health check failed',
                extra={'event': 'health_check_failed', 'check': 'signing_secret'}
            )
            return False
