"""
API error taxonomy and the DRF exception handler.

Every failure leaves the API as ``{"error": str, "issues"?: {...}}`` with the
HTTP status encoding the error kind:

- 400 ValidationError (field issues itemized under ``issues``)
- 401 NotAuthenticated / AuthenticationFailed
- 403 PermissionDenied (capability or ownership)
- 404 NotFound
- 409 Conflict (unique constraint or blocked deletion)
- 500 MisconfiguredSecret and any unexpected failure (details logged only)
"""
import logging

from django.core.exceptions import (
    PermissionDenied as DjangoPermissionDenied,
    ValidationError as DjangoValidationError,
)
from django.db import IntegrityError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.serializers import as_serializer_error

logger = logging.getLogger(__name__)

VALIDATION_ERROR_MESSAGE = 'Datos inválidos'
INTERNAL_ERROR_MESSAGE = 'Error interno del servidor'


class Conflict(exceptions.APIException):
    """
    409: unique-constraint violation or deletion blocked by dependents.

    ``extra`` keys are merged into the response body next to ``error``.
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'El recurso entra en conflicto con el estado actual'
    default_code = 'conflict'

    def __init__(self, detail=None, code=None, **extra):
        super().__init__(detail=detail, code=code)
        self.extra = extra


class MisconfiguredSecret(exceptions.APIException):
    """500: the token signing secret is absent or a known placeholder."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'El servidor no tiene configurado un secreto de firma válido'
    default_code = 'misconfigured_secret'


def _translate(exc):
    """Map Django/DB exceptions onto DRF ones before rendering."""
    if isinstance(exc, IntegrityError):
        return Conflict('El registro viola una restricción de unicidad')
    if isinstance(exc, DjangoValidationError):
        return exceptions.ValidationError(as_serializer_error(exc))
    if isinstance(exc, Http404):
        return exceptions.NotFound('Recurso no encontrado')
    if isinstance(exc, DjangoPermissionDenied):
        return exceptions.PermissionDenied()
    return exc


def _error_message(detail):
    if isinstance(detail, list) and detail:
        return _error_message(detail[0])
    if isinstance(detail, dict):
        return detail.get('detail') or VALIDATION_ERROR_MESSAGE
    return str(detail)


def api_exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER rendering the ``{error, issues}`` body."""
    # rest_framework.views loads the authentication classes, which import this module.
    from rest_framework.views import exception_handler, set_rollback

    exc = _translate(exc)
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.error(
            'Unhandled API error',
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={
                'event': 'api_unhandled_error',
                'view': view.__class__.__name__ if view else None,
                'exception_type': exc.__class__.__name__,
            },
        )
        set_rollback()
        return Response(
            {'error': INTERNAL_ERROR_MESSAGE},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, exceptions.ValidationError):
        body = {'error': VALIDATION_ERROR_MESSAGE, 'issues': exc.detail}
    else:
        body = {'error': _error_message(exc.detail)}

    if isinstance(exc, Conflict):
        body.update(exc.extra)

    if isinstance(exc, MisconfiguredSecret):
        logger.critical(
            'Token signing secret is misconfigured',
            extra={'event': 'misconfigured_secret'},
        )

    response.data = body
    return response
