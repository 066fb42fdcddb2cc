"""
Errores del núcleo de permisos y citas.

Cada error es una APIException de DRF, así las vistas no necesitan
traducirlos: el manejador de excepciones agrega ``code`` y ``retryable``
para que el cliente distinga "reintentar" de "corregir datos" y de
"sin permiso".
"""

from contextlib import contextmanager

from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler


class PortalError(APIException):
    retryable = False


class ValidationError(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Los datos enviados no son válidos.'
    default_code = 'validation_error'


class AuthorizationError(PortalError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'No tiene permisos para realizar esta acción.'
    default_code = 'not_permitted'


class NotFoundError(PortalError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'El recurso solicitado no existe o está inactivo.'
    default_code = 'not_found'


class SlotConflict(PortalError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'La hora seleccionada ya fue reservada. Consulte nuevamente la disponibilidad.'
    default_code = 'slot_conflict'
    retryable = True


class StorageError(PortalError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'El almacenamiento no está disponible. Intente de nuevo más tarde.'
    default_code = 'storage_unavailable'
    retryable = True


def portal_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None and isinstance(exc, PortalError) and isinstance(response.data, dict):
        codes = exc.get_codes()
        response.data['code'] = codes if isinstance(codes, str) else exc.default_code
        response.data['retryable'] = exc.retryable
    return response


@contextmanager
def storage_errors(logger, operation):
    """Convierte fallos de la base de datos en StorageError; nunca reintenta."""
    try:
        yield
    except DatabaseError as exc:
        logger.error("Fallo de almacenamiento en %s: %s", operation, exc)
        raise StorageError() from exc
