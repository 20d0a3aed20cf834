# apps/core/exceptions.py
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(APIException):
    """
    Base class for errors raised by the store and the workflow services.
    Carries its user-facing text as ``{'message': ...}``.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = {'message': 'Error'}
    default_code = 'error'

    def __init__(self, message=None, code=None):
        detail = {'message': message} if message else None
        super().__init__(detail, code)

    @property
    def message(self):
        return str(self.detail['message'])


class NotFoundError(ServiceError):
    """Raised when a referenced entity id does not exist"""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = {'message': 'No encontrado'}
    default_code = 'not_found'


class BusinessRuleViolationError(ServiceError):
    """Raised when a business rule is violated"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = {'message': 'Regla de negocio violada'}
    default_code = 'business_rule_violation'


class InvalidStatusTransitionError(BusinessRuleViolationError):
    """Raised when an invalid status transition is attempted"""
    default_detail = {'message': 'Transición de estado inválida'}
    default_code = 'invalid_status_transition'


class StoreUnavailableError(ServiceError):
    """Raised when the backing database cannot be reached"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = {'message': 'Base de datos no disponible'}
    default_code = 'store_unavailable'


class PartialFailureError(ServiceError):
    """
    Raised when a multi-step workflow stops halfway.
    Writes that already succeeded are listed in ``completed_steps`` and are not undone.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = {'message': 'La operación se completó parcialmente'}
    default_code = 'partial_failure'

    def __init__(self, message=None, completed_steps=None, code=None):
        super().__init__(message, code)
        self.completed_steps = list(completed_steps or [])


def custom_exception_handler(exc, context):
    """Custom exception handler to return all errors in {message: ""} format"""
    response = exception_handler(exc, context)

    if response is None:
        return response

    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else 'unknown'
    reason = exc.message if isinstance(exc, ServiceError) else exc
    if response.status_code >= 500:
        logger.error(f"{view_name}: {exc.__class__.__name__}: {reason}")
    else:
        logger.warning(f"{view_name}: {exc.__class__.__name__}: {reason}")

    if isinstance(exc, ServiceError):
        response.data = {'message': exc.message}
        if isinstance(exc, PartialFailureError):
            response.data['completed_steps'] = exc.completed_steps
        return response

    if response.status_code == status.HTTP_400_BAD_REQUEST:
        message = "Datos inválidos"

        if isinstance(response.data, dict) and response.data:
            if 'message' in response.data:
                message = _first_error(response.data['message'])
            else:
                # Field-level validation errors: keep the first one
                message = _first_error(list(response.data.values())[0])
        elif isinstance(response.data, list) and response.data:
            message = _first_error(response.data)

        response.data = {"message": message}

    elif response.status_code == status.HTTP_401_UNAUTHORIZED:
        response.data = {"message": "No autenticado"}
    elif response.status_code == status.HTTP_403_FORBIDDEN:
        response.data = {"message": "Acceso denegado"}
    elif response.status_code == status.HTTP_404_NOT_FOUND:
        response.data = {"message": "No encontrado"}
    elif response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        response.data = {"message": "Método no permitido"}
    elif response.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        response.data = {"message": "Error del servidor"}

    return response


def _first_error(value):
    while isinstance(value, (list, dict)) and value:
        items = value if isinstance(value, list) else list(value.values())
        # Nested list serializers report valid items as empty dicts
        non_empty = [item for item in items if item]
        value = non_empty[0] if non_empty else items[0]
    return str(value)
