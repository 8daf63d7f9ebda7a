# exceptions.py
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.core.exceptions import ValidationError, ObjectDoesNotExist
from django.db import IntegrityError, OperationalError
import logging
from django.conf import settings

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    400: 'Validation error',
    401: 'Authentication required',
    403: 'Permission denied',
    404: 'Resource not found',
    405: 'Method not allowed',
    500: 'Internal server error',
    503: 'Service unavailable',
}


def error_payload(status_code, details, message=None):
    return {
        'error': True,
        'message': message or STATUS_MESSAGES.get(status_code, 'An error occurred'),
        'details': details,
        'status_code': status_code,
    }


def custom_exception_handler(exc, context):
    """
    Wrap every API error in the POS error envelope:
    ``{"error": true, "message": ..., "details": ..., "status_code": ...}``
    """
    # DRF exceptions, Http404 and PermissionDenied
    response = exception_handler(exc, context)
    if response is not None:
        response.data = error_payload(response.status_code, response.data)
        return response

    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown view'

    if isinstance(exc, ValidationError):
        logger.warning("Validation error in %s: %s", view_name, exc)
        code, details = status.HTTP_400_BAD_REQUEST, {'non_field_errors': exc.messages}
        message = None

    elif isinstance(exc, ObjectDoesNotExist):
        code, details, message = status.HTTP_404_NOT_FOUND, {'error': str(exc)}, None

    elif isinstance(exc, IntegrityError):
        logger.error("Integrity error in %s: %s", view_name, exc)
        code = status.HTTP_400_BAD_REQUEST
        details = {'error': 'This operation violates database constraints'}
        message = 'Database integrity error'

    elif isinstance(exc, OperationalError):
        logger.exception("Database unavailable in %s", view_name)
        code, details, message = status.HTTP_503_SERVICE_UNAVAILABLE, {}, None

    else:
        logger.exception("Unexpected error in %s: %s", view_name, exc)
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
        details = {'error': str(exc)} if settings.DEBUG else {}
        message = 'An unexpected error occurred'

    return Response(error_payload(code, details, message), status=code)
