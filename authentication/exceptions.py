# exceptions.py
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError as DRFValidationError
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.http import Http404
import logging
from django.conf import settings

logger = logging.getLogger(__name__)


def error_payload(code, message, details=None, status_code=400):
    """Error envelope shared by the exception handler and the cart views"""
    return {
        'error': True,
        'code': code,
        'message': message,
        'details': details if details is not None else {},
        'status_code': status_code,
    }


def _request_context(context):
    view = context.get('view')
    request = context.get('request')
    data = getattr(request, 'data', None) if request is not None else None
    return {
        'view': view.__class__.__name__ if view is not None else None,
        'kwargs': context.get('kwargs'),
        'method': getattr(request, 'method', None),
        'path': getattr(request, 'path', None),
        'payload_keys': sorted(data.keys()) if hasattr(data, 'keys') else type(data).__name__,
    }


def custom_exception_handler(exc, context):
    """
    Custom exception handler for the cart API
    """
    if isinstance(exc, Http404):
        exc = NotFound()

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        code = str(getattr(exc, 'default_code', 'error')).upper()
        message = 'An error occurred'

        # Handle specific error types
        if isinstance(exc, DRFValidationError):
            code = 'INVALID_REQUEST'
            message = 'Invalid request data'
        elif response.status_code == 401:
            message = 'Authentication required'
        elif response.status_code == 403:
            message = 'Permission denied'
        elif response.status_code == 404:
            message = 'Resource not found'
        elif response.status_code == 405:
            message = 'Method not allowed'

        response.data = error_payload(code, message, response.data, response.status_code)

    # Handle Django ValidationError
    elif isinstance(exc, ValidationError):
        logger.info(f"Validation Error: {exc}")
        response = Response(
            error_payload('INVALID_REQUEST', 'Validation error', {'non_field_errors': exc.messages}, 400),
            status=status.HTTP_400_BAD_REQUEST
        )

    # Concurrent writes that slipped past the cart engine's own retry
    elif isinstance(exc, IntegrityError):
        logger.warning(f"Integrity Error: {exc} context={_request_context(context)}")
        response = Response(
            error_payload(
                'CONFLICT', 'The request conflicted with a concurrent change, please retry',
                {'retryable': True}, 409
            ),
            status=status.HTTP_409_CONFLICT
        )

    # Handle unexpected errors
    else:
        logger.exception(f"Unexpected Error: {exc} context={_request_context(context)}")
        response = Response(
            error_payload(
                'INTERNAL_ERROR', 'An unexpected error occurred',
                {'error': str(exc)} if settings.DEBUG else {}, 500
            ),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return response
