"""
Project-wide DRF exception handler.

Every error leaving the API has the same shape so the dashboards can show
a single message::

    {"error": "Amount exceeds outstanding debt.", "code": "amount_exceeds_debt",
     "status": 400, "details": {...}}
"""
import logging

from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """Wrap DRF's default handler and normalise the response body."""
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, 'error_dict') else exc.messages
        exc = exceptions.ValidationError(detail=detail)
    elif isinstance(exc, ObjectDoesNotExist):
        exc = exceptions.NotFound(detail=str(exc) or 'Requested resource not found.')

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.ValidationError):
        message = 'Validation failed.'
        code = 'invalid'
        details = response.data
    else:
        detail = getattr(exc, 'detail', None)
        message = str(detail) if detail is not None else str(exc)
        codes = exc.get_codes() if hasattr(exc, 'get_codes') else None
        code = codes if isinstance(codes, str) else 'error'
        details = None

    if response.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error('API error %s: %s', response.status_code, message)
    elif response.status_code not in (status.HTTP_401_UNAUTHORIZED, status.HTTP_404_NOT_FOUND):
        view = context.get('view')
        logger.info(
            'Request rejected',
            extra={'status': response.status_code, 'code': code, 'view': type(view).__name__ if view else None},
        )

    body = {
        'error': message,
        'code': code,
        'status': response.status_code,
    }
    if details is not None:
        body['details'] = details
    return Response(body, status=response.status_code, headers=_auth_headers(response))


def _auth_headers(response):
    headers = {}
    for name in ('WWW-Authenticate', 'Retry-After'):
        if name in response:
            headers[name] = response[name]
    return headers
