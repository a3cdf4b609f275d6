"""
API errors raised by the service layer and the unified exception handler.

Services raise DRF exceptions directly so views can let them propagate;
``api_exception_handler`` renders every failure with the same envelope.
"""
import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class LimitExceeded(ValidationError):
    """A per-hospital count limit would be exceeded."""
    default_detail = 'limit exceeded'
    default_code = 'limit_exceeded'


class BlockedByActiveDependency(APIException):
    """The target still has an active dependency (e.g. an active project)."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'blocked by an active dependency'
    default_code = 'blocked'


class InternalError(APIException):
    """A transaction failed and was rolled back."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'internal server error'
    default_code = 'internal_error'


def _message(data):
    if isinstance(data, dict):
        return data.get('detail') or data
    if isinstance(data, list) and len(data) == 1:
        return data[0]
    return data


def api_exception_handler(exc, context):
    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled error in %s', context.get('view'), exc_info=exc)
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': 'internal server error'}}, status=500)
    code = getattr(exc, 'default_code', None) or 'api_error'
    return Response({'ok': False, 'error': {'code': code, 'message': _message(resp.data)}}, status=resp.status_code)
