import logging

from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class DispatchError(APIException):
    """Base class for failures raised by the dispatch and analytics engines."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'dispatch_error'
    default_detail = 'Dispatch operation failed.'


class ValidationError(DispatchError):
    """Malformed or missing input; the caller must fix it, retrying is pointless."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'validation_error'
    default_detail = 'Invalid input.'


class NotFoundError(DispatchError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = 'not_found'
    default_detail = 'Not found.'


class ConflictError(DispatchError):
    """A state precondition no longer holds, e.g. equipment already taken."""
    status_code = status.HTTP_409_CONFLICT
    default_code = 'conflict'
    default_detail = 'Conflicting state.'


class UpstreamError(DispatchError):
    """The backing store is unreachable; the caller may retry."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = 'upstream_error'
    default_detail = 'Backing store unavailable.'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled error in %s', context.get('view'))
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    if isinstance(exc, DispatchError):
        code = exc.default_code
    elif isinstance(exc, (Http404, exceptions.NotFound)):
        code = 'not_found'
    elif isinstance(exc, exceptions.ValidationError):
        code = 'validation_error'
    elif isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        code = 'unauthorized'
    elif isinstance(exc, exceptions.PermissionDenied):
        code = 'forbidden'
    else:
        code = 'api_error'
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    return Response({'ok': False, 'error': {'code': code, 'message': detail}}, status=resp.status_code, headers=_carry_headers(resp))


def _carry_headers(resp):
    # Keep WWW-Authenticate / Retry-After set by DRF
    return {k: v for k, v in resp.items() if k in ('WWW-Authenticate', 'Retry-After')}
