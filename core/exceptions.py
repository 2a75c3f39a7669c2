"""
Error taxonomy and DRF exception handler for the marketplace API.

Every failure is raised as an APIException subclass so DRF renders it
synchronously. Store failures that escape a view are mapped to Internal
and logged without leaking details to the caller.
"""

import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.http import Http404
from rest_framework import status
from rest_framework.serializers import as_serializer_error
from rest_framework.exceptions import APIException, NotFound, ValidationError
from rest_framework.exceptions import PermissionDenied
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

__all__ = [
    'ValidationError',
    'NotFound',
    'Forbidden',
    'DuplicatePending',
    'DuplicateReview',
    'DuplicateEmail',
    'SelfNegotiation',
    'SelfReview',
    'InvalidStateTransition',
    'Ineligible',
    'Internal',
    'custom_exception_handler',
]


class Forbidden(PermissionDenied):
    default_detail = 'Access denied.'
    default_code = 'forbidden'


class DuplicatePending(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'You already have a pending negotiation for this service.'
    default_code = 'duplicate_pending'


class DuplicateReview(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'You have already reviewed this service.'
    default_code = 'duplicate_review'


class DuplicateEmail(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'User with this email already exists.'
    default_code = 'duplicate_email'


class SelfNegotiation(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Cannot negotiate your own service.'
    default_code = 'self_negotiation'


class SelfReview(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Cannot review your own service.'
    default_code = 'self_review'


class InvalidStateTransition(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Cannot update negotiation that is not pending.'
    default_code = 'invalid_state_transition'


class Ineligible(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'You can only review services you have successfully negotiated for.'
    default_code = 'ineligible'


class Internal(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal server error.'
    default_code = 'internal'


def custom_exception_handler(exc, context):
    """
    Render every API error as {"detail": ..., "code": ...}.

    Validation errors keep their field-level detail under "errors".
    DatabaseError (including IntegrityError) that was not translated by a
    workflow becomes Internal.
    """
    if isinstance(exc, Http404):
        exc = NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = Forbidden()
    elif isinstance(exc, DjangoValidationError):
        exc = ValidationError(as_serializer_error(exc))
    elif isinstance(exc, DatabaseError):
        view = context.get('view')
        logger.error(
            f"Store failure in {view.__class__.__name__ if view else 'unknown view'}: {exc}",
            exc_info=True
        )
        exc = Internal()

    response = exception_handler(exc, context)

    if response is None:
        return None

    if isinstance(exc, ValidationError):
        response.data = {
            'detail': 'Validation error',
            'code': 'invalid',
            'errors': response.data,
        }
    elif isinstance(exc, APIException):
        codes = exc.get_codes()
        response.data = {
            'detail': response.data.get('detail', exc.default_detail)
            if isinstance(response.data, dict) else response.data,
            'code': codes if isinstance(codes, str) else exc.default_code,
        }

    return response
