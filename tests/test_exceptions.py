"""
Tests for the API error body produced by custom_exception_handler.
"""

import pytest
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import Http404
from rest_framework import status

from core.exceptions import (
    DuplicatePending,
    InvalidStateTransition,
    ValidationError,
    custom_exception_handler,
)


@pytest.mark.django_db
class TestCustomExceptionHandler:

    def handle(self, exc):
        return custom_exception_handler(exc, {'view': None, 'request': None})

    def test_api_exception_body(self):
        response = self.handle(DuplicatePending())

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data == {
            'detail': 'You already have a pending negotiation for this service.',
            'code': 'duplicate_pending',
        }

    def test_custom_message_keeps_code(self):
        response = self.handle(InvalidStateTransition('Cannot cancel negotiation that is not pending.'))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'invalid_state_transition'

    def test_validation_error_keeps_field_detail(self):
        response = self.handle(ValidationError({'rating': ['Rating must be between 1 and 5.']}))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'invalid'
        assert response.data['errors'] == {'rating': ['Rating must be between 1 and 5.']}

    def test_django_errors_are_translated(self):
        assert self.handle(Http404()).status_code == status.HTTP_404_NOT_FOUND
        assert self.handle(DjangoPermissionDenied()).status_code == status.HTTP_403_FORBIDDEN

        response = self.handle(DjangoValidationError({'price': ['Price must be greater than 0.']}))
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'price' in response.data['errors']

    def test_store_failure_is_generic(self):
        response = self.handle(IntegrityError('UNIQUE constraint failed: core_review.service_id'))

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data == {'detail': 'Internal server error.', 'code': 'internal'}

    def test_unknown_exceptions_are_left_to_django(self):
        assert self.handle(RuntimeError('boom')) is None
