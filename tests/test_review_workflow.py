"""
Tests for review create/update/delete in core.workflows, including the
service rating that each operation refreshes.
"""

from decimal import Decimal

import pytest

from core import workflows
from core.exceptions import (
    DuplicateReview,
    Forbidden,
    Ineligible,
    NotFound,
    SelfReview,
    ValidationError,
)
from core.models import Negotiation, Review


@pytest.mark.django_db
class TestCreateReview:

    def test_eligible_customer_creates_review(self, customer, service, accepted_negotiation):
        accepted_negotiation(customer, service)

        review = workflows.create_review(customer, service.id, 4, 'Careful movers.')

        assert review.rating == 4
        assert review.comment == 'Careful movers.'
        assert review.service.avg_rating == Decimal('4.00')
        assert review.service.total_reviews == 1

    def test_customer_without_accepted_negotiation_is_ineligible(self, customer, service):
        with pytest.raises(Ineligible):
            workflows.create_review(customer, service.id, 5)

        assert Review.objects.count() == 0

    @pytest.mark.parametrize('status', [Negotiation.Status.PENDING, Negotiation.Status.REJECTED])
    def test_non_accepted_negotiation_is_not_enough(self, customer, service, status):
        Negotiation.objects.create(
            service=service, customer=customer, offer_price=Decimal('90.00'), status=status
        )

        with pytest.raises(Ineligible):
            workflows.create_review(customer, service.id, 5)

    def test_admin_skips_eligibility(self, admin_user, service):
        review = workflows.create_review(admin_user, service.id, 3)
        assert review.service.total_reviews == 1

    def test_vendor_role_is_forbidden(self, other_vendor, service):
        with pytest.raises(Forbidden) as exc:
            workflows.create_review(other_vendor, service.id, 5)

        assert 'Customer role required' in str(exc.value.detail)

    def test_admin_cannot_review_own_service(self, admin_user, make_service):
        own = make_service(admin_user)

        with pytest.raises(SelfReview):
            workflows.create_review(admin_user, own.id, 5)

    def test_second_review_is_duplicate(self, customer, service, accepted_negotiation):
        accepted_negotiation(customer, service)
        workflows.create_review(customer, service.id, 5)

        with pytest.raises(DuplicateReview):
            workflows.create_review(customer, service.id, 1)

        service.refresh_from_db()
        assert service.total_reviews == 1
        assert service.avg_rating == Decimal('5.00')

    @pytest.mark.parametrize('rating', [0, 6, -1, 4.5, '5', True])
    def test_invalid_rating_rejected(self, customer, service, accepted_negotiation, rating):
        accepted_negotiation(customer, service)

        with pytest.raises(ValidationError):
            workflows.create_review(customer, service.id, rating)

    def test_comment_longer_than_500_rejected(self, customer, service, accepted_negotiation):
        accepted_negotiation(customer, service)

        with pytest.raises(ValidationError):
            workflows.create_review(customer, service.id, 4, 'x' * 501)

    def test_comment_is_trimmed_and_blank_stored_as_null(self, customer, other_customer, service,
                                                          accepted_negotiation):
        accepted_negotiation(customer, service)
        accepted_negotiation(other_customer, service)

        trimmed = workflows.create_review(customer, service.id, 4, '  Good job  ')
        blank = workflows.create_review(other_customer, service.id, 4, '   ')

        assert trimmed.comment == 'Good job'
        assert blank.comment is None

    def test_missing_service_is_not_found(self, customer):
        with pytest.raises(NotFound):
            workflows.create_review(customer, 31337, 5)


@pytest.mark.django_db
class TestUpdateReview:

    @pytest.fixture
    def review(self, customer, service, accepted_negotiation):
        accepted_negotiation(customer, service)
        return workflows.create_review(customer, service.id, 5, 'Great')

    def test_owner_updates_rating_and_average_follows(self, customer, review, service):
        updated = workflows.update_review(customer, review.id, rating=1)

        assert updated.rating == 1
        assert updated.service.avg_rating == Decimal('1.00')
        service.refresh_from_db()
        assert service.avg_rating == Decimal('1.00')
        assert service.total_reviews == 1

    def test_comment_only_update_keeps_rating(self, customer, review, service):
        updated = workflows.update_review(customer, review.id, comment='Changed my mind')

        assert updated.rating == 5
        assert updated.comment == 'Changed my mind'
        service.refresh_from_db()
        assert service.avg_rating == Decimal('5.00')

    def test_comment_can_be_cleared(self, customer, review):
        updated = workflows.update_review(customer, review.id, comment=None)
        assert updated.comment is None

    def test_other_customer_is_forbidden(self, other_customer, review):
        with pytest.raises(Forbidden) as exc:
            workflows.update_review(other_customer, review.id, rating=1)

        assert 'update your own reviews' in str(exc.value.detail)
        review.refresh_from_db()
        assert review.rating == 5

    def test_admin_updates_any_review(self, admin_user, review):
        updated = workflows.update_review(admin_user, review.id, rating=2)
        assert updated.rating == 2

    def test_invalid_rating_rejected(self, customer, review):
        with pytest.raises(ValidationError):
            workflows.update_review(customer, review.id, rating=9)

    def test_unknown_review_is_not_found(self, customer):
        with pytest.raises(NotFound):
            workflows.update_review(customer, 55555, rating=3)


@pytest.mark.django_db
class TestDeleteReview:

    def test_owner_deletes_review_and_average_resets(self, customer, service, accepted_negotiation):
        accepted_negotiation(customer, service)
        review = workflows.create_review(customer, service.id, 4)

        refreshed = workflows.delete_review(customer, review.id)

        assert refreshed.avg_rating == Decimal('0.00')
        assert refreshed.total_reviews == 0
        assert not Review.objects.filter(pk=review.id).exists()

    def test_other_customer_is_forbidden(self, customer, other_customer, service, accepted_negotiation):
        accepted_negotiation(customer, service)
        review = workflows.create_review(customer, service.id, 4)

        with pytest.raises(Forbidden):
            workflows.delete_review(other_customer, review.id)

        assert Review.objects.filter(pk=review.id).exists()

    def test_admin_deletes_any_review(self, admin_user, customer, service, accepted_negotiation):
        accepted_negotiation(customer, service)
        review = workflows.create_review(customer, service.id, 4)

        refreshed = workflows.delete_review(admin_user, review.id)

        assert refreshed.total_reviews == 0

    def test_unknown_review_is_not_found(self, customer):
        with pytest.raises(NotFound):
            workflows.delete_review(customer, 77777)
