"""
Tests for service rating aggregation and the end-to-end marketplace scenarios.

The cached Service.avg_rating must always equal the rounded mean of the
service's review ratings (0.00 with no reviews).
"""

from decimal import Decimal

import pytest

from core import workflows
from core.exceptions import DuplicatePending, InvalidStateTransition
from core.models import Negotiation, Review, Service
from core.ratings import compute_rating_stats, quantize_rating, recalculate_service_rating


class TestQuantizeRating:

    def test_none_becomes_zero(self):
        assert quantize_rating(None) == Decimal('0.00')

    @pytest.mark.parametrize('raw, expected', [
        (4, Decimal('4.00')),
        (3.3333333, Decimal('3.33')),
        (3.665, Decimal('3.67')),
        (Decimal('4.125'), Decimal('4.13')),
        (2.5, Decimal('2.50')),
    ])
    def test_rounds_half_up_to_two_places(self, raw, expected):
        assert quantize_rating(raw) == expected


@pytest.mark.django_db
class TestRecalculateServiceRating:

    def test_zero_reviews_stores_zero(self, service):
        assert recalculate_service_rating(service.id) == (Decimal('0.00'), 0)

        service.refresh_from_db()
        assert service.avg_rating == Decimal('0.00')
        assert service.total_reviews == 0

    def test_repairs_stale_cache(self, service, customer, other_customer):
        Review.objects.create(service=service, customer=customer, rating=5)
        Review.objects.create(service=service, customer=other_customer, rating=4)
        Service.objects.filter(pk=service.pk).update(avg_rating=Decimal('1.00'), total_reviews=9)

        assert recalculate_service_rating(service.id) == (Decimal('4.50'), 2)

        service.refresh_from_db()
        assert service.avg_rating == Decimal('4.50')
        assert service.total_reviews == 2

    def test_missing_service_returns_none(self):
        assert recalculate_service_rating(987654) is None

    def test_three_way_average_rounds(self, service, make_user):
        for rating in (5, 4, 4):
            Review.objects.create(service=service, customer=make_user(), rating=rating)

        service.refresh_from_db()
        assert service.avg_rating == Decimal('4.33')
        assert compute_rating_stats(service.id) == (Decimal('4.33'), 3)

    def test_reviews_on_other_services_do_not_count(self, service, make_service, other_vendor, customer):
        other = make_service(other_vendor, service_title='Office Moving')
        Review.objects.create(service=other, customer=customer, rating=1)

        service.refresh_from_db()
        assert service.avg_rating == Decimal('0.00')
        assert service.total_reviews == 0


@pytest.mark.django_db
class TestMarketplaceScenarios:

    def test_review_average_scenario(self, service, make_user, accepted_negotiation):
        c = make_user()
        d = make_user()
        accepted_negotiation(c, service)
        accepted_negotiation(d, service)

        review_c = workflows.create_review(c, service.id, 4)
        assert review_c.service.avg_rating == Decimal('4.00')
        assert review_c.service.total_reviews == 1

        review_d = workflows.create_review(d, service.id, 2)
        assert review_d.service.avg_rating == Decimal('3.00')
        assert review_d.service.total_reviews == 2

        refreshed = workflows.delete_review(c, review_c.id)
        assert refreshed.avg_rating == Decimal('2.00')
        assert refreshed.total_reviews == 1

    def test_negotiation_lifecycle_scenario(self, customer, vendor, service):
        first = workflows.create_negotiation(customer, service.id, Decimal('100'))
        assert first.status == Negotiation.Status.PENDING

        with pytest.raises(DuplicatePending):
            workflows.create_negotiation(customer, service.id, Decimal('90'))

        accepted = workflows.resolve_negotiation(vendor, first.id, Negotiation.Status.ACCEPTED)
        assert accepted.status == Negotiation.Status.ACCEPTED

        with pytest.raises(InvalidStateTransition):
            workflows.resolve_negotiation(vendor, first.id, Negotiation.Status.ACCEPTED)

        renewed = workflows.create_negotiation(customer, service.id, Decimal('95'))
        assert renewed.is_pending()

    def test_acceptance_unlocks_review(self, customer, vendor, service):
        negotiation = workflows.create_negotiation(customer, service.id, Decimal('100'))
        workflows.resolve_negotiation(vendor, negotiation.id, Negotiation.Status.ACCEPTED)

        review = workflows.create_review(customer, service.id, 5)

        assert review.service.avg_rating == Decimal('5.00')

    def test_deleting_service_cascades_pending_negotiations_and_reviews(self, customer, other_customer,
                                                                       service, accepted_negotiation):
        workflows.create_negotiation(customer, service.id, Decimal('100'))
        accepted_negotiation(other_customer, service)
        workflows.create_review(other_customer, service.id, 3)

        service.delete()

        assert Negotiation.objects.count() == 0
        assert Review.objects.count() == 0

    def test_deleting_customer_refreshes_service_average(self, make_user, service, accepted_negotiation):
        low = make_user()
        high = make_user()
        accepted_negotiation(low, service)
        accepted_negotiation(high, service)
        workflows.create_review(low, service.id, 1)
        workflows.create_review(high, service.id, 5)

        low.delete()

        service.refresh_from_db()
        assert service.avg_rating == Decimal('5.00')
        assert service.total_reviews == 1
