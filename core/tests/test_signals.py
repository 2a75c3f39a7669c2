"""
Tests for the review signals that keep a service's cached rating in sync.
"""

from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import transaction
from django.test import TransactionTestCase

from core.models import Category, Negotiation, Review, Service

User = get_user_model()


class ReviewSignalTests(TransactionTestCase):
    """
    Test suite for review signal functionality.

    Uses TransactionTestCase so rollback behavior is observed against
    committed data.
    """

    def setUp(self):
        self.customer = User.objects.create_user(
            username='customer1@test.com',
            email='customer1@test.com',
            password='testpass123',
            role=User.Role.CUSTOMER
        )
        self.other_customer = User.objects.create_user(
            username='customer2@test.com',
            email='customer2@test.com',
            password='testpass123',
            role=User.Role.CUSTOMER
        )
        self.vendor = User.objects.create_user(
            username='vendor1@test.com',
            email='vendor1@test.com',
            password='testpass123',
            role=User.Role.VENDOR
        )
        self.service = Service.objects.create(
            vendor=self.vendor,
            category=Category.objects.create(name='Moving'),
            service_title='Test Moving Service',
            description='A test service for signals',
            price=Decimal('100.00'),
            phone='+1 555 123 4567',
            city='Springfield'
        )

    def _review(self, customer, rating, comment=None):
        Negotiation.objects.create(
            service=self.service,
            customer=customer,
            offer_price=Decimal('90.00'),
            status=Negotiation.Status.ACCEPTED
        )
        return Review.objects.create(
            service=self.service, customer=customer, rating=rating, comment=comment
        )

    def test_creating_review_updates_service_rating(self):
        self.service.refresh_from_db()
        self.assertEqual(self.service.avg_rating, Decimal('0.00'))
        self.assertEqual(self.service.total_reviews, 0)

        self._review(self.customer, 5)

        self.service.refresh_from_db()
        self.assertEqual(self.service.avg_rating, Decimal('5.00'))
        self.assertEqual(self.service.total_reviews, 1)

    def test_average_is_rounded_half_up(self):
        self._review(self.customer, 5)
        self._review(self.other_customer, 4)

        third = User.objects.create_user(
            username='customer3@test.com', email='customer3@test.com',
            password='testpass123', role=User.Role.CUSTOMER
        )
        self._review(third, 4)

        # 13 / 3 = 4.333...
        self.service.refresh_from_db()
        self.assertEqual(self.service.avg_rating, Decimal('4.33'))
        self.assertEqual(self.service.total_reviews, 3)

    def test_changing_rating_recalculates(self):
        review = self._review(self.customer, 2)

        review.rating = 4
        review.save()

        self.service.refresh_from_db()
        self.assertEqual(self.service.avg_rating, Decimal('4.00'))

    def test_comment_only_update_skips_recalculation(self):
        review = self._review(self.customer, 3)
        review = Review.objects.get(pk=review.pk)

        with mock.patch('core.signals.recalculate_service_rating') as recalc:
            review.comment = 'Edited comment'
            review.save()

        recalc.assert_not_called()

    def test_rating_update_on_loaded_instance_recalculates(self):
        review = self._review(self.customer, 3)
        review = Review.objects.get(pk=review.pk)

        with mock.patch('core.signals.recalculate_service_rating') as recalc:
            review.rating = 1
            review.save()

        recalc.assert_called_once_with(self.service.id)

    def test_deleting_last_review_resets_rating(self):
        review = self._review(self.customer, 4)

        review.delete()

        self.service.refresh_from_db()
        self.assertEqual(self.service.avg_rating, Decimal('0.00'))
        self.assertEqual(self.service.total_reviews, 0)

    def test_deleting_one_of_many_reviews(self):
        self._review(self.customer, 5)
        review = self._review(self.other_customer, 2)

        review.delete()

        self.service.refresh_from_db()
        self.assertEqual(self.service.avg_rating, Decimal('5.00'))
        self.assertEqual(self.service.total_reviews, 1)

    def test_failed_recalculation_rolls_back_review(self):
        Negotiation.objects.create(
            service=self.service,
            customer=self.customer,
            offer_price=Decimal('90.00'),
            status=Negotiation.Status.ACCEPTED
        )

        with mock.patch('core.signals.recalculate_service_rating', side_effect=RuntimeError('boom')):
            with self.assertRaises(RuntimeError):
                with transaction.atomic():
                    Review.objects.create(service=self.service, customer=self.customer, rating=5)

        self.assertFalse(Review.objects.exists())
        self.service.refresh_from_db()
        self.assertEqual(self.service.total_reviews, 0)

    def test_deleting_service_cascades_reviews(self):
        self._review(self.customer, 5)

        self.service.delete()

        self.assertFalse(Review.objects.exists())
        self.assertFalse(Negotiation.objects.exists())
