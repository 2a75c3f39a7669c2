"""
Rating aggregation for services.

Service.avg_rating and Service.total_reviews are a cache of the service's
Review set. They are always recomputed from the full set inside the
caller's transaction, never maintained as a running total.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.db.models import Avg, Count

from .models import Review, Service

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')


def quantize_rating(raw_avg):
    """Round an aggregate average to two decimals; None becomes 0.00."""
    if raw_avg is None:
        return Decimal('0.00')
    return Decimal(str(raw_avg)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def compute_rating_stats(service_id):
    """
    Aggregate the review set of a service.

    Returns:
        tuple: (avg_rating: Decimal, total_reviews: int)
    """
    stats = Review.objects.filter(service_id=service_id).aggregate(
        avg=Avg('rating'),
        total=Count('id')
    )
    return quantize_rating(stats['avg']), stats['total'] or 0


def recalculate_service_rating(service_id):
    """
    Recompute and store a service's average rating and review count.

    Locks the service row before aggregating so concurrent review writers
    serialize on it. Runs in a savepoint when called inside an outer
    transaction, so a failure rolls back the review mutation too.

    Returns:
        tuple: (avg_rating, total_reviews), or None if the service no longer exists
    """
    with transaction.atomic():
        locked = Service.objects.select_for_update().filter(pk=service_id).values_list('pk', flat=True)
        if not list(locked):
            # Service is being cascade-deleted
            return None

        avg_rating, total_reviews = compute_rating_stats(service_id)

        Service.objects.filter(pk=service_id).update(
            avg_rating=avg_rating,
            total_reviews=total_reviews
        )

    logger.info(
        f"Recalculated rating for service {service_id}: "
        f"avg_rating={avg_rating}, total_reviews={total_reviews}"
    )
    return avg_rating, total_reviews
