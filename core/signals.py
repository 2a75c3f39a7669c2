"""
Django signals for automatic rating recalculation.

This module contains signal receivers that keep a service's cached
avg_rating and total_reviews in sync when reviews are created, updated,
or deleted.
"""

import logging

from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from .models import Review
from .ratings import recalculate_service_rating

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Review)
def update_rating_on_review_save(sender, instance, created, **kwargs):
    """
    Recalculate the service rating when a review is created, or updated
    with a different rating.

    Runs within the same transaction as Review.save(). If recalculation
    fails, the exception propagates and the review write is rolled back
    with it.
    """
    if not created and not instance.rating_changed():
        return

    try:
        recalculate_service_rating(instance.service_id)
    except Exception as e:
        logger.error(
            f"Error updating rating for review {instance.id}: {e}",
            exc_info=True
        )
        raise


@receiver(post_delete, sender=Review)
def update_rating_on_review_delete(sender, instance, **kwargs):
    """
    Recalculate the service rating after a review is deleted.

    When the last review goes away the average returns to 0.00.
    """
    try:
        recalculate_service_rating(instance.service_id)
    except Exception as e:
        logger.error(
            f"Error updating rating after deleting review {instance.id}: {e}",
            exc_info=True
        )
        raise
