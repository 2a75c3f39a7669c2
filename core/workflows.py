"""
Negotiation and review workflows.

Each operation checks access, validates input, then runs its
read-check-write sequence in one transaction with the target service row
locked. Row locks serialize concurrent writers on MySQL; the uniqueness
constraints on Negotiation and Review back the checks up at the store.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, transaction

from .exceptions import (
    DuplicatePending,
    DuplicateReview,
    Ineligible,
    InvalidStateTransition,
    NotFound,
    SelfNegotiation,
    SelfReview,
    ValidationError,
)
from .models import Negotiation, Review, Service, User
from .permissions import AccessPolicy, has_accepted_negotiation

logger = logging.getLogger(__name__)

RESOLUTION_STATUSES = (Negotiation.Status.ACCEPTED, Negotiation.Status.REJECTED)
COMMENT_MAX_LENGTH = 500
OFFER_PRICE_PLACES = Decimal('0.01')
OFFER_PRICE_LIMIT = Decimal('100000000')

_UNSET = object()


def _lock_service(service_id):
    try:
        return Service.objects.select_for_update().get(pk=service_id)
    except Service.DoesNotExist:
        raise NotFound('Service not found.')


def _clean_offer_price(offer_price):
    try:
        value = Decimal(str(offer_price))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError({'offer_price': ['Offer price must be a number.']})
    if not value.is_finite() or value <= 0:
        raise ValidationError({'offer_price': ['Offer price must be positive.']})
    # Must fit the Decimal(10, 2) column unchanged
    if value >= OFFER_PRICE_LIMIT:
        raise ValidationError({'offer_price': ['Offer price must be less than 100000000.']})
    if value != value.quantize(OFFER_PRICE_PLACES):
        raise ValidationError({'offer_price': ['Offer price must have at most 2 decimal places.']})
    return value


def _clean_rating(rating):
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError({'rating': ['Rating must be an integer.']})
    if rating < 1 or rating > 5:
        raise ValidationError({'rating': ['Rating must be between 1 and 5.']})
    return rating


def _clean_comment(comment):
    if comment is None:
        return None
    comment = comment.strip()
    if len(comment) > COMMENT_MAX_LENGTH:
        raise ValidationError({'comment': [f'Comment must be at most {COMMENT_MAX_LENGTH} characters.']})
    return comment or None


# ============================================================================
# Negotiation State Machine
# ============================================================================

def create_negotiation(actor, service_id, offer_price):
    """
    Open a PENDING negotiation from actor on a service.

    Raises:
        Forbidden: actor is neither CUSTOMER nor ADMIN
        ValidationError: offer_price is not a positive amount with at most
            2 decimal places below 100000000
        NotFound: service does not exist
        SelfNegotiation: actor vends the service
        DuplicatePending: actor already has a PENDING negotiation on it
    """
    AccessPolicy.require_role(actor, User.Role.CUSTOMER)
    offer_price = _clean_offer_price(offer_price)

    with transaction.atomic():
        service = _lock_service(service_id)

        if service.vendor_id == actor.id:
            logger.warning(
                f"Self-negotiation attempt. User: {actor.id}, Service: {service.id}"
            )
            raise SelfNegotiation()

        pending = Negotiation.objects.filter(
            service=service,
            customer_id=actor.id,
            status=Negotiation.Status.PENDING
        )
        if pending.exists():
            logger.warning(
                f"Duplicate pending negotiation. User: {actor.id}, Service: {service.id}"
            )
            raise DuplicatePending()

        try:
            with transaction.atomic():
                negotiation = Negotiation.objects.create(
                    service=service,
                    customer_id=actor.id,
                    offer_price=offer_price
                )
        except IntegrityError:
            logger.warning(
                f"Pending negotiation constraint hit. User: {actor.id}, Service: {service.id}"
            )
            raise DuplicatePending()

    logger.info(
        f"Negotiation created. ID: {negotiation.id}, Service: {service.id}, "
        f"Customer: {actor.id}, Offer: {offer_price}"
    )
    return negotiation


def resolve_negotiation(actor, negotiation_id, new_status):
    """
    Accept or reject a PENDING negotiation.

    Only the service's vendor or an admin may resolve it, exactly once.

    Raises:
        Forbidden: actor is neither VENDOR nor ADMIN, or does not vend the service
        ValidationError: new_status is not ACCEPTED or REJECTED
        NotFound: negotiation does not exist
        InvalidStateTransition: negotiation is no longer PENDING
    """
    AccessPolicy.require_role(actor, User.Role.VENDOR)

    if new_status not in RESOLUTION_STATUSES:
        raise ValidationError({'status': ['Status must be ACCEPTED or REJECTED.']})

    with transaction.atomic():
        try:
            negotiation = Negotiation.objects.select_for_update().select_related(
                'service'
            ).get(pk=negotiation_id)
        except Negotiation.DoesNotExist:
            raise NotFound('Negotiation not found.')

        AccessPolicy.require_owner(
            actor, negotiation.service.vendor_id,
            'update negotiations for', 'services'
        )

        if not negotiation.can_transition_to(new_status):
            logger.warning(
                f"Invalid negotiation transition. ID: {negotiation.id}, "
                f"From: {negotiation.status}, To: {new_status}, Actor: {actor.id}"
            )
            raise InvalidStateTransition()

        old_status = negotiation.status
        negotiation.status = new_status
        negotiation.save(update_fields=['status', 'updated_at'])

    logger.info(
        f"Negotiation resolved. ID: {negotiation.id}, "
        f"Old Status: {old_status}, New Status: {new_status}, Actor: {actor.id}"
    )
    return negotiation


def cancel_negotiation(actor, negotiation_id):
    """
    Delete a PENDING negotiation on behalf of its customer.

    Raises:
        Forbidden: actor is neither CUSTOMER nor ADMIN, or not the negotiation's customer
        NotFound: negotiation does not exist
        InvalidStateTransition: negotiation is no longer PENDING
    """
    AccessPolicy.require_role(actor, User.Role.CUSTOMER)

    with transaction.atomic():
        try:
            negotiation = Negotiation.objects.select_for_update().get(pk=negotiation_id)
        except Negotiation.DoesNotExist:
            raise NotFound('Negotiation not found.')

        AccessPolicy.require_owner(actor, negotiation.customer_id, 'cancel', 'negotiations')

        if not negotiation.is_pending():
            raise InvalidStateTransition('Cannot cancel negotiation that is not pending.')

        negotiation.delete()

    logger.info(f"Negotiation cancelled. ID: {negotiation_id}, Actor: {actor.id}")


# ============================================================================
# Review operations
# ============================================================================

def create_review(actor, service_id, rating, comment=None):
    """
    Create a review and refresh the service's cached rating.

    Non-admin customers need an ACCEPTED negotiation on the service.

    Returns:
        Review: the new review; review.service holds the recomputed
        avg_rating and total_reviews

    Raises:
        Forbidden, ValidationError, NotFound, SelfReview, DuplicateReview, Ineligible
    """
    AccessPolicy.require_role(actor, User.Role.CUSTOMER)
    rating = _clean_rating(rating)
    comment = _clean_comment(comment)

    with transaction.atomic():
        service = _lock_service(service_id)

        if service.vendor_id == actor.id:
            raise SelfReview()

        if Review.objects.filter(service=service, customer_id=actor.id).exists():
            logger.warning(
                f"Duplicate review attempt. User: {actor.id}, Service: {service.id}"
            )
            raise DuplicateReview()

        if not actor.is_admin() and not has_accepted_negotiation(actor.id, service.id):
            logger.warning(
                f"Review without accepted negotiation. User: {actor.id}, Service: {service.id}"
            )
            raise Ineligible()

        try:
            with transaction.atomic():
                review = Review.objects.create(
                    service=service,
                    customer_id=actor.id,
                    rating=rating,
                    comment=comment
                )
        except IntegrityError:
            raise DuplicateReview()

        service.refresh_from_db(fields=['avg_rating', 'total_reviews'])
        review.service = service

    logger.info(
        f"Review created. ID: {review.id}, Service: {service.id}, Customer: {actor.id}, "
        f"Rating: {rating}, New Average: {service.avg_rating}"
    )
    return review


def _lock_review(review_id):
    """Lock the review's service row, then the review itself."""
    service_id = Review.objects.filter(pk=review_id).values_list('service_id', flat=True).first()
    if service_id is None:
        raise NotFound('Review not found.')

    _lock_service(service_id)

    try:
        return Review.objects.select_for_update().get(pk=review_id)
    except Review.DoesNotExist:
        raise NotFound('Review not found.')


def update_review(actor, review_id, rating=None, comment=_UNSET):
    """
    Update rating and/or comment of a review owned by actor (or any, for admins).

    The service rating is recomputed only when the rating changes.
    """
    AccessPolicy.require_role(actor, User.Role.CUSTOMER)
    if rating is not None:
        rating = _clean_rating(rating)
    if comment is not _UNSET:
        comment = _clean_comment(comment)

    with transaction.atomic():
        review = _lock_review(review_id)
        AccessPolicy.require_owner(actor, review.customer_id, 'update', 'reviews')

        if rating is not None:
            review.rating = rating
        if comment is not _UNSET:
            review.comment = comment
        review.save()

        review.service.refresh_from_db(fields=['avg_rating', 'total_reviews'])

    logger.info(f"Review updated. ID: {review.id}, Actor: {actor.id}, Rating: {review.rating}")
    return review


def delete_review(actor, review_id):
    """
    Delete a review owned by actor (or any, for admins) and recompute the rating.

    Returns:
        Service: the reviewed service with refreshed avg_rating/total_reviews
    """
    AccessPolicy.require_role(actor, User.Role.CUSTOMER)

    with transaction.atomic():
        review = _lock_review(review_id)
        AccessPolicy.require_owner(actor, review.customer_id, 'delete', 'reviews')

        service = review.service
        review.delete()
        service.refresh_from_db(fields=['avg_rating', 'total_reviews'])

    logger.info(f"Review deleted. ID: {review_id}, Service: {service.id}, Actor: {actor.id}")
    return service
