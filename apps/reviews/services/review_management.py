"""Review management service - CRUD operations for venue reviews."""

from datetime import date
from django.db import transaction, IntegrityError
from django.db.models import QuerySet
from uuid import UUID
from typing import Optional

import structlog

from apps.accounts.models import User
from apps.venues.models import Venue
from apps.venues.services import update_venue_rating
from apps.reviews.models import Review
from .exceptions import (
    ReviewNotFoundError,
    DuplicateReviewError,
    InvalidRatingError,
    VenueNotFoundError,
    UnauthorizedReviewActionError,
)

logger = structlog.get_logger(__name__)


def _validate_rating(rating) -> None:
    if not isinstance(rating, int) or isinstance(rating, bool) or not (1 <= rating <= 5):
        raise InvalidRatingError("Rating must be between 1 and 5")


@transaction.atomic
def create_review(
    *,
    user: User,
    venue_id: UUID,
    rating: int,
    title: str = '',
    comment: str = '',
    visit_date: Optional[date] = None,
) -> Review:
    """
    Create a new review for a venue.

    This operation:
    1. Validates rating range
    2. Checks the venue is publicly visible
    3. Checks for duplicate review (user, venue)
    4. Creates the review and recalculates venue aggregates atomically

    Args:
        user: User writing the review
        venue_id: UUID of venue being reviewed
        rating: Overall rating (1-5)
        title: Short headline
        comment: Written review
        visit_date: When the user visited

    Returns:
        Created Review instance

    Raises:
        InvalidRatingError: If rating not in 1-5 range
        VenueNotFoundError: If venue doesn't exist or isn't visible
        DuplicateReviewError: If user already reviewed this venue
    """
    _validate_rating(rating)

    try:
        venue = Venue.objects.searchable().get(id=venue_id)
    except Venue.DoesNotExist:
        raise VenueNotFoundError("Venue not found or inactive")

    if Review.objects.filter(user=user, venue=venue).exists():
        raise DuplicateReviewError(
            "You have already reviewed this venue. Please update your existing review instead."
        )

    try:
        with transaction.atomic():
            review = Review.objects.create(
                venue=venue,
                user=user,
                rating=rating,
                title=title,
                comment=comment,
                visit_date=visit_date,
            )
    except IntegrityError:
        # Database unique constraint caught a concurrent duplicate
        raise DuplicateReviewError("You have already reviewed this venue.")

    update_venue_rating(venue_id=venue.id)

    logger.info("review_created", review_id=str(review.id), venue_id=str(venue.id), rating=rating)
    return review


@transaction.atomic
def update_review(
    *,
    review_id: UUID,
    user: User,
    rating: Optional[int] = None,
    title: Optional[str] = None,
    comment: Optional[str] = None,
    visit_date: Optional[date] = None,
) -> Review:
    """
    Update an existing review. Only provided fields change.

    Raises:
        ReviewNotFoundError: If review doesn't exist
        UnauthorizedReviewActionError: If user is not the author
        InvalidRatingError: If rating not in 1-5 range
    """
    try:
        review = Review.objects.select_for_update().get(id=review_id)
    except Review.DoesNotExist:
        raise ReviewNotFoundError(f"Review {review_id} not found")

    if review.user_id != user.id:
        raise UnauthorizedReviewActionError("You can only update your own reviews")

    update_fields = []

    if rating is not None:
        _validate_rating(rating)
        review.rating = rating
        update_fields.append('rating')

    if title is not None:
        review.title = title
        update_fields.append('title')

    if comment is not None:
        review.comment = comment
        update_fields.append('comment')

    if visit_date is not None:
        review.visit_date = visit_date
        update_fields.append('visit_date')

    if update_fields:
        update_fields.append('updated_at')
        review.save(update_fields=update_fields)

    if 'rating' in update_fields:
        update_venue_rating(venue_id=review.venue_id)

    return review


@transaction.atomic
def delete_review(*, review_id: UUID, user: User) -> None:
    """
    Delete a review and recalculate the venue aggregates.

    Staff may delete any review.

    Raises:
        ReviewNotFoundError: If review doesn't exist
        UnauthorizedReviewActionError: If user is not the author
    """
    try:
        review = Review.objects.select_for_update().get(id=review_id)
    except Review.DoesNotExist:
        raise ReviewNotFoundError(f"Review {review_id} not found")

    if review.user_id != user.id and not user.is_staff:
        raise UnauthorizedReviewActionError("You can only delete your own reviews")

    venue_id = review.venue_id
    review.delete()
    update_venue_rating(venue_id=venue_id)

    logger.info("review_deleted", review_id=str(review_id), venue_id=str(venue_id))


def get_review_by_id(*, review_id: UUID) -> Review:
    try:
        return Review.objects.select_related('user', 'venue').get(id=review_id)
    except Review.DoesNotExist:
        raise ReviewNotFoundError(f"Review {review_id} not found")


def get_venue_reviews(*, venue_id: UUID, rating: Optional[int] = None) -> QuerySet[Review]:
    """
    Reviews of a publicly visible venue, newest first.

    Args:
        venue_id: Venue UUID
        rating: Only reviews with this exact rating

    Raises:
        VenueNotFoundError: If venue doesn't exist or isn't visible
    """
    if not Venue.objects.searchable().filter(id=venue_id).exists():
        raise VenueNotFoundError("Venue not found or inactive")

    queryset = Review.objects.filter(venue_id=venue_id).select_related('user')
    if rating is not None:
        queryset = queryset.filter(rating=rating)
    return queryset.order_by('-created_at')


def get_user_reviews(*, user: User) -> QuerySet[Review]:
    return Review.objects.filter(user=user).select_related('venue').order_by('-created_at')
