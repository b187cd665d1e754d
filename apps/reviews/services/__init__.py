"""Services for reviews business logic."""

from .exceptions import (
    ReviewsServiceError,
    ReviewNotFoundError,
    DuplicateReviewError,
    InvalidRatingError,
    VenueNotFoundError,
    UnauthorizedReviewActionError,
)
from .review_management import (
    create_review,
    update_review,
    delete_review,
    get_review_by_id,
    get_venue_reviews,
    get_user_reviews,
)

__all__ = [
    # Exceptions
    'ReviewsServiceError',
    'ReviewNotFoundError',
    'DuplicateReviewError',
    'InvalidRatingError',
    'VenueNotFoundError',
    'UnauthorizedReviewActionError',
    # Review Management
    'create_review',
    'update_review',
    'delete_review',
    'get_review_by_id',
    'get_venue_reviews',
    'get_user_reviews',
]
