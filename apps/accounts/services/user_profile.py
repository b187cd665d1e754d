"""Member profile: editable details, subscription state and activity counts."""

from django.contrib.auth import get_user_model
from django.db import transaction

import structlog

from apps.offers.models import RedemptionStatus
from apps.venues.models import ModerationStatus

User = get_user_model()

logger = structlog.get_logger(__name__)

PROFILE_FIELDS = ('display_name', 'phone')


def get_subscription(*, user: User) -> dict:
    return {
        'status': user.subscription_status,
        'expires_at': user.subscription_expires_at,
        'is_active': user.has_active_subscription,
    }


def get_user_activity(*, user: User) -> dict:
    """
    Counts shown on the member's profile.

    Cancelled redemptions are left out, matching the per-user offer limit.
    Favorites only count venues that are still publicly listed.
    """
    return {
        'redemptions': user.redemptions.exclude(status=RedemptionStatus.CANCELLED).count(),
        'reviews': user.reviews.count(),
        'favorites': user.favorite_venues.filter(
            venue__is_active=True,
            venue__status=ModerationStatus.APPROVED,
            venue__deleted_at__isnull=True,
        ).count(),
        'visits': user.venue_visits.count(),
    }


@transaction.atomic
def update_user_profile(*, user: User, data: dict) -> User:
    """
    Apply profile edits.

    Only PROFILE_FIELDS are written; email and subscription fields are
    managed elsewhere and ignored here.
    """
    changed = [field for field in PROFILE_FIELDS if field in data]
    for field in changed:
        setattr(user, field, data[field])

    if changed:
        user.save(update_fields=changed)
        logger.info("user_profile_updated", user_id=str(user.id), fields=changed)

    return user
