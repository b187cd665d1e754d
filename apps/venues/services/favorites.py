"""Saved venues."""

from django.db import transaction
from django.db.models import QuerySet
from uuid import UUID

import structlog

from apps.accounts.models import User
from ..models import Venue, VenueFavorite
from .exceptions import VenueNotFoundError

logger = structlog.get_logger(__name__)


@transaction.atomic
def toggle_favorite(*, venue_id: UUID, user: User) -> bool:
    """
    Add a venue to the user's favorites, or remove it if already there.

    The venue row is locked so two taps from the same user cannot both
    insert.

    Returns:
        True if the venue is now a favorite, False if it was removed

    Raises:
        VenueNotFoundError: If venue doesn't exist or isn't visible
    """
    try:
        venue = Venue.objects.searchable().select_for_update().get(id=venue_id)
    except Venue.DoesNotExist:
        raise VenueNotFoundError(f"Venue {venue_id} not found")

    deleted, _ = VenueFavorite.objects.filter(user=user, venue=venue).delete()
    if deleted:
        logger.info("venue_unfavorited", venue_id=str(venue.id), user_id=str(user.id))
        return False

    VenueFavorite.objects.create(user=user, venue=venue)
    logger.info("venue_favorited", venue_id=str(venue.id), user_id=str(user.id))
    return True


def is_favorite(*, venue: Venue, user: User) -> bool:
    if not user.is_authenticated:
        return False
    return VenueFavorite.objects.filter(user=user, venue=venue).exists()


def get_user_favorites(*, user: User) -> QuerySet[Venue]:
    """Visible venues the user saved, most recently saved first."""
    return (
        Venue.objects.searchable()
        .filter(favorites__user=user)
        .select_related('business', 'category', 'subcategory')
        .order_by('-favorites__created_at', 'id')
    )
