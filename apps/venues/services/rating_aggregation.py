"""Rating aggregation service with concurrency protection."""

from django.db import transaction
from django.db.models import Avg, Count
from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID

from ..models import Venue
from .exceptions import VenueNotFoundError


@transaction.atomic
def update_venue_rating(*, venue_id: UUID) -> Venue:
    """
    Recalculate and update venue's aggregate rating.

    Uses select_for_update() to prevent race conditions
    when multiple reviews are created/updated simultaneously.

    Args:
        venue_id: Venue UUID

    Returns:
        Updated Venue instance

    Raises:
        VenueNotFoundError: If venue doesn't exist
    """
    try:
        venue = (
            Venue.objects
            .select_for_update()
            .get(id=venue_id)
        )
    except Venue.DoesNotExist:
        raise VenueNotFoundError(f"Venue {venue_id} not found")

    aggregates = venue.reviews.aggregate(
        avg=Avg('rating'),
        count=Count('id')
    )

    average = aggregates['avg']
    venue.average_rating = (
        Decimal(str(average)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
        if average is not None
        else Decimal('0.00')
    )
    venue.total_reviews = aggregates['count']
    venue.save(update_fields=['average_rating', 'total_reviews', 'updated_at'])

    return venue
