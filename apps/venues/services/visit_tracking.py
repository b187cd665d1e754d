"""Venue visit tracking."""

from datetime import datetime, time, timedelta
from django.db import transaction
from django.db.models import F, QuerySet
from django.utils import timezone
from uuid import UUID
from typing import Optional

import structlog

from apps.accounts.models import User
from ..models import Venue, VenueVisit
from .exceptions import VenueNotFoundError

logger = structlog.get_logger(__name__)


@transaction.atomic
def track_visit(
    *,
    venue_id: UUID,
    user: User,
    now: Optional[datetime] = None,
    source: str = 'app',
    metadata: Optional[dict] = None,
) -> tuple[VenueVisit, bool]:
    """
    Record a user's visit, at most once per venue per local calendar day.

    The venue row is locked so the daily check and the total_visits
    increment cannot interleave with a concurrent visit.

    Args:
        venue_id: Venue UUID
        user: Visiting user
        now: Current time (defaults to timezone.now())
        source: Where the visit came from (app, qr, web)
        metadata: Opaque client context stored with the visit

    Returns:
        (visit, created) where created is False for a same-day repeat

    Raises:
        VenueNotFoundError: If venue doesn't exist or isn't visible
    """
    now = now or timezone.now()

    try:
        venue = Venue.objects.searchable().select_for_update().get(id=venue_id)
    except Venue.DoesNotExist:
        raise VenueNotFoundError(f"Venue {venue_id} not found")

    day_start = timezone.make_aware(
        datetime.combine(timezone.localtime(now).date(), time.min)
    )
    day_end = day_start + timedelta(days=1)

    existing = VenueVisit.objects.filter(
        user=user,
        venue=venue,
        visited_at__gte=day_start,
        visited_at__lt=day_end,
    ).first()
    if existing:
        return existing, False

    visit = VenueVisit.objects.create(
        user=user,
        venue=venue,
        visited_at=now,
        source=source,
        metadata=metadata or {},
    )
    Venue.objects.filter(id=venue.id).update(total_visits=F('total_visits') + 1)

    logger.info("venue_visit_tracked", venue_id=str(venue.id), user_id=str(user.id), source=source)
    return visit, True


def get_user_visits(*, user: User) -> QuerySet[VenueVisit]:
    """A user's visit history, newest first. Visits to venues removed since are kept."""
    return (
        VenueVisit.objects
        .filter(user=user)
        .select_related('venue', 'venue__category')
        .order_by('-visited_at', 'id')
    )
