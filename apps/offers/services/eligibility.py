"""Offer eligibility rules.

Pure checks over an already loaded offer. ``redeem_offer`` re-runs them
while holding the offer row lock, so a positive answer here is advisory
until the redemption is committed.
"""

from datetime import datetime
from django.utils import timezone
from typing import Optional

from apps.accounts.models import User
from apps.venues.models import ModerationStatus
from ..models import Offer, OfferRedemption, RedemptionStatus


def is_redeemable(offer: Offer, now: Optional[datetime] = None) -> bool:
    """
    Whether the offer itself can be redeemed at `now`.

    True only when the offer is active, approved, inside its
    [start_date, end_date] window (both ends inclusive) and, if it has
    a usage limit, not yet used up. A usage limit of 0 means closed.
    """
    now = now or timezone.now()

    if not offer.is_active:
        return False
    if offer.status != ModerationStatus.APPROVED:
        return False
    if not (offer.start_date <= now <= offer.end_date):
        return False
    if offer.usage_limit is not None and offer.used_count >= offer.usage_limit:
        return False
    return True


def count_user_redemptions(*, offer: Offer, user: User) -> int:
    """Redemptions of the offer by the user that still count toward the per-user limit."""
    return (
        OfferRedemption.objects
        .filter(offer=offer, user=user)
        .exclude(status=RedemptionStatus.CANCELLED)
        .count()
    )


def has_user_quota(offer: Offer, user: User) -> bool:
    if offer.usage_limit_per_user is None:
        return True
    return count_user_redemptions(offer=offer, user=user) < offer.usage_limit_per_user


def can_user_redeem(offer: Offer, user: User, now: Optional[datetime] = None) -> bool:
    """
    Whether this user may redeem the offer at `now`.

    Offer-level checks come first; the per-user limit is only consulted
    for an otherwise redeemable offer. A per-user limit of 0 closes the
    offer for everyone.
    """
    if not is_redeemable(offer, now):
        return False
    return has_user_quota(offer, user)
