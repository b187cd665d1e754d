"""Offer redemption service with concurrency protection."""

import secrets
import time
from datetime import datetime
from django.conf import settings
from django.db import transaction, OperationalError
from django.db.models import F, QuerySet
from django.utils import timezone
from uuid import UUID
from typing import Optional

import structlog

from apps.accounts.models import User
from ..models import Offer, OfferRedemption, RedemptionStatus
from .eligibility import is_redeemable, has_user_quota
from .exceptions import (
    OfferNotFoundError,
    NotRedeemableError,
    UserLimitExceededError,
    ContentionExceededError,
    RedemptionNotFoundError,
    InvalidRedemptionStateError,
    UnauthorizedRedemptionActionError,
)

logger = structlog.get_logger(__name__)

VERIFICATION_CODE_BYTES = 4

# SQLSTATE serialization_failure, deadlock_detected, lock_not_available
CONTENTION_SQLSTATES = ('40001', '40P01', '55P03')
CONTENTION_MESSAGES = (
    'database is locked',
    'database table is locked',
    'could not serialize',
    'deadlock detected',
    'lock timeout',
    'could not obtain lock',
)


def redeem_offer(
    *,
    offer_id: UUID,
    user: User,
    now: Optional[datetime] = None,
    context: Optional[dict] = None,
) -> OfferRedemption:
    """
    Redeem an offer for a user.

    The eligibility check, the redemption insert and the used_count
    increment run in one transaction holding a row lock on the offer, so
    concurrent redemptions of the same offer are serialized and never
    overshoot usage_limit or usage_limit_per_user.

    Lock, deadlock or serialization failures roll the whole transaction
    back and retry it, up to REDEMPTION_MAX_ATTEMPTS times with
    exponential backoff starting at REDEMPTION_RETRY_BACKOFF seconds.
    Any other OperationalError propagates unchanged.

    Args:
        offer_id: Offer UUID
        user: Redeeming user
        now: Redemption time (defaults to timezone.now())
        context: Caller context stored on the redemption
            (e.g. ip_address, user_agent)

    Returns:
        Created OfferRedemption (status pending, fresh verification code)

    Raises:
        OfferNotFoundError: If offer doesn't exist or was deleted
        NotRedeemableError: If the offer fails the offer-level checks
        UserLimitExceededError: If the user's per-offer limit is used up
        ContentionExceededError: If every attempt hit lock contention
    """
    now = now or timezone.now()
    max_attempts = max(1, settings.REDEMPTION_MAX_ATTEMPTS)
    backoff = settings.REDEMPTION_RETRY_BACKOFF
    log = logger.bind(offer_id=str(offer_id), user_id=str(user.id))

    for attempt in range(1, max_attempts + 1):
        try:
            redemption = _redeem_once(offer_id=offer_id, user=user, now=now, context=context or {})
        except OperationalError as e:
            if not _is_contention_error(e):
                raise
            if attempt == max_attempts:
                log.error("redemption_contention_exhausted", attempts=attempt, error=str(e))
                raise ContentionExceededError(
                    f"Offer {offer_id} is busy, please try again"
                ) from e

            delay = backoff * (2 ** (attempt - 1))
            log.warning("redemption_contention_retry", attempt=attempt, delay=delay, error=str(e))
            time.sleep(delay)
            continue
        except (NotRedeemableError, UserLimitExceededError) as e:
            log.info("redemption_rejected", reason=type(e).__name__)
            raise

        log.info(
            "redemption_created",
            redemption_id=str(redemption.id),
            attempt=attempt,
        )
        return redemption


@transaction.atomic
def _redeem_once(*, offer_id: UUID, user: User, now: datetime, context: dict) -> OfferRedemption:
    try:
        offer = (
            Offer.objects
            .select_for_update()
            .get(id=offer_id, deleted_at__isnull=True)
        )
    except Offer.DoesNotExist:
        raise OfferNotFoundError(f"Offer {offer_id} not found")

    if not is_redeemable(offer, now):
        raise NotRedeemableError("This offer is not available for redemption")

    # Counted under the offer lock, so per-user limits are serialized too
    if not has_user_quota(offer, user):
        raise UserLimitExceededError("You have reached the redemption limit for this offer")

    redemption = OfferRedemption.objects.create(
        user=user,
        offer=offer,
        redeemed_at=now,
        verification_code=_new_verification_code(offer),
        status=RedemptionStatus.PENDING,
        metadata=context,
    )
    Offer.objects.filter(id=offer.id).update(used_count=F('used_count') + 1)

    return redemption


def _new_verification_code(offer: Offer) -> str:
    """8 uppercase hex characters, unique among the offer's redemptions."""
    while True:
        code = secrets.token_hex(VERIFICATION_CODE_BYTES).upper()
        if not OfferRedemption.objects.filter(offer=offer, verification_code=code).exists():
            return code


def _is_contention_error(exc: OperationalError) -> bool:
    """True for lock waits, deadlocks and serialization failures."""
    driver_error = exc.__cause__
    sqlstate = getattr(driver_error, 'pgcode', None) or getattr(driver_error, 'sqlstate', None)
    if sqlstate in CONTENTION_SQLSTATES:
        return True

    message = str(exc).lower()
    return any(marker in message for marker in CONTENTION_MESSAGES)


@transaction.atomic
def complete_redemption(*, offer_id: UUID, verification_code: str) -> OfferRedemption:
    """
    Confirm a pending redemption presented at the venue.

    Args:
        offer_id: Offer UUID
        verification_code: Code shown by the customer (case-insensitive)

    Returns:
        The completed OfferRedemption

    Raises:
        RedemptionNotFoundError: If no redemption of this offer has the code
        InvalidRedemptionStateError: If the redemption is not pending
    """
    try:
        redemption = (
            OfferRedemption.objects
            .select_for_update()
            .get(offer_id=offer_id, verification_code=verification_code.strip().upper())
        )
    except OfferRedemption.DoesNotExist:
        raise RedemptionNotFoundError("No redemption found for this verification code")

    if redemption.status != RedemptionStatus.PENDING:
        raise InvalidRedemptionStateError(
            f"Redemption is {redemption.status} and cannot be completed"
        )

    redemption.status = RedemptionStatus.COMPLETED
    redemption.save(update_fields=['status', 'updated_at'])

    logger.info("redemption_completed", redemption_id=str(redemption.id), offer_id=str(offer_id))
    return redemption


@transaction.atomic
def cancel_redemption(*, redemption_id: UUID, user: User) -> OfferRedemption:
    """
    Cancel a redemption.

    The redeeming user may cancel their own pending redemption; the
    offer's business (or staff) may cancel pending or completed ones.
    used_count is not decremented, but cancelled redemptions stop
    counting toward the per-user limit.

    Raises:
        RedemptionNotFoundError: If redemption doesn't exist
        UnauthorizedRedemptionActionError: If user may not cancel it
        InvalidRedemptionStateError: If it is already cancelled, or the
            customer tries to cancel a completed redemption
    """
    try:
        redemption = (
            OfferRedemption.objects
            .select_for_update()
            .select_related('offer__business')
            .get(id=redemption_id)
        )
    except OfferRedemption.DoesNotExist:
        raise RedemptionNotFoundError(f"Redemption {redemption_id} not found")

    is_manager = redemption.offer.business.is_managed_by(user)
    if not is_manager and redemption.user_id != user.id:
        raise UnauthorizedRedemptionActionError("You can only cancel your own redemptions")

    if redemption.status == RedemptionStatus.CANCELLED:
        raise InvalidRedemptionStateError("Redemption is already cancelled")

    if redemption.status == RedemptionStatus.COMPLETED and not is_manager:
        raise InvalidRedemptionStateError("Completed redemptions can only be cancelled by the business")

    previous = redemption.status
    redemption.status = RedemptionStatus.CANCELLED
    redemption.save(update_fields=['status', 'updated_at'])

    logger.info(
        "redemption_cancelled",
        redemption_id=str(redemption.id),
        offer_id=str(redemption.offer_id),
        previous=previous,
    )
    return redemption


def get_user_redemptions(*, user: User, status: Optional[str] = None) -> QuerySet[OfferRedemption]:
    """User's redemptions, newest first."""
    queryset = OfferRedemption.objects.filter(user=user).select_related('offer', 'offer__venue')
    if status:
        queryset = queryset.filter(status=status)
    return queryset.order_by('-redeemed_at')


def get_offer_redemptions(*, offer_id: UUID, status: Optional[str] = None) -> QuerySet[OfferRedemption]:
    """
    Redemptions of one offer, newest first.

    Raises:
        OfferNotFoundError: If offer doesn't exist or was deleted
    """
    if not Offer.objects.alive().filter(id=offer_id).exists():
        raise OfferNotFoundError(f"Offer {offer_id} not found")

    queryset = OfferRedemption.objects.filter(offer_id=offer_id).select_related('user')
    if status:
        queryset = queryset.filter(status=status)
    return queryset.order_by('-redeemed_at')
