"""Offer CRUD, moderation and QR code service."""

import base64
from datetime import datetime
from decimal import Decimal
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone
from io import BytesIO
from uuid import UUID
from typing import Optional

import qrcode
import structlog

from apps.venues.models import Business, Venue, ModerationStatus
from ..models import Offer, DiscountType
from .exceptions import (
    OfferNotFoundError,
    InvalidOfferError,
    InvalidModerationTransitionError,
)

logger = structlog.get_logger(__name__)

# Fields a business may change after creation
UPDATABLE_FIELDS = (
    'title',
    'title_ar',
    'description',
    'description_ar',
    'discount_type',
    'discount_value',
    'original_price',
    'discounted_price',
    'terms_conditions',
    'terms_conditions_ar',
    'start_date',
    'end_date',
    'usage_limit',
    'usage_limit_per_user',
    'is_active',
    'is_featured',
    'priority',
    'metadata',
)


def _validate_offer_fields(
    *,
    start_date: datetime,
    end_date: datetime,
    discount_type: str,
    discount_value: Optional[Decimal],
    original_price: Optional[Decimal],
    discounted_price: Optional[Decimal],
) -> None:
    if end_date <= start_date:
        raise InvalidOfferError("End date must be after start date")

    if discount_type and discount_value is None:
        raise InvalidOfferError("Discount value is required when a discount type is set")

    if discount_type == DiscountType.PERCENTAGE and discount_value is not None and discount_value > 100:
        raise InvalidOfferError("Percentage discount cannot exceed 100")

    if original_price is not None and discounted_price is not None and discounted_price > original_price:
        raise InvalidOfferError("Discounted price cannot exceed original price")


@transaction.atomic
def create_offer(
    *,
    business_id: UUID,
    title: str,
    description: str,
    type: str,
    start_date: datetime,
    end_date: datetime,
    venue_id: Optional[UUID] = None,
    title_ar: str = '',
    description_ar: str = '',
    discount_type: str = '',
    discount_value: Optional[Decimal] = None,
    original_price: Optional[Decimal] = None,
    discounted_price: Optional[Decimal] = None,
    terms_conditions: str = '',
    terms_conditions_ar: str = '',
    usage_limit: Optional[int] = None,
    usage_limit_per_user: Optional[int] = None,
    is_featured: bool = False,
    priority: int = 0,
    metadata: Optional[dict] = None,
) -> Offer:
    """
    Create an offer for a business. New offers await moderation.

    Args:
        business_id: Owning business UUID
        venue_id: Optional venue the offer is limited to; must belong
            to the same business

    Returns:
        Created Offer with status pending and used_count 0

    Raises:
        InvalidOfferError: If business/venue don't match or data is inconsistent
    """
    try:
        business = Business.objects.get(id=business_id, is_active=True)
    except Business.DoesNotExist:
        raise InvalidOfferError(f"Business {business_id} not found")

    venue = None
    if venue_id:
        try:
            venue = Venue.objects.alive().get(id=venue_id)
        except Venue.DoesNotExist:
            raise InvalidOfferError(f"Venue {venue_id} not found")
        if venue.business_id != business.id:
            raise InvalidOfferError("Venue does not belong to this business")

    _validate_offer_fields(
        start_date=start_date,
        end_date=end_date,
        discount_type=discount_type,
        discount_value=discount_value,
        original_price=original_price,
        discounted_price=discounted_price,
    )

    offer = Offer.objects.create(
        business=business,
        venue=venue,
        title=title,
        title_ar=title_ar,
        description=description,
        description_ar=description_ar,
        type=type,
        discount_type=discount_type,
        discount_value=discount_value,
        original_price=original_price,
        discounted_price=discounted_price,
        terms_conditions=terms_conditions,
        terms_conditions_ar=terms_conditions_ar,
        start_date=start_date,
        end_date=end_date,
        usage_limit=usage_limit,
        usage_limit_per_user=usage_limit_per_user,
        is_featured=is_featured,
        priority=priority,
        metadata=metadata or {},
        status=ModerationStatus.PENDING,
    )

    logger.info("offer_created", offer_id=str(offer.id), business_id=str(business.id))
    return offer


@transaction.atomic
def update_offer(*, offer_id: UUID, data: dict) -> Offer:
    """
    Update an offer.

    Only fields in UPDATABLE_FIELDS are applied; anything else in `data`
    (status, used_count, business...) is ignored.

    Raises:
        OfferNotFoundError: If offer doesn't exist or was deleted
        InvalidOfferError: If the result would be inconsistent, including a
            usage_limit below the current used_count
    """
    try:
        offer = Offer.objects.select_for_update().get(id=offer_id, deleted_at__isnull=True)
    except Offer.DoesNotExist:
        raise OfferNotFoundError(f"Offer {offer_id} not found")

    changed = [field for field in UPDATABLE_FIELDS if field in data]
    for field in changed:
        setattr(offer, field, data[field])

    if offer.usage_limit is not None and offer.usage_limit < offer.used_count:
        raise InvalidOfferError(
            f"Usage limit cannot be lower than redemptions so far ({offer.used_count})"
        )

    _validate_offer_fields(
        start_date=offer.start_date,
        end_date=offer.end_date,
        discount_type=offer.discount_type,
        discount_value=offer.discount_value,
        original_price=offer.original_price,
        discounted_price=offer.discounted_price,
    )

    if changed:
        offer.save(update_fields=changed + ['updated_at'])
        logger.info("offer_updated", offer_id=str(offer_id), fields=changed)

    return offer


def get_offer_by_id(*, offer_id: UUID, include_hidden: bool = False) -> Offer:
    """
    Get offer by ID.

    Args:
        offer_id: Offer UUID
        include_hidden: Also return pending, rejected or inactive offers

    Raises:
        OfferNotFoundError: If offer doesn't exist or isn't visible
    """
    queryset = Offer.objects.alive()
    if not include_hidden:
        queryset = queryset.filter(is_active=True, status=ModerationStatus.APPROVED)
    try:
        return queryset.select_related('business', 'venue').get(id=offer_id)
    except Offer.DoesNotExist:
        raise OfferNotFoundError(f"Offer {offer_id} not found")


@transaction.atomic
def soft_delete_offer(*, offer_id: UUID) -> None:
    """Tombstone an offer. Redemptions are kept."""
    try:
        offer = Offer.objects.select_for_update().get(id=offer_id, deleted_at__isnull=True)
    except Offer.DoesNotExist:
        raise OfferNotFoundError(f"Offer {offer_id} not found")

    offer.is_active = False
    offer.deleted_at = timezone.now()
    offer.save(update_fields=['is_active', 'deleted_at', 'updated_at'])
    logger.info("offer_deleted", offer_id=str(offer_id))


def approve_offer(*, offer_id: UUID) -> Offer:
    return _moderate_offer(offer_id=offer_id, status=ModerationStatus.APPROVED)


def reject_offer(*, offer_id: UUID) -> Offer:
    return _moderate_offer(offer_id=offer_id, status=ModerationStatus.REJECTED)


@transaction.atomic
def _moderate_offer(*, offer_id: UUID, status: str) -> Offer:
    try:
        offer = Offer.objects.select_for_update().get(id=offer_id, deleted_at__isnull=True)
    except Offer.DoesNotExist:
        raise OfferNotFoundError(f"Offer {offer_id} not found")

    if offer.status == status:
        raise InvalidModerationTransitionError(f"Offer is already {status}")

    previous = offer.status
    offer.status = status
    offer.save(update_fields=['status', 'updated_at'])

    logger.info("offer_moderated", offer_id=str(offer_id), previous=previous, status=status)
    return offer


def get_redeemable_offers(
    *,
    now: Optional[datetime] = None,
    venue_id: Optional[UUID] = None,
    business_id: Optional[UUID] = None,
    featured: Optional[bool] = None,
) -> QuerySet[Offer]:
    """
    Offers that pass every offer-level redemption check at `now`.

    Ordered by priority, then newest. Per-user limits are not applied;
    use can_user_redeem for a specific user.
    """
    now = now or timezone.now()
    queryset = Offer.objects.redeemable(now).select_related('business', 'venue')

    if venue_id:
        queryset = queryset.filter(venue_id=venue_id)
    if business_id:
        queryset = queryset.filter(business_id=business_id)
    if featured is not None:
        queryset = queryset.filter(is_featured=featured)

    return queryset.order_by('-priority', '-created_at')


def build_redeem_path(offer: Offer) -> str:
    return f"/api/offers/{offer.id}/redeem/"


@transaction.atomic
def generate_offer_qr_code(*, offer_id: UUID) -> str:
    """
    Render a QR code pointing at the offer's redeem endpoint.

    The PNG is stored base64-encoded on ``offer.qr_code`` and returned.
    Error correction level M is used, as for printed material.

    Raises:
        OfferNotFoundError: If offer doesn't exist or was deleted
    """
    try:
        offer = Offer.objects.select_for_update().get(id=offer_id, deleted_at__isnull=True)
    except Offer.DoesNotExist:
        raise OfferNotFoundError(f"Offer {offer_id} not found")

    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(build_redeem_path(offer))
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buffer = BytesIO()
    img.save(buffer, format='PNG')
    offer.qr_code = base64.b64encode(buffer.getvalue()).decode('ascii')
    offer.save(update_fields=['qr_code', 'updated_at'])

    logger.info("offer_qr_generated", offer_id=str(offer_id))
    return offer.qr_code
