"""Venue CRUD and moderation service."""

from django.db import transaction
from django.utils import timezone
from decimal import Decimal
from uuid import UUID
from typing import Optional, Iterable

import structlog

from ..models import Venue, Business, Category, Amenity, ModerationStatus
from .exceptions import (
    VenueNotFoundError,
    BusinessNotFoundError,
    InvalidCoordinatesError,
    InvalidModerationTransitionError,
)
from .geo import is_valid_latitude, is_valid_longitude

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = (
    'category',
    'subcategory',
    'name',
    'name_ar',
    'description',
    'description_ar',
    'address',
    'city',
    'emirate',
    'price_range',
    'is_women_only',
)


def validate_coordinates(latitude, longitude) -> tuple[Optional[Decimal], Optional[Decimal]]:
    """
    Check a venue location.

    Both values must be in range, or both must be None (no location).

    Returns:
        (latitude, longitude) as Decimals, or (None, None)

    Raises:
        InvalidCoordinatesError: If out of range or only one is given
    """
    if latitude is None and longitude is None:
        return None, None

    if latitude is None or longitude is None:
        raise InvalidCoordinatesError("Latitude and longitude must be set together")

    try:
        lat = Decimal(str(latitude))
        lng = Decimal(str(longitude))
    except ArithmeticError:
        raise InvalidCoordinatesError("Coordinates must be numeric")

    if not lat.is_finite() or not is_valid_latitude(lat):
        raise InvalidCoordinatesError("Latitude must be between -90 and 90")
    if not lng.is_finite() or not is_valid_longitude(lng):
        raise InvalidCoordinatesError("Longitude must be between -180 and 180")

    return lat.quantize(Decimal('0.00000001')), lng.quantize(Decimal('0.00000001'))


@transaction.atomic
def create_venue(
    *,
    business_id: UUID,
    category: Category,
    name: str,
    city: str,
    emirate: str,
    subcategory: Optional[Category] = None,
    name_ar: str = '',
    description: str = '',
    description_ar: str = '',
    address: str = '',
    latitude=None,
    longitude=None,
    price_range: str = '',
    is_women_only: bool = False,
    amenity_slugs: Optional[Iterable[str]] = None,
) -> Venue:
    """
    Create a venue for a business. New venues await moderation.

    Raises:
        BusinessNotFoundError: If business doesn't exist or is inactive
        InvalidCoordinatesError: If the location is invalid
    """
    try:
        business = Business.objects.get(id=business_id, is_active=True)
    except Business.DoesNotExist:
        raise BusinessNotFoundError(f"Business {business_id} not found")

    lat, lng = validate_coordinates(latitude, longitude)

    venue = Venue.objects.create(
        business=business,
        category=category,
        subcategory=subcategory,
        name=name,
        name_ar=name_ar,
        description=description,
        description_ar=description_ar,
        address=address,
        city=city,
        emirate=emirate,
        latitude=lat,
        longitude=lng,
        price_range=price_range,
        is_women_only=is_women_only,
        status=ModerationStatus.PENDING,
    )

    if amenity_slugs:
        venue.amenities.set(Amenity.objects.filter(slug__in=list(amenity_slugs)))

    logger.info("venue_created", venue_id=str(venue.id), business_id=str(business.id))
    return venue


@transaction.atomic
def update_venue(*, venue_id: UUID, data: dict) -> Venue:
    """
    Update a venue's details, location or amenities.

    Fields outside UPDATABLE_FIELDS (status, counters, business) are
    ignored. A partial location is merged with the stored one before
    validation, so latitude alone moves the venue north or south, and
    both set to None clears the location.

    Raises:
        VenueNotFoundError: If venue doesn't exist or was deleted
        InvalidCoordinatesError: If the resulting location is invalid
    """
    try:
        venue = Venue.objects.select_for_update().get(id=venue_id, deleted_at__isnull=True)
    except Venue.DoesNotExist:
        raise VenueNotFoundError(f"Venue {venue_id} not found")

    changed = [field for field in UPDATABLE_FIELDS if field in data]
    for field in changed:
        setattr(venue, field, data[field])

    if 'latitude' in data or 'longitude' in data:
        venue.latitude, venue.longitude = validate_coordinates(
            data.get('latitude', venue.latitude),
            data.get('longitude', venue.longitude),
        )
        changed += ['latitude', 'longitude']

    if changed:
        venue.save(update_fields=changed + ['updated_at'])

    if 'amenities' in data:
        venue.amenities.set(Amenity.objects.filter(slug__in=list(data['amenities'])))
        changed.append('amenities')

    if changed:
        logger.info("venue_updated", venue_id=str(venue_id), fields=changed)

    return venue


def get_venue_by_id(*, venue_id: UUID, include_hidden: bool = False) -> Venue:
    """
    Get venue by ID.

    Args:
        venue_id: Venue UUID
        include_hidden: Also return pending, rejected or inactive venues
            (soft-deleted venues are never returned)

    Raises:
        VenueNotFoundError: If venue doesn't exist or isn't visible
    """
    queryset = Venue.objects.alive() if include_hidden else Venue.objects.searchable()
    try:
        return (
            queryset
            .select_related('business', 'category', 'subcategory')
            .prefetch_related('amenities')
            .get(id=venue_id)
        )
    except Venue.DoesNotExist:
        raise VenueNotFoundError(f"Venue {venue_id} not found")


@transaction.atomic
def soft_delete_venue(*, venue_id: UUID) -> None:
    """Tombstone a venue: deactivate and stamp deleted_at."""
    try:
        venue = Venue.objects.select_for_update().get(id=venue_id, deleted_at__isnull=True)
    except Venue.DoesNotExist:
        raise VenueNotFoundError(f"Venue {venue_id} not found")

    venue.is_active = False
    venue.deleted_at = timezone.now()
    venue.save(update_fields=['is_active', 'deleted_at', 'updated_at'])
    logger.info("venue_deleted", venue_id=str(venue_id))


def approve_venue(*, venue_id: UUID) -> Venue:
    return _moderate_venue(venue_id=venue_id, status=ModerationStatus.APPROVED)


def reject_venue(*, venue_id: UUID) -> Venue:
    return _moderate_venue(venue_id=venue_id, status=ModerationStatus.REJECTED)


@transaction.atomic
def _moderate_venue(*, venue_id: UUID, status: str) -> Venue:
    try:
        venue = Venue.objects.select_for_update().get(id=venue_id, deleted_at__isnull=True)
    except Venue.DoesNotExist:
        raise VenueNotFoundError(f"Venue {venue_id} not found")

    if venue.status == status:
        raise InvalidModerationTransitionError(f"Venue is already {status}")

    previous = venue.status
    venue.status = status
    venue.save(update_fields=['status', 'updated_at'])

    logger.info("venue_moderated", venue_id=str(venue_id), previous=previous, status=status)
    return venue
