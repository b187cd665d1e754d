"""Venue search, proximity filtering, ranking and the category tree."""

from django.conf import settings
from django.core.paginator import Paginator, EmptyPage
from django.db.models import Count, Prefetch, Q, QuerySet
from decimal import Decimal, InvalidOperation
from typing import Optional, Iterable
from uuid import UUID

from ..models import Venue, Category, Emirate, ModerationStatus, PriceRange
from .exceptions import InvalidFilterError
from .geo import haversine_km, is_valid_latitude, is_valid_longitude, bounding_box


MIN_RADIUS_KM = 1
MAX_RADIUS_KM = 50
MIN_RATING = 1
MAX_RATING = 5

SORT_RELEVANCE = 'relevance'
SORT_DISTANCE = 'distance'
SORT_NEWEST = 'newest'

ORDERINGS = {
    SORT_RELEVANCE: ['-is_featured', '-average_rating', '-total_reviews', 'id'],
    'rating': ['-average_rating', 'id'],
    'reviews': ['-total_reviews', 'id'],
    'visits': ['-total_visits', 'id'],
    SORT_NEWEST: ['-created_at', 'id'],
}

SORT_OPTIONS = (*ORDERINGS, SORT_DISTANCE)


def search_venues(
    *,
    search: Optional[str] = None,
    category_id: Optional[UUID] = None,
    subcategory_id: Optional[UUID] = None,
    emirate: Optional[str] = None,
    city: Optional[str] = None,
    price_range: Optional[str] = None,
    amenities: Optional[Iterable[str]] = None,
    women_only: bool = False,
    featured: bool = False,
    min_rating: Optional[float] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    radius_km: Optional[float] = None,
    sort_by: Optional[str] = None,
    page: int = 1,
    per_page: Optional[int] = None,
) -> dict:
    """
    Search, rank and paginate publicly visible venues.

    Only active, approved, non-deleted venues are ever considered; every
    other filter narrows that set further.

    Args:
        search: Text matched against name/description (English and Arabic)
        category_id: Category UUID
        subcategory_id: Subcategory UUID
        emirate: One of the seven emirates
        city: Exact city name
        price_range: '$' to '$$$$'
        amenities: Amenity slugs; the venue must have all of them
        women_only: Only women-only venues
        featured: Only featured venues
        min_rating: Minimum average rating (1-5)
        latitude: Query point latitude, requires longitude
        longitude: Query point longitude, requires latitude
        radius_km: Search radius (1-50 km), defaults to
            VENUE_SEARCH_DEFAULT_RADIUS_KM when a point is given
        sort_by: relevance (default), rating, reviews, visits, newest, distance
        page: 1-based page number
        per_page: Page size, capped by VENUE_SEARCH_MAX_PAGE_SIZE

    Returns:
        Dict with results, page, per_page, total, total_pages, has_more.
        With a location filter every venue carries a ``distance_km``
        attribute.

    Raises:
        InvalidFilterError: If any filter is out of range or malformed
    """
    sort_by = sort_by or SORT_RELEVANCE
    per_page = _validate_page_size(per_page)
    page = _validate_page(page)

    if sort_by not in SORT_OPTIONS:
        raise InvalidFilterError(
            f"Invalid sort option '{sort_by}'. Choose one of: {', '.join(SORT_OPTIONS)}"
        )

    queryset = _apply_filters(
        Venue.objects.searchable(),
        search=search,
        category_id=category_id,
        subcategory_id=subcategory_id,
        emirate=emirate,
        city=city,
        price_range=price_range,
        amenities=amenities,
        women_only=women_only,
        featured=featured,
        min_rating=min_rating,
    )

    location = _validate_location(latitude, longitude, radius_km)

    if sort_by == SORT_DISTANCE:
        # Without a point there is no distance; newest keeps results stable.
        # With one, the stable sort below breaks distance ties the same way.
        ordering = ORDERINGS[SORT_NEWEST]
    else:
        ordering = ORDERINGS[sort_by]
    queryset = queryset.order_by(*ordering)

    if location is not None:
        lat, lng, radius = location
        object_list = _within_radius(queryset, lat, lng, radius)
        if sort_by == SORT_DISTANCE:
            object_list.sort(key=lambda venue: venue.distance_km)
    else:
        object_list = queryset

    paginator = Paginator(object_list, per_page)
    try:
        page_obj = paginator.page(page)
    except EmptyPage:
        raise InvalidFilterError(
            f"Page {page} is out of range (last page is {paginator.num_pages})"
        )

    return {
        'results': list(page_obj.object_list),
        'page': page_obj.number,
        'per_page': per_page,
        'total': paginator.count,
        'total_pages': paginator.num_pages,
        'has_more': page_obj.has_next(),
    }


def nearby_venues(
    *,
    latitude: float,
    longitude: float,
    radius_km: Optional[float] = None,
    limit: int = 20,
) -> list[Venue]:
    """
    Closest visible venues around a point, nearest first.

    Raises:
        InvalidFilterError: If the point, radius or limit is invalid
    """
    if latitude is None or longitude is None:
        raise InvalidFilterError("Latitude and longitude are required")

    return search_venues(
        latitude=latitude,
        longitude=longitude,
        radius_km=radius_km,
        sort_by=SORT_DISTANCE,
        per_page=limit,
    )['results']


def get_featured_venues(*, limit: int = 10) -> QuerySet[Venue]:
    return (
        Venue.objects.searchable()
        .filter(is_featured=True)
        .select_related('business', 'category')
        .order_by('-average_rating', '-total_reviews', 'id')[:limit]
    )


def get_popular_venues(*, limit: int = 10) -> QuerySet[Venue]:
    """Most visited visible venues, rating as tie-break."""
    return (
        Venue.objects.searchable()
        .select_related('business', 'category')
        .order_by('-total_visits', '-average_rating', 'id')[:limit]
    )


def get_category_tree() -> QuerySet[Category]:
    """
    Active top-level categories with their active children.

    Each category carries ``venue_count``: visible venues filed under it
    (as category for top-level ones, as subcategory for children).
    """
    children = Category.objects.filter(is_active=True).annotate(
        venue_count=Count(
            'subcategory_venues',
            filter=_searchable_venues('subcategory_venues'),
            distinct=True,
        )
    )
    return (
        Category.objects
        .filter(is_active=True, parent__isnull=True)
        .annotate(venue_count=Count('venues', filter=_searchable_venues('venues'), distinct=True))
        .prefetch_related(Prefetch('children', queryset=children))
    )


def _searchable_venues(relation: str) -> Q:
    return Q(**{
        f'{relation}__is_active': True,
        f'{relation}__status': ModerationStatus.APPROVED,
        f'{relation}__deleted_at__isnull': True,
    })


def _apply_filters(
    queryset: QuerySet[Venue],
    *,
    search,
    category_id,
    subcategory_id,
    emirate,
    city,
    price_range,
    amenities,
    women_only,
    featured,
    min_rating,
) -> QuerySet[Venue]:
    queryset = queryset.select_related('business', 'category', 'subcategory').prefetch_related('amenities')

    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) |
            Q(description__icontains=search) |
            Q(name_ar__icontains=search) |
            Q(description_ar__icontains=search)
        )

    if category_id:
        queryset = queryset.filter(category_id=_parse_uuid(category_id, 'category_id'))

    if subcategory_id:
        queryset = queryset.filter(subcategory_id=_parse_uuid(subcategory_id, 'subcategory_id'))

    if emirate:
        if emirate not in Emirate.values:
            raise InvalidFilterError(f"Unknown emirate '{emirate}'")
        queryset = queryset.filter(emirate=emirate)

    if city:
        queryset = queryset.filter(city__iexact=city)

    if price_range:
        if price_range not in PriceRange.values:
            raise InvalidFilterError(f"Unknown price range '{price_range}'")
        queryset = queryset.filter(price_range=price_range)

    # One join per amenity: the venue must carry every requested slug
    for slug in amenities or []:
        queryset = queryset.filter(amenities__slug=slug)

    if women_only:
        queryset = queryset.filter(is_women_only=True)

    if featured:
        queryset = queryset.filter(is_featured=True)

    if min_rating is not None:
        rating = _parse_decimal(min_rating, 'min_rating')
        if not (MIN_RATING <= rating <= MAX_RATING):
            raise InvalidFilterError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
        queryset = queryset.filter(average_rating__gte=rating)

    return queryset


def _within_radius(queryset: QuerySet[Venue], latitude: float, longitude: float, radius_km: float) -> list[Venue]:
    """Exact distance check over the bounding-box candidates, order preserved."""
    candidates = queryset.filter(
        latitude__isnull=False,
        longitude__isnull=False,
        **bounding_box(latitude, longitude, radius_km),
    )

    venues = []
    for venue in candidates:
        distance = haversine_km(latitude, longitude, venue.latitude, venue.longitude)
        if distance < radius_km:
            venue.distance_km = round(distance, 3)
            venues.append(venue)
    return venues


def _validate_location(latitude, longitude, radius_km) -> Optional[tuple[float, float, float]]:
    if latitude is None and longitude is None:
        return None

    if latitude is None or longitude is None:
        raise InvalidFilterError("Latitude and longitude must be provided together")

    lat = _parse_float(latitude, 'latitude')
    lng = _parse_float(longitude, 'longitude')

    if not is_valid_latitude(lat):
        raise InvalidFilterError("Latitude must be between -90 and 90")
    if not is_valid_longitude(lng):
        raise InvalidFilterError("Longitude must be between -180 and 180")

    if radius_km is None:
        radius = float(settings.VENUE_SEARCH_DEFAULT_RADIUS_KM)
    else:
        radius = _parse_float(radius_km, 'radius_km')
    if not (MIN_RADIUS_KM <= radius <= MAX_RADIUS_KM):
        raise InvalidFilterError(
            f"Radius must be between {MIN_RADIUS_KM} and {MAX_RADIUS_KM} kilometers"
        )

    return lat, lng, radius


def _validate_page_size(per_page) -> int:
    max_page_size = settings.VENUE_SEARCH_MAX_PAGE_SIZE
    if per_page is None:
        return min(settings.VENUE_SEARCH_DEFAULT_PAGE_SIZE, max_page_size)

    size = _parse_int(per_page, 'per_page')
    if not (1 <= size <= max_page_size):
        raise InvalidFilterError(f"Page size must be between 1 and {max_page_size}")
    return size


def _validate_page(page) -> int:
    number = _parse_int(page, 'page')
    if number < 1:
        raise InvalidFilterError("Page must be 1 or greater")
    return number


def _parse_float(value, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidFilterError(f"{name} must be a number")


def _parse_decimal(value, name: str) -> Decimal:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidFilterError(f"{name} must be a number")
    if not number.is_finite():
        raise InvalidFilterError(f"{name} must be a number")
    return number


def _parse_int(value, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidFilterError(f"{name} must be an integer")


def _parse_uuid(value, name: str) -> UUID:
    try:
        return value if isinstance(value, UUID) else UUID(str(value))
    except ValueError:
        raise InvalidFilterError(f"{name} must be a valid UUID")
