"""Services for venue business logic."""

from .exceptions import (
    VenuesServiceError,
    VenueNotFoundError,
    BusinessNotFoundError,
    InvalidFilterError,
    InvalidCoordinatesError,
    InvalidModerationTransitionError,
)
from .geo import (
    EARTH_RADIUS_KM,
    haversine_km,
    bounding_box,
)
from .venue_search import (
    search_venues,
    nearby_venues,
    get_featured_venues,
    get_popular_venues,
    get_category_tree,
    SORT_OPTIONS,
    MIN_RADIUS_KM,
    MAX_RADIUS_KM,
)
from .venue_management import (
    validate_coordinates,
    create_venue,
    update_venue,
    get_venue_by_id,
    soft_delete_venue,
    approve_venue,
    reject_venue,
)
from .visit_tracking import (
    track_visit,
    get_user_visits,
)
from .favorites import (
    toggle_favorite,
    is_favorite,
    get_user_favorites,
)
from .rating_aggregation import (
    update_venue_rating,
)

__all__ = [
    # Exceptions
    'VenuesServiceError',
    'VenueNotFoundError',
    'BusinessNotFoundError',
    'InvalidFilterError',
    'InvalidCoordinatesError',
    'InvalidModerationTransitionError',
    # Geo
    'EARTH_RADIUS_KM',
    'haversine_km',
    'bounding_box',
    # Venue Search
    'search_venues',
    'nearby_venues',
    'get_featured_venues',
    'get_popular_venues',
    'get_category_tree',
    'SORT_OPTIONS',
    'MIN_RADIUS_KM',
    'MAX_RADIUS_KM',
    # Venue Management
    'validate_coordinates',
    'create_venue',
    'update_venue',
    'get_venue_by_id',
    'soft_delete_venue',
    'approve_venue',
    'reject_venue',
    # Visit Tracking
    'track_visit',
    'get_user_visits',
    # Favorites
    'toggle_favorite',
    'is_favorite',
    'get_user_favorites',
    # Rating Aggregation
    'update_venue_rating',
]
