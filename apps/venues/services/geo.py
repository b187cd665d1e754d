"""Great-circle distance helpers, independent of any query language."""

import math
from decimal import Decimal
from typing import Optional, Union

EARTH_RADIUS_KM = 6371.0

# Widens the pre-filter box; the exact distance check decides membership
BOX_PADDING = 1.01

Number = Union[int, float, Decimal]


def haversine_km(lat1: Number, lng1: Number, lat2: Number, lng2: Number) -> float:
    """
    Distance in kilometres between two latitude/longitude points.

    Spherical law of cosines on a 6371 km sphere:

        6371 * acos(cos(lat1) * cos(lat2) * cos(lng2 - lng1)
                    + sin(lat1) * sin(lat2))

    The cosine term is clamped to [-1, 1] so that identical points,
    where rounding can push it slightly above 1, give 0 instead of
    a math domain error.
    """
    phi1 = math.radians(float(lat1))
    phi2 = math.radians(float(lat2))
    delta_lambda = math.radians(float(lng2)) - math.radians(float(lng1))

    cosine = (
        math.cos(phi1) * math.cos(phi2) * math.cos(delta_lambda)
        + math.sin(phi1) * math.sin(phi2)
    )
    cosine = max(-1.0, min(1.0, cosine))
    return EARTH_RADIUS_KM * math.acos(cosine)


def is_valid_latitude(value: Optional[Number]) -> bool:
    return value is not None and -90 <= float(value) <= 90


def is_valid_longitude(value: Optional[Number]) -> bool:
    return value is not None and -180 <= float(value) <= 180


def bounding_box(latitude: float, longitude: float, radius_km: float) -> dict:
    """
    Lookup kwargs for a lat/lng box that contains the search circle.

    Only used to narrow the database scan before the exact distance check.
    The longitude half-width is the circle's widest point,
    asin(sin(d) / cos(lat)) for an angular radius d. Longitude bounds are
    dropped when the circle reaches a pole or would wrap around the
    antimeridian.
    """
    angular_radius = radius_km / EARTH_RADIUS_KM
    lat_delta = math.degrees(angular_radius) * BOX_PADDING
    lookups = {
        'latitude__gte': Decimal(str(round(latitude - lat_delta, 8))),
        'latitude__lte': Decimal(str(round(latitude + lat_delta, 8))),
    }

    if abs(latitude) + lat_delta >= 90:
        return lookups

    ratio = math.sin(angular_radius) / math.cos(math.radians(latitude))
    if ratio >= 1:
        return lookups

    lng_delta = math.degrees(math.asin(ratio)) * BOX_PADDING
    min_lng = longitude - lng_delta
    max_lng = longitude + lng_delta
    if min_lng < -180 or max_lng > 180:
        return lookups

    lookups['longitude__gte'] = Decimal(str(round(min_lng, 8)))
    lookups['longitude__lte'] = Decimal(str(round(max_lng, 8)))
    return lookups
