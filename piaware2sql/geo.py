"""
Great-circle distance helpers.
"""

import math

EARTH_RADIUS_KM = 6372.8  # Earth radius in km
KM_TO_MILES = 0.62137119


def distance_miles(
    lat1: float, lat2: float,
    lon1: float, lon2: float,
) -> float:
    """
    Calculate great-circle distance between two points in miles.

    Uses the Haversine formula. Note the argument order: both latitudes
    first, then both longitudes. No range validation is done here; out of
    range input simply produces a meaningless number.
    """
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) *
        math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.asin(math.sqrt(a))

    return EARTH_RADIUS_KM * c * KM_TO_MILES
