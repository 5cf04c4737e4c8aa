# carewatch/Services/distance.py
"""
Great-circle distance helpers shared by geofence evaluation and trip
aggregation.
"""

from math import radians, sin, cos, sqrt, atan2

EARTH_RADIUS_M = 6371000
"""Mean Earth radius in meters (spherical approximation)."""


def calculate_haversine_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float
) -> float:
    """
    Distance between two WGS-84 points using the haversine formula.

    Formula:
        a = sin²(Δlat/2) + cos(lat1) * cos(lat2) * sin²(Δlon/2)
        c = 2 * atan2(√a, √(1−a))
        d = R * c

    Returns:
        float: Distance in meters

    Examples:
        >>> round(calculate_haversine_distance(0.0, 0.0, 0.0, 1.0))
        111195
        >>> calculate_haversine_distance(10.5, -74.8, 10.5, -74.8)
        0.0

    Notes:
        - Assumes a perfect sphere (R = 6371 km)
        - Not geodesic-exact; error is that of the spherical model
    """
    lat1_rad = radians(lat1)
    lat2_rad = radians(lat2)
    delta_lat = radians(lat2 - lat1)
    delta_lon = radians(lon2 - lon1)

    a = sin(delta_lat / 2) ** 2 + cos(lat1_rad) * cos(lat2_rad) * sin(delta_lon / 2) ** 2
    # Rounding can push a slightly above 1 for antipodal points
    a = min(1.0, a)
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_M * c


def calculate_haversine_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    return calculate_haversine_distance(lat1, lon1, lat2, lon2) / 1000.0
