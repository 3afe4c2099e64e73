"""Great-circle distance helpers for washer proximity search"""

import math

EARTH_RADIUS_KM = 6371


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance in kilometres between two lat/lng points.

    a = sin²(Δlat/2) + cos(lat1)·cos(lat2)·sin²(Δlng/2)
    c = 2·atan2(√a, √(1−a))
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = math.sin(d_lat / 2) * math.sin(d_lat / 2) + math.cos(math.radians(lat1)) * math.cos(
        math.radians(lat2)
    ) * math.sin(d_lng / 2) * math.sin(d_lng / 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def round_half_up(value: float, digits: int = 1) -> float:
    """Round with halves going up, not to even"""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def display_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance rounded to one decimal"""
    return round_half_up(haversine_km(lat1, lng1, lat2, lng2))
