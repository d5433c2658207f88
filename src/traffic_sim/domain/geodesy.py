# domain/geodesy.py
import math
from collections.abc import Sequence

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters between two lat/lng points."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_m(a, b) -> float:
    """Distance between two objects exposing .lat/.lng (LatLng, TrafficNode)."""
    return haversine_m(a.lat, a.lng, b.lat, b.lng)


def polyline_length_m(points: Sequence[tuple[float, float]]) -> float:
    total = 0.0
    for (lat1, lng1), (lat2, lng2) in zip(points, points[1:]):
        total += haversine_m(lat1, lng1, lat2, lng2)
    return total
