from __future__ import annotations

from math import atan2, cos, radians, sin, sqrt

from ..core.constants import EARTH_RADIUS_KM


def haversine_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance on a spherical earth, in kilometres."""

    phi1, phi2 = radians(float(lat1)), radians(float(lat2))
    d_phi = radians(float(lat2) - float(lat1))
    d_lambda = radians(float(lon2) - float(lon1))
    a = sin(d_phi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_KM * 2 * atan2(sqrt(a), sqrt(1 - a))


def within_radius(lat: float, lon: float, center_lat: float, center_lon: float, radius_meters: float) -> tuple[bool, float]:
    """Return ``(inside, distance_km)`` for a point against a circular fence."""

    distance_km = haversine_distance_km(lat, lon, center_lat, center_lon)
    return distance_km <= float(radius_meters) / 1000, distance_km
