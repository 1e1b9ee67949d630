from __future__ import annotations
from dataclasses import dataclass
from math import atan2, cos, radians, sin, sqrt

"""
Geospatial helpers.

A tiny spherical geometry layer: shelter filtering only needs great-circle distances,
so we avoid heavier GIS dependencies.
"""

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees.

    No range checks here: NaN values propagate through `distance_km` and callers are
    responsible for sanitizing input (see `sheltermap.catalog.loader`).
    """

    lat: float
    lng: float


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Compute great-circle (haversine) distance in kilometers between two points."""
    d_lat = radians(b.lat - a.lat)
    d_lng = radians(b.lng - a.lng)

    h = sin(d_lat / 2) ** 2 + cos(radians(a.lat)) * cos(radians(b.lat)) * sin(d_lng / 2) ** 2
    if h > 1:
        # Rounding can push antipodal inputs just past 1.
        h = 1.0
    return 2 * EARTH_RADIUS_KM * atan2(sqrt(h), sqrt(1 - h))


def is_within_radius(origin: Coordinate, point: Coordinate, radius_km: float) -> bool:
    """True when `point` lies on or inside the circle of `radius_km` around `origin`."""
    return distance_km(origin, point) <= radius_km
