"""Geographic utility functions."""

from __future__ import annotations

from geopy.distance import geodesic

from mapcenter.models import Coordinate


def distance_m(a: Coordinate, b: Coordinate) -> float:
    """Geodesic (WGS-84) distance between two coordinates in meters."""
    return geodesic(a.as_tuple(), b.as_tuple()).meters
