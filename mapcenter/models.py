"""
Data model for MapCenter.

Plain value types shared by the location, geocoding, routing and display
layers. Coordinates are stored as (latitude, longitude) in degrees, the
same order used throughout the package; conversion to the (lon, lat)
order expected by OSRM and GeoJSON happens only at the routing boundary.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple

METERS_PER_DEGREE_LAT = 111_320.0


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def as_tuple(self) -> Tuple[float, float]:
        return self.latitude, self.longitude


@dataclass(frozen=True)
class Annotation:
    """A titled point shown on the map."""

    title: str
    coordinate: Coordinate


@dataclass(frozen=True)
class Placemark:
    """Structured address components returned by a reverse geocode."""

    sub_thoroughfare: Optional[str] = None  # street number
    thoroughfare: Optional[str] = None  # street name
    locality: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


@dataclass(frozen=True)
class Region:
    """A rectangular map viewport given by its centre and degree spans."""

    center: Coordinate
    lat_span_deg: float
    lon_span_deg: float

    @classmethod
    def from_center(cls, center: Coordinate, lat_m: float, lon_m: float) -> "Region":
        """Build a region spanning ``lat_m`` by ``lon_m`` metres around ``center``."""
        lat_span = lat_m / METERS_PER_DEGREE_LAT
        cos_lat = max(math.cos(math.radians(center.latitude)), 1e-6)
        lon_span = lon_m / (METERS_PER_DEGREE_LAT * cos_lat)
        return cls(center=center, lat_span_deg=lat_span, lon_span_deg=min(lon_span, 360.0))

    @classmethod
    def bounding(cls, coords: Iterable[Coordinate]) -> Optional["Region"]:
        """Smallest region containing every coordinate, or ``None`` if empty."""
        coords = list(coords)
        if not coords:
            return None
        lats = [c.latitude for c in coords]
        lons = [c.longitude for c in coords]
        return cls._from_corners(min(lats), min(lons), max(lats), max(lons))

    @classmethod
    def _from_corners(cls, south: float, west: float, north: float, east: float) -> "Region":
        center = Coordinate((south + north) / 2, (west + east) / 2)
        return cls(center=center, lat_span_deg=north - south, lon_span_deg=east - west)

    @property
    def south_west(self) -> Coordinate:
        return Coordinate(
            self.center.latitude - self.lat_span_deg / 2,
            self.center.longitude - self.lon_span_deg / 2,
        )

    @property
    def north_east(self) -> Coordinate:
        return Coordinate(
            self.center.latitude + self.lat_span_deg / 2,
            self.center.longitude + self.lon_span_deg / 2,
        )

    def union(self, other: "Region") -> "Region":
        sw1, ne1 = self.south_west, self.north_east
        sw2, ne2 = other.south_west, other.north_east
        return Region._from_corners(
            min(sw1.latitude, sw2.latitude),
            min(sw1.longitude, sw2.longitude),
            max(ne1.latitude, ne2.latitude),
            max(ne1.longitude, ne2.longitude),
        )


@dataclass
class RouteCandidate:
    """One route returned by the routing provider."""

    path: List[Coordinate]
    distance_m: float = 0.0
    duration_s: float = 0.0
    steps: List[str] = field(default_factory=list)

    def bounding_region(self) -> Optional[Region]:
        return Region.bounding(self.path)


class AuthorizationStatus(Enum):
    NOT_DETERMINED = "not_determined"
    RESTRICTED = "restricted"
    DENIED = "denied"
    AUTHORIZED_ALWAYS = "authorized_always"
    AUTHORIZED_WHEN_IN_USE = "authorized_when_in_use"


class TransportMode(Enum):
    AUTOMOBILE = "driving"

    @property
    def osrm_profile(self) -> str:
        return self.value


class MapStyle(Enum):
    STANDARD = "standard"
    HYBRID = "hybrid"


@dataclass(frozen=True)
class Alert:
    """A blocking message shown to the user."""

    title: str
    message: str


class MapCenterError(Exception):
    """Base class for MapCenter errors."""


class UnexpectedAuthorizationStatus(MapCenterError):
    """Raised for an authorization status outside the known set."""
