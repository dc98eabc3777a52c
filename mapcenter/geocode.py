"""
Reverse geocoding for MapCenter.

This module turns the map's centre coordinate into a street address. It
provides:

    - ``NominatimReverseGeocoder``: a thin asynchronous wrapper around the
      ``geopy`` Nominatim client. Lookups run on a worker thread and report
      back through a completion callback.
    - ``ReverseGeocodeDebouncer``: decides on every map move whether the
      centre travelled far enough to deserve a new lookup, and publishes the
      formatted address on the UI dispatcher.

Example usage:

    geocoder = NominatimReverseGeocoder(user_agent="mapcenter_app")
    debouncer = ReverseGeocodeDebouncer(geocoder, dispatcher, label.set_text)
    debouncer.on_map_center_changed(Coordinate(39.7684, -86.1581))

Lookups are never retried and failures never reach the user; they are
logged and dropped.
"""

from __future__ import annotations

import itertools
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional

from geopy.exc import GeocoderParseError, GeopyError
from geopy.geocoders import Nominatim
from geopy.location import Location

from mapcenter.dispatch import UIDispatcher
from mapcenter.geo import distance_m
from mapcenter.models import Coordinate, Placemark

logger = logging.getLogger(__name__)

GeocodeCompletion = Callable[[Optional[List[Placemark]], Optional[Exception]], None]

# Nominatim keys that may carry the street name, in order of preference.
_STREET_KEYS = ("road", "pedestrian", "footway", "path", "cycleway")


def format_address(placemark: Placemark) -> str:
    """Format a placemark as ``"<number> <street>"``.

    Missing parts render as empty strings, so a placemark without a
    street number yields a leading space.
    """
    number = placemark.sub_thoroughfare or ""
    street = placemark.thoroughfare or ""
    return f"{number} {street}"


def placemark_from_location(location: Location) -> Placemark:
    """Map a geopy Nominatim ``Location`` onto a ``Placemark``."""
    address = (location.raw or {}).get("address") or {}
    street = next((address[key] for key in _STREET_KEYS if address.get(key)), None)
    locality = address.get("city") or address.get("town") or address.get("village")
    return Placemark(
        sub_thoroughfare=address.get("house_number"),
        thoroughfare=street,
        locality=locality,
        postal_code=address.get("postcode"),
        country=address.get("country"),
    )


class NominatimReverseGeocoder:
    """Asynchronous reverse geocoding through OpenStreetMap's Nominatim."""

    def __init__(
        self,
        user_agent: str = "mapcenter_app",
        timeout: int = 10,
        max_workers: int = 4,
        executor: Optional[ThreadPoolExecutor] = None,
        geolocator: Optional[Nominatim] = None,
    ):
        # A custom user agent is required by Nominatim's usage policy.
        self.geolocator = geolocator or Nominatim(user_agent=user_agent)
        self.timeout = timeout
        self.executor = executor or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="geocode")

    def reverse_geocode(self, coordinate: Coordinate, completion: GeocodeCompletion) -> Future:
        """Look up ``coordinate`` in the background.

        ``completion(placemarks, error)`` is called on the worker thread
        with exactly one of its arguments set.
        """
        return self.executor.submit(self._lookup, coordinate, completion)

    def _lookup(self, coordinate: Coordinate, completion: GeocodeCompletion) -> None:
        try:
            location = self.geolocator.reverse(
                coordinate.as_tuple(), exactly_one=True, addressdetails=True, timeout=self.timeout
            )
        except GeopyError as exc:
            completion(None, exc)
            return
        try:
            placemarks = [placemark_from_location(location)] if location else []
        except (AttributeError, KeyError, TypeError) as exc:
            completion(None, GeocoderParseError(f"malformed Nominatim address: {exc}"))
            return
        completion(placemarks, None)


class ReverseGeocodeDebouncer:
    """Reverse-geocodes the map centre once it moves past a threshold.

    ``previous_center`` is the centre that last triggered a lookup. It is
    replaced as soon as a lookup is issued, not when it completes, so a
    burst of small moves collapses onto the first one that crossed the
    threshold.

    Requests are not cancelled, so by default a slow earlier lookup may
    overwrite the address of a faster later one. With ``drop_stale`` each
    lookup gets a sequence number and completions older than the newest
    published one are discarded.
    """

    def __init__(
        self,
        geocoder,
        dispatcher: UIDispatcher,
        publish: Callable[[str], None],
        threshold_m: float = 50.0,
        drop_stale: bool = False,
    ):
        self.geocoder = geocoder
        self.dispatcher = dispatcher
        self.publish = publish
        self.threshold_m = threshold_m
        self.drop_stale = drop_stale
        self.previous_center: Optional[Coordinate] = None
        self._sequence = itertools.count(1)
        self._last_published = 0

    def seed(self, center: Coordinate) -> None:
        """Set the reference centre without issuing a lookup."""
        self.previous_center = center

    def on_map_center_changed(self, new_center: Coordinate) -> bool:
        """Handle a map move. Returns True when a lookup was issued."""
        if self.previous_center is not None:
            moved = distance_m(new_center, self.previous_center)
            if moved <= self.threshold_m:
                return False
        self.previous_center = new_center
        request_id = next(self._sequence)
        logger.debug("reverse geocoding %s (request %d)", new_center, request_id)
        self.geocoder.reverse_geocode(
            new_center, lambda placemarks, error: self._completed(request_id, placemarks, error)
        )
        return True

    def _completed(self, request_id: int, placemarks: Optional[List[Placemark]], error: Optional[Exception]) -> None:
        if error is not None:
            logger.warning("reverse geocode failed: %s", error)
            return
        if not placemarks:
            return
        self.dispatcher.post(self._apply, request_id, format_address(placemarks[0]))

    def _apply(self, request_id: int, text: str) -> None:
        # Runs on the UI thread, so the sequence check needs no lock.
        if self.drop_stale and request_id < self._last_published:
            logger.debug("dropping stale address from request %d", request_id)
            return
        self._last_published = max(self._last_published, request_id)
        self.publish(text)
