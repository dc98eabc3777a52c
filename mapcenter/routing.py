"""
Routing for MapCenter.

This module wraps network calls to OSRM (Open Source Routing Machine) to
compute driving routes between two coordinates, and manages the single
route request the map is allowed to have in flight.

    - ``OSRMRouter``: issues ``/route`` requests on a worker thread and
      returns a cancellable ``RouteHandle``.
    - ``RouteRequestManager``: clears the drawn route, cancels the previous
      request and issues a new one; only the newest request may draw.

Example usage:

    router = OSRMRouter("https://router.project-osrm.org")
    manager = RouteRequestManager(router, display, dispatcher)
    manager.request_route(Coordinate(39.76, -86.15), Coordinate(39.72, -86.03))

The public OSRM demo server is subject to usage limits. Use your own
OSRM server in production for reliability.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

import requests

from mapcenter.dispatch import UIDispatcher
from mapcenter.models import Coordinate, MapCenterError, Region, RouteCandidate, TransportMode

logger = logging.getLogger(__name__)

RouteCompletion = Callable[[Optional[List[RouteCandidate]], Optional[Exception]], None]


class RoutingError(MapCenterError):
    """OSRM answered with something other than a usable route."""


class RouteHandle:
    """A cancellable, in-flight or finished route computation.

    Cancellation is cooperative: the worker may still finish, but the
    completion callback is suppressed once ``cancel`` has been called.
    """

    def __init__(self, source: Coordinate, destination: Coordinate):
        self.source = source
        self.destination = destination
        self.future: Optional[Future] = None
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()
        if self.future is not None:
            self.future.cancel()

    def done(self) -> bool:
        return self.future is not None and self.future.done()


def format_coordinates(coords: Sequence[Coordinate]) -> str:
    """Convert coordinates to OSRM's ``lon,lat;lon,lat`` form."""
    return ";".join(f"{c.longitude},{c.latitude}" for c in coords)


def parse_osrm_routes(data: dict) -> List[RouteCandidate]:
    """Turn an OSRM ``/route`` JSON body into route candidates.

    Raises:
        RoutingError: if OSRM reports anything other than ``Ok``, or the
            body does not have the shape of a ``/route`` response.
    """
    if not isinstance(data, dict):
        raise RoutingError(f"OSRM returned {type(data).__name__} instead of an object")
    if data.get("code") != "Ok":
        raise RoutingError(f"OSRM error: {data.get('message', data.get('code', 'Unknown error'))}")
    try:
        return [_parse_route(route) for route in data.get("routes") or []]
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise RoutingError(f"malformed OSRM route: {exc}") from exc


def _parse_route(route: dict) -> RouteCandidate:
    # GeoJSON geometry is in lon,lat order
    points = (route.get("geometry") or {}).get("coordinates") or []
    path = [Coordinate(float(lat), float(lon)) for lon, lat in points]
    steps = []
    for leg in route.get("legs") or []:
        for step in leg.get("steps") or []:
            maneuver = step.get("maneuver") or {}
            instruction = " ".join(part for part in (maneuver.get("type"), maneuver.get("modifier")) if part)
            name = step.get("name")
            steps.append(f"{instruction} onto {name}" if name else instruction)
    return RouteCandidate(
        path=path,
        distance_m=float(route.get("distance", 0.0)),
        duration_s=float(route.get("duration", 0.0)),
        steps=steps,
    )


class OSRMRouter:
    """Asynchronous OSRM ``/route`` client."""

    def __init__(
        self,
        base_url: str = "https://router.project-osrm.org",
        timeout: int = 30,
        max_workers: int = 4,
        executor: Optional[ThreadPoolExecutor] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.executor = executor or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="routing")
        self.session = session or requests.Session()

    def compute_route(
        self,
        source: Coordinate,
        destination: Coordinate,
        mode: TransportMode,
        allow_alternates: bool,
        completion: RouteCompletion,
    ) -> RouteHandle:
        """Start computing a route and return its handle.

        ``completion(routes, error)`` runs on a worker thread unless the
        handle was cancelled first.
        """
        handle = RouteHandle(source, destination)
        handle.future = self.executor.submit(self._run, handle, mode, allow_alternates, completion)
        return handle

    def fetch_routes(
        self, source: Coordinate, destination: Coordinate, mode: TransportMode, allow_alternates: bool
    ) -> List[RouteCandidate]:
        """Blocking call to OSRM's ``/route`` endpoint."""
        url = f"{self.base_url}/route/v1/{mode.osrm_profile}/{format_coordinates([source, destination])}"
        params = {
            "alternatives": "true" if allow_alternates else "false",
            "overview": "full",
            "geometries": "geojson",
            "steps": "true",
        }
        resp = self.session.get(url, params=params, timeout=self.timeout)
        try:
            data = resp.json()
        except ValueError as exc:
            raise RoutingError(f"OSRM returned non-JSON response (HTTP {resp.status_code})") from exc
        return parse_osrm_routes(data)

    def _run(self, handle: RouteHandle, mode: TransportMode, allow_alternates: bool, completion: RouteCompletion) -> None:
        try:
            routes = self.fetch_routes(handle.source, handle.destination, mode, allow_alternates)
            error = None
        except (requests.RequestException, RoutingError) as exc:
            routes, error = None, exc
        if handle.cancelled:
            logger.debug("suppressing completion of cancelled route request")
            return
        completion(routes, error)


class RouteRequestManager:
    """Owns the one route request whose result may be drawn on the map."""

    def __init__(
        self,
        router,
        display,
        dispatcher: UIDispatcher,
        mode: TransportMode = TransportMode.AUTOMOBILE,
        allow_alternates: bool = True,
    ):
        self.router = router
        self.display = display
        self.dispatcher = dispatcher
        self.mode = mode
        self.allow_alternates = allow_alternates
        self.pending: Optional[RouteHandle] = None

    def request_route(self, source: Coordinate, destination: Coordinate) -> RouteHandle:
        """Replace any previous route with one from ``source`` to ``destination``.

        The caller guarantees ``source`` is a known device position.
        """
        self.display.remove_overlays(list(self.display.overlays))
        self.cancel()
        holder: List[RouteHandle] = []

        def completion(routes, error):
            # holder is read on the UI thread, after request_route returned
            self.dispatcher.post(lambda: self._apply(holder[0], routes, error))

        handle = self.router.compute_route(source, destination, self.mode, self.allow_alternates, completion)
        holder.append(handle)
        self.pending = handle
        logger.info("route requested from %s to %s", source, destination)
        return handle

    def cancel(self) -> None:
        """Cancel and forget the pending request, if any."""
        if self.pending is not None:
            self.pending.cancel()
            self.pending = None

    def _apply(self, handle: RouteHandle, routes: Optional[List[RouteCandidate]], error: Optional[Exception]) -> None:
        if handle is not self.pending or handle.cancelled:
            logger.debug("ignoring result of superseded route request")
            return
        self.pending = None
        if error is not None:
            logger.warning("route request failed: %s", error)
            return
        if not routes:
            logger.info("no route found")
            return
        region: Optional[Region] = None
        for route in routes:
            logger.debug("route %.0f m, steps: %s", route.distance_m, route.steps)
            self.display.add_overlay(route)
            bounds = route.bounding_region()
            if bounds is not None:
                region = bounds if region is None else region.union(bounds)
        if region is not None:
            self.display.set_visible_region(region, animated=True)
