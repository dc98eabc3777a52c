"""
Wiring of the single map screen.

``MapCoordinator`` connects the location tracker, the reverse-geocode
debouncer and the route request manager to a map display, and holds
the few pieces of UI state the screen shows besides the map: the
address label, the colour of the hybrid switch label and any alerts.
UI code calls the ``on_*``/action methods and then
``process_ui_events`` to apply results delivered by the providers.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from mapcenter.annotations import ANNOTATION_DATA, load_annotations
from mapcenter.config import CONFIG
from mapcenter.dispatch import UIDispatcher
from mapcenter.geocode import ReverseGeocodeDebouncer
from mapcenter.location import LocationProvider, LocationTracker
from mapcenter.models import Alert, Coordinate, MapStyle, TransportMode
from mapcenter.routing import RouteHandle, RouteRequestManager

logger = logging.getLogger(__name__)


class MapCoordinator:
    def __init__(
        self,
        display,
        location_provider: LocationProvider,
        geocoder,
        router,
        dispatcher: Optional[UIDispatcher] = None,
        config: Optional[dict] = None,
        annotation_data=ANNOTATION_DATA,
    ):
        self.config = config or dict(CONFIG)
        self.display = display
        self.dispatcher = dispatcher or UIDispatcher()
        self.annotation_data = annotation_data
        self.address_text = ""
        self.hybrid_label_color = "black"
        self.alerts: List[Alert] = []

        self.tracker = LocationTracker(
            location_provider,
            display,
            self.present_alert,
            region_meters=self.config["region_meters"],
            on_tracking_started=self._tracking_started,
        )
        self.debouncer = ReverseGeocodeDebouncer(
            geocoder,
            self.dispatcher,
            self._set_address,
            threshold_m=self.config["geocode_threshold_m"],
        )
        self.routes = RouteRequestManager(
            router,
            display,
            self.dispatcher,
            mode=TransportMode.AUTOMOBILE,
            allow_alternates=self.config["allow_alternates"],
        )
        location_provider.subscribe(on_position_update=self._position_updated)

    def start(self) -> None:
        """Run the screen's start-up: location checks, then annotations."""
        self.tracker.check_location_services()
        self.display.add_annotations(load_annotations(self.annotation_data))

    def present_alert(self, alert: Alert) -> None:
        logger.info("alert: %s", alert.title)
        self.alerts.append(alert)

    def dismiss_alerts(self) -> None:
        self.alerts = []

    def on_region_changed(self) -> bool:
        """Call after the user moved the map; may start an address lookup."""
        return self.debouncer.on_map_center_changed(self.display.center_coordinate)

    def get_directions(self) -> Optional[RouteHandle]:
        """Route from the device position to the map centre."""
        source = self.tracker.current_position()
        if source is None:
            logger.info("no user location; not requesting directions")
            return None
        return self.routes.request_route(source, self.display.center_coordinate)

    def set_hybrid(self, on: bool) -> None:
        self.display.map_style = MapStyle.HYBRID if on else MapStyle.STANDARD
        self.hybrid_label_color = "white" if on else "black"

    def process_ui_events(self) -> int:
        return self.dispatcher.drain()

    def _tracking_started(self) -> None:
        self.display.user_location = self.tracker.current_position()
        self.debouncer.seed(self.display.center_coordinate)

    def _position_updated(self, position: Coordinate) -> None:
        self.dispatcher.post(setattr, self.display, "user_location", position)

    def _set_address(self, text: str) -> None:
        self.address_text = text
