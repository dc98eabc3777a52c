"""Location access and authorization handling."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from mapcenter.models import Alert, AuthorizationStatus, Coordinate, Region, UnexpectedAuthorizationStatus

logger = logging.getLogger(__name__)

SERVICES_DISABLED_ALERT = Alert("Services Disabled", "You should turn on this service")
ACCESS_DENIED_ALERT = Alert(
    "Access Denied",
    "To have this functionality you should enable it in the settings configuration",
)


class LocationProvider(ABC):
    """Interface of a location-services provider.

    ``SimulatedLocationProvider`` is the implementation used by the app
    and the tests. Subclasses deliver events by calling
    ``_emit_authorization`` and ``_emit_position``; listeners register
    through ``subscribe``.
    """

    def __init__(self):
        self._authorization_listeners: List[Callable[[AuthorizationStatus], None]] = []
        self._position_listeners: List[Callable[[Coordinate], None]] = []

    @abstractmethod
    def services_enabled(self) -> bool:
        """Whether location services are switched on device-wide."""

    @abstractmethod
    def authorization_status(self) -> AuthorizationStatus:
        """The app's current location permission."""

    @abstractmethod
    def request_authorization(self) -> None:
        """Ask the user for when-in-use permission."""

    @abstractmethod
    def start_updating(self) -> None:
        """Begin delivering position updates to subscribers."""

    @abstractmethod
    def current_position(self) -> Optional[Coordinate]:
        """The last known device position, or ``None`` if unavailable."""

    def subscribe(
        self,
        on_authorization_changed: Optional[Callable[[AuthorizationStatus], None]] = None,
        on_position_update: Optional[Callable[[Coordinate], None]] = None,
    ) -> None:
        if on_authorization_changed is not None:
            self._authorization_listeners.append(on_authorization_changed)
        if on_position_update is not None:
            self._position_listeners.append(on_position_update)

    def _emit_authorization(self, status: AuthorizationStatus) -> None:
        for listener in list(self._authorization_listeners):
            listener(status)

    def _emit_position(self, position: Coordinate) -> None:
        for listener in list(self._position_listeners):
            listener(position)


class SimulatedLocationProvider(LocationProvider):
    """In-process provider driven by the UI or by tests.

    ``request_authorization`` only records the request; the user's answer
    is given later through ``set_authorization``.
    """

    def __init__(
        self,
        position: Optional[Coordinate] = None,
        status: AuthorizationStatus = AuthorizationStatus.NOT_DETERMINED,
        enabled: bool = True,
    ):
        super().__init__()
        self.enabled = enabled
        self.status = status
        self.position = position
        self.updating = False
        self.authorization_requests = 0

    def services_enabled(self) -> bool:
        return self.enabled

    def authorization_status(self) -> AuthorizationStatus:
        return self.status

    def request_authorization(self) -> None:
        self.authorization_requests += 1

    def start_updating(self) -> None:
        self.updating = True

    def current_position(self) -> Optional[Coordinate]:
        if self.status not in (AuthorizationStatus.AUTHORIZED_WHEN_IN_USE, AuthorizationStatus.AUTHORIZED_ALWAYS):
            return None
        return self.position

    def set_authorization(self, status: AuthorizationStatus) -> None:
        if status == self.status:
            return
        self.status = status
        self._emit_authorization(status)

    def move_to(self, position: Coordinate) -> None:
        self.position = position
        if self.updating:
            self._emit_position(position)


class LocationTracker:
    """Reacts to authorization changes and exposes the device position.

    Side effects of each authorization state are applied once per entry
    into that state: re-reporting the same status does not ask for
    permission or show the denied alert a second time.
    """

    def __init__(
        self,
        provider: LocationProvider,
        display,
        present_alert: Callable[[Alert], None],
        region_meters: float = 10000.0,
        on_tracking_started: Optional[Callable[[], None]] = None,
    ):
        self.provider = provider
        self.display = display
        self.present_alert = present_alert
        self.region_meters = region_meters
        self.on_tracking_started = on_tracking_started
        self.state: Optional[AuthorizationStatus] = None
        self.tracking = False
        self._subscribed = False

    def current_position(self) -> Optional[Coordinate]:
        return self.provider.current_position()

    def check_location_services(self) -> bool:
        """Start authorization handling, or alert if services are off."""
        if not self.provider.services_enabled():
            logger.warning("location services disabled")
            self.present_alert(SERVICES_DISABLED_ALERT)
            return False
        if not self._subscribed:
            self.provider.subscribe(on_authorization_changed=self.on_authorization_changed)
            self._subscribed = True
        self.check_authorization()
        return True

    def check_authorization(self) -> None:
        self.on_authorization_changed(self.provider.authorization_status())

    def on_authorization_changed(self, status: AuthorizationStatus) -> None:
        if not isinstance(status, AuthorizationStatus):
            raise UnexpectedAuthorizationStatus(f"unknown authorization status: {status!r}")
        entering = status != self.state
        self.state = status
        if not entering:
            return
        logger.info("location authorization: %s", status.value)
        if status == AuthorizationStatus.NOT_DETERMINED:
            self.provider.request_authorization()
        elif status in (AuthorizationStatus.AUTHORIZED_WHEN_IN_USE, AuthorizationStatus.AUTHORIZED_ALWAYS):
            self.start_tracking()
        elif status == AuthorizationStatus.DENIED:
            self.present_alert(ACCESS_DENIED_ALERT)
        elif status == AuthorizationStatus.RESTRICTED:
            pass

    def start_tracking(self) -> None:
        self.display.set_center_tracking(True)
        self.center_on_user()
        if not self.tracking:
            self.provider.start_updating()
            self.tracking = True
        if self.on_tracking_started is not None:
            self.on_tracking_started()

    def center_on_user(self) -> None:
        position = self.provider.current_position()
        if position is None:
            return
        region = Region.from_center(position, self.region_meters, self.region_meters)
        self.display.set_visible_region(region, animated=True)
