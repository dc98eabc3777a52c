"""
Streamlit application for MapCenter.

This script defines the single map screen: an interactive map whose
centre is reverse-geocoded into a street address, a fixed set of
annotations, a "Get directions" button routing from the device position
to the map centre, and a switch between the standard and hybrid map
styles. A browser has no device location to offer Streamlit, so the
sidebar simulates the location provider (position and permission).

To run this app locally for development, install the package and
execute:

    streamlit run mapcenter/app.py

Provider settings (``osrm_base_url``, ``nominatim_user_agent`` ...) can
be overridden in ``.streamlit/secrets.toml``.
"""

from __future__ import annotations

import logging
from concurrent.futures import wait

import streamlit as st
from streamlit_folium import st_folium

from mapcenter.annotations import ANNOTATION_DATA
from mapcenter.config import load_config
from mapcenter.coordinator import MapCoordinator
from mapcenter.geocode import NominatimReverseGeocoder
from mapcenter.location import SimulatedLocationProvider
from mapcenter.models import AuthorizationStatus, Coordinate
from mapcenter.routing import OSRMRouter
from mapcenter.visualisation import FoliumMapDisplay

logger = logging.getLogger(__name__)

# Brookside Park, Indianapolis: inside the annotated area
DEFAULT_POSITION = Coordinate(39.7684, -86.1581)
STATUS_LABELS = {
    "Not determined": AuthorizationStatus.NOT_DETERMINED,
    "When in use": AuthorizationStatus.AUTHORIZED_WHEN_IN_USE,
    "Always": AuthorizationStatus.AUTHORIZED_ALWAYS,
    "Denied": AuthorizationStatus.DENIED,
    "Restricted": AuthorizationStatus.RESTRICTED,
}


def _secrets() -> dict:
    try:
        return dict(st.secrets)
    except FileNotFoundError:
        return {}


def build_coordinator() -> MapCoordinator:
    """Create the coordinator and its providers once per browser session."""
    config = load_config(_secrets())
    provider = SimulatedLocationProvider(position=DEFAULT_POSITION)
    coordinator = MapCoordinator(
        display=FoliumMapDisplay(center=DEFAULT_POSITION),
        location_provider=provider,
        geocoder=NominatimReverseGeocoder(
            user_agent=config["nominatim_user_agent"],
            timeout=config["geocode_timeout"],
            max_workers=config["max_workers"],
        ),
        router=OSRMRouter(
            config["osrm_base_url"], timeout=config["routing_timeout"], max_workers=config["max_workers"]
        ),
        config=config,
        annotation_data=ANNOTATION_DATA,
    )
    coordinator.start()
    return coordinator


def sidebar(coordinator: MapCoordinator) -> None:
    provider = coordinator.tracker.provider
    st.sidebar.header("Simulated device")
    enabled = st.sidebar.checkbox("Location services enabled", value=provider.enabled)
    if enabled != provider.enabled:
        provider.enabled = enabled
        coordinator.tracker.check_location_services()
    label = st.sidebar.selectbox("Permission", list(STATUS_LABELS), index=0)
    if enabled:
        provider.set_authorization(STATUS_LABELS[label])
    lat = st.sidebar.number_input("Latitude", value=DEFAULT_POSITION.latitude, format="%.6f")
    lon = st.sidebar.number_input("Longitude", value=DEFAULT_POSITION.longitude, format="%.6f")
    position = Coordinate(lat, lon)
    if position != provider.position:
        provider.move_to(position)


def main():
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(name)s: %(message)s")
    st.set_page_config(page_title="MapCenter", layout="wide")
    st.title("MapCenter")

    if "coordinator" not in st.session_state:
        st.session_state["coordinator"] = build_coordinator()
    coordinator: MapCoordinator = st.session_state["coordinator"]

    sidebar(coordinator)
    coordinator.process_ui_events()

    for alert in coordinator.alerts:
        st.error(f"**{alert.title}**: {alert.message}")
    if coordinator.alerts and st.button("OK"):
        coordinator.dismiss_alerts()
        st.rerun()

    col_map, col_controls = st.columns([3, 1])
    with col_controls:
        hybrid = st.toggle("Hybrid", value=False)
        coordinator.set_hybrid(hybrid)
        st.markdown(
            f"<span style='color: {coordinator.hybrid_label_color}; "
            f"background: {'#333' if hybrid else 'transparent'}; padding: 2px 6px;'>Hybrid</span>",
            unsafe_allow_html=True,
        )
        if st.button("Get directions"):
            handle = coordinator.get_directions()
            if handle is None:
                st.warning("We don't have the user location")
            elif handle.future is not None:
                with st.spinner("Calculating route..."):
                    wait([handle.future], timeout=coordinator.config["routing_timeout"])
                coordinator.process_ui_events()
        if st.button("Refresh address"):
            coordinator.process_ui_events()

    with col_map:
        state = st_folium(coordinator.display.render(), width=800, height=550, key="map")
        center = (state or {}).get("center")
        if center:
            coordinator.display.center_coordinate = Coordinate(center["lat"], center["lng"])
            coordinator.on_region_changed()
        st.markdown(f"### {coordinator.address_text or '-'}")


if __name__ == "__main__":
    main()
