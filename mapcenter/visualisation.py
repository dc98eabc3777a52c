"""
Map display for MapCenter.

``FoliumMapDisplay`` keeps the state a map view would hold (annotations,
route overlays, visible region, style) and builds an interactive map
from it using the Folium library. The map can be embedded directly in a
Streamlit app via ``streamlit_folium``.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import folium

from mapcenter.models import Annotation, Coordinate, MapStyle, Region, RouteCandidate

logger = logging.getLogger(__name__)

ROUTE_COLOR = "blue"
HYBRID_TILES = "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}"
HYBRID_ATTR = "Tiles &copy; Esri"
LABEL_TILES = "https://server.arcgisonline.com/ArcGIS/rest/services/Reference/World_Boundaries_and_Places/MapServer/tile/{z}/{y}/{x}"


class FoliumMapDisplay:
    """Map state plus a Folium renderer."""

    def __init__(self, center: Coordinate, zoom_start: int = 12):
        self.center_coordinate = center
        self.zoom_start = zoom_start
        self.annotations: List[Annotation] = []
        self.overlays: List[RouteCandidate] = []
        self.visible_region: Optional[Region] = None
        self.region_animated = False
        self.shows_user_location = False
        self.user_location: Optional[Coordinate] = None
        self.map_style = MapStyle.STANDARD

    def add_annotation(self, annotation: Annotation) -> None:
        self.annotations.append(annotation)

    def add_annotations(self, annotations: Iterable[Annotation]) -> None:
        for annotation in annotations:
            self.add_annotation(annotation)

    def remove_annotations(self, annotations: Iterable[Annotation]) -> None:
        doomed = list(annotations)
        self.annotations = [a for a in self.annotations if a not in doomed]

    def add_overlay(self, overlay: RouteCandidate) -> None:
        self.overlays.append(overlay)

    def remove_overlays(self, overlays: Iterable[RouteCandidate]) -> None:
        doomed = [id(o) for o in overlays]
        self.overlays = [o for o in self.overlays if id(o) not in doomed]

    def clear_overlays(self) -> None:
        self.overlays = []

    def set_visible_region(self, region: Region, animated: bool = False) -> None:
        self.visible_region = region
        self.region_animated = animated
        self.center_coordinate = region.center

    def set_center_tracking(self, on: bool) -> None:
        self.shows_user_location = on

    def render(self) -> folium.Map:
        """Build a Folium map with annotation markers and route polylines."""
        center = self.center_coordinate
        if self.map_style == MapStyle.HYBRID:
            m = folium.Map(location=list(center.as_tuple()), zoom_start=self.zoom_start, tiles=HYBRID_TILES, attr=HYBRID_ATTR)
            folium.TileLayer(tiles=LABEL_TILES, attr=HYBRID_ATTR, overlay=True, name="labels").add_to(m)
        else:
            m = folium.Map(location=list(center.as_tuple()), zoom_start=self.zoom_start, tiles="OpenStreetMap")
        for annotation in self.annotations:
            folium.Marker(
                location=list(annotation.coordinate.as_tuple()),
                popup=folium.Popup(annotation.title, parse_html=True),
                tooltip=annotation.title,
            ).add_to(m)
        for overlay in self.overlays:
            if len(overlay.path) < 2:
                continue
            folium.PolyLine([list(c.as_tuple()) for c in overlay.path], color=ROUTE_COLOR, weight=4, opacity=0.6).add_to(m)
        if self.shows_user_location and self.user_location is not None:
            folium.CircleMarker(
                location=list(self.user_location.as_tuple()),
                radius=7,
                color="white",
                fill=True,
                fill_color="#007aff",
                fill_opacity=1.0,
            ).add_to(m)
        if self.visible_region is not None:
            sw, ne = self.visible_region.south_west, self.visible_region.north_east
            m.fit_bounds([list(sw.as_tuple()), list(ne.as_tuple())])
        return m
