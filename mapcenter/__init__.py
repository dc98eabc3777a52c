"""
MapCenter package initialization.

This package provides the core of the MapCenter single-screen map
application: device location tracking, reverse geocoding of the map
centre, and driving directions from the device to the map centre.

Modules:
    models        - Coordinates, regions, placemarks, routes and enums.
    geo           - Geodesic distance helpers built on geopy.
    location      - Location provider interface and authorization handling.
    geocode       - Nominatim reverse geocoding and the movement debouncer.
    routing       - OSRM route requests and the single-request manager.
    dispatch      - Marshalling of provider callbacks onto the UI thread.
    visualisation - Folium based map display.
    annotations   - The static set of map annotations.
    coordinator   - Wiring of the map screen.
    app           - Streamlit user interface.
"""

__all__ = [
    "models",
    "geo",
    "location",
    "geocode",
    "routing",
    "dispatch",
    "visualisation",
    "annotations",
    "coordinator",
    "config",
]
