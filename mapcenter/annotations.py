"""Static map annotations."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from mapcenter.models import Annotation, Coordinate

logger = logging.getLogger(__name__)

ANNOTATION_DATA: List[Dict[str, Any]] = [
    {"title": "Dr James", "latitude": 40.003252, "longitude": -86.0655897},
    {"title": "Avon Town", "latitude": 39.7636057, "longitude": -86.4080829},
    {"title": "Brookside Park", "latitude": 39.7280122, "longitude": -86.0325810},
    {"title": "Hazel", "latitude": 39.3113244, "longitude": -86.1111377},
    {"title": "Washington Park", "latitude": 40.013888, "longitude": -86.5700804},
]


def load_annotations(data: Sequence[Dict[str, Any]] = ANNOTATION_DATA) -> List[Annotation]:
    """Build annotations from dictionaries with title/latitude/longitude.

    Loading stops at the first entry without numeric coordinates; the
    entries before it are kept.
    """
    annotations = []
    for entry in data:
        lat, lon = entry.get("latitude"), entry.get("longitude")
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (lat, lon)):
            logger.warning("annotation %r has no valid coordinates; skipping the rest", entry.get("title"))
            break
        annotations.append(Annotation(title=str(entry.get("title", "")), coordinate=Coordinate(float(lat), float(lon))))
    return annotations
