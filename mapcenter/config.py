"""Configuration settings for MapCenter."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

CONFIG = {
    "geocode_threshold_m": 50.0,  # meters the centre must move before a new address lookup
    "region_meters": 10000.0,  # meters spanned when centring on the user
    "nominatim_user_agent": "mapcenter_app",
    "geocode_timeout": 10,  # seconds
    "osrm_base_url": "https://router.project-osrm.org",
    "routing_timeout": 30,  # seconds
    "allow_alternates": True,
    "max_workers": 4,  # provider thread pool size
}


def load_config(overrides: Optional[Mapping[str, Any]] = None) -> dict:
    """Return a copy of ``CONFIG`` with known keys replaced from ``overrides``.

    ``overrides`` is typically ``st.secrets``. Unknown keys are ignored so
    that unrelated secrets can live in the same file.
    """
    config = dict(CONFIG)
    if not overrides:
        return config
    for key in CONFIG:
        if key in overrides:
            value = overrides[key]
            default = CONFIG[key]
            # bool is checked first since it is a subclass of int
            if isinstance(default, bool):
                config[key] = str(value).lower() in ("1", "true", "yes") if isinstance(value, str) else bool(value)
            elif isinstance(default, (int, float)):
                config[key] = type(default)(value)
            else:
                config[key] = value
            logger.debug("config override %s=%r", key, config[key])
    return config
