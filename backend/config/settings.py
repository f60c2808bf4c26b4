"""
Central configuration for backend settings.
"""
import json
import logging
import os
from pathlib import Path
from typing import Optional

from config.paths import bundled_config
from pipelines.mapping.basemap.types import BasemapConfig, ConfigError, StyleDescriptor

logger = logging.getLogger(__name__)


DEFAULT_BASEMAP_JS_URL = "https://api.mapbox.com/mapbox-gl-js/v3.6.0/mapbox-gl.js"
DEFAULT_BASEMAP_CSS_URL = "https://api.mapbox.com/mapbox-gl-js/v3.6.0/mapbox-gl.css"

# Seconds to wait for the overlay assets / ready event; 0 waits forever
DEFAULT_BASEMAP_LOAD_TIMEOUT = "30"


def basemap_styles_file() -> Path:
    value = os.getenv("BASEMAP_STYLES_FILE")
    if value:
        return Path(value)
    return bundled_config("basemap_styles.json")


def parse_styles(raw) -> tuple:
    """
    Build style descriptors from the decoded styles JSON

    Accepts a list of {name, icon, url, dark?} objects ("iconUrl"/"styleUrl"
    are accepted as well).

    Raises:
        ConfigError: if the list or one of its entries is malformed
    """
    if not isinstance(raw, list):
        raise ConfigError("Basemap styles must be a JSON list")
    styles = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ConfigError(f"Basemap style #{i} is not an object")
        name = item.get("name")
        style_url = item.get("url") or item.get("styleUrl")
        icon_url = item.get("icon") or item.get("iconUrl") or ""
        if not name or not style_url:
            raise ConfigError(f"Basemap style #{i} needs a name and a url")
        styles.append(StyleDescriptor(
            name=str(name),
            icon_url=str(icon_url),
            style_url=str(style_url),
            dark=bool(item.get("dark", False)),
        ))
    return tuple(styles)


def load_basemap_config(styles_file: Optional[Path] = None) -> Optional[BasemapConfig]:
    """
    Read basemap settings from the environment

    Returns:
        BasemapConfig, or None when the access token or the style list is
        missing (the basemap feature is then disabled)

    Raises:
        ConfigError: if the styles file exists but cannot be parsed
    """
    token = os.getenv("BASEMAP_ACCESS_TOKEN")
    if not token:
        return None

    path = styles_file or basemap_styles_file()
    if not path.exists():
        logger.info(f"🗺️ No basemap styles file at {path}")
        return None
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read basemap styles from {path}: {e}") from e

    styles = parse_styles(raw)
    if not styles:
        return None

    env_timeout = os.getenv("BASEMAP_LOAD_TIMEOUT", DEFAULT_BASEMAP_LOAD_TIMEOUT)
    try:
        timeout = float(env_timeout)
    except ValueError as e:
        raise ConfigError(f"BASEMAP_LOAD_TIMEOUT must be a number, got {env_timeout!r}") from e

    return BasemapConfig(
        access_token=token,
        js_url=os.getenv("BASEMAP_JS_URL", DEFAULT_BASEMAP_JS_URL),
        css_url=os.getenv("BASEMAP_CSS_URL", DEFAULT_BASEMAP_CSS_URL),
        styles=styles,
        load_timeout_seconds=timeout if timeout > 0 else None,
    )
