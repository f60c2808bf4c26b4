"""
Bounds Transformer
Converts the host view's Web Mercator extent into geographic bounds for the overlay
"""
import logging
import math
from typing import Sequence, Tuple

from pyproj import CRS, Transformer

from .types import BBox, BoundsError

logger = logging.getLogger(__name__)

# Inverse and forward Web Mercator transformers are shared; building them is
# the expensive part of every conversion.
_WGS84 = CRS.from_epsg(4326)
_WEB_MERCATOR = CRS.from_epsg(3857)
_from_mercator = Transformer.from_crs(_WEB_MERCATOR, _WGS84, always_xy=True)
_to_mercator = Transformer.from_crs(_WGS84, _WEB_MERCATOR, always_xy=True)

# Half the projected width of the world in EPSG:3857 meters
WEB_MERCATOR_HALF_WORLD = 20037508.342789244
EARTH_RADIUS = 6378137.0


def from_web_mercator(x: float, y: float) -> Tuple[float, float]:
    """Inverse Web Mercator for one point, returning (lon, lat) in degrees"""
    lon, lat = _from_mercator.transform(x, y)
    # pyproj normalizes longitude into [-180, 180]; the overlay renders world
    # copies, so keep the unwrapped value.
    return _unwrapped_lon(x, lon), lat


def to_web_mercator(lon: float, lat: float) -> Tuple[float, float]:
    """Forward Web Mercator for one point, returning (x, y) in meters"""
    return _to_mercator.transform(lon, lat)


def _unwrapped_lon(x: float, lon: float) -> float:
    # Longitude is linear in x on the sphere
    expected = math.degrees(x / EARTH_RADIUS)
    return lon + 360.0 * round((expected - lon) / 360.0)


def to_geo_bounds(projected_bbox: Sequence[float]) -> BBox:
    """
    Convert a projected bounding box to [west, south, east, north]

    Corners are inverted independently. Zero-size boxes pass through as
    degenerate bounds, inverted axes are normalized, and x values outside the
    projected world keep longitudes beyond +/-180.

    Args:
        projected_bbox: [min_x, min_y, max_x, max_y] in EPSG:3857 meters

    Returns:
        BBox: (min_lon, min_lat, max_lon, max_lat)

    Raises:
        BoundsError: if the box does not have four finite coordinates
    """
    if len(projected_bbox) != 4:
        raise BoundsError(f"Expected 4 bbox values, got {len(projected_bbox)}")
    try:
        min_x, min_y, max_x, max_y = (float(v) for v in projected_bbox)
    except (TypeError, ValueError) as e:
        raise BoundsError(f"Non-numeric bbox: {projected_bbox!r}") from e
    if not all(math.isfinite(v) for v in (min_x, min_y, max_x, max_y)):
        raise BoundsError(f"Non-finite bbox: {projected_bbox!r}")

    if min_x > max_x:
        min_x, max_x = max_x, min_x
    if min_y > max_y:
        min_y, max_y = max_y, min_y

    west, south = from_web_mercator(min_x, min_y)
    east, north = from_web_mercator(max_x, max_y)
    logger.debug(f"🗺️ Extent {projected_bbox} → geo ({west:.6f}, {south:.6f}, {east:.6f}, {north:.6f})")
    return (west, south, east, north)
