"""
Zoom/Latitude Policy
Decides whether the overlay can legally display the current extent
"""
import logging
import math
from typing import Sequence

from .types import BoundsCheck

logger = logging.getLogger(__name__)

# Web Mercator is only defined up to about 85 degrees of latitude
MAX_LATITUDE = 85.0
# Deepest zoom the overlay service renders
MAX_ZOOM = 20.0
# Equatorial circumference in meters and the tile size of the overlay scheme
EARTH_CIRCUMFERENCE = 40075017.0
TILE_SIZE = 512

HINT_ZOOM_OUT = "zoom out"
HINT_PAN_SOUTH = "pan south"
HINT_PAN_NORTH = "pan north"
HINT_ZOOM_IN = "zoom in"


def scale_to_zoom(meters_per_pixel: float) -> float:
    """
    Approximate tile zoom level for a view resolution

    Args:
        meters_per_pixel: projected view width divided by its pixel width

    Returns:
        float: fractional zoom; +inf for a non-positive resolution, -inf for
        an infinite one
    """
    if meters_per_pixel <= 0:
        return math.inf
    if math.isinf(meters_per_pixel):
        return -math.inf
    return math.log2(EARTH_CIRCUMFERENCE / TILE_SIZE / meters_per_pixel)


def meters_per_pixel(projected_width: float, pixel_width: float) -> float:
    # No pixels: unbounded resolution, so only the latitude limits apply
    if pixel_width <= 0:
        return math.inf
    return projected_width / pixel_width


def check_bounds(geo_bbox: Sequence[float], mpp: float) -> BoundsCheck:
    """Evaluate the display policy for an extent at a given view resolution"""
    return evaluate(geo_bbox, scale_to_zoom(mpp))


def evaluate(geo_bbox: Sequence[float], z: float) -> BoundsCheck:
    """
    Evaluate the display policy for one extent at zoom z

    Displayable iff south >= -85, north <= 85 and zoom <= 20 (all inclusive).
    Otherwise exactly one corrective hint is returned, checked in order:
    zoom out, pan south, pan north, zoom in.

    Args:
        geo_bbox: (west, south, east, north) in degrees
        z: approximate zoom of the host view

    Returns:
        BoundsCheck: visibility, computed zoom and optional hint
    """
    south, north = geo_bbox[1], geo_bbox[3]

    if south >= -MAX_LATITUDE and north <= MAX_LATITUDE and z <= MAX_ZOOM:
        return BoundsCheck(visible=True, zoom=z)

    if z > MAX_ZOOM:
        hint = HINT_ZOOM_OUT
    elif south > 0:
        hint = HINT_PAN_SOUTH
    elif north < 0:
        hint = HINT_PAN_NORTH
    else:
        hint = HINT_ZOOM_IN

    logger.debug(f"🔍 Basemap out of range: south={south:.4f} north={north:.4f} z={z:.2f} → {hint}")
    return BoundsCheck(visible=False, zoom=z, hint=hint)
