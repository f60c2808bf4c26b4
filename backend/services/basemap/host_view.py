"""
Remote Host View
Server-side mirror of the browser map view that the basemap controller follows
"""
import logging
from typing import Callable, List, Optional, Sequence

from pyproj import Transformer
from pyproj.exceptions import ProjError

from pipelines.mapping.basemap.crs import ProjCRS
from pipelines.mapping.basemap.types import BBox

from .event_bus import BasemapEventBus

logger = logging.getLogger(__name__)


class RemoteHostView:
    """
    Holds the extent, size and projections last reported by the browser.

    The display CRS defaults to the active layer's CRS. When the controller
    switches the display CRS, the held extent is reprojected right away and a
    `display_crs` event tells the browser to re-render in the new projection.
    """

    def __init__(self, bus: BasemapEventBus, render_surface: bool = True):
        self.bus = bus
        self.render_surface = render_surface
        self._bounds: Optional[BBox] = None
        self._width = 0.0
        self._height = 0.0
        self._display_crs: Optional[ProjCRS] = None
        self._layer_crs: Optional[ProjCRS] = None
        self._extent_listeners: List[Callable[[], None]] = []
        self._click_listeners: List[Callable[[], None]] = []

    # HostView protocol

    def get_bounds(self) -> Optional[BBox]:
        return self._bounds

    def width(self) -> float:
        return self._width

    def height(self) -> float:
        return self._height

    def get_display_crs(self) -> Optional[ProjCRS]:
        if self._display_crs is not None:
            return self._display_crs
        return self._layer_crs

    def set_display_crs(self, crs: Optional[ProjCRS]) -> None:
        current = self.get_display_crs()
        self._display_crs = crs
        target = self.get_display_crs()
        if target == current:
            return

        if self._bounds is not None and current is not None and target is not None:
            self._bounds = self._reproject(self._bounds, current, target)

        logger.info(f"🧭 Display CRS → {target.to_string() if target else 'default'}")
        self.bus.publish({
            "type": "display_crs",
            "crs": crs.to_string() if crs is not None else None,
        })

    def get_layer_crs(self) -> Optional[ProjCRS]:
        return self._layer_crs

    def has_render_surface(self) -> bool:
        return self.render_surface

    def subscribe_extent_changed(self, callback: Callable[[], None]) -> None:
        self._extent_listeners.append(callback)

    def subscribe_map_click(self, callback: Callable[[], None]) -> None:
        self._click_listeners.append(callback)

    # Browser reports

    def report_view(
        self,
        bbox: Sequence[float],
        width: float,
        height: float,
        display_crs: Optional[ProjCRS] = None,
        layer_crs: Optional[ProjCRS] = None,
    ) -> None:
        """
        Store an extent report from the browser and notify listeners

        Args:
            bbox: [min_x, min_y, max_x, max_y] in the display CRS
            width: viewport width in pixels
            height: viewport height in pixels
            display_crs: display CRS the browser rendered with, if it changed
            layer_crs: dataset CRS of the active layer, if it changed
        """
        self._bounds = tuple(float(v) for v in bbox)
        self._width = float(width)
        self._height = float(height)
        if layer_crs is not None:
            self._layer_crs = layer_crs
        if display_crs is not None:
            self._display_crs = display_crs
        logger.debug(f"🗺️ View report: bbox={self._bounds} size={self._width:.0f}x{self._height:.0f}")
        for callback in list(self._extent_listeners):
            callback()

    def report_map_click(self) -> None:
        for callback in list(self._click_listeners):
            callback()

    def _reproject(self, bbox: BBox, source: ProjCRS, target: ProjCRS) -> Optional[BBox]:
        try:
            transformer = Transformer.from_crs(source.crs, target.crs, always_xy=True)
            return tuple(transformer.transform_bounds(*bbox))
        except ProjError as e:
            # The browser reports a fresh extent after re-rendering
            logger.warning(f"⚠️ Could not reproject view extent: {e}")
            return None
