"""
Browser-side overlay adapters.

The mapping library runs in the browser. These adapters satisfy the
controller's AssetLoader / OverlayFactory / OverlayHandle interfaces by
publishing commands on the basemap event bus and resolving when the browser
reports back through the basemap endpoints.
"""
import asyncio
import logging
from typing import Callable, List, Optional

from pipelines.mapping.basemap.types import BBox, OverlayOptions

from .event_bus import BasemapEventBus

logger = logging.getLogger(__name__)


class BrowserAssetLoader:
    """Asks the browser to inject the library script and stylesheet."""

    def __init__(self, bus: BasemapEventBus, js_url: str, css_url: str):
        self.bus = bus
        self.js_url = js_url
        self.css_url = css_url
        self._pending: Optional[asyncio.Future] = None

    async def load_rendering_assets(self) -> None:
        loop = asyncio.get_running_loop()
        self._pending = loop.create_future()
        logger.info(f"📦 Requesting basemap assets: {self.js_url}")
        self.bus.publish({"type": "load_assets", "js": self.js_url, "css": self.css_url})
        try:
            await self._pending
        finally:
            self._pending = None

    def mark_loaded(self, error: Optional[str] = None) -> bool:
        """
        Resolve the pending load with the browser's result

        Returns:
            bool: False if no load was pending
        """
        future = self._pending
        if future is None or future.done():
            return False
        if error:
            future.set_exception(RuntimeError(error))
        else:
            future.set_result(None)
        return True


class RemoteOverlay:
    """Proxy for the overlay map instance living in the browser."""

    def __init__(self, bus: BasemapEventBus, options: OverlayOptions):
        self.bus = bus
        self.options = options
        self.loaded = False
        self._load_callbacks: List[Callable[[], None]] = []

    def set_style(self, style_url: str) -> None:
        self.bus.publish({"type": "set_style", "style": style_url})

    def resize(self) -> None:
        self.bus.publish({"type": "resize"})

    def fit_bounds(self, bbox: BBox, *, animate: bool = False) -> None:
        self.bus.publish({"type": "fit_bounds", "bounds": list(bbox), "animate": animate})

    def show(self) -> None:
        self.bus.publish({"type": "show"})

    def hide(self) -> None:
        self.bus.publish({"type": "hide"})

    def once_loaded(self, callback: Callable[[], None]) -> None:
        self._load_callbacks.append(callback)

    def mark_loaded(self) -> bool:
        """Fire the one-time load event; later calls do nothing"""
        if self.loaded:
            return False
        self.loaded = True
        callbacks, self._load_callbacks = self._load_callbacks, []
        for callback in callbacks:
            callback()
        return True


class RemoteOverlayFactory:
    def __init__(self, bus: BasemapEventBus):
        self.bus = bus
        self.current: Optional[RemoteOverlay] = None

    def create(self, options: OverlayOptions) -> RemoteOverlay:
        overlay = RemoteOverlay(self.bus, options)
        self.current = overlay
        self.bus.publish({"type": "construct", "options": options.to_dict()})
        return overlay
