"""
Basemap Session
Wires the basemap controller to its browser-side adapters
"""
import logging
from typing import Optional

from config.settings import load_basemap_config
from pipelines.mapping.basemap.controller import BasemapController
from pipelines.mapping.basemap.lifecycle import ResourceLifecycleManager
from pipelines.mapping.basemap.types import BasemapConfig, ConfigError

from .event_bus import BasemapEventBus
from .host_view import RemoteHostView
from .remote_overlay import BrowserAssetLoader, RemoteOverlayFactory

logger = logging.getLogger(__name__)


class BasemapSession:
    """
    One basemap controller plus the adapters that connect it to the browser.

    Created once per process and kept for the application session.
    """

    def __init__(self, config: Optional[BasemapConfig], bus: Optional[BasemapEventBus] = None):
        self.config = config
        self.bus = bus or BasemapEventBus()
        self.host = RemoteHostView(self.bus, render_surface=config is not None)

        js_url = config.js_url if config else ""
        css_url = config.css_url if config else ""
        self.asset_loader = BrowserAssetLoader(self.bus, js_url, css_url)
        self.overlay_factory = RemoteOverlayFactory(self.bus)
        self.lifecycle = ResourceLifecycleManager(
            self.asset_loader,
            self.overlay_factory,
            load_timeout_seconds=config.load_timeout_seconds if config else None,
        )
        self.controller = BasemapController(config, self.host, self.lifecycle)

    @property
    def enabled(self) -> bool:
        return self.controller.enabled

    def mark_overlay_loaded(self) -> bool:
        overlay = self.overlay_factory.current
        if overlay is None:
            return False
        return overlay.mark_loaded()


_session: Optional[BasemapSession] = None


def get_basemap_session() -> BasemapSession:
    global _session
    if _session is None:
        try:
            config = load_basemap_config()
        except ConfigError as e:
            logger.error(f"❌ Invalid basemap configuration, feature disabled: {e}")
            config = None
        if config is None:
            logger.info("🗺️ Basemap feature disabled (set BASEMAP_ACCESS_TOKEN and a styles file to enable)")
        _session = BasemapSession(config)
    return _session
