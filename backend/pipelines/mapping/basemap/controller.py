"""
Basemap Synchronization Controller
==================================

Keeps the basemap overlay aligned with the host map view.

The controller reacts to three triggers: the user opening or closing the
basemap panel, the user picking a style, and the host view reporting a new
extent. It decides whether the overlay may be shown, converts the host extent
into geographic bounds, and drives the overlay instance once the lifecycle
manager has built it.
"""
import logging
from typing import Any, Dict, Optional

from .bounds import to_geo_bounds
from .crs import ProjCRS, is_usable
from .lifecycle import ResourceLifecycleManager
from .types import (
    BasemapConfig,
    BasemapUI,
    BoundsError,
    ControllerState,
    CRSDescriptor,
    HostView,
    OverlayHandle,
    OverlayOptions,
    StyleDescriptor,
)
from .zoom_policy import check_bounds, meters_per_pixel

logger = logging.getLogger(__name__)

INCOMPATIBLE_CRS_WARNING = "The current layer is not compatible with the projection used by the basemaps."


class BasemapController:
    """
    Synchronizes the basemap overlay with the host view.

    `refresh()` is the single entry point the host calls after every extent
    change; `enter_mode`, `exit_mode`, `select_style` and `toggle_style` are
    the commands the panel widgets invoke.
    """

    def __init__(
        self,
        config: Optional[BasemapConfig],
        host: HostView,
        lifecycle: ResourceLifecycleManager,
        ui: Optional[BasemapUI] = None,
        web_mercator: Optional[CRSDescriptor] = None,
    ):
        self.config = config
        self.host = host
        self.lifecycle = lifecycle
        self.ui = ui
        self.web_mercator = web_mercator or ProjCRS.web_mercator()
        self.state = ControllerState()
        self._constructed_style: Optional[StyleDescriptor] = None

        if config is None:
            logger.info("🗺️ Basemap disabled: no configuration")
            return

        host.subscribe_extent_changed(self.refresh)
        host.subscribe_map_click(self.handle_map_click)
        logger.info(f"🗺️ Basemap controller ready with {len(config.styles)} styles")

    @property
    def enabled(self) -> bool:
        return self.config is not None and self.host.has_render_surface()

    # ------------------------------------------------------------------ panel

    def enter_mode(self) -> None:
        """Open the basemap panel, warning if the current projections can't be used."""
        data_crs = self.host.get_layer_crs()
        display_crs = self.host.get_display_crs()

        if not is_usable(data_crs) or not is_usable(display_crs):
            logger.warning(f"⚠️ Basemap unavailable: layer CRS={data_crs!r} display CRS={display_crs!r}")
            self.state.warning = INCOMPATIBLE_CRS_WARNING
            self.state.note_visible = False
        else:
            self.state.warning = None
            self.state.note_visible = True
        self.state.panel_open = True

    def exit_mode(self) -> None:
        self.state.warning = None
        self.state.note_visible = False
        self.state.panel_open = False

    def handle_map_click(self) -> None:
        # A click on the map closes the panel
        if self.state.panel_open:
            self.exit_mode()

    # ----------------------------------------------------------------- styles

    def toggle_style(self, style: StyleDescriptor) -> None:
        """Style button handler: clicking the active style turns the basemap off."""
        self.select_style(None if style is self.state.active_style else style)

    def select_style(self, style: Optional[StyleDescriptor]) -> None:
        """
        Activate a style, or turn the basemap off with None

        The first non-null style starts loading the overlay; later ones swap
        the style on the existing instance.
        """
        self.state.active_style = style

        if style is None:
            logger.info("🗺️ Basemap turned off")
            self.host.set_display_crs(None)
            self.state.extent_note = None
            self._hide()
        elif self.state.overlay_instance is not None:
            logger.info(f"🗺️ Basemap style → {style.name}")
            self.state.overlay_instance.set_style(style.style_url)
            self._constructed_style = style
            self.state.last_fit = None
            self.refresh()
        else:
            self._init_overlay()

        if self.ui is not None and self.config is not None:
            self.ui.update_style_buttons(self.state.active_style, self.config.styles)

    def _init_overlay(self) -> None:
        if not self.enabled or self.state.overlay_instance is not None or self.state.loading:
            return
        style = self.state.active_style
        try:
            bounds = self._geo_bounds()
        except BoundsError as e:
            logger.warning(f"⚠️ Cannot start basemap without a valid view extent: {e}")
            return

        options = OverlayOptions(
            access_token=self.config.access_token,
            style_url=style.style_url,
            bounds=bounds,
        )
        if self.lifecycle.request(options, self._on_overlay_ready, self._on_overlay_failed):
            self.state.loading = True
            self._constructed_style = style

    def _on_overlay_ready(self, handle: OverlayHandle) -> None:
        self.state.loading = False
        self.state.overlay_instance = handle
        active = self.state.active_style
        # The user may have picked another style while the overlay was loading
        if active is not None and active is not self._constructed_style:
            handle.set_style(active.style_url)
            self._constructed_style = active
        self.refresh()

    def _on_overlay_failed(self, reason: str) -> None:
        self.state.loading = False
        self._constructed_style = None

    # ---------------------------------------------------------------- refresh

    def refresh(self) -> None:
        """
        Re-sync the overlay with the host view

        Safe to call on every extent change. Does nothing until the overlay is
        built and a style is active. May switch the host's display CRS to Web
        Mercator, which makes the host re-render and call refresh again.
        """
        if not self.enabled or self.state.overlay_instance is None or self.state.loading or self.state.active_style is None:
            return

        crs = self.host.get_display_crs()
        if not is_usable(crs):
            logger.debug("🗺️ Display CRS unusable, hiding basemap")
            self._hide()
            return
        if not crs.is_web_mercator():
            logger.info("🧭 Switching display CRS to Web Mercator for basemap")
            self.host.set_display_crs(self.web_mercator)

        try:
            bbox = self._geo_bounds()
        except BoundsError as e:
            logger.warning(f"⚠️ Invalid view extent, hiding basemap: {e}")
            self.state.extent_note = None
            self._hide()
            return

        projected = self.host.get_bounds()
        check = check_bounds(bbox, meters_per_pixel(abs(projected[2] - projected[0]), self.host.width()))
        if not check.visible:
            # The overlay does not render outside these bounds
            self.state.extent_note = check.message
            self._hide()
            return

        self.state.extent_note = None
        self._show(bbox)

    def _geo_bounds(self):
        projected = self.host.get_bounds()
        if projected is None:
            raise BoundsError("host view has no extent")
        return to_geo_bounds(projected)

    def _show(self, bbox) -> None:
        overlay = self.state.overlay_instance
        if self.state.overlay_visible and self.state.last_fit == bbox:
            return
        if not self.state.overlay_visible:
            overlay.show()
            self.state.overlay_visible = True
        overlay.resize()
        overlay.fit_bounds(bbox, animate=False)
        self.state.last_fit = bbox

    def _hide(self) -> None:
        self.state.last_fit = None
        if not self.state.overlay_visible:
            return
        self.state.overlay_visible = False
        if self.state.overlay_instance is not None:
            self.state.overlay_instance.hide()

    # --------------------------------------------------------------- snapshot

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of the controller state for the panel widgets"""
        style = self.state.active_style
        return {
            "enabled": self.enabled,
            "lifecycle": self.lifecycle.state.value,
            "loading": self.state.loading,
            "activeStyle": style.name if style else None,
            "dark": bool(style and style.dark),
            "overlayVisible": self.state.overlay_visible,
            "panelOpen": self.state.panel_open,
            "warning": self.state.warning,
            "noteVisible": self.state.note_visible,
            "extentNote": self.state.extent_note,
            "bounds": list(self.state.last_fit) if self.state.last_fit else None,
        }
