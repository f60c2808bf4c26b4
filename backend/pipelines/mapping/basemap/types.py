from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol, Sequence, Tuple


# [min_x, min_y, max_x, max_y] in the host's projected space, or
# [west, south, east, north] in degrees once converted.
BBox = Tuple[float, float, float, float]


class BasemapError(Exception):
    """Base class for basemap synchronization errors."""


class BoundsError(BasemapError):
    """Raised when a view extent cannot be converted to geographic bounds."""


class ConfigError(BasemapError):
    """Raised when basemap configuration is present but malformed."""


@dataclass(frozen=True, eq=False)
class StyleDescriptor:
    """
    One selectable basemap style.

    Instances come from configuration and are compared by identity: the
    controller only ever activates an object taken from the configured list.
    """

    name: str
    icon_url: str
    style_url: str
    dark: bool = False


@dataclass(frozen=True)
class BasemapConfig:
    """
    Everything needed to enable the basemap feature.

    Absence of a config (None) disables the feature entirely.
    """

    access_token: str
    js_url: str
    css_url: str
    styles: Tuple[StyleDescriptor, ...]
    load_timeout_seconds: Optional[float] = None

    def find_style(self, name: str) -> Optional[StyleDescriptor]:
        for style in self.styles:
            if style.name == name:
                return style
        return None


class LifecycleState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True)
class OverlayOptions:
    """
    Construction options handed to the overlay factory.

    The overlay is display-only; every interaction handler is off so the
    host view stays the single driver of the extent.
    """

    access_token: str
    style_url: str
    bounds: BBox
    logo_position: str = "bottom-left"
    interactive: bool = False
    drag_pan: bool = False
    drag_rotate: bool = False
    scroll_zoom: bool = False
    double_click_zoom: bool = False
    keyboard: bool = False
    max_pitch: int = 0
    render_world_copies: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accessToken": self.access_token,
            "style": self.style_url,
            "bounds": list(self.bounds),
            "logoPosition": self.logo_position,
            "interactive": self.interactive,
            "dragPan": self.drag_pan,
            "dragRotate": self.drag_rotate,
            "scrollZoom": self.scroll_zoom,
            "doubleClickZoom": self.double_click_zoom,
            "keyboard": self.keyboard,
            "maxPitch": self.max_pitch,
            "renderWorldCopies": self.render_world_copies,
        }


@dataclass(frozen=True)
class BoundsCheck:
    """Result of the zoom/latitude policy for one extent."""

    visible: bool
    zoom: float
    hint: Optional[str] = None

    @property
    def message(self) -> Optional[str]:
        if self.hint is None:
            return None
        return f"{self.hint} to see the basemap"


class CRSDescriptor(Protocol):
    """Opaque CRS handle supplied by the host projection system."""

    def is_invertible(self) -> bool:
        ...

    def is_web_mercator(self) -> bool:
        ...


class OverlayHandle(Protocol):
    """A constructed overlay map instance."""

    def set_style(self, style_url: str) -> None:
        ...

    def resize(self) -> None:
        ...

    def fit_bounds(self, bbox: BBox, *, animate: bool = False) -> None:
        ...

    def show(self) -> None:
        ...

    def hide(self) -> None:
        ...

    def once_loaded(self, callback: Callable[[], None]) -> None:
        ...


class OverlayFactory(Protocol):
    def create(self, options: OverlayOptions) -> OverlayHandle:
        ...


class AssetLoader(Protocol):
    """Fetches the external rendering library code and its stylesheet."""

    async def load_rendering_assets(self) -> None:
        ...


class HostView(Protocol):
    """
    The primary application's map view, as seen by the basemap controller.

    `get_display_crs()` returns None when the host has no display CRS;
    `set_display_crs(None)` resets it to the host's default.
    """

    def get_bounds(self) -> Optional[BBox]:
        ...

    def width(self) -> float:
        ...

    def height(self) -> float:
        ...

    def get_display_crs(self) -> Optional[CRSDescriptor]:
        ...

    def set_display_crs(self, crs: Optional[CRSDescriptor]) -> None:
        ...

    def get_layer_crs(self) -> Optional[CRSDescriptor]:
        ...

    def has_render_surface(self) -> bool:
        ...

    def subscribe_extent_changed(self, callback: Callable[[], None]) -> None:
        ...

    def subscribe_map_click(self, callback: Callable[[], None]) -> None:
        ...


class BasemapUI(Protocol):
    """Widget layer that renders the style picker."""

    def update_style_buttons(
        self, active_style: Optional[StyleDescriptor], styles: Sequence[StyleDescriptor]
    ) -> None:
        ...


@dataclass
class ControllerState:
    """
    Mutable state owned by a single BasemapController.

    `loading` is true strictly between a construction request and the
    overlay's ready event, and `overlay_instance` stays None until then.
    """

    active_style: Optional[StyleDescriptor] = None
    overlay_instance: Optional[OverlayHandle] = None
    loading: bool = False
    overlay_visible: bool = False
    panel_open: bool = False
    warning: Optional[str] = None
    note_visible: bool = False
    extent_note: Optional[str] = None
    last_fit: Optional[BBox] = None

    @property
    def extent_note_visible(self) -> bool:
        return self.extent_note is not None
