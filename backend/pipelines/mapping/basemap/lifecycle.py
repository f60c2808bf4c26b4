"""
Overlay Resource Lifecycle
Lazily loads the external rendering assets and constructs the overlay exactly once
"""
import asyncio
import logging
from typing import Callable, Optional

from .types import (
    AssetLoader,
    LifecycleState,
    OverlayFactory,
    OverlayHandle,
    OverlayOptions,
)

logger = logging.getLogger(__name__)


class ResourceLifecycleManager:
    """
    Idle -> Loading -> Ready state machine for the overlay instance.

    Only one construction attempt is ever in flight. Once Ready, the instance
    is kept for the rest of the session. With a load timeout configured, an
    attempt whose assets fail to load or whose ready event never arrives is
    abandoned and the manager returns to Idle so the next request can retry;
    a late ready event from an abandoned attempt is ignored.
    """

    def __init__(
        self,
        asset_loader: AssetLoader,
        overlay_factory: OverlayFactory,
        load_timeout_seconds: Optional[float] = None,
    ):
        self.asset_loader = asset_loader
        self.overlay_factory = overlay_factory
        self.load_timeout_seconds = load_timeout_seconds

        self.state = LifecycleState.IDLE
        self.instance: Optional[OverlayHandle] = None
        self.construction_requests = 0

        self._attempt = 0
        self._task: Optional[asyncio.Task] = None
        self._ready_timer: Optional[asyncio.TimerHandle] = None

    @property
    def loading(self) -> bool:
        return self.state == LifecycleState.LOADING

    def request(
        self,
        options: OverlayOptions,
        on_ready: Callable[[OverlayHandle], None],
        on_failed: Optional[Callable[[str], None]] = None,
    ) -> bool:
        """
        Start loading assets and constructing the overlay

        Must be called from a running event loop. A request made while an
        attempt is in flight, or after the overlay is ready, does nothing.

        Args:
            options: construction options, fixed at the moment loading begins
            on_ready: called once with the instance when its ready event fires
            on_failed: called with a reason if the attempt is abandoned

        Returns:
            bool: True if a new construction attempt was started
        """
        if self.state != LifecycleState.IDLE:
            logger.debug(f"🗺️ Overlay construction already {self.state.value}, request ignored")
            return False

        loop = asyncio.get_running_loop()
        self.state = LifecycleState.LOADING
        self._attempt += 1
        self.construction_requests += 1
        attempt = self._attempt
        logger.info(f"🗺️ Loading basemap overlay (attempt {attempt}, style={options.style_url})")

        self._task = loop.create_task(self._load_and_construct(attempt, options, on_ready, on_failed))
        return True

    async def _load_and_construct(
        self,
        attempt: int,
        options: OverlayOptions,
        on_ready: Callable[[OverlayHandle], None],
        on_failed: Optional[Callable[[str], None]],
    ) -> None:
        try:
            if self.load_timeout_seconds:
                await asyncio.wait_for(self.asset_loader.load_rendering_assets(), self.load_timeout_seconds)
            else:
                await self.asset_loader.load_rendering_assets()
        except asyncio.TimeoutError:
            self._abandon(attempt, f"rendering assets did not load within {self.load_timeout_seconds}s", on_failed)
            return
        except Exception as e:
            self._abandon(attempt, f"rendering assets failed to load: {e}", on_failed)
            return

        if not self._is_current(attempt):
            return

        try:
            handle = self.overlay_factory.create(options)
        except Exception as e:
            self._abandon(attempt, f"overlay construction failed: {e}", on_failed)
            return

        logger.info("🗺️ Overlay constructed, waiting for ready event")
        handle.once_loaded(lambda: self._on_loaded(attempt, handle, on_ready))

        if self.load_timeout_seconds and self._is_current(attempt):
            loop = asyncio.get_running_loop()
            self._ready_timer = loop.call_later(
                self.load_timeout_seconds,
                self._abandon,
                attempt,
                f"overlay not ready within {self.load_timeout_seconds}s",
                on_failed,
            )

    def _is_current(self, attempt: int) -> bool:
        return attempt == self._attempt and self.state == LifecycleState.LOADING

    def _on_loaded(self, attempt: int, handle: OverlayHandle, on_ready: Callable[[OverlayHandle], None]) -> None:
        if not self._is_current(attempt):
            logger.warning(f"⚠️ Ignoring ready event from abandoned overlay attempt {attempt}")
            return
        self._cancel_timer()
        self.state = LifecycleState.READY
        self.instance = handle
        logger.info("✅ Basemap overlay ready")
        on_ready(handle)

    def _abandon(self, attempt: int, reason: str, on_failed: Optional[Callable[[str], None]]) -> None:
        if not self._is_current(attempt):
            return
        self._cancel_timer()
        self.state = LifecycleState.IDLE
        self.instance = None
        logger.error(f"❌ Basemap overlay attempt {attempt} abandoned: {reason}")
        if on_failed is not None:
            on_failed(reason)

    def _cancel_timer(self) -> None:
        if self._ready_timer is not None:
            self._ready_timer.cancel()
            self._ready_timer = None
