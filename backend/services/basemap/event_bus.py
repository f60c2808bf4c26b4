import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Commands whose latest value describes the browser overlay; replayed in this
# order to a client that (re)connects so it can rebuild the overlay.
REPLAY_CHANNELS = {
    "load_assets": "assets",
    "display_crs": "display_crs",
    "construct": "construct",
    "set_style": "style",
    "show": "visibility",
    "hide": "visibility",
    "fit_bounds": "fit",
}
REPLAY_ORDER = ("assets", "display_crs", "construct", "style", "visibility", "fit")


class BasemapEventBus:
    """
    In-process pub/sub of basemap commands for the SSE endpoint.

    `publish` is synchronous so the controller and overlay adapters can emit
    commands from plain callbacks on the event loop thread. Each subscriber
    gets a bounded queue; a subscriber that stops draining it is dropped.
    """

    def __init__(self, max_queue: int = 256) -> None:
        self.max_queue = max_queue
        self._subscribers: List[asyncio.Queue] = []
        self._latest: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self) -> asyncio.Queue:
        q: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue)
        async with self._lock:
            for channel in REPLAY_ORDER:
                data = self._latest.get(channel)
                if data is not None:
                    q.put_nowait(data)
            self._subscribers.append(q)
        return q

    async def unsubscribe(self, q: asyncio.Queue) -> None:
        async with self._lock:
            if q in self._subscribers:
                self._subscribers.remove(q)

    def publish(self, event: Dict[str, Any]) -> None:
        data = json.dumps(event)
        channel = REPLAY_CHANNELS.get(event.get("type"))
        if channel is not None:
            self._latest[channel] = data

        for q in list(self._subscribers):
            try:
                q.put_nowait(data)
            except asyncio.QueueFull:
                logger.warning("⚠️ Dropping basemap SSE client with a full queue")
                self._subscribers.remove(q)

    def latest(self, event_type: str) -> Optional[Dict[str, Any]]:
        channel = REPLAY_CHANNELS.get(event_type)
        data = self._latest.get(channel) if channel else None
        return json.loads(data) if data is not None else None

    def get_subscriber_count(self) -> int:
        return len(self._subscribers)
