from __future__ import annotations

import asyncio
import json

import pytest

from pipelines.mapping.basemap.types import OverlayOptions
from services.basemap.event_bus import BasemapEventBus
from services.basemap.remote_overlay import BrowserAssetLoader, RemoteOverlayFactory


def _options() -> OverlayOptions:
    return OverlayOptions(access_token="pk.test", style_url="mapbox://styles/streets", bounds=(-105.0, 40.0, -104.0, 41.0))


async def _drain() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


def test_bus_delivers_json_to_every_subscriber() -> None:
    async def scenario() -> None:
        bus = BasemapEventBus()
        first = await bus.subscribe()
        second = await bus.subscribe()
        assert bus.get_subscriber_count() == 2

        bus.publish({"type": "resize"})
        assert json.loads(first.get_nowait()) == {"type": "resize"}
        assert json.loads(second.get_nowait()) == {"type": "resize"}

        await bus.unsubscribe(first)
        await bus.unsubscribe(first)
        assert bus.get_subscriber_count() == 1

    asyncio.run(scenario())


def test_asset_loader_waits_for_browser() -> None:
    async def scenario() -> None:
        bus = BasemapEventBus()
        q = await bus.subscribe()
        loader = BrowserAssetLoader(bus, "https://cdn.test/gl.js", "https://cdn.test/gl.css")

        task = asyncio.get_running_loop().create_task(loader.load_rendering_assets())
        await _drain()
        assert json.loads(q.get_nowait()) == {
            "type": "load_assets",
            "js": "https://cdn.test/gl.js",
            "css": "https://cdn.test/gl.css",
        }
        assert task.done() is False

        assert loader.mark_loaded() is True
        await task
        assert loader.mark_loaded() is False

    asyncio.run(scenario())


def test_asset_loader_raises_browser_error() -> None:
    async def scenario() -> None:
        loader = BrowserAssetLoader(BasemapEventBus(), "a.js", "a.css")
        task = asyncio.get_running_loop().create_task(loader.load_rendering_assets())
        await _drain()
        loader.mark_loaded("script blocked")

        with pytest.raises(RuntimeError, match="script blocked"):
            await task

    asyncio.run(scenario())


def test_mark_loaded_without_pending_load() -> None:
    loader = BrowserAssetLoader(BasemapEventBus(), "a.js", "a.css")
    assert loader.mark_loaded() is False


def test_factory_publishes_construct_command() -> None:
    async def scenario() -> None:
        bus = BasemapEventBus()
        q = await bus.subscribe()
        factory = RemoteOverlayFactory(bus)

        overlay = factory.create(_options())

        assert factory.current is overlay
        event = json.loads(q.get_nowait())
        assert event["type"] == "construct"
        assert event["options"]["style"] == "mapbox://styles/streets"
        assert event["options"]["interactive"] is False

        overlay.fit_bounds((-105.0, 40.0, -104.0, 41.0))
        assert json.loads(q.get_nowait()) == {
            "type": "fit_bounds",
            "bounds": [-105.0, 40.0, -104.0, 41.0],
            "animate": False,
        }

    asyncio.run(scenario())


def test_overlay_load_event_fires_once() -> None:
    factory = RemoteOverlayFactory(BasemapEventBus())
    overlay = factory.create(_options())
    fired = []
    overlay.once_loaded(lambda: fired.append(1))

    assert overlay.mark_loaded() is True
    assert overlay.mark_loaded() is False
    assert fired == [1]


def test_reconnecting_client_gets_overlay_state_replayed() -> None:
    async def scenario() -> None:
        bus = BasemapEventBus()
        factory = RemoteOverlayFactory(bus)
        overlay = factory.create(_options())
        overlay.show()
        overlay.fit_bounds((-105.0, 40.0, -104.0, 41.0))
        overlay.resize()
        overlay.hide()
        bus.publish({"type": "display_crs", "crs": "EPSG:3857"})

        q = await bus.subscribe()
        replayed = [json.loads(q.get_nowait())["type"] for _ in range(q.qsize())]

        assert replayed == ["display_crs", "construct", "hide", "fit_bounds"]
        assert bus.latest("show") == {"type": "hide"}
        assert bus.latest("resize") is None

    asyncio.run(scenario())


def test_stalled_subscriber_is_dropped() -> None:
    async def scenario() -> None:
        bus = BasemapEventBus(max_queue=2)
        stalled = await bus.subscribe()
        for _ in range(3):
            bus.publish({"type": "resize"})

        assert bus.get_subscriber_count() == 0
        assert stalled.qsize() == 2

    asyncio.run(scenario())


def test_reloaded_page_is_told_to_load_assets_before_construct() -> None:
    async def scenario() -> None:
        bus = BasemapEventBus()
        loader = BrowserAssetLoader(bus, "https://cdn.test/gl.js", "https://cdn.test/gl.css")
        factory = RemoteOverlayFactory(bus)

        task = asyncio.get_running_loop().create_task(loader.load_rendering_assets())
        await _drain()
        loader.mark_loaded()
        await task
        overlay = factory.create(_options())
        overlay.mark_loaded()
        overlay.show()
        overlay.fit_bounds((-105.0, 40.0, -104.0, 41.0))

        q = await bus.subscribe()
        replayed = [json.loads(q.get_nowait()) for _ in range(q.qsize())]

        assert [event["type"] for event in replayed] == ["load_assets", "construct", "show", "fit_bounds"]
        assert replayed[0]["js"] == "https://cdn.test/gl.js"

    asyncio.run(scenario())
