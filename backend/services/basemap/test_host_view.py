from __future__ import annotations

import pytest

from pipelines.mapping.basemap.bounds import to_web_mercator
from pipelines.mapping.basemap.crs import ProjCRS
from services.basemap.host_view import RemoteHostView


class RecordingBus:
    def __init__(self) -> None:
        self.events: list = []

    def publish(self, event) -> None:
        self.events.append(event)


WGS84 = ProjCRS.from_user_input("EPSG:4326")
MERCATOR = ProjCRS.web_mercator()


def _host() -> tuple:
    bus = RecordingBus()
    return RemoteHostView(bus), bus


def test_report_view_stores_extent_and_notifies() -> None:
    host, _ = _host()
    calls = []
    host.subscribe_extent_changed(lambda: calls.append(host.get_bounds()))

    host.report_view([1, 2, 3, 4], 640, 480, layer_crs=WGS84)

    assert calls == [(1.0, 2.0, 3.0, 4.0)]
    assert host.width() == 640.0
    assert host.height() == 480.0
    assert host.get_layer_crs() is WGS84


def test_display_crs_defaults_to_layer_crs() -> None:
    host, _ = _host()
    assert host.get_display_crs() is None

    host.report_view([-105, 40, -104, 41], 800, 600, layer_crs=WGS84)
    assert host.get_display_crs() is WGS84


def test_switching_display_crs_reprojects_and_publishes() -> None:
    host, bus = _host()
    host.report_view([-105, 40, -104, 41], 800, 600, layer_crs=WGS84)

    host.set_display_crs(MERCATOR)

    min_x, min_y, max_x, max_y = host.get_bounds()
    expected_min = to_web_mercator(-105.0, 40.0)
    expected_max = to_web_mercator(-104.0, 41.0)
    assert min_x == pytest.approx(expected_min[0], rel=1e-6)
    assert min_y == pytest.approx(expected_min[1], rel=1e-6)
    assert max_x == pytest.approx(expected_max[0], rel=1e-6)
    assert max_y == pytest.approx(expected_max[1], rel=1e-6)
    assert bus.events == [{"type": "display_crs", "crs": "EPSG:3857"}]
    assert host.get_display_crs().is_web_mercator()


def test_clearing_display_crs_returns_to_layer_crs() -> None:
    host, bus = _host()
    host.report_view([-105, 40, -104, 41], 800, 600, layer_crs=WGS84)
    host.set_display_crs(MERCATOR)
    host.set_display_crs(None)

    assert host.get_display_crs() is WGS84
    assert bus.events[-1] == {"type": "display_crs", "crs": None}
    min_x, min_y, _, _ = host.get_bounds()
    assert min_x == pytest.approx(-105.0, abs=1e-6)
    assert min_y == pytest.approx(40.0, abs=1e-6)


def test_setting_current_display_crs_is_silent() -> None:
    host, bus = _host()
    host.report_view([-105, 40, -104, 41], 800, 600, layer_crs=WGS84)

    host.set_display_crs(ProjCRS.from_user_input(4326))

    assert bus.events == []
    assert host.get_bounds() == (-105.0, 40.0, -104.0, 41.0)


def test_map_click_notifies_listeners() -> None:
    host, _ = _host()
    clicks = []
    host.subscribe_map_click(lambda: clicks.append(True))
    host.report_map_click()
    host.report_map_click()

    assert clicks == [True, True]
