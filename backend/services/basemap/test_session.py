from __future__ import annotations

import pytest

from pipelines.mapping.basemap.types import BasemapConfig, ConfigError, StyleDescriptor
from services.basemap import session as session_module
from services.basemap.session import BasemapSession


CONFIG = BasemapConfig(
    access_token="pk.test",
    js_url="gl.js",
    css_url="gl.css",
    styles=(StyleDescriptor(name="Streets", icon_url="", style_url="mapbox://styles/streets"),),
    load_timeout_seconds=12.0,
)


@pytest.fixture(autouse=True)
def fresh_session(monkeypatch):
    monkeypatch.setattr(session_module, "_session", None)


def test_session_wires_adapters() -> None:
    session = BasemapSession(CONFIG)

    assert session.enabled is True
    assert session.lifecycle.load_timeout_seconds == 12.0
    assert session.asset_loader.js_url == "gl.js"
    assert session.controller.host is session.host
    assert session.mark_overlay_loaded() is False


def test_session_without_config_is_disabled() -> None:
    session = BasemapSession(None)

    assert session.enabled is False
    assert session.host.has_render_surface() is False
    assert session.controller.snapshot()["enabled"] is False


def test_global_session_is_created_once(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(session_module, "load_basemap_config", lambda: calls.append(1) or CONFIG)

    first = session_module.get_basemap_session()
    second = session_module.get_basemap_session()

    assert first is second
    assert calls == [1]
    assert first.enabled is True


def test_invalid_config_disables_feature(monkeypatch) -> None:
    def broken():
        raise ConfigError("Basemap styles must be a JSON list")

    monkeypatch.setattr(session_module, "load_basemap_config", broken)

    assert session_module.get_basemap_session().enabled is False
