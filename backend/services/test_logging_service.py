from __future__ import annotations

import logging

from services.logging_service import RingBufferHandler


def _record(name: str, level: int, msg: str) -> logging.LogRecord:
    return logging.makeLogRecord({"name": name, "levelno": level, "levelname": logging.getLevelName(level), "msg": msg})


def test_ring_buffer_keeps_most_recent() -> None:
    ring = RingBufferHandler(maxlen=3)
    for i in range(5):
        ring.handle(_record("pipelines.mapping.basemap.controller", logging.INFO, f"refresh {i}"))

    messages = [r["message"] for r in ring.get_recent(10)]
    assert messages == ["refresh 2", "refresh 3", "refresh 4"]
    assert [r["message"] for r in ring.get_recent(1)] == ["refresh 4"]
    assert len(ring.get_recent(0)) == 3


def test_ring_buffer_filters_by_level_and_logger() -> None:
    ring = RingBufferHandler()
    ring.handle(_record("pipelines.mapping.basemap.lifecycle", logging.ERROR, "abandoned"))
    ring.handle(_record("pipelines.mapping.basemap.zoom_policy", logging.DEBUG, "out of range"))
    ring.handle(_record("pipelines.mapping.basemapper", logging.ERROR, "other"))
    ring.handle(_record("uvicorn.error", logging.WARNING, "slow"))

    basemap = ring.get_recent(name_prefix="pipelines.mapping.basemap")
    assert [r["message"] for r in basemap] == ["abandoned", "out of range"]

    errors = ring.get_recent(min_level=logging.WARNING)
    assert [r["level"] for r in errors] == ["ERROR", "ERROR", "WARNING"]

    ring.clear()
    assert ring.get_recent() == []
