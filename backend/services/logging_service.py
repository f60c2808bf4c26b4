import logging
import os
from logging.handlers import RotatingFileHandler
from collections import deque
from typing import Deque, Dict, Any, List, Optional

from config.paths import logs_root


LOG_DIR = logs_root()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
RING_BUFFER_SIZE = int(os.getenv("RING_BUFFER_SIZE", "2000"))
LOG_FILE = LOG_DIR / "basemap-sync.log"


class RingBufferHandler(logging.Handler):
    """Keeps the most recent log records in memory for the logs endpoint"""

    def __init__(self, maxlen: int = 2000):
        super().__init__()
        self.buffer: Deque[Dict[str, Any]] = deque(maxlen=maxlen)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.buffer.append({
                "ts": record.created,
                "level": record.levelname,
                "levelno": record.levelno,
                "name": record.name,
                "message": record.getMessage(),
                "lineno": record.lineno,
            })
        except Exception:
            self.handleError(record)

    def get_recent(
        self,
        limit: int = 500,
        min_level: int = logging.NOTSET,
        name_prefix: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Most recent records, oldest first

        Args:
            limit: maximum number of records; <= 0 returns everything kept
            min_level: drop records below this level
            name_prefix: only keep loggers under this dotted name
        """
        records = [
            r for r in self.buffer
            if r["levelno"] >= min_level and _under(r["name"], name_prefix)
        ]
        if limit <= 0:
            return records
        return records[-limit:]

    def clear(self) -> None:
        self.buffer.clear()


def _under(name: str, prefix: Optional[str]) -> bool:
    if not prefix:
        return True
    return name == prefix or name.startswith(prefix + ".")


_ring_handler: RingBufferHandler | None = None


def get_ring_handler() -> RingBufferHandler:
    global _ring_handler
    if _ring_handler is None:
        _ring_handler = RingBufferHandler(maxlen=RING_BUFFER_SIZE)
    return _ring_handler


def init_logging() -> None:
    """
    Attach the rotating file handler and the ring buffer to the root logger.

    Calling it again does not add duplicate handlers.
    """
    root = logging.getLogger()
    ring = get_ring_handler()
    if ring in root.handlers:
        return

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    if root.level == logging.NOTSET:
        root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=5_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    ring.setFormatter(fmt)
    min_level_name = os.getenv("RING_BUFFER_MIN_LEVEL", "INFO").upper()
    ring.setLevel(getattr(logging, min_level_name, logging.INFO))
    root.addHandler(ring)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
