"""
Filesystem locations used by the backend.

Bundled files (the default basemap styles) live next to this module; log
files go under the repository root unless LOG_DIR points elsewhere. Both
resolve correctly inside a PyInstaller bundle.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path


def is_frozen() -> bool:
    """True inside a PyInstaller bundle."""
    return getattr(sys, "frozen", False) is True


def backend_root() -> Path:
    """
    The 'backend' directory: backend/config/paths.py -> backend.
    Frozen builds unpack it under sys._MEIPASS.
    """
    if is_frozen():
        return Path(getattr(sys, "_MEIPASS")) / "backend"
    return Path(__file__).resolve().parents[1]


def bundled_config(name: str) -> Path:
    """Path of a config file shipped in backend/config"""
    return backend_root() / "config" / name


def logs_root() -> Path:
    value = os.getenv("LOG_DIR")
    if value:
        return Path(value)
    if is_frozen():
        # The bundle directory is temporary; log beside the executable
        return Path(sys.executable).resolve().parent / "logs"
    return backend_root().parent / "logs"
