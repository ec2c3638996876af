"""Shared helpers for resolving the Let Me Travel studio storage directory."""

from __future__ import annotations

import os
import sys
from pathlib import Path

APP_STORAGE_SUBDIR = "let-me-travel-studio"


def get_storage_dir() -> Path:
    """Return the default writable directory for application data."""

    if sys.platform.startswith("win"):
        base_dir = Path(os.getenv("APPDATA", Path.home()))
    elif sys.platform == "darwin":
        base_dir = Path.home() / "Library" / "Application Support"
    else:
        base_dir = Path(os.getenv("XDG_DATA_HOME", Path.home() / ".local" / "share"))

    return base_dir / APP_STORAGE_SUBDIR
