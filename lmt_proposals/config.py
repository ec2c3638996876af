"""Application configuration helpers."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from storage_paths import get_storage_dir

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class AgencySettings:
    """Agency-wide commercial settings read by the pricing engine."""

    markup_percent: float = 25.0
    max_discount_percent: float = 10.0


@dataclass(frozen=True)
class AppConfig:
    """Hold runtime configuration options for the application."""

    data_dir: Path
    agency: AgencySettings
    enforce_discount_ceiling: bool = True
    image_max_width: int = 1000
    image_quality: int = 75
    raster_scale: float = 2.0
    operation_timeout_seconds: float = 30.0
    fetch_remote_images: bool = True
    strict_invariants: bool = False
    log_level: str = "INFO"

    @property
    def state_dir(self) -> Path:
        return self.data_dir / "state"


def load_config() -> AppConfig:
    """Load settings from environment variables with sane defaults."""

    data_dir = Path(os.environ.get("LMT_DATA_DIR") or get_storage_dir()).expanduser()
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "state").mkdir(parents=True, exist_ok=True)

    agency = AgencySettings(
        markup_percent=_env_float("LMT_MARKUP_PERCENT", 25.0),
        max_discount_percent=_env_float("LMT_MAX_DISCOUNT_PERCENT", 10.0),
    )

    return AppConfig(
        data_dir=data_dir,
        agency=agency,
        enforce_discount_ceiling=_env_flag("LMT_ENFORCE_DISCOUNT_CEILING", True),
        image_max_width=int(os.environ.get("LMT_IMAGE_MAX_WIDTH", "1000")),
        image_quality=int(os.environ.get("LMT_IMAGE_QUALITY", "75")),
        raster_scale=_env_float("LMT_RASTER_SCALE", 2.0),
        operation_timeout_seconds=_env_float("LMT_OPERATION_TIMEOUT", 30.0),
        fetch_remote_images=_env_flag("LMT_FETCH_REMOTE_IMAGES", True),
        strict_invariants=_env_flag("LMT_STRICT_INVARIANTS", False),
        log_level=os.environ.get("LMT_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Install a stream handler on the root logger once."""

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    else:
        root.setLevel(level)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    return default
