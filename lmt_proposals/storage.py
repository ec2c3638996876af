"""Persisted session, content override and agency setting state."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional

from .catalog import BRAND_LOGO_URL
from .config import AgencySettings

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

USER_KEY = "lmt_user"
CONTENT_KEY = "lmt_app_content"
SETTINGS_KEY = "lmt_agency_settings"

DEFAULT_CONTENT: Dict[str, str] = {
    "agency_name": "Let Me Travel",
    "agency_logo": BRAND_LOGO_URL,
    "cover_tagline": "Signature Collection",
    "cover_heading": "Exclusively Prepared For",
    "welcome_note": (
        "Your journey is not just a destination, but a collection of curated moments. "
        "This blueprint has been drafted specifically to align with your taste for quality and comfort."
    ),
    "footer_contact": "Let Me Travel | info@letmetravel.in | www.letmetravel.in",
    "message_tagline": "Let Me Travel Signature Collection",
    "message_motto": "We turn destinations into memories.",
    "currency_symbol": "₹",
    "sidebar_admin_label": "Agency CRM",
    "menu_overview": "Overview",
    "menu_leads": "Lead Pipeline",
    "menu_itinerary": "Itinerary Builder",
    "menu_quotation": "Premium Quotations",
    "menu_admin": "Global Command",
    "btn_logout": "Logout",
}

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class LocalStore:
    """JSON-file key-value store standing in for browser local storage.

    Each key lives in ``<root>/<key>.json`` as ``{"version": 1, "data": ...}``.
    Files written before versioning was introduced hold the bare payload and
    are read as-is.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key {key!r}")
        return self.root / f"{key}.json"

    def read(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable state file %s: %s", path, exc)
            return None
        if isinstance(payload, dict) and set(payload) == {"version", "data"}:
            return payload["data"]
        return payload

    def write(self, key: str, value: Any) -> None:
        path = self._path(key)
        temp_path = path.with_name(f".{path.name}.tmp")
        with temp_path.open("w", encoding="utf-8") as handle:
            json.dump({"version": SCHEMA_VERSION, "data": value}, handle, ensure_ascii=False, indent=2)
        temp_path.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class ContentStore:
    """Administrator overrides for UI copy and images, keyed by slot name."""

    def __init__(self, store: LocalStore):
        self._store = store
        raw = store.read(CONTENT_KEY)
        self._content: Dict[str, str] = (
            {str(key): str(value) for key, value in raw.items()} if isinstance(raw, dict) else {}
        )

    def get(self, key: str, default: Optional[str] = None) -> str:
        value = self._content.get(key)
        if value:
            return value
        if default is not None:
            return default
        return DEFAULT_CONTENT.get(key, "")

    def snapshot(self) -> Dict[str, str]:
        return dict(self._content)

    def merged(self) -> Dict[str, str]:
        """Defaults overlaid with the current overrides."""

        return {**DEFAULT_CONTENT, **{key: value for key, value in self._content.items() if value}}

    def update(self, key: str, value: str) -> None:
        """The single write path: change one slot and flush to disk."""

        self._content[str(key)] = "" if value is None else str(value)
        self._store.write(CONTENT_KEY, self._content)
        logger.info("Content slot %s updated", key)

    def reset(self, key: str) -> None:
        if self._content.pop(key, None) is not None:
            self._store.write(CONTENT_KEY, self._content)


class SessionStore:
    """Remembers the signed-in user between application restarts."""

    def __init__(self, store: LocalStore):
        self._store = store

    def save(self, user: Dict[str, Any]) -> None:
        self._store.write(USER_KEY, user)

    def load(self) -> Optional[Dict[str, Any]]:
        raw = self._store.read(USER_KEY)
        return raw if isinstance(raw, dict) else None

    def clear(self) -> None:
        self._store.delete(USER_KEY)


class SettingsStore:
    """Agency commercial settings edited from the admin page."""

    def __init__(self, store: LocalStore, defaults: AgencySettings):
        self._store = store
        self._defaults = defaults

    def load(self) -> AgencySettings:
        raw = self._store.read(SETTINGS_KEY)
        if not isinstance(raw, dict):
            return self._defaults
        try:
            return AgencySettings(
                markup_percent=float(raw.get("markup_percent", self._defaults.markup_percent)),
                max_discount_percent=float(
                    raw.get("max_discount_percent", self._defaults.max_discount_percent)
                ),
            )
        except (TypeError, ValueError):
            logger.warning("Stored agency settings are invalid; using defaults")
            return self._defaults

    def save(self, settings: AgencySettings) -> None:
        if settings.markup_percent < 0 or settings.max_discount_percent < 0:
            raise ValueError("Percentages cannot be negative.")
        self._store.write(SETTINGS_KEY, asdict(settings))
