from __future__ import annotations

import json

import pytest

from lmt_proposals.config import AgencySettings
from lmt_proposals.storage import (
    CONTENT_KEY,
    DEFAULT_CONTENT,
    USER_KEY,
    ContentStore,
    LocalStore,
    SessionStore,
    SettingsStore,
)


def test_content_override_survives_restart(tmp_path):
    ContentStore(LocalStore(tmp_path)).update("agency_name", "Mountain Trails")

    reloaded = ContentStore(LocalStore(tmp_path))

    assert reloaded.get("agency_name") == "Mountain Trails"
    assert reloaded.snapshot() == {"agency_name": "Mountain Trails"}


def test_values_are_written_with_schema_version(tmp_path):
    store = LocalStore(tmp_path)
    ContentStore(store).update("menu_leads", "Pipeline")

    payload = json.loads((tmp_path / f"{CONTENT_KEY}.json").read_text(encoding="utf-8"))

    assert payload == {"version": 1, "data": {"menu_leads": "Pipeline"}}
    assert not list(tmp_path.glob(".*.tmp"))


def test_legacy_unversioned_payload_is_read_as_is(tmp_path):
    (tmp_path / f"{CONTENT_KEY}.json").write_text(json.dumps({"btn_logout": "Sign out"}), encoding="utf-8")

    assert ContentStore(LocalStore(tmp_path)).get("btn_logout") == "Sign out"


def test_corrupt_file_loads_as_missing(tmp_path):
    (tmp_path / f"{USER_KEY}.json").write_text("{not json", encoding="utf-8")

    assert LocalStore(tmp_path).read(USER_KEY) is None


def test_invalid_keys_are_rejected(tmp_path):
    with pytest.raises(ValueError):
        LocalStore(tmp_path).write("../escape", {})


def test_unset_slots_fall_back_to_defaults(tmp_path):
    content = ContentStore(LocalStore(tmp_path))
    content.update("cover_tagline", "")

    assert content.get("cover_tagline") == DEFAULT_CONTENT["cover_tagline"]
    assert content.get("unknown_slot", "fallback") == "fallback"
    assert content.merged()["cover_tagline"] == DEFAULT_CONTENT["cover_tagline"]


def test_reset_removes_override(tmp_path):
    store = LocalStore(tmp_path)
    content = ContentStore(store)
    content.update("agency_name", "Mountain Trails")

    content.reset("agency_name")

    assert ContentStore(store).get("agency_name") == DEFAULT_CONTENT["agency_name"]


def test_session_round_trip(tmp_path):
    sessions = SessionStore(LocalStore(tmp_path))
    user = {"id": "u1", "name": "Sudip", "role": "Sales", "email": "", "hierarchyLevel": 1}

    sessions.save(user)
    assert SessionStore(LocalStore(tmp_path)).load() == user

    sessions.clear()
    assert sessions.load() is None
    sessions.clear()


def test_settings_round_trip_and_validation(tmp_path):
    store = LocalStore(tmp_path)
    defaults = AgencySettings()
    settings = SettingsStore(store, defaults)

    assert settings.load() == defaults
    settings.save(AgencySettings(markup_percent=30, max_discount_percent=12))
    assert SettingsStore(store, defaults).load() == AgencySettings(30.0, 12.0)
    with pytest.raises(ValueError):
        settings.save(AgencySettings(markup_percent=-1))


def test_invalid_stored_settings_use_defaults(tmp_path):
    store = LocalStore(tmp_path)
    store.write("lmt_agency_settings", {"markup_percent": "lots"})

    assert SettingsStore(store, AgencySettings()).load() == AgencySettings()
