from __future__ import annotations

import pytest

from lmt_proposals.config import load_config
from storage_paths import APP_STORAGE_SUBDIR, get_storage_dir


def test_load_config_reads_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("LMT_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("LMT_MARKUP_PERCENT", "30")
    monkeypatch.setenv("LMT_ENFORCE_DISCOUNT_CEILING", "no")
    monkeypatch.setenv("LMT_RASTER_SCALE", "1.5")
    monkeypatch.setenv("LMT_LOG_LEVEL", "debug")

    config = load_config()

    assert config.data_dir == tmp_path / "data"
    assert config.state_dir.is_dir()
    assert config.agency.markup_percent == 30.0
    assert config.agency.max_discount_percent == 10.0
    assert config.enforce_discount_ceiling is False
    assert config.raster_scale == 1.5
    assert config.log_level == "DEBUG"


def test_invalid_number_is_reported(tmp_path, monkeypatch):
    monkeypatch.setenv("LMT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("LMT_MAX_DISCOUNT_PERCENT", "ten")

    with pytest.raises(ValueError, match="LMT_MAX_DISCOUNT_PERCENT"):
        load_config()


def test_default_data_dir_comes_from_storage_paths(tmp_path, monkeypatch):
    monkeypatch.delenv("LMT_DATA_DIR", raising=False)
    monkeypatch.setattr("sys.platform", "linux")
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    config = load_config()

    assert config.data_dir == tmp_path / APP_STORAGE_SUBDIR
    assert get_storage_dir() == config.data_dir
