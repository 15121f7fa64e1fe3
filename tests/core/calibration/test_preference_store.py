"""Tests for the preference stores."""

from __future__ import annotations

import json

import pytest

from core.calibration.preference_store import (
    CalibrationOffset,
    InMemoryPreferenceStore,
    JsonPreferenceStore,
)
from utils.config_sections import AppConfig


def test_defaults_are_uncalibrated_and_unconfigured():
    store = InMemoryPreferenceStore()
    assert store.get_calibration_offset() == CalibrationOffset()
    config = store.get_app_config()
    assert config.server_host == ""
    assert config.server_port == 0
    assert not config.is_server_configured


def test_saving_offsets_stamps_the_clock():
    store = InMemoryPreferenceStore(clock=lambda: 42)
    store.save_tilt_offset(1.5)
    store.save_azimuth_offset(200.0)

    offset = store.get_calibration_offset()
    assert offset == CalibrationOffset(1.5, 200.0, 42)
    assert offset.is_calibrated


def test_json_store_round_trip(tmp_path):
    path = tmp_path / "prefs" / "preferences.json"
    store = JsonPreferenceStore(path, clock=lambda: 99)
    store.save_tilt_offset(2.0)
    store.save_app_config(AppConfig("10.0.0.5", 8000, 10))

    reopened = JsonPreferenceStore(path)
    assert reopened.get_calibration_offset() == CalibrationOffset(2.0, 0.0, 99)
    assert reopened.get_app_config() == AppConfig("10.0.0.5", 8000, 10)
    assert not path.with_suffix(".json.tmp").exists()


def test_json_store_clear_keeps_app_config(tmp_path):
    store = JsonPreferenceStore(tmp_path / "p.json", clock=lambda: 5)
    store.save_app_config(AppConfig("host", 1234, 5))
    store.save_azimuth_offset(30.0)
    store.clear()

    assert store.get_calibration_offset() == CalibrationOffset()
    assert store.get_app_config().server_host == "host"


def test_corrupt_file_falls_back_to_defaults(tmp_path, caplog):
    path = tmp_path / "p.json"
    path.write_text("{not json", encoding="utf-8")

    store = JsonPreferenceStore(path)
    with caplog.at_level("WARNING"):
        offset = store.get_calibration_offset()

    assert offset == CalibrationOffset()
    assert "Unreadable preference file" in caplog.text


def test_non_dict_content_falls_back_to_defaults(tmp_path):
    path = tmp_path / "p.json"
    path.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
    assert JsonPreferenceStore(path).get_app_config() == AppConfig()


@pytest.mark.parametrize("bad_value", ["oops", None, [1.0], "NaN", "inf"])
def test_unusable_offset_values_fall_back_per_key(tmp_path, caplog, bad_value):
    path = tmp_path / "p.json"
    path.write_text(
        json.dumps({
            "calibration_tilt_offset": bad_value,
            "calibration_azimuth_offset": 120.0,
            "calibration_timestamp": 50,
        }),
        encoding="utf-8",
    )

    with caplog.at_level("WARNING"):
        offset = JsonPreferenceStore(path).get_calibration_offset()

    assert offset == CalibrationOffset(0.0, 120.0, 50)
    assert "[Preferences] Ignoring invalid value for calibration_tilt_offset" in caplog.text


def test_nan_literal_offset_is_ignored(tmp_path):
    path = tmp_path / "p.json"
    path.write_text('{"calibration_tilt_offset": NaN, "calibration_timestamp": "soon"}', encoding="utf-8")

    offset = JsonPreferenceStore(path).get_calibration_offset()
    assert offset == CalibrationOffset()
    assert not offset.is_calibrated


def test_unusable_app_config_fields_fall_back_per_field(tmp_path, caplog):
    path = tmp_path / "p.json"
    path.write_text(
        json.dumps({"app_config": {"server_host": None, "server_port": "abc", "upload_interval_seconds": 9}}),
        encoding="utf-8",
    )

    with caplog.at_level("WARNING"):
        config = JsonPreferenceStore(path).get_app_config()

    assert config == AppConfig("", 0, 9)
    assert not config.is_server_configured
    assert "server_port" in caplog.text
