"""Tests for typed configuration sections."""

from __future__ import annotations

import pytest

from utils import config_sections
from utils.config import Config
from utils.config_sections import (
    AppConfig,
    default_app_config,
    load_calibration_config,
    load_dashboard_config,
    load_filter_config,
    load_upload_config,
)


def test_loaders_read_config_constants():
    assert load_filter_config().accel_alpha == 0.15
    assert load_filter_config().mag_alpha == 0.10

    upload = load_upload_config()
    assert upload.max_retry == 5
    assert upload.base_delay == 2.0
    assert upload.probe_interval == 30
    assert upload.endpoint == "/api/sensors"

    calibration = load_calibration_config()
    assert calibration.sample_count == 10
    assert calibration.max_tilt == 90.0
    assert calibration.sample_interval == pytest.approx(0.1)
    assert load_dashboard_config().status_interval == pytest.approx(0.5)


def test_loaders_follow_config_overrides(monkeypatch):
    monkeypatch.setattr(Config, "MAX_RETRY_COUNT", 2)
    assert load_upload_config().max_retry == 2


def test_loaders_fall_back_when_constant_missing(monkeypatch):
    monkeypatch.delattr(Config, "ACCEL_FILTER_ALPHA")
    assert config_sections.load_filter_config().accel_alpha == 0.15


def test_default_app_config_is_unconfigured():
    config = default_app_config()
    assert config == AppConfig("", 0, 5)
    assert not config.is_server_configured
    assert config.validate() == "Server host must not be empty"


@pytest.mark.parametrize(
    "config, error",
    [
        (AppConfig("  ", 80, 5), "Server host must not be empty"),
        (AppConfig("host", 0, 5), "Port must be in range 1 - 65535"),
        (AppConfig("host", 70000, 5), "Port must be in range 1 - 65535"),
        (AppConfig("host", 80, 0), "Upload interval must be in range 1 - 30 seconds"),
        (AppConfig("host", 80, 31), "Upload interval must be in range 1 - 30 seconds"),
        (AppConfig("host", 80, 30), None),
    ],
)
def test_app_config_validation(config, error):
    assert config.validate() == error


def test_base_url():
    config = AppConfig("192.168.1.20", 8000, 5)
    assert config.base_url == "http://192.168.1.20:8000"
    assert config.is_server_configured
