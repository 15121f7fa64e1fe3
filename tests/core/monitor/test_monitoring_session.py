"""Tests for the monitoring session coordinator."""

from __future__ import annotations

import time

import pytest

from communication.protocols import NetworkStatus, UploadOutcome
from core.calibration.preference_store import InMemoryPreferenceStore
from core.imu.orientation_state import SensorKind
from core.mock_observer import MockSensorSource
from core.monitor.builder import Builder
from utils.config_sections import AppConfig, CalibrationConfig, UploadConfig


class FakeClient:
    url = "http://fake/api/sensors"

    def __init__(self):
        self.uploaded = []
        self.reconfigured = []

    def upload(self, tilt):
        self.uploaded.append(tilt)
        return UploadOutcome.SUCCESS

    def probe(self):
        return True

    def reconfigure(self, app_config):
        self.reconfigured.append(app_config)


def _wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


@pytest.fixture()
def session(monkeypatch):
    builder = Builder(
        store=InMemoryPreferenceStore(clock=lambda: 1000),
        calibration_config=CalibrationConfig(sample_count=5, sample_interval=0.005),
        upload_config=UploadConfig(max_retry=2, base_delay=0.001, probe_interval=0.01),
    )
    client = FakeClient()
    monkeypatch.setattr(builder, "build_upload_client", lambda app_config: client)
    session = builder.build_full_system(AppConfig("h", 1, 5), upload_interval=0.01)
    session.fake_client = client
    yield session
    session.stop()


def test_start_fails_without_magnetometer(session):
    source = MockSensorSource(sensors=(SensorKind.ACCELEROMETER,))
    assert session.start(source) is False
    assert not session.running


def test_readings_are_calibrated_and_uploaded(session):
    source = MockSensorSource(tilt_deg=3.0, tilt_direction_deg=270.0, heading_deg=90.0, rate_hz=500.0)
    assert session.start(source) is True

    assert _wait_for(lambda: session.latest_reading() is not None)
    assert _wait_for(lambda: len(session.fake_client.uploaded) >= 2)

    reading = session.latest_reading()
    assert reading.tilt_deg == pytest.approx(3.0, abs=1e-6)
    assert reading.direction == "left"
    assert reading.absolute_direction == "east"
    assert session.fake_client.uploaded[-1] == pytest.approx(3.0, abs=1e-6)
    assert session.network_status().status == NetworkStatus.CONNECTED


def test_stop_is_single_cancellation(session):
    session.start(MockSensorSource(rate_hz=500.0))
    scope = session.scope
    session.stop()

    assert scope.cancelled
    assert not session.running
    assert not session.scheduler.running
    assert not session.observer.registered

    uploads = len(session.fake_client.uploaded)
    time.sleep(0.05)
    assert len(session.fake_client.uploaded) == uploads


def test_tilt_calibration_zeroes_live_reading(session):
    source = MockSensorSource(tilt_deg=2.0, heading_deg=10.0, rate_hz=500.0)
    session.start(source)
    assert _wait_for(lambda: session.latest_reading() is not None)

    result = session.calibrate_tilt()

    assert result
    assert result.offset_deg == pytest.approx(2.0, abs=1e-6)
    assert _wait_for(lambda: session.latest_reading().tilt_deg < 1e-6)


def test_azimuth_calibration_zeroes_heading(session):
    source = MockSensorSource(heading_deg=200.0, rate_hz=500.0)
    session.start(source)
    assert _wait_for(lambda: session.latest_reading() is not None)

    assert session.calibrate_azimuth()
    assert _wait_for(lambda: session.latest_reading().absolute_direction == "north")
    assert abs(session.latest_reading().azimuth_deg - 180.0) > 170.0

    session.clear_calibration()
    assert not session.calibration.get_calibration_offset().is_calibrated


def test_update_app_config_persists_and_reconfigures(session):
    session.start(MockSensorSource(rate_hz=500.0))
    new_config = AppConfig("10.0.0.9", 8080, 10)
    session.update_app_config(new_config)

    assert session.calibration.store.get_app_config() == new_config
    assert session.fake_client.reconfigured == [new_config]


def test_corrupt_offset_file_does_not_block_readings(tmp_path, monkeypatch):
    from core.calibration.preference_store import JsonPreferenceStore

    path = tmp_path / "preferences.json"
    path.write_text('{"calibration_tilt_offset": "oops", "calibration_timestamp": null}', encoding="utf-8")
    builder = Builder(store=JsonPreferenceStore(path))
    client = FakeClient()
    monkeypatch.setattr(builder, "build_upload_client", lambda app_config: client)
    session = builder.build_full_system(AppConfig("h", 1, 5), upload_interval=0.01)

    try:
        assert session.start(MockSensorSource(tilt_deg=3.0, rate_hz=500.0))
        assert _wait_for(lambda: session.latest_reading() is not None)
        assert session.latest_reading().tilt_deg == pytest.approx(3.0, abs=1e-6)
        assert _wait_for(lambda: len(client.uploaded) >= 1)
    finally:
        session.stop()


def test_restart_begins_with_fresh_upload_state(session):
    session.scheduler.state_machine.retry_count = 3
    session.scheduler.state_machine.status = NetworkStatus.DISCONNECTED
    published = []
    session.scheduler.status.subscribe(published.append)

    session.start(MockSensorSource(rate_hz=500.0))
    try:
        assert _wait_for(lambda: session.network_status().status == NetworkStatus.CONNECTED)
    finally:
        session.stop()
    assert published[0].status == NetworkStatus.UNKNOWN
    assert published[0].retry_count == 0
