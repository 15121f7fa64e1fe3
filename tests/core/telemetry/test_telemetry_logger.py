"""Tests for the JSONL session telemetry."""

from __future__ import annotations

import json
import statistics

import pytest

from communication.protocols import NetworkStatus, NetworkStatusEvent, ReadingEvent
from core.telemetry.loggers.telemetry_logger import TelemetryLogger


def _reading(tilt):
    return ReadingEvent("forward", "north", 10.0, tilt, 0.0, 3, 44.7, 1)


def _lines(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_session_directory_layout(tmp_path):
    telemetry = TelemetryLogger(tmp_path)
    session_dir = telemetry.get_session_dir()

    assert session_dir.parent == tmp_path
    assert session_dir.name.startswith("session_")
    assert _lines(session_dir / "system.jsonl")[0]["event"] == "session_start"


def test_readings_are_throttled(tmp_path):
    telemetry = TelemetryLogger(tmp_path, min_reading_interval=60.0)

    assert telemetry.log_reading(_reading(1.0)) is True
    assert telemetry.log_reading(_reading(2.0)) is False
    assert telemetry.log_reading(_reading(3.0), force=True) is True

    rows = _lines(telemetry.readings_log)
    assert [row["tilt_deg"] for row in rows] == [1.0, 3.0]
    assert rows[0]["direction"] == "forward"


def test_network_transitions_logged(tmp_path):
    telemetry = TelemetryLogger(tmp_path)
    telemetry.log_network_status(NetworkStatusEvent(NetworkStatus.CONNECTING, 0, 1, 4.0))
    telemetry.log_network_status(NetworkStatusEvent(NetworkStatus.CONNECTED, 123, 0))

    rows = _lines(telemetry.network_log)
    assert [row["status"] for row in rows] == ["connecting", "connected"]
    assert rows[0]["delay_seconds"] == 4.0
    assert rows[1]["last_upload_ms"] == 123


def test_finalize_session_summary(tmp_path):
    telemetry = TelemetryLogger(tmp_path, min_reading_interval=0.0)
    for tilt in (1.0, 2.0, 3.0):
        telemetry.log_reading(_reading(tilt))
    telemetry.log_network_status(NetworkStatusEvent(NetworkStatus.DISCONNECTED, 0))
    telemetry.log_calibration("tilt", False, "device is moving")

    summary = telemetry.finalize_session()

    assert summary["total_readings"] == 3
    assert summary["avg_tilt_deg"] == 2.0
    assert summary["max_tilt_deg"] == 3.0
    assert summary["final_network_status"] == "disconnected"
    assert summary["network_status_counts"] == {"disconnected": 1}
    assert json.loads((telemetry.get_session_dir() / "summary.json").read_text())["total_readings"] == 3

    events = [row["event"] for row in _lines(telemetry.system_log)]
    assert events == ["session_start", "calibration", "session_end"]


def test_empty_session_summary(tmp_path):
    summary = TelemetryLogger(tmp_path).finalize_session()
    assert summary["total_readings"] == 0
    assert summary["avg_tilt_deg"] is None
    assert summary["final_network_status"] == "unknown"


def test_summary_aggregates_match_full_history(tmp_path):
    tilts = [0.5 * (i % 37) + 0.01 * i for i in range(2000)]
    telemetry = TelemetryLogger(tmp_path, min_reading_interval=0.0)
    for tilt in tilts:
        telemetry.log_reading(_reading(tilt))
    for status in (NetworkStatus.CONNECTING, NetworkStatus.DISCONNECTED, NetworkStatus.DISCONNECTED):
        telemetry.log_network_status(NetworkStatusEvent(status, 0))

    summary = telemetry.finalize_session()

    assert summary["total_readings"] == len(tilts)
    assert summary["avg_tilt_deg"] == pytest.approx(statistics.fmean(tilts))
    assert summary["tilt_std_deg"] == pytest.approx(statistics.pstdev(tilts))
    assert summary["max_tilt_deg"] == max(tilts)
    assert summary["network_transitions"] == 3
    assert summary["network_status_counts"] == {"connecting": 1, "disconnected": 2}
    assert summary["final_network_status"] == "disconnected"
    # Only aggregates are held in memory
    assert not hasattr(telemetry, "reading_buffer")
    assert len(_lines(telemetry.readings_log)) == len(tilts)
