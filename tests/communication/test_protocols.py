"""Tests for the collector payload and status events."""

from __future__ import annotations

import json

import pytest

from communication.protocols import (
    MessageSerializationError,
    MessageValidationError,
    NetworkStatus,
    NetworkStatusEvent,
    ReadingEvent,
    SensorDataUpload,
)


def test_upload_body_is_single_float_list():
    payload = SensorDataUpload.for_tilt(3)
    assert json.loads(payload.to_json()) == {"sensors": [3.0]}
    assert isinstance(payload.sensors[0], float)


def test_probe_body():
    assert json.loads(SensorDataUpload.probe().to_json()) == {"sensors": [0.0]}


@pytest.mark.parametrize("value", [-180.0, 0.0, 12.34, 180.0])
def test_validate_accepts_range(value):
    SensorDataUpload([value]).validate()


@pytest.mark.parametrize("value", [-180.1, 180.5, float("nan"), "3"])
def test_validate_rejects_out_of_range(value):
    with pytest.raises(MessageValidationError):
        SensorDataUpload([value]).validate()


def test_from_json_rejects_missing_field():
    with pytest.raises(MessageSerializationError):
        SensorDataUpload.from_json('{"angles": [1]}')
    assert SensorDataUpload.from_json('{"sensors": [1, 2]}').sensors == [1.0, 2.0]


def test_network_status_event_serializes_status_value():
    event = NetworkStatusEvent(NetworkStatus.CONNECTING, last_upload_ms=10, retry_count=2, delay_seconds=8.0)
    assert event.to_dict() == {
        "status": "connecting",
        "last_upload_ms": 10,
        "retry_count": 2,
        "delay_seconds": 8.0,
    }


def test_reading_event_to_dict():
    event = ReadingEvent("left", "east", 90.0, 3.0, 270.0, 3, 44.7, 5)
    data = event.to_dict()
    assert data["direction"] == "left"
    assert data["tilt_deg"] == 3.0
    json.dumps(data)
