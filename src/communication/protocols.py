#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Communication Protocols - LevelCheck collector contract

Contracts between the tilt monitor and the remote collector, plus the
status events emitted toward any display layer.

Architecture:
Monitor (fusion) → SensorDataUpload → POST /api/sensors → Collector
Monitor (upload) → NetworkStatusEvent → Display / Telemetry
Monitor (fusion) → ReadingEvent → Display / Telemetry
"""

import json
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

SENSOR_ANGLE_MIN = -180.0
SENSOR_ANGLE_MAX = 180.0


# =================================================================
# STATUS LATTICE
# =================================================================

class NetworkStatus(Enum):
    """Upload connectivity as seen by the monitor."""
    CONNECTED = "connected"        # Last upload accepted
    CONNECTING = "connecting"      # Retrying with backoff
    DISCONNECTED = "disconnected"  # Uploads paused, probing for recovery
    UNKNOWN = "unknown"            # No attempt yet


class UploadOutcome(Enum):
    """Classification of a single upload attempt."""
    SUCCESS = "success"                        # 2xx
    BAD_REQUEST = "bad_request"                # 400: payload rejected, not retried
    RETRYABLE_FAILURE = "retryable_failure"    # other HTTP errors, connect/timeout faults
    UNRESOLVED_ADDRESS = "unresolved_address"  # host cannot be resolved / not configured


# =================================================================
# CORE MESSAGE STRUCTURES
# =================================================================

@dataclass
class SensorDataUpload:
    """
    Request body for POST /api/sensors

    Attributes:
        sensors: Ordered angle readings in degrees, each within [-180, 180]
    """
    sensors: List[float]

    def validate(self) -> None:
        """Raise MessageValidationError when any reading is out of range."""
        if not isinstance(self.sensors, list):
            raise MessageValidationError("sensors must be a list")
        for value in self.sensors:
            if not isinstance(value, (int, float)) or value != value:
                raise MessageValidationError(f"Invalid sensor reading: {value!r}")
            if not SENSOR_ANGLE_MIN <= value <= SENSOR_ANGLE_MAX:
                raise MessageValidationError(
                    f"Sensor reading {value} outside [{SENSOR_ANGLE_MIN}, {SENSOR_ANGLE_MAX}]"
                )

    def to_dict(self) -> Dict[str, Any]:
        return {"sensors": [float(v) for v in self.sensors]}

    def to_json(self) -> str:
        """Serialize to the collector's JSON body"""
        try:
            return json.dumps(self.to_dict())
        except (TypeError, ValueError) as exc:
            raise MessageSerializationError(f"Cannot encode upload payload: {exc}") from exc

    @classmethod
    def from_json(cls, data: str) -> "SensorDataUpload":
        """Parse a JSON body (used by tests and the dashboard echo)"""
        try:
            payload = json.loads(data)
            return cls(sensors=[float(v) for v in payload["sensors"]])
        except (KeyError, TypeError, ValueError) as exc:
            raise MessageSerializationError(f"Invalid upload payload: {exc}") from exc

    @classmethod
    def for_tilt(cls, tilt_calibrated_deg: float) -> "SensorDataUpload":
        return cls(sensors=[float(tilt_calibrated_deg)])

    @classmethod
    def probe(cls) -> "SensorDataUpload":
        return cls(sensors=[0.0])


@dataclass(frozen=True)
class ReadingEvent:
    """
    Per-fusion-cycle status event for display layers

    Attributes:
        direction: Relative tilt direction label ("forward", "left", ...)
        absolute_direction: Compass label of the calibrated azimuth
        azimuth_deg: Calibrated azimuth, 0-360
        tilt_deg: Calibrated tilt, 0-90
        tilt_direction_angle_deg: 0 = forward, 90 = right, ...
        magnetometer_accuracy: 0-3
        magnetic_field_strength: µT
        timestamp_ms: Capture time of the underlying sample
    """
    direction: str
    absolute_direction: str
    azimuth_deg: float
    tilt_deg: float
    tilt_direction_angle_deg: float
    magnetometer_accuracy: int
    magnetic_field_strength: float
    timestamp_ms: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NetworkStatusEvent:
    """
    Per-transition upload status event

    Attributes:
        status: Current NetworkStatus
        last_upload_ms: Time of the last accepted upload (0 = never)
        retry_count: Consecutive failed attempts so far
        delay_seconds: Backoff/probe wait scheduled after this transition
    """
    status: NetworkStatus
    last_upload_ms: int
    retry_count: int = 0
    delay_seconds: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


# =================================================================
# ERROR HANDLING
# =================================================================

class CommunicationError(Exception):
    """Base exception for collector communication errors"""
    pass

class MessageSerializationError(CommunicationError):
    """Payload could not be encoded/decoded"""
    pass

class MessageValidationError(CommunicationError):
    """Payload failed validation"""
    pass
