from dataclasses import dataclass
from enum import Enum
from typing import Tuple

Vector3 = Tuple[float, float, float]


class SensorKind(Enum):
    ACCELEROMETER = "accelerometer"
    MAGNETOMETER = "magnetometer"


@dataclass(frozen=True)
class RawSample:
    """One raw reading from a sensor stream (native units)"""
    kind: SensorKind
    values: Vector3
    timestamp_ms: int


@dataclass(frozen=True)
class OrientationSample:
    """Fused device orientation, produced once per solver cycle"""
    azimuth_raw_deg: float           # 0-360, 0 = magnetic north
    pitch_deg: float                 # Top edge up positive
    roll_deg: float                  # Right edge up positive
    tilt_magnitude_deg: float        # clamp(sqrt(pitch² + roll²), 0, 90)
    tilt_direction_angle_deg: float  # 0 = forward, 90 = right, 180 = back, 270 = left
    magnetic_field_strength: float   # µT
    magnetometer_accuracy: int       # 0 (unreliable) .. 3 (high)
    timestamp_ms: int


@dataclass(frozen=True)
class CalibratedReading:
    """Orientation with stored offsets applied, plus direction labels"""
    azimuth_calibrated_deg: float
    tilt_calibrated_deg: float
    absolute_direction: str
    relative_direction: str
