"""
Orientation extraction from smoothed accelerometer + magnetometer vectors.

The solver builds a rotation matrix from gravity and the geomagnetic field
(east = field x gravity, north = gravity x east), then decomposes it into
azimuth/pitch/roll for a device lying flat with the screen up:

- Device frame: X = right edge, Y = top edge (forward), Z = out of screen
- Azimuth: rotation about vertical, 0° = magnetic north, wrapped to [0, 360)
- Pitch: positive when the top edge is raised
- Roll: positive when the right edge is raised

Derived values:
- Tilt magnitude = clamp(sqrt(pitch² + roll²), 0, 90). Pitch and roll are
  locally orthogonal for small-to-moderate tilts, so their Euclidean
  combination is the deviation from horizontal.
- Tilt direction = atan2(roll, pitch) mod 360, a user-facing clock where
  top-up = 0°, right-up = 90°, bottom-up = 180°, left-up = 270°. Only the
  flat-on-table convention is supported; a vertically held device is not.

Degenerate inputs (free fall, field parallel to gravity) raise
RotationMatrixError; callers keep their previous sample.
"""

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from core.imu.angle_math import clamp, normalize_0_360
from core.imu.orientation_state import OrientationSample
from utils.config_sections import SolverConfig


class RotationMatrixError(ValueError):
    """Rotation cannot be derived from the current vectors."""


class OrientationSolver:
    """Turns a smoothed (accel, mag) pair into an OrientationSample."""

    def __init__(self, config: Optional[SolverConfig] = None) -> None:
        self.config = config or SolverConfig()

    def rotation_matrix(self, accel: Sequence[float], mag: Sequence[float]) -> np.ndarray:
        """
        Build the 3x3 device-to-world rotation matrix.

        Rows are the world east, north and up axes expressed in device
        coordinates.

        Raises:
            RotationMatrixError: free fall or field parallel to gravity
        """
        a = np.asarray(accel, dtype=float)
        e = np.asarray(mag, dtype=float)

        free_fall = self.config.free_fall_fraction * self.config.gravity
        norm_sq_a = float(np.dot(a, a))
        if norm_sq_a < free_fall * free_fall:
            raise RotationMatrixError(f"Gravity too weak (|a|²={norm_sq_a:.3f}), device in free fall")

        h = np.cross(e, a)
        norm_h = float(np.linalg.norm(h))
        if norm_h < self.config.min_horizontal_norm:
            raise RotationMatrixError(f"Magnetic field parallel to gravity (|E x A|={norm_h:.4f})")

        h = h / norm_h
        a = a / math.sqrt(norm_sq_a)
        m = np.cross(a, h)
        return np.vstack((h, m, a))

    def angles(self, rotation: np.ndarray) -> Tuple[float, float, float]:
        """Decompose a rotation matrix into (azimuth, pitch, roll) in degrees."""
        azimuth = math.degrees(math.atan2(rotation[0, 1], rotation[1, 1]))
        pitch = math.degrees(math.asin(clamp(float(rotation[2, 1]), -1.0, 1.0)))
        roll = math.degrees(math.atan2(rotation[2, 0], rotation[2, 2]))
        return normalize_0_360(azimuth), pitch, roll

    def tilt_magnitude(self, pitch: float, roll: float) -> float:
        return clamp(math.sqrt(pitch * pitch + roll * roll), 0.0, self.config.max_tilt)

    @staticmethod
    def tilt_direction_angle(pitch: float, roll: float) -> float:
        angle = math.degrees(math.atan2(roll, pitch))
        return (angle + 360.0) % 360.0

    def solve(
        self,
        accel: Sequence[float],
        mag: Sequence[float],
        magnetometer_accuracy: int,
        timestamp_ms: int,
    ) -> OrientationSample:
        """
        Solve one fused orientation sample.

        Magnetometer accuracy is carried through untouched; low accuracy
        never blocks a solve.
        """
        rotation = self.rotation_matrix(accel, mag)
        azimuth, pitch, roll = self.angles(rotation)

        return OrientationSample(
            azimuth_raw_deg=azimuth,
            pitch_deg=pitch,
            roll_deg=roll,
            tilt_magnitude_deg=self.tilt_magnitude(pitch, roll),
            tilt_direction_angle_deg=self.tilt_direction_angle(pitch, roll),
            magnetic_field_strength=float(np.linalg.norm(np.asarray(mag, dtype=float))),
            magnetometer_accuracy=magnetometer_accuracy,
            timestamp_ms=timestamp_ms,
        )
