"""
Tilt and azimuth calibration against a persisted offset record.

Two independent single-axis flows share one CalibrationOffset:

- Tilt is linear: arithmetic mean, population std dev, threshold 2.0°.
- Azimuth wraps at 360°: circular mean (sin/cos + atan2) and a circular
  std dev with per-sample differences folded into [-180, 180], threshold
  5.0° (the magnetic field is noisier).

A failed run commits nothing and reports why.

Usage:
    manager = CalibrationManager(store)
    result = manager.perform_tilt_calibration(samples)
    if not result:
        print(result.reason)
    reading = manager.calibrate(sample)
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from core.calibration.preference_store import CalibrationOffset, PreferenceStore
from core.imu.angle_math import circular_mean, circular_std, clamp, mean, normalize_0_360, std_dev
from core.imu.direction_resolver import resolve_absolute_direction, resolve_relative_direction
from core.imu.orientation_state import CalibratedReading, OrientationSample
from utils.config_sections import CalibrationConfig

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalibrationResult:
    """Outcome of one calibration run; truthy iff it succeeded."""
    success: bool
    reason: str
    offset_deg: Optional[float] = None
    spread_deg: Optional[float] = None

    def __bool__(self) -> bool:
        return self.success


class CalibrationManager:
    """Applies stored offsets and runs the calibration procedures."""

    def __init__(self, store: PreferenceStore, config: Optional[CalibrationConfig] = None) -> None:
        self.store = store
        self.config = config or CalibrationConfig()

    def get_calibration_offset(self) -> CalibrationOffset:
        return self.store.get_calibration_offset()

    # ------------------------------------------------------------------
    # applying offsets
    # ------------------------------------------------------------------

    def apply_tilt_calibration(self, raw_tilt: float) -> float:
        offset = self.store.get_calibration_offset().tilt_offset_deg

        # Implausible stored offset: pass the raw value through
        if not math.isfinite(offset) or abs(offset) > self.config.max_tilt_offset:
            return raw_tilt

        return clamp(abs(raw_tilt - offset), 0.0, self.config.max_tilt)

    def apply_azimuth_calibration(self, raw_azimuth: float) -> float:
        offset = self.store.get_calibration_offset().azimuth_offset_deg
        if not math.isfinite(offset) or abs(offset) > 360.0:
            return normalize_0_360(raw_azimuth)
        return normalize_0_360(raw_azimuth - offset)

    def calibrate(self, sample: OrientationSample) -> CalibratedReading:
        """Apply both offsets to a solver sample and attach direction labels."""
        azimuth = self.apply_azimuth_calibration(sample.azimuth_raw_deg)
        return CalibratedReading(
            azimuth_calibrated_deg=azimuth,
            tilt_calibrated_deg=self.apply_tilt_calibration(sample.tilt_magnitude_deg),
            absolute_direction=resolve_absolute_direction(azimuth),
            relative_direction=resolve_relative_direction(sample.tilt_direction_angle_deg),
        )

    # ------------------------------------------------------------------
    # calibration runs
    # ------------------------------------------------------------------

    def perform_tilt_calibration(self, samples: Sequence[float]) -> CalibrationResult:
        if not samples:
            log.warning("[Calibration] Tilt calibration failed: no samples collected")
            return CalibrationResult(False, "no samples collected")

        average = mean(samples)
        spread = std_dev(samples, average)
        if spread > self.config.tilt_max_std:
            reason = f"device is moving (std dev {spread:.2f} > {self.config.tilt_max_std})"
            log.warning(f"[Calibration] Tilt calibration failed: {reason}")
            return CalibrationResult(False, reason, spread_deg=spread)

        self.store.save_tilt_offset(average)
        log.info(f"[Calibration] Tilt offset set to {average:.2f}° (std dev {spread:.2f}°)")
        return CalibrationResult(True, "ok", offset_deg=average, spread_deg=spread)

    def perform_azimuth_calibration(self, samples: Sequence[float]) -> CalibrationResult:
        if not samples:
            log.warning("[Calibration] Azimuth calibration failed: no samples collected")
            return CalibrationResult(False, "no samples collected")

        average = circular_mean(samples)
        spread = circular_std(samples, average)
        if spread > self.config.azimuth_max_std:
            reason = (
                f"magnetic field unstable (circular std dev {spread:.2f} > "
                f"{self.config.azimuth_max_std})"
            )
            log.warning(f"[Calibration] Azimuth calibration failed: {reason}")
            return CalibrationResult(False, reason, spread_deg=spread)

        self.store.save_azimuth_offset(average)
        log.info(f"[Calibration] Azimuth offset set to {average:.2f}° (circular std dev {spread:.2f}°)")
        return CalibrationResult(True, "ok", offset_deg=average, spread_deg=spread)

    def clear_calibration(self) -> None:
        self.store.clear()
        log.info("[Calibration] Calibration cleared")
