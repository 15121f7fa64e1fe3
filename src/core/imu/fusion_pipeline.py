"""
Sensor fusion pipeline: raw events in, OrientationSample out.

The pipeline is a state transition ``(state, event) -> (state', sample?)``
independent of how events are delivered. State is the smoothed vectors,
the last magnetometer accuracy and the last valid sample.

Usage:
    pipeline = FusionPipeline()
    sample = pipeline.step(RawSample(SensorKind.ACCELEROMETER, (0, 0, 9.8), ts))
    if sample is not None:
        publish(sample)
"""

import logging
from typing import Optional

from core.imu.orientation_filter import OrientationFilter
from core.imu.orientation_solver import OrientationSolver, RotationMatrixError
from core.imu.orientation_state import OrientationSample, RawSample, SensorKind
from utils.config import Config

log = logging.getLogger(__name__)


class FusionPipeline:
    """Filter + solver with last-value-wins sample retention."""

    def __init__(
        self,
        orientation_filter: Optional[OrientationFilter] = None,
        solver: Optional[OrientationSolver] = None,
    ) -> None:
        self.filter = orientation_filter or OrientationFilter()
        self.solver = solver or OrientationSolver()
        self.magnetometer_accuracy = Config.MAG_ACCURACY_UNRELIABLE
        self.last_sample: Optional[OrientationSample] = None
        self.degenerate_count = 0

    def step(self, event: RawSample) -> Optional[OrientationSample]:
        """
        Consume one raw event.

        Returns a new sample once both kinds are ready and the rotation is
        solvable; returns None otherwise (last_sample is left untouched).
        """
        self.filter.update(event.kind, event.values)
        if not self.filter.both_ready:
            return None

        try:
            sample = self.solver.solve(
                self.filter.smoothed(SensorKind.ACCELEROMETER),
                self.filter.smoothed(SensorKind.MAGNETOMETER),
                self.magnetometer_accuracy,
                event.timestamp_ms,
            )
        except RotationMatrixError as exc:
            self.degenerate_count += 1
            log.debug(f"[Fusion] Skipping cycle: {exc}")
            return None

        self.last_sample = sample
        return sample

    def set_magnetometer_accuracy(self, accuracy: int) -> None:
        self.magnetometer_accuracy = int(accuracy)

    def current_azimuth(self) -> float:
        """Raw azimuth of the current smoothed state, 0.0 when unavailable."""
        sample = self._solve_current()
        return sample.azimuth_raw_deg if sample is not None else 0.0

    def current_tilt(self) -> float:
        """Raw tilt magnitude of the current smoothed state, 0.0 when unavailable."""
        sample = self._solve_current()
        return sample.tilt_magnitude_deg if sample is not None else 0.0

    def _solve_current(self) -> Optional[OrientationSample]:
        if not self.filter.both_ready:
            return None
        try:
            return self.solver.solve(
                self.filter.smoothed(SensorKind.ACCELEROMETER),
                self.filter.smoothed(SensorKind.MAGNETOMETER),
                self.magnetometer_accuracy,
                self.last_sample.timestamp_ms if self.last_sample else 0,
            )
        except RotationMatrixError:
            return None

    def reset(self) -> None:
        """Drop smoothed state; the next samples start a fresh session."""
        self.filter.reset()
        self.last_sample = None
