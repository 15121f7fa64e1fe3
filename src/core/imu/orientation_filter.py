"""
Exponential low-pass smoothing of raw 3-axis sensor vectors.

The first sample of each sensor kind is stored verbatim and marks the kind
"ready"; later samples move the running value toward the input by
``alpha`` per component. The magnetometer uses a smaller alpha because the
ambient field is noisier than gravity.
"""

from typing import Dict, Optional, Sequence

import numpy as np

from core.imu.orientation_state import SensorKind
from utils.config_sections import FilterConfig


class OrientationFilter:
    """Per-kind smoothed vectors for accelerometer and magnetometer."""

    def __init__(self, config: Optional[FilterConfig] = None) -> None:
        self.config = config or FilterConfig()
        self._alphas: Dict[SensorKind, float] = {
            SensorKind.ACCELEROMETER: self.config.accel_alpha,
            SensorKind.MAGNETOMETER: self.config.mag_alpha,
        }
        self._smoothed: Dict[SensorKind, Optional[np.ndarray]] = {
            SensorKind.ACCELEROMETER: None,
            SensorKind.MAGNETOMETER: None,
        }

    def update(self, kind: SensorKind, raw: Sequence[float]) -> np.ndarray:
        """Feed one raw vector and return the smoothed vector for that kind."""
        values = np.asarray(raw, dtype=float)
        if values.shape != (3,):
            raise ValueError(f"Expected a 3-component vector, got shape {values.shape}")

        current = self._smoothed[kind]
        if current is None:
            current = values.copy()
        else:
            current = current + self._alphas[kind] * (values - current)

        self._smoothed[kind] = current
        return current.copy()

    def is_ready(self, kind: SensorKind) -> bool:
        return self._smoothed[kind] is not None

    @property
    def both_ready(self) -> bool:
        return all(v is not None for v in self._smoothed.values())

    def smoothed(self, kind: SensorKind) -> Optional[np.ndarray]:
        current = self._smoothed[kind]
        return None if current is None else current.copy()

    def reset(self) -> None:
        """Forget smoothed state (sampling stopped)."""
        for kind in self._smoothed:
            self._smoothed[kind] = None
