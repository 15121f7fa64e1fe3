"""
Direction labels for calibrated azimuth and tilt direction.

Both classifiers split the circle into eight 45°-wide sectors centered on
0°, 45°, ... with half-open [low, high) bounds; the first sector wraps the
0°/360° seam. Inputs are expected in [0, 360); anything that matches no
sector (NaN) gets the fallback label.
"""

from typing import Literal, Optional, Tuple

from core.imu.angle_math import sector_index

AbsoluteDirection = Literal[
    "north", "northeast", "east", "southeast",
    "south", "southwest", "west", "northwest", "unknown",
]
RelativeDirection = Literal[
    "forward", "front-right", "right", "back-right",
    "backward", "back-left", "left", "front-left", "level",
]

ABSOLUTE_DIRECTIONS: Tuple[str, ...] = (
    "north", "northeast", "east", "southeast",
    "south", "southwest", "west", "northwest",
)
RELATIVE_DIRECTIONS: Tuple[str, ...] = (
    "forward", "front-right", "right", "back-right",
    "backward", "back-left", "left", "front-left",
)
UNKNOWN_DIRECTION = "unknown"
LEVEL_DIRECTION = "level"


def _resolve(angle: float, labels: Tuple[str, ...], fallback: str) -> str:
    index: Optional[int] = sector_index(angle)
    if index is None:
        return fallback
    return labels[index]


def resolve_absolute_direction(azimuth: float) -> AbsoluteDirection:
    """Compass label for a calibrated azimuth (0° = north)."""
    return _resolve(azimuth, ABSOLUTE_DIRECTIONS, UNKNOWN_DIRECTION)


def resolve_relative_direction(tilt_direction_angle: float) -> RelativeDirection:
    """User-relative label for a tilt direction angle (0° = forward)."""
    return _resolve(tilt_direction_angle, RELATIVE_DIRECTIONS, LEVEL_DIRECTION)
