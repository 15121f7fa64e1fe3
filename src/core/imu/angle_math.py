"""
Angular helpers shared by the solver, calibration and direction resolver.

Angles are plain floats in degrees. Linear quantities (tilt) use ordinary
arithmetic; wrapping quantities (azimuth, tilt direction) use the circular
variants below so that readings straddling 0°/360° do not blow up.

Usage:
    mean = circular_mean([350.0, 10.0])      # ~0.0, not 180.0
    spread = circular_std(samples, mean)
    index = sector_index(azimuth)            # 0..7, None for NaN
"""

import math
from typing import Optional, Sequence, Tuple

FULL_TURN = 360.0
HALF_TURN = 180.0
SECTOR_COUNT = 8
SECTOR_WIDTH = FULL_TURN / SECTOR_COUNT  # 45°


def normalize_0_360(angle: float) -> float:
    """Wrap an angle into [0, 360) by repeated ±360 steps."""
    while angle < 0.0:
        angle += FULL_TURN
    while angle >= FULL_TURN:
        angle -= FULL_TURN
    return angle


def fold_180(diff: float) -> float:
    """Fold a single angular difference into [-180, 180]."""
    if diff > HALF_TURN:
        diff -= FULL_TURN
    if diff < -HALF_TURN:
        diff += FULL_TURN
    return diff


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def std_dev(values: Sequence[float], center: Optional[float] = None) -> float:
    """Population standard deviation around ``center`` (default: arithmetic mean)."""
    if center is None:
        center = mean(values)
    variance = sum((v - center) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def circular_mean(angles: Sequence[float]) -> float:
    """Mean direction via sin/cos summation, normalized to [0, 360)."""
    sin_sum = 0.0
    cos_sum = 0.0
    for angle in angles:
        rad = math.radians(angle)
        sin_sum += math.sin(rad)
        cos_sum += math.cos(rad)

    mean_deg = math.degrees(math.atan2(sin_sum / len(angles), cos_sum / len(angles)))
    if mean_deg < 0.0:
        mean_deg += FULL_TURN
    return mean_deg


def circular_std(angles: Sequence[float], center: float) -> float:
    """RMS of per-sample differences to ``center``, each folded into [-180, 180]."""
    sum_sq = 0.0
    for angle in angles:
        diff = fold_180(angle - center)
        sum_sq += diff * diff
    return math.sqrt(sum_sq / len(angles))


def sector_bounds(index: int) -> Tuple[float, float]:
    """Half-open [low, high) bounds of a 45° sector centered on index*45°."""
    center = index * SECTOR_WIDTH
    return center - SECTOR_WIDTH / 2.0, center + SECTOR_WIDTH / 2.0


def sector_index(angle: float) -> Optional[int]:
    """
    Classify an angle into one of 8 sectors, each 45° wide.

    Sector 0 straddles the seam (``angle >= 337.5 or angle < 22.5``); the
    others are plain half-open ranges. Returns None when nothing matches
    (NaN input).
    """
    low, high = sector_bounds(0)
    if angle >= FULL_TURN + low or angle < high:
        return 0
    for index in range(1, SECTOR_COUNT):
        low, high = sector_bounds(index)
        if low <= angle < high:
            return index
    return None
