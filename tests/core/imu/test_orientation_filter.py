"""Tests for the exponential smoothing filter."""

from __future__ import annotations

import numpy as np
import pytest

from core.imu.orientation_filter import OrientationFilter
from core.imu.orientation_state import SensorKind
from utils.config_sections import FilterConfig


def test_first_sample_is_stored_verbatim():
    orientation_filter = OrientationFilter()
    out = orientation_filter.update(SensorKind.ACCELEROMETER, (1.0, 2.0, 3.0))

    assert out.tolist() == [1.0, 2.0, 3.0]
    assert orientation_filter.is_ready(SensorKind.ACCELEROMETER)
    assert not orientation_filter.is_ready(SensorKind.MAGNETOMETER)
    assert not orientation_filter.both_ready


def test_accelerometer_and_magnetometer_use_their_own_alpha():
    orientation_filter = OrientationFilter(FilterConfig(accel_alpha=0.15, mag_alpha=0.10))
    orientation_filter.update(SensorKind.ACCELEROMETER, (0.0, 0.0, 0.0))
    orientation_filter.update(SensorKind.MAGNETOMETER, (0.0, 0.0, 0.0))

    accel = orientation_filter.update(SensorKind.ACCELEROMETER, (10.0, 0.0, -10.0))
    mag = orientation_filter.update(SensorKind.MAGNETOMETER, (10.0, 0.0, -10.0))

    assert accel == pytest.approx(np.array([1.5, 0.0, -1.5]))
    assert mag == pytest.approx(np.array([1.0, 0.0, -1.0]))
    assert orientation_filter.both_ready


def test_filter_converges_to_constant_input():
    orientation_filter = OrientationFilter()
    orientation_filter.update(SensorKind.MAGNETOMETER, (0.0, 0.0, 0.0))
    for _ in range(200):
        out = orientation_filter.update(SensorKind.MAGNETOMETER, (0.0, 20.0, -40.0))
    assert out == pytest.approx(np.array([0.0, 20.0, -40.0]), abs=1e-6)


def test_smoothed_returns_a_copy():
    orientation_filter = OrientationFilter()
    orientation_filter.update(SensorKind.ACCELEROMETER, (0.0, 0.0, 9.8))
    snapshot = orientation_filter.smoothed(SensorKind.ACCELEROMETER)
    snapshot[2] = 0.0
    assert orientation_filter.smoothed(SensorKind.ACCELEROMETER)[2] == pytest.approx(9.8)


def test_reset_marks_both_unset():
    orientation_filter = OrientationFilter()
    orientation_filter.update(SensorKind.ACCELEROMETER, (0.0, 0.0, 9.8))
    orientation_filter.update(SensorKind.MAGNETOMETER, (0.0, 20.0, -40.0))
    orientation_filter.reset()

    assert not orientation_filter.both_ready
    assert orientation_filter.smoothed(SensorKind.ACCELEROMETER) is None


def test_rejects_wrong_shape():
    with pytest.raises(ValueError):
        OrientationFilter().update(SensorKind.ACCELEROMETER, (1.0, 2.0))
