#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mock sensor source for development and testing without hardware.

This module provides a drop-in replacement for a platform sensor stream:
it synthesizes accelerometer and magnetometer vectors for a configured
device orientation and delivers them to a SensorObserver on a background
thread, exactly as the real callbacks would arrive.

Orientation model (device flat, screen up, then tilted):
- pitch = tilt * cos(direction), roll = tilt * sin(direction)
- gravity in device coordinates: g * (cos p sin r, sin p, cos p cos r)
- geomagnetic field: horizontal component toward magnetic north rotated by
  the heading, plus a downward vertical component

Optional Gaussian noise (numpy) is added per component to exercise the
smoothing filter and the calibration stability checks.

Usage:
    source = MockSensorSource(tilt_deg=3.0, tilt_direction_deg=90.0, heading_deg=45.0)
    observer.register(source)      # starts the generator thread
    ...
    observer.unregister()          # stops it
"""

import logging
import math
import threading
import time
from typing import Iterator, Optional, Sequence, Tuple

import numpy as np

from core.imu.orientation_state import RawSample, SensorKind
from utils.config import Config

log = logging.getLogger(__name__)

# Typical mid-latitude geomagnetic field, µT
HORIZONTAL_FIELD_UT = 20.0
VERTICAL_FIELD_UT = 40.0


class MockSensorSource:
    """
    Synthetic accelerometer/magnetometer stream.

    Args:
        tilt_deg: Deviation from horizontal
        tilt_direction_deg: Which way the device leans (0 = top edge up, 90 = right edge up)
        heading_deg: Compass heading of the top edge
        noise: Std dev of Gaussian noise added to every component
        rate_hz: Events per second per sensor
        accuracy: Reported magnetometer accuracy (0-3)
        sensors: Streams this source provides
        seed: RNG seed for reproducible noise
    """

    def __init__(
        self,
        tilt_deg: float = 0.0,
        tilt_direction_deg: float = 0.0,
        heading_deg: float = 0.0,
        noise: float = 0.0,
        rate_hz: float = 50.0,
        accuracy: int = Config.MAG_ACCURACY_HIGH,
        sensors: Sequence[SensorKind] = (SensorKind.ACCELEROMETER, SensorKind.MAGNETOMETER),
        seed: Optional[int] = None,
    ) -> None:
        self.tilt_deg = tilt_deg
        self.tilt_direction_deg = tilt_direction_deg
        self.heading_deg = heading_deg
        self.noise = noise
        self.rate_hz = rate_hz
        self.accuracy = accuracy
        self.sensors = tuple(sensors)
        self._rng = np.random.default_rng(seed)

        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.events_sent = 0

    # ------------------------------------------------------------------
    # capability
    # ------------------------------------------------------------------

    def has_sensor(self, kind: SensorKind) -> bool:
        return kind in self.sensors

    def set_orientation(
        self,
        tilt_deg: Optional[float] = None,
        tilt_direction_deg: Optional[float] = None,
        heading_deg: Optional[float] = None,
    ) -> None:
        with self._lock:
            if tilt_deg is not None:
                self.tilt_deg = tilt_deg
            if tilt_direction_deg is not None:
                self.tilt_direction_deg = tilt_direction_deg
            if heading_deg is not None:
                self.heading_deg = heading_deg

    # ------------------------------------------------------------------
    # synthesis
    # ------------------------------------------------------------------

    def _up_vector(self) -> np.ndarray:
        """World up expressed in device coordinates."""
        tilt = math.radians(self.tilt_deg)
        direction = math.radians(self.tilt_direction_deg)
        pitch = tilt * math.cos(direction)
        roll = tilt * math.sin(direction)
        return np.array([
            math.cos(pitch) * math.sin(roll),
            math.sin(pitch),
            math.cos(pitch) * math.cos(roll),
        ])

    def _with_noise(self, vector: np.ndarray) -> Tuple[float, float, float]:
        if self.noise > 0:
            vector = vector + self._rng.normal(0.0, self.noise, 3)
        return tuple(float(v) for v in vector)

    def accelerometer_vector(self) -> Tuple[float, float, float]:
        with self._lock:
            up = self._up_vector()
        return self._with_noise(Config.STANDARD_GRAVITY * up)

    def magnetometer_vector(self) -> Tuple[float, float, float]:
        with self._lock:
            up = self._up_vector()
            heading = math.radians(self.heading_deg)

        # Device top edge projected on the horizontal plane
        forward = np.array([0.0, 1.0, 0.0]) - up[1] * up
        forward /= np.linalg.norm(forward)
        side = np.cross(up, forward)

        # Magnetic north in device coordinates for the requested heading
        north = math.cos(heading) * forward + math.sin(heading) * side
        return self._with_noise(HORIZONTAL_FIELD_UT * north - VERTICAL_FIELD_UT * up)

    def events(self, count: int, start_ms: int = 0, step_ms: int = 20) -> Iterator[RawSample]:
        """Yield ``count`` accelerometer/magnetometer pairs without threads."""
        for index in range(count):
            ts = start_ms + index * step_ms
            yield RawSample(SensorKind.ACCELEROMETER, self.accelerometer_vector(), ts)
            yield RawSample(SensorKind.MAGNETOMETER, self.magnetometer_vector(), ts)

    def emit_once(self, observer) -> None:
        """Deliver one accelerometer and one magnetometer callback."""
        ts = int(time.time() * 1000)
        if self.has_sensor(SensorKind.ACCELEROMETER):
            observer.on_accelerometer_received(self.accelerometer_vector(), ts)
        if self.has_sensor(SensorKind.MAGNETOMETER):
            observer.on_magnetometer_received(self.magnetometer_vector(), ts)
        self.events_sent += 1

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    def start(self, observer) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        observer.on_accuracy_changed(SensorKind.MAGNETOMETER, self.accuracy)
        self._thread = threading.Thread(
            target=self._generate_loop, args=(observer,), name="MockSensorSource", daemon=True
        )
        self._thread.start()
        log.info(
            f"[MockSensor] Streaming @ {self.rate_hz:g} Hz "
            f"(tilt={self.tilt_deg:g}°, direction={self.tilt_direction_deg:g}°, "
            f"heading={self.heading_deg:g}°, noise={self.noise:g})"
        )

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        log.info(f"[MockSensor] Stopped after {self.events_sent} event pairs")

    def _generate_loop(self, observer) -> None:
        period = 1.0 / self.rate_hz
        while not self._stop_event.is_set():
            self.emit_once(observer)
            self._stop_event.wait(period)
