#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Callback surface for the platform accelerometer/magnetometer streams.

The observer is the only writer of the orientation snapshot: every callback
runs one FusionPipeline step under a lock, so samples are processed
strictly in order and never re-enter the filter/solver. Each emitted
OrientationSample is published to a LatestValue slot that display and
upload readers poll without blocking the sensor stream.

A sensor source is any object exposing:
    has_sensor(kind: SensorKind) -> bool
    start(observer: SensorObserver) -> None   # begins delivering callbacks
    stop() -> None
"""

import logging
import threading
from typing import Any, Optional, Sequence

from core.imu.fusion_pipeline import FusionPipeline
from core.imu.orientation_state import OrientationSample, RawSample, SensorKind
from core.processing.latest_value import LatestValue
from utils.config import Config

log = logging.getLogger(__name__)


class SensorUnavailableError(RuntimeError):
    """A required sensor stream is missing on the source."""

    def __init__(self, kind: SensorKind) -> None:
        super().__init__(f"{kind.value} not available")
        self.kind = kind


_ACCURACY_NAMES = {
    Config.MAG_ACCURACY_UNRELIABLE: "UNRELIABLE",
    Config.MAG_ACCURACY_LOW: "LOW",
    Config.MAG_ACCURACY_MEDIUM: "MEDIUM",
    Config.MAG_ACCURACY_HIGH: "HIGH",
}


class SensorObserver:
    """
    Feeds raw sensor callbacks through the fusion pipeline.
    """

    REQUIRED_SENSORS = (SensorKind.ACCELEROMETER, SensorKind.MAGNETOMETER)

    def __init__(
        self,
        pipeline: Optional[FusionPipeline] = None,
        samples: Optional[LatestValue[OrientationSample]] = None,
    ) -> None:
        self.pipeline = pipeline or FusionPipeline()
        self.samples: LatestValue[OrientationSample] = samples or LatestValue()

        self._lock = threading.Lock()
        self._source: Optional[Any] = None
        self.event_counts = {kind: 0 for kind in SensorKind}

    # ------------------------------------------------------------------
    # registration
    # ------------------------------------------------------------------

    def register(self, source: Any) -> None:
        """
        Attach to a sensor source and start receiving callbacks.

        Raises:
            SensorUnavailableError: if the source lacks a required stream
        """
        for kind in self.REQUIRED_SENSORS:
            if not source.has_sensor(kind):
                log.error(f"[Fusion] Required sensor missing: {kind.value}")
                raise SensorUnavailableError(kind)

        self._source = source
        source.start(self)
        log.info("[Fusion] Sensor listeners registered")

    def unregister(self) -> None:
        """Detach from the source; smoothed state goes back to unset."""
        source, self._source = self._source, None
        if source is not None:
            source.stop()
        with self._lock:
            self.pipeline.reset()
        log.info("[Fusion] Sensor listeners unregistered")

    @property
    def registered(self) -> bool:
        return self._source is not None

    # ------------------------------------------------------------------
    # callbacks
    # ------------------------------------------------------------------

    def on_accelerometer_received(self, values: Sequence[float], timestamp_ms: int) -> None:
        self._on_sample(RawSample(SensorKind.ACCELEROMETER, tuple(values), int(timestamp_ms)))

    def on_magnetometer_received(self, values: Sequence[float], timestamp_ms: int) -> None:
        self._on_sample(RawSample(SensorKind.MAGNETOMETER, tuple(values), int(timestamp_ms)))

    def on_accuracy_changed(self, kind: SensorKind, accuracy: int) -> None:
        """Only the magnetometer accuracy is tracked; it never blocks fusion."""
        if kind != SensorKind.MAGNETOMETER:
            return

        name = _ACCURACY_NAMES.get(accuracy, str(accuracy))
        if accuracy <= Config.MAG_ACCURACY_LOW:
            log.warning(
                f"[Fusion] Magnetometer accuracy {name}: "
                "move the device in a figure-8 pattern to recalibrate"
            )
        else:
            log.debug(f"[Fusion] Magnetometer accuracy {name}")

        with self._lock:
            self.pipeline.set_magnetometer_accuracy(accuracy)

    def _on_sample(self, event: RawSample) -> None:
        with self._lock:
            self.event_counts[event.kind] += 1
            sample = self.pipeline.step(event)

        if sample is not None:
            self.samples.publish(sample)

    # ------------------------------------------------------------------
    # reads used by the calibration flows
    # ------------------------------------------------------------------

    def current_tilt(self) -> float:
        with self._lock:
            return self.pipeline.current_tilt()

    def current_azimuth(self) -> float:
        with self._lock:
            return self.pipeline.current_azimuth()
