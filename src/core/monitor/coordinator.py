#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Monitoring Session Coordinator

Wires the sensor observer, calibration manager, upload scheduler and
telemetry into one start/stop unit.

Flow:
    sensor callbacks → SensorObserver → OrientationSample (latest value)
    → CalibrationManager.calibrate → ReadingEvent (latest value)
    → UploadScheduler (periodic snapshot) / TelemetryLogger / dashboard

Every pending timer of the session (next upload, next probe, backoff sleep,
calibration sampling) hangs off one CancellationScope, so ``stop()`` is a
single cancellation.

Calibration runs collect their own raw samples from the live pipeline and
pause ReadingEvent publication while they do.
"""

import logging
import threading
from typing import Callable, List, Optional

from communication.protocols import NetworkStatusEvent, ReadingEvent
from communication.upload_scheduler import UploadScheduler
from core.calibration.calibration_manager import CalibrationManager, CalibrationResult
from core.calibration.sample_collector import collect_samples
from core.imu.orientation_state import OrientationSample
from core.observer import SensorObserver, SensorUnavailableError
from core.processing.cancellation import CancellationScope
from core.processing.latest_value import LatestValue
from core.telemetry.loggers.telemetry_logger import TelemetryLogger
from utils.config_sections import AppConfig, CalibrationConfig

log = logging.getLogger(__name__)


class MonitoringSession:
    """One live measuring session: fusion, calibration, uploads, status."""

    def __init__(
        self,
        observer: SensorObserver,
        calibration: CalibrationManager,
        scheduler: UploadScheduler,
        telemetry: Optional[TelemetryLogger] = None,
        *,
        readings: Optional[LatestValue[ReadingEvent]] = None,
        calibration_config: Optional[CalibrationConfig] = None,
    ) -> None:
        self.observer = observer
        self.calibration = calibration
        self.scheduler = scheduler
        self.telemetry = telemetry
        self.readings: LatestValue[ReadingEvent] = readings or scheduler.readings
        self.calibration_config = calibration_config or calibration.config

        self.scope: Optional[CancellationScope] = None
        self._unsubscribers: List[Callable[[], None]] = []
        self._calibrating = threading.Event()
        self._lock = threading.Lock()
        self._running = False
        self.readings_published = 0

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    def start(self, source) -> bool:
        """
        Register with ``source`` and begin uploading.

        Returns:
            False if the source lacks a required sensor, True otherwise
        """
        with self._lock:
            if self._running:
                return True

            try:
                self.observer.register(source)
            except SensorUnavailableError as exc:
                log.error(f"[Monitor] Cannot start session: {exc}")
                if self.telemetry:
                    self.telemetry.log_error("sensor_unavailable", str(exc))
                return False

            self.scope = CancellationScope("session")
            self._unsubscribers = [self.observer.samples.subscribe(self._on_sample)]
            if self.telemetry:
                self._unsubscribers.append(self.scheduler.status.subscribe(self.telemetry.log_network_status))
            self._running = True

        self.scheduler.start(scope=self.scope)
        log.info("[Monitor] Session started")
        return True

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            scope = self.scope
            unsubscribers, self._unsubscribers = self._unsubscribers, []

        # One call cancels upload, probe, backoff and calibration waits
        if scope is not None:
            scope.cancel()
        self.scheduler.stop()
        for unsubscribe in unsubscribers:
            unsubscribe()
        self.observer.unregister()
        log.info("[Monitor] Session stopped")

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # status
    # ------------------------------------------------------------------

    def latest_reading(self) -> Optional[ReadingEvent]:
        return self.readings.get()

    def network_status(self) -> Optional[NetworkStatusEvent]:
        return self.scheduler.status.get()

    def update_app_config(self, app_config: AppConfig) -> None:
        """Persist new collector settings and apply them to the running uploads."""
        self.calibration.store.save_app_config(app_config)
        self.scheduler.update_config(app_config)

    def _on_sample(self, sample: OrientationSample) -> None:
        if self._calibrating.is_set():
            return

        reading = self.calibration.calibrate(sample)
        event = ReadingEvent(
            direction=reading.relative_direction,
            absolute_direction=reading.absolute_direction,
            azimuth_deg=reading.azimuth_calibrated_deg,
            tilt_deg=reading.tilt_calibrated_deg,
            tilt_direction_angle_deg=sample.tilt_direction_angle_deg,
            magnetometer_accuracy=sample.magnetometer_accuracy,
            magnetic_field_strength=sample.magnetic_field_strength,
            timestamp_ms=sample.timestamp_ms,
        )
        self.readings.publish(event)
        self.readings_published += 1
        if self.telemetry:
            self.telemetry.log_reading(event)

    # ------------------------------------------------------------------
    # calibration
    # ------------------------------------------------------------------

    def calibrate_tilt(self) -> CalibrationResult:
        return self._run_calibration(
            "tilt", self.observer.current_tilt, self.calibration.perform_tilt_calibration
        )

    def calibrate_azimuth(self) -> CalibrationResult:
        return self._run_calibration(
            "azimuth", self.observer.current_azimuth, self.calibration.perform_azimuth_calibration
        )

    def clear_calibration(self) -> None:
        self.calibration.clear_calibration()
        if self.telemetry:
            self.telemetry.log_calibration("clear", True, "cleared")

    def _run_calibration(
        self,
        axis: str,
        read: Callable[[], float],
        commit: Callable[[List[float]], CalibrationResult],
    ) -> CalibrationResult:
        """Collect raw samples and commit, with live readings paused throughout."""
        scope = self.scope if self._running and self.scope is not None else CancellationScope("standalone")
        token = scope.child(f"calibration-{axis}")

        log.info(
            f"[Monitor] Collecting {self.calibration_config.sample_count} {axis} samples, "
            "keep the device still"
        )
        self._calibrating.set()
        try:
            samples = collect_samples(
                read,
                count=self.calibration_config.sample_count,
                interval=self.calibration_config.sample_interval,
                token=token,
            )
            result = commit(samples)
        finally:
            self._calibrating.clear()

        if self.telemetry:
            self.telemetry.log_calibration(axis, result.success, result.reason, result.offset_deg)
        return result
