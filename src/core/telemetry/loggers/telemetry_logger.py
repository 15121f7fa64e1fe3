"""
Session telemetry for tilt readings and upload connectivity.

Consumes the two status streams of a monitoring session and appends them
as JSON lines under one timestamped directory:

    logs/session_2026-01-15_10-30-00/
        readings.jsonl   calibrated readings, throttled
        network.jsonl    every upload status transition
        system.jsonl     session start/end, calibration runs, errors
        summary.json     written by finalize_session()

Readings arrive from the fusion thread and network events from the upload
threads; both paths only take short locks.

Usage:
    from core.telemetry.loggers.telemetry_logger import TelemetryLogger

    telemetry = TelemetryLogger(min_reading_interval=0.5)
    readings.subscribe(telemetry.log_reading)
    status.subscribe(telemetry.log_network_status)
    summary = telemetry.finalize_session()
"""

import json
import math
import threading
import time
from collections import Counter
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from communication.protocols import NetworkStatusEvent, ReadingEvent


@dataclass
class ReadingMetric:
    """One persisted calibrated reading."""
    timestamp: float
    tilt_deg: float
    azimuth_deg: float
    direction: str
    absolute_direction: str
    tilt_direction_angle_deg: float
    magnetometer_accuracy: int

    @classmethod
    def from_event(cls, event: ReadingEvent, now: float) -> "ReadingMetric":
        return cls(
            timestamp=now,
            tilt_deg=event.tilt_deg,
            azimuth_deg=event.azimuth_deg,
            direction=event.direction,
            absolute_direction=event.absolute_direction,
            tilt_direction_angle_deg=event.tilt_direction_angle_deg,
            magnetometer_accuracy=event.magnetometer_accuracy,
        )


@dataclass
class NetworkMetric:
    """One persisted upload status transition."""
    timestamp: float
    status: str  # NetworkStatus value
    retry_count: int
    last_upload_ms: int
    delay_seconds: Optional[float] = None

    @classmethod
    def from_event(cls, event: NetworkStatusEvent, now: float) -> "NetworkMetric":
        return cls(
            timestamp=now,
            status=event.status.value,
            retry_count=event.retry_count,
            last_upload_ms=event.last_upload_ms,
            delay_seconds=event.delay_seconds,
        )


class TelemetryLogger:
    """JSONL recorder for one monitoring session."""

    def __init__(self, output_dir: Optional[Path] = None, min_reading_interval: float = 0.5):
        """
        Args:
            output_dir: Parent of the session directory (default: logs/)
            min_reading_interval: Minimum seconds between persisted readings
        """
        self._file_lock = threading.Lock()
        self._state_lock = threading.Lock()

        self.session_start = time.time()
        self.session_timestamp = datetime.fromtimestamp(self.session_start).strftime("%Y-%m-%d_%H-%M-%S")
        self.session_dir = Path(output_dir or "logs") / f"session_{self.session_timestamp}"
        self.session_dir.mkdir(parents=True, exist_ok=True)

        self.readings_log = self.session_dir / "readings.jsonl"
        self.network_log = self.session_dir / "network.jsonl"
        self.system_log = self.session_dir / "system.jsonl"

        self.min_reading_interval = min_reading_interval
        self._last_reading_at = 0.0
        # Running aggregates only; every line is already on disk
        self.reading_count = 0
        self._tilt_mean = 0.0
        self._tilt_m2 = 0.0
        self._tilt_max: Optional[float] = None
        self.network_counts: Counter = Counter()
        self._last_network_status: Optional[str] = None

        self._log_system_event("session_start", {"session": self.session_timestamp})

    def get_session_dir(self) -> Path:
        """Directory shared with the per-channel debug logs."""
        return self.session_dir

    # ------------------------------------------------------------------
    # stream consumers
    # ------------------------------------------------------------------

    def log_reading(self, reading: ReadingEvent, force: bool = False) -> bool:
        """
        Persist ``reading`` unless one was written less than
        ``min_reading_interval`` seconds ago.

        Returns:
            True if the reading was written
        """
        now = time.time()
        with self._state_lock:
            if not force and now - self._last_reading_at < self.min_reading_interval:
                return False
            self._last_reading_at = now
            metric = ReadingMetric.from_event(reading, now)
            self._add_tilt(metric.tilt_deg)

        self._append(self.readings_log, asdict(metric))
        return True

    def log_network_status(self, event: NetworkStatusEvent) -> None:
        """Persist every status transition (never throttled)."""
        metric = NetworkMetric.from_event(event, time.time())
        with self._state_lock:
            self.network_counts[metric.status] += 1
            self._last_network_status = metric.status
        self._append(self.network_log, asdict(metric))

    def _add_tilt(self, tilt: float) -> None:
        # Welford update
        self.reading_count += 1
        delta = tilt - self._tilt_mean
        self._tilt_mean += delta / self.reading_count
        self._tilt_m2 += delta * (tilt - self._tilt_mean)
        self._tilt_max = tilt if self._tilt_max is None else max(self._tilt_max, tilt)

    # ------------------------------------------------------------------
    # system events
    # ------------------------------------------------------------------

    def _log_system_event(self, event_type: str, data: Dict[str, Any]) -> None:
        self._append(self.system_log, {"event": event_type, "timestamp": time.time(), **data})

    def log_calibration(self, axis: str, success: bool, reason: str, offset: Optional[float] = None) -> None:
        self._log_system_event(
            "calibration",
            {"axis": axis, "success": success, "reason": reason, "offset_deg": offset},
        )

    def log_error(self, error_type: str, message: str, **kwargs: Any) -> None:
        self._log_system_event("error", {"error_type": error_type, "message": message, **kwargs})

    # ------------------------------------------------------------------
    # summary
    # ------------------------------------------------------------------

    def finalize_session(self) -> Dict[str, Any]:
        """
        Close the session: log ``session_end`` and write summary.json.

        Returns:
            Tilt statistics and network transition counts
        """
        with self._state_lock:
            count = self.reading_count
            summary = {
                "session": self.session_timestamp,
                "duration_seconds": time.time() - self.session_start,
                "total_readings": count,
                "avg_tilt_deg": self._tilt_mean if count else None,
                "max_tilt_deg": self._tilt_max,
                "tilt_std_deg": math.sqrt(self._tilt_m2 / count) if count > 1 else None,
                "network_transitions": sum(self.network_counts.values()),
                "network_status_counts": dict(self.network_counts),
                "final_network_status": self._last_network_status or "unknown",
            }

        self._log_system_event("session_end", summary)
        (self.session_dir / "summary.json").write_text(json.dumps(summary, indent=2), encoding="utf-8")
        return summary

    def _append(self, path: Path, data: Dict[str, Any]) -> None:
        try:
            line = json.dumps(data, ensure_ascii=True)
        except (TypeError, ValueError):
            line = json.dumps({"error": "serialization_failed", "repr": repr(data)})

        with self._file_lock, open(path, "a", encoding="utf-8") as handle:
            handle.write(line + "\n")
