"""
Persistence capability for calibration offsets and collector settings.

The core treats persistence as synchronous and always available. Two
implementations are provided:

- InMemoryPreferenceStore: process-local dict (tests, demos)
- JsonPreferenceStore: one JSON document on disk, rewritten on each save

Saving either offset stamps ``calibrated_at_ms`` with the store clock;
``clear()`` zeroes both offsets and the stamp so ``is_calibrated`` turns
false.

Usage:
    store = JsonPreferenceStore(Path("~/.levelcheck/preferences.json").expanduser())
    store.save_tilt_offset(1.8)
    offset = store.get_calibration_offset()
"""

import json
import logging
import math
import threading
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from utils.config_sections import AppConfig, default_app_config

log = logging.getLogger(__name__)

KEY_TILT_OFFSET = "calibration_tilt_offset"
KEY_AZIMUTH_OFFSET = "calibration_azimuth_offset"
KEY_CALIBRATION_TIME = "calibration_timestamp"
KEY_APP_CONFIG = "app_config"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _coerce(data: Dict[str, Any], key: str, default: Any, cast: Callable[[Any], Any]) -> Any:
    """Read ``data[key]`` as ``cast``; unusable values fall back to ``default``."""
    if key not in data:
        return default
    try:
        return cast(data[key])
    except (TypeError, ValueError, OverflowError):
        log.warning(f"[Preferences] Ignoring invalid value for {key}: {data[key]!r}; using {default!r}")
        return default


def _finite_float(value: Any) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"non-finite angle {value!r}")
    return number


def _text(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected text, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class CalibrationOffset:
    """Persisted tilt/azimuth offsets (degrees) and when they were taken."""
    tilt_offset_deg: float = 0.0
    azimuth_offset_deg: float = 0.0
    calibrated_at_ms: int = 0

    @property
    def is_calibrated(self) -> bool:
        return self.calibrated_at_ms > 0


class PreferenceStore:
    """Key/value preference store. Subclasses provide ``_load``/``_save``."""

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        self._clock = clock or _now_ms
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # backend
    # ------------------------------------------------------------------

    def _load(self) -> Dict[str, Any]:
        raise NotImplementedError

    def _save(self, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    def _update(self, **values: Any) -> None:
        with self._lock:
            data = self._load()
            data.update(values)
            self._save(data)

    # ------------------------------------------------------------------
    # calibration
    # ------------------------------------------------------------------

    def get_calibration_offset(self) -> CalibrationOffset:
        with self._lock:
            data = self._load()
        return CalibrationOffset(
            tilt_offset_deg=_coerce(data, KEY_TILT_OFFSET, 0.0, _finite_float),
            azimuth_offset_deg=_coerce(data, KEY_AZIMUTH_OFFSET, 0.0, _finite_float),
            calibrated_at_ms=_coerce(data, KEY_CALIBRATION_TIME, 0, int),
        )

    def save_tilt_offset(self, offset: float) -> None:
        self._update(**{KEY_TILT_OFFSET: float(offset), KEY_CALIBRATION_TIME: self._clock()})

    def save_azimuth_offset(self, offset: float) -> None:
        self._update(**{KEY_AZIMUTH_OFFSET: float(offset), KEY_CALIBRATION_TIME: self._clock()})

    def clear(self) -> None:
        self._update(**{KEY_TILT_OFFSET: 0.0, KEY_AZIMUTH_OFFSET: 0.0, KEY_CALIBRATION_TIME: 0})

    # ------------------------------------------------------------------
    # collector settings
    # ------------------------------------------------------------------

    def get_app_config(self) -> AppConfig:
        with self._lock:
            stored = self._load().get(KEY_APP_CONFIG)
        config = default_app_config()
        if not isinstance(stored, dict):
            return config
        return AppConfig(
            server_host=_coerce(stored, "server_host", config.server_host, _text),
            server_port=_coerce(stored, "server_port", config.server_port, int),
            upload_interval_seconds=_coerce(
                stored, "upload_interval_seconds", config.upload_interval_seconds, int
            ),
        )

    def save_app_config(self, config: AppConfig) -> None:
        self._update(**{KEY_APP_CONFIG: asdict(config)})


class InMemoryPreferenceStore(PreferenceStore):
    """Preference store backed by a dict."""

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        super().__init__(clock)
        self._data: Dict[str, Any] = {}

    def _load(self) -> Dict[str, Any]:
        return dict(self._data)

    def _save(self, data: Dict[str, Any]) -> None:
        self._data = dict(data)


class JsonPreferenceStore(PreferenceStore):
    """Preference store persisted as a single JSON file."""

    def __init__(self, path: Path, clock: Optional[Callable[[], int]] = None) -> None:
        super().__init__(clock)
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            log.warning(f"[Preferences] Unreadable preference file {self.path}: {exc}; using defaults")
            return {}
        if not isinstance(data, dict):
            log.warning(f"[Preferences] Unexpected content in {self.path}; using defaults")
            return {}
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(self.path)
