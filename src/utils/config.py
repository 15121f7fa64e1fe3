"""
Centralized configuration for the LevelCheck tilt monitor.

This module provides all configuration constants and runtime settings for:
- Sensor smoothing (low-pass filter coefficients)
- Orientation solving (degenerate-vector guards, tilt clamp)
- Calibration (stability thresholds, sampling cadence, offset bounds)
- Periodic upload (endpoint, intervals, retry/backoff, probe cadence)
- Status reporting (refresh interval, dashboard)

The Config class contains all constants as class attributes, making them
accessible throughout the application without instantiation. Components
never read these directly: they receive a typed section built by
``utils.config_sections`` so tests can shrink intervals and limits.

Usage:
    from utils.config import Config

    alpha = Config.ACCEL_FILTER_ALPHA
    if retry_count <= Config.MAX_RETRY_COUNT:
        ...
"""

import logging
from pathlib import Path

log = logging.getLogger(__name__)


class Config:
    """System configuration constants for the LevelCheck tilt monitor."""

    # ==========================================================================
    # SENSOR SMOOTHING: Exponential low-pass coefficients
    # ==========================================================================

    ACCEL_FILTER_ALPHA = 0.15           # Accelerometer smoothing
    MAG_FILTER_ALPHA = 0.10             # Magnetometer needs heavier smoothing

    # ==========================================================================
    # ORIENTATION SOLVER
    # ==========================================================================

    STANDARD_GRAVITY = 9.80665          # m/s²
    FREE_FALL_GRAVITY_FRACTION = 0.1    # |a| below 10% of g counts as free fall
    MIN_HORIZONTAL_FIELD_NORM = 0.1     # |E x A| below this = vectors parallel
    MAX_TILT_DEGREES = 90.0

    # Magnetometer accuracy ordinals (platform convention)
    MAG_ACCURACY_UNRELIABLE = 0
    MAG_ACCURACY_LOW = 1
    MAG_ACCURACY_MEDIUM = 2
    MAG_ACCURACY_HIGH = 3

    # ==========================================================================
    # CALIBRATION
    # ==========================================================================

    MAX_CALIBRATION_OFFSET = 45.0       # Stored tilt offsets beyond this are ignored
    TILT_CALIBRATION_MAX_STD = 2.0      # Degrees; above = device moving
    AZIMUTH_CALIBRATION_MAX_STD = 5.0   # Degrees (circular); above = field unstable
    CALIBRATION_SAMPLE_COUNT = 10
    CALIBRATION_SAMPLE_INTERVAL_MS = 100

    # ==========================================================================
    # UPLOAD: Collector endpoint and resilience
    # ==========================================================================

    DEFAULT_SERVER_HOST = ""
    DEFAULT_SERVER_PORT = 0
    DEFAULT_UPLOAD_INTERVAL = 5         # Seconds between uploads
    MIN_UPLOAD_INTERVAL = 1
    MAX_UPLOAD_INTERVAL = 30
    MIN_PORT = 1
    MAX_PORT = 65535

    UPLOAD_ENDPOINT = "/api/sensors"
    CONNECT_TIMEOUT_SECONDS = 10.0
    READ_TIMEOUT_SECONDS = 10.0

    MAX_RETRY_COUNT = 5
    RETRY_BASE_DELAY_SECONDS = 2.0      # delay = base * 2^retry (no cap, no jitter)
    NETWORK_PROBE_INTERVAL_SECONDS = 30.0
    BAD_REQUEST_STATUS = 400            # Payload rejected: not retried

    # ==========================================================================
    # STATUS REPORTING & PERSISTENCE
    # ==========================================================================

    STATUS_UPDATE_INTERVAL_MS = 500
    DASHBOARD_HOST = "127.0.0.1"
    DASHBOARD_PORT = 8080

    PREFERENCES_DIR = Path.home() / ".levelcheck"
    PREFERENCES_FILE = "preferences.json"
    LOG_DIR = Path("logs")
