"""
Typed configuration sections for the LevelCheck tilt monitor.

This module provides strongly-typed configuration sections so components
receive their tunables through the constructor instead of reading the
global Config class.

Benefits:
- Type safety: IDE autocomplete and type checking
- Discoverability: All config options visible in one place
- Default values: Centralized and documented
- Better testing: Sections can be built with tiny intervals and limits
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class FilterConfig:
    """Configuration for the exponential low-pass filter."""

    accel_alpha: float = 0.15
    mag_alpha: float = 0.10


@dataclass
class SolverConfig:
    """Configuration for rotation-matrix orientation solving."""

    gravity: float = 9.80665
    free_fall_fraction: float = 0.1  # of g; squared before comparing
    min_horizontal_norm: float = 0.1
    max_tilt: float = 90.0


@dataclass
class CalibrationConfig:
    """Configuration for tilt/azimuth calibration."""

    max_tilt_offset: float = 45.0
    max_tilt: float = 90.0  # calibrated tilt clamp
    tilt_max_std: float = 2.0
    azimuth_max_std: float = 5.0
    sample_count: int = 10
    sample_interval: float = 0.1  # seconds


@dataclass
class UploadConfig:
    """Configuration for periodic upload, retry/backoff and recovery probing."""

    endpoint: str = "/api/sensors"
    connect_timeout: float = 10.0
    read_timeout: float = 10.0

    max_retry: int = 5
    base_delay: float = 2.0  # seconds
    probe_interval: float = 30.0  # seconds
    bad_request_status: int = 400


@dataclass
class DashboardConfig:
    """Configuration for status reporting and the web dashboard."""

    host: str = "127.0.0.1"
    port: int = 8080
    status_interval: float = 0.5  # seconds between throttled status writes


@dataclass
class AppConfig:
    """User-editable collector settings (persisted in the preference store)."""

    server_host: str = ""
    server_port: int = 0
    upload_interval_seconds: int = 5

    @property
    def base_url(self) -> str:
        return f"http://{self.server_host}:{self.server_port}"

    @property
    def is_server_configured(self) -> bool:
        from utils.config import Config

        host = (self.server_host or "").strip()
        return bool(host) and Config.MIN_PORT <= self.server_port <= Config.MAX_PORT

    def validate(self) -> Optional[str]:
        """Return a human-readable validation error, or None when valid."""
        from utils.config import Config

        if not (self.server_host or "").strip():
            return "Server host must not be empty"
        if not Config.MIN_PORT <= self.server_port <= Config.MAX_PORT:
            return f"Port must be in range {Config.MIN_PORT} - {Config.MAX_PORT}"
        if not Config.MIN_UPLOAD_INTERVAL <= self.upload_interval_seconds <= Config.MAX_UPLOAD_INTERVAL:
            return (
                f"Upload interval must be in range {Config.MIN_UPLOAD_INTERVAL} - "
                f"{Config.MAX_UPLOAD_INTERVAL} seconds"
            )
        return None


def load_filter_config() -> FilterConfig:
    """
    Load filter configuration from Config with fallback defaults.

    Returns:
        FilterConfig with values from Config or defaults
    """
    from utils.config import Config

    return FilterConfig(
        accel_alpha=getattr(Config, "ACCEL_FILTER_ALPHA", 0.15),
        mag_alpha=getattr(Config, "MAG_FILTER_ALPHA", 0.10),
    )


def load_solver_config() -> SolverConfig:
    """
    Load orientation solver configuration from Config with fallback defaults.

    Returns:
        SolverConfig with values from Config or defaults
    """
    from utils.config import Config

    return SolverConfig(
        gravity=getattr(Config, "STANDARD_GRAVITY", 9.80665),
        free_fall_fraction=getattr(Config, "FREE_FALL_GRAVITY_FRACTION", 0.1),
        min_horizontal_norm=getattr(Config, "MIN_HORIZONTAL_FIELD_NORM", 0.1),
        max_tilt=getattr(Config, "MAX_TILT_DEGREES", 90.0),
    )


def load_calibration_config() -> CalibrationConfig:
    """
    Load calibration configuration from Config with fallback defaults.

    Returns:
        CalibrationConfig with values from Config or defaults
    """
    from utils.config import Config

    return CalibrationConfig(
        max_tilt_offset=getattr(Config, "MAX_CALIBRATION_OFFSET", 45.0),
        max_tilt=getattr(Config, "MAX_TILT_DEGREES", 90.0),
        tilt_max_std=getattr(Config, "TILT_CALIBRATION_MAX_STD", 2.0),
        azimuth_max_std=getattr(Config, "AZIMUTH_CALIBRATION_MAX_STD", 5.0),
        sample_count=getattr(Config, "CALIBRATION_SAMPLE_COUNT", 10),
        sample_interval=getattr(Config, "CALIBRATION_SAMPLE_INTERVAL_MS", 100) / 1000.0,
    )


def load_upload_config() -> UploadConfig:
    """
    Load upload/retry configuration from Config with fallback defaults.

    Returns:
        UploadConfig with values from Config or defaults
    """
    from utils.config import Config

    return UploadConfig(
        endpoint=getattr(Config, "UPLOAD_ENDPOINT", "/api/sensors"),
        connect_timeout=getattr(Config, "CONNECT_TIMEOUT_SECONDS", 10.0),
        read_timeout=getattr(Config, "READ_TIMEOUT_SECONDS", 10.0),
        max_retry=getattr(Config, "MAX_RETRY_COUNT", 5),
        base_delay=getattr(Config, "RETRY_BASE_DELAY_SECONDS", 2.0),
        probe_interval=getattr(Config, "NETWORK_PROBE_INTERVAL_SECONDS", 30.0),
        bad_request_status=getattr(Config, "BAD_REQUEST_STATUS", 400),
    )


def load_dashboard_config() -> DashboardConfig:
    """
    Load dashboard/status configuration from Config with fallback defaults.

    Returns:
        DashboardConfig with values from Config or defaults
    """
    from utils.config import Config

    return DashboardConfig(
        host=getattr(Config, "DASHBOARD_HOST", "127.0.0.1"),
        port=getattr(Config, "DASHBOARD_PORT", 8080),
        status_interval=getattr(Config, "STATUS_UPDATE_INTERVAL_MS", 500) / 1000.0,
    )


def default_app_config() -> AppConfig:
    """Unconfigured collector settings (blank host, port 0)."""
    from utils.config import Config

    return AppConfig(
        server_host=getattr(Config, "DEFAULT_SERVER_HOST", ""),
        server_port=getattr(Config, "DEFAULT_SERVER_PORT", 0),
        upload_interval_seconds=getattr(Config, "DEFAULT_UPLOAD_INTERVAL", 5),
    )
