"""
HTTP client for the remote collector.

One POST per attempt to ``{base_url}/api/sensors``. Network faults never
escape this class: every attempt is classified into an UploadOutcome so the
state machine can decide between retry, pause and continue.

Classification:
- 2xx                                  → SUCCESS
- 400                                  → BAD_REQUEST (payload rejected)
- other HTTP status                    → RETRYABLE_FAILURE
- unresolvable host / unusable address → UNRESOLVED_ADDRESS
- connect refused, timeout, transport  → RETRYABLE_FAILURE
"""

import logging
import socket
from typing import Iterator, Optional, Set

import requests

from communication.protocols import (
    MessageValidationError,
    SensorDataUpload,
    UploadOutcome,
)
from utils.config_sections import AppConfig, UploadConfig

log = logging.getLogger(__name__)


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Walk an exception, its causes/contexts, ``args`` and urllib3 ``reason``."""
    stack = [exc]
    seen: Set[int] = set()
    while stack:
        current = stack.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        yield current

        for attr in ("__cause__", "__context__", "reason"):
            nested = getattr(current, attr, None)
            if isinstance(nested, BaseException):
                stack.append(nested)
        for arg in getattr(current, "args", ()):
            if isinstance(arg, BaseException):
                stack.append(arg)


def is_unresolved_address(exc: BaseException) -> bool:
    """True when the failure comes from host resolution or a malformed address."""
    if isinstance(exc, (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema)):
        return True
    for nested in _exception_chain(exc):
        if isinstance(nested, socket.gaierror):
            return True
        if type(nested).__name__ == "NameResolutionError":
            return True
    return False


class UploadClient:
    """Posts calibrated readings to the collector and classifies the result."""

    def __init__(
        self,
        app_config: AppConfig,
        config: Optional[UploadConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config or UploadConfig()
        self.session = session or requests.Session()
        self.base_url = ""
        self.reconfigure(app_config)

    def reconfigure(self, app_config: AppConfig) -> None:
        """Point the client at new collector settings."""
        self.app_config = app_config
        self.base_url = app_config.base_url
        log.debug(f"[Upload] Collector URL: {self.url}")

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.config.endpoint}"

    def _post(self, payload: SensorDataUpload) -> requests.Response:
        return self.session.post(
            self.url,
            data=payload.to_json(),
            headers={"Content-Type": "application/json"},
            timeout=(self.config.connect_timeout, self.config.read_timeout),
        )

    def upload(self, tilt_calibrated_deg: float) -> UploadOutcome:
        """Upload one reading; never raises for network faults."""
        payload = SensorDataUpload.for_tilt(tilt_calibrated_deg)
        try:
            payload.validate()
        except MessageValidationError as exc:
            log.error(f"[Upload] Refusing invalid payload: {exc}")
            return UploadOutcome.BAD_REQUEST

        if not self.app_config.is_server_configured:
            log.warning("[Upload] Collector address not configured")
            return UploadOutcome.UNRESOLVED_ADDRESS

        try:
            response = self._post(payload)
        except requests.exceptions.RequestException as exc:
            return self._classify_exception(exc)

        if 200 <= response.status_code < 300:
            log.debug(f"[Upload] Uploaded tilt={tilt_calibrated_deg:.1f}°")
            return UploadOutcome.SUCCESS

        log.warning(f"[Upload] Upload failed with code: {response.status_code}")
        if response.status_code == self.config.bad_request_status:
            log.error("[Upload] Bad request, skipping retry")
            return UploadOutcome.BAD_REQUEST
        return UploadOutcome.RETRYABLE_FAILURE

    def _classify_exception(self, exc: requests.exceptions.RequestException) -> UploadOutcome:
        if is_unresolved_address(exc):
            log.warning(f"[Upload] Server address cannot be resolved: {exc}")
            return UploadOutcome.UNRESOLVED_ADDRESS
        if isinstance(exc, requests.exceptions.Timeout):
            log.warning(f"[Upload] Connection timeout: {exc}")
        elif isinstance(exc, requests.exceptions.ConnectionError):
            log.warning(f"[Upload] Cannot connect to server: {exc}")
        else:
            log.error(f"[Upload] Upload exception: {exc}")
        return UploadOutcome.RETRYABLE_FAILURE

    def probe(self) -> bool:
        """Lightweight connectivity check; True on any 2xx."""
        if not self.app_config.is_server_configured:
            return False
        try:
            response = self._post(SensorDataUpload.probe())
        except requests.exceptions.RequestException as exc:
            log.debug(f"[Probe] Network probe exception: {exc}")
            return False

        success = 200 <= response.status_code < 300
        if success:
            log.info("[Probe] Network probe successful, network recovered")
        else:
            log.debug(f"[Probe] Network probe failed with code: {response.status_code}")
        return success

    def close(self) -> None:
        self.session.close()
