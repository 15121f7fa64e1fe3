"""
Upload resilience state machine.

States: CONNECTED, CONNECTING, DISCONNECTED, UNKNOWN (initial). This is a
Mealy machine: each upload outcome or probe result yields both the new
status and the action the scheduler must take next.

Upload outcomes:
- SUCCESS            → CONNECTED, retry counter reset, schedule next upload
- BAD_REQUEST        → CONNECTED, retry counter reset, schedule next upload
- UNRESOLVED_ADDRESS → DISCONNECTED, retry counter reset, start probing
- RETRYABLE_FAILURE  → retry counter += 1; while counter <= max_retry:
                       CONNECTING, retry after base * 2^counter seconds;
                       once exhausted: DISCONNECTED, counter reset, probe

Probe results:
- success → CONNECTED, counter reset, resume uploads
- failure → DISCONNECTED, probe again after the probe interval

The backoff is pure exponential: no jitter and no cap. With the default
budget of 5 retries and a 2 s base the last wait is 64 s.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from communication.protocols import NetworkStatus, UploadOutcome
from utils.config_sections import UploadConfig

log = logging.getLogger(__name__)


class UploadAction(Enum):
    SCHEDULE_NEXT = "schedule_next"              # wait the upload interval, upload again
    RETRY_AFTER_BACKOFF = "retry_after_backoff"  # wait delay_seconds, upload again
    START_PROBE = "start_probe"                  # stop uploads, probe after delay_seconds


@dataclass(frozen=True)
class Transition:
    status: NetworkStatus
    action: UploadAction
    retry_count: int
    delay_seconds: Optional[float] = None


def backoff_delay(retry_count: int, base_delay: float) -> float:
    """Exponential backoff: ``base_delay * 2**retry_count`` seconds."""
    return base_delay * (2 ** retry_count)


class UploadStateMachine:
    """Single-writer holder of the NetworkStatus and retry counter."""

    def __init__(self, config: Optional[UploadConfig] = None) -> None:
        self.config = config or UploadConfig()
        self.status = NetworkStatus.UNKNOWN
        self.retry_count = 0

    def on_upload_outcome(self, outcome: UploadOutcome) -> Transition:
        if outcome in (UploadOutcome.SUCCESS, UploadOutcome.BAD_REQUEST):
            self.retry_count = 0
            return self._enter(NetworkStatus.CONNECTED, UploadAction.SCHEDULE_NEXT)

        if outcome == UploadOutcome.UNRESOLVED_ADDRESS:
            self.retry_count = 0
            log.warning("[Upload] Server address cannot be resolved, treating as disconnected")
            return self._enter(
                NetworkStatus.DISCONNECTED, UploadAction.START_PROBE, self.config.probe_interval
            )

        self.retry_count += 1
        if self.retry_count <= self.config.max_retry:
            delay = backoff_delay(self.retry_count, self.config.base_delay)
            log.debug(f"[Upload] Retry {self.retry_count}/{self.config.max_retry}, waiting {delay:g}s")
            return self._enter(NetworkStatus.CONNECTING, UploadAction.RETRY_AFTER_BACKOFF, delay)

        log.error("[Upload] Max retry count reached, pausing uploads")
        self.retry_count = 0
        return self._enter(
            NetworkStatus.DISCONNECTED, UploadAction.START_PROBE, self.config.probe_interval
        )

    def on_probe_result(self, success: bool) -> Transition:
        if success:
            self.retry_count = 0
            return self._enter(NetworkStatus.CONNECTED, UploadAction.SCHEDULE_NEXT)
        return self._enter(
            NetworkStatus.DISCONNECTED, UploadAction.START_PROBE, self.config.probe_interval
        )

    def reset(self) -> None:
        self.status = NetworkStatus.UNKNOWN
        self.retry_count = 0

    def _enter(
        self, status: NetworkStatus, action: UploadAction, delay: Optional[float] = None
    ) -> Transition:
        if status != self.status:
            log.info(f"[Upload] Status {self.status.name} -> {status.name}")
        self.status = status
        return Transition(status=status, action=action, retry_count=self.retry_count, delay_seconds=delay)
