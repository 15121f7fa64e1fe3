"""
Periodic upload and recovery-probe scheduling.

Two cooperative tasks run on background threads, each owning a child
token of one session-scoped CancellationScope:

    upload task:  wait interval → read latest reading → upload
                  → state machine → (next | backoff retry | hand over to probe)
    probe task:   wait probe interval → probe
                  → (resume upload task | probe again)

Only one of the two is alive at a time, so the state machine has a single
writer. Every wait is a cancellable ``token.wait``; ``stop()`` cancels the
scope once, which interrupts the pending interval, probe or backoff sleep
together. Results that arrive after cancellation are dropped so a late
retry cannot resurrect a stopped session.

Usage:
    scheduler = UploadScheduler(client, readings, app_config, upload_config)
    scheduler.status.subscribe(print)
    scheduler.start()
    ...
    scheduler.stop()
"""

import logging
import threading
import time
from typing import Callable, List, Optional

from communication.protocols import NetworkStatus, NetworkStatusEvent, ReadingEvent, UploadOutcome
from communication.upload_client import UploadClient
from communication.upload_state_machine import Transition, UploadAction, UploadStateMachine
from core.processing.cancellation import CancellationScope
from core.processing.latest_value import LatestValue
from utils.config_sections import AppConfig, UploadConfig

log = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class UploadScheduler:
    """Drives the upload/probe loops for one monitoring session."""

    def __init__(
        self,
        client: UploadClient,
        readings: LatestValue[ReadingEvent],
        app_config: AppConfig,
        config: Optional[UploadConfig] = None,
        *,
        state_machine: Optional[UploadStateMachine] = None,
        scope: Optional[CancellationScope] = None,
        interval: Optional[float] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.client = client
        self.readings = readings
        self.config = config or UploadConfig()
        self.state_machine = state_machine or UploadStateMachine(self.config)
        self._parent_scope = scope or CancellationScope("session")
        self._scope: Optional[CancellationScope] = None
        self._upload_token: Optional[CancellationScope] = None
        self._interval_override = interval
        self._clock = clock or _now_ms

        self.interval = float(interval if interval is not None else app_config.upload_interval_seconds)
        self.last_upload_ms = 0
        self.uploads_attempted = 0
        self.probes_attempted = 0

        self.status: LatestValue[NetworkStatusEvent] = LatestValue(
            NetworkStatusEvent(status=NetworkStatus.UNKNOWN, last_upload_ms=0)
        )

        self._lock = threading.Lock()
        self._threads: List[threading.Thread] = []
        self._running = False

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    def start(self, scope: Optional[CancellationScope] = None) -> None:
        """Start the upload task; ``scope`` replaces the parent scope for this run."""
        with self._lock:
            if self._running:
                return
            if scope is not None:
                self._parent_scope = scope
            self._running = True
            self._scope = self._parent_scope.child("uploads")
            # Each run starts from UNKNOWN with a fresh retry budget
            self.state_machine.reset()
        log.info(f"[Upload] Starting periodic uploads every {self.interval:g}s to {self.client.url}")
        self._publish_current()
        self._start_upload_task()

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            scope = self._scope
            threads = list(self._threads)
            self._threads.clear()

        if scope is not None:
            scope.cancel()
        current = threading.current_thread()
        for thread in threads:
            if thread is not current and thread.is_alive():
                thread.join(timeout=1.0)
        log.info("[Upload] Stopped")

    @property
    def running(self) -> bool:
        return self._running

    @property
    def network_status(self) -> NetworkStatus:
        return self.state_machine.status

    def update_config(self, app_config: AppConfig) -> None:
        """Apply new collector settings; restarts the upload timer unless paused."""
        self.client.reconfigure(app_config)
        if self._interval_override is None:
            self.interval = float(app_config.upload_interval_seconds)

        if not self._running or self.state_machine.status == NetworkStatus.DISCONNECTED:
            return
        with self._lock:
            token = self._upload_token
        if token is not None:
            token.cancel()
        self._start_upload_task()

    # ------------------------------------------------------------------
    # tasks
    # ------------------------------------------------------------------

    def _spawn(self, name: str, target: Callable[[CancellationScope], None]) -> Optional[CancellationScope]:
        with self._lock:
            if not self._running or self._scope is None:
                return None
            token = self._scope.child(name)
            thread = threading.Thread(target=target, args=(token,), name=f"Upload-{name}", daemon=True)
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
        thread.start()
        return token

    def _start_upload_task(self) -> None:
        token = self._spawn("upload", self._upload_loop)
        with self._lock:
            self._upload_token = token

    def _start_probe_task(self) -> None:
        log.info(f"[Probe] Uploads paused, probing every {self.config.probe_interval:g}s")
        self._spawn("probe", self._probe_loop)

    def _upload_loop(self, token: CancellationScope) -> None:
        while not token.wait(self.interval):
            action = self._upload_cycle(token)
            if action is None:
                return
            if action == UploadAction.START_PROBE:
                self._start_probe_task()
                return

    def _upload_cycle(self, token: CancellationScope) -> Optional[UploadAction]:
        """One scheduled upload including its backoff retries; None if cancelled."""
        while True:
            reading = self.readings.get()
            if reading is None:
                log.debug("[Upload] No reading yet, rescheduling")
                return UploadAction.SCHEDULE_NEXT

            self.uploads_attempted += 1
            outcome = self.client.upload(reading.tilt_deg)
            if token.cancelled:
                return None

            if outcome == UploadOutcome.SUCCESS:
                self.last_upload_ms = self._clock()
            transition = self.state_machine.on_upload_outcome(outcome)
            self._publish(transition)

            if transition.action != UploadAction.RETRY_AFTER_BACKOFF:
                return transition.action
            if token.wait(transition.delay_seconds):
                return None

    def _probe_loop(self, token: CancellationScope) -> None:
        while not token.wait(self.config.probe_interval):
            self.probes_attempted += 1
            recovered = self.client.probe()
            if token.cancelled:
                return

            transition = self.state_machine.on_probe_result(recovered)
            self._publish(transition)
            if transition.action == UploadAction.SCHEDULE_NEXT:
                log.info("[Probe] Resuming periodic uploads")
                self._start_upload_task()
                return

    # ------------------------------------------------------------------
    # status
    # ------------------------------------------------------------------

    def _publish(self, transition: Transition) -> None:
        self.status.publish(
            NetworkStatusEvent(
                status=transition.status,
                last_upload_ms=self.last_upload_ms,
                retry_count=transition.retry_count,
                delay_seconds=transition.delay_seconds,
            )
        )

    def _publish_current(self) -> None:
        self.status.publish(
            NetworkStatusEvent(
                status=self.state_machine.status,
                last_upload_ms=self.last_upload_ms,
                retry_count=self.state_machine.retry_count,
            )
        )
