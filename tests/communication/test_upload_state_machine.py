"""Tests for the upload resilience state machine."""

from __future__ import annotations

import pytest

from communication.protocols import NetworkStatus, UploadOutcome
from communication.upload_state_machine import UploadAction, UploadStateMachine, backoff_delay
from utils.config_sections import UploadConfig


@pytest.fixture()
def machine():
    return UploadStateMachine(UploadConfig(max_retry=5, base_delay=2.0, probe_interval=30.0))


def test_initial_state_is_unknown(machine):
    assert machine.status == NetworkStatus.UNKNOWN
    assert machine.retry_count == 0


def test_backoff_is_pure_exponential():
    assert [backoff_delay(n, 1.0) for n in range(1, 6)] == [2.0, 4.0, 8.0, 16.0, 32.0]
    assert backoff_delay(10, 2.0) == 2048.0


def test_six_failures_back_off_then_disconnect(machine):
    transitions = [machine.on_upload_outcome(UploadOutcome.RETRYABLE_FAILURE) for _ in range(6)]

    connecting = transitions[:5]
    assert [t.status for t in connecting] == [NetworkStatus.CONNECTING] * 5
    assert [t.action for t in connecting] == [UploadAction.RETRY_AFTER_BACKOFF] * 5
    assert [t.delay_seconds for t in connecting] == [2.0 * k for k in (2, 4, 8, 16, 32)]
    assert [t.retry_count for t in connecting] == [1, 2, 3, 4, 5]

    final = transitions[5]
    assert final.status == NetworkStatus.DISCONNECTED
    assert final.action == UploadAction.START_PROBE
    assert final.delay_seconds == 30.0
    assert machine.retry_count == 0


@pytest.mark.parametrize("prior_failures", [0, 1, 3, 5])
def test_bad_request_always_connected_and_reset(machine, prior_failures):
    for _ in range(prior_failures):
        machine.on_upload_outcome(UploadOutcome.RETRYABLE_FAILURE)

    transition = machine.on_upload_outcome(UploadOutcome.BAD_REQUEST)

    assert transition.status == NetworkStatus.CONNECTED
    assert transition.action == UploadAction.SCHEDULE_NEXT
    assert machine.retry_count == 0


def test_success_resets_counter(machine):
    machine.on_upload_outcome(UploadOutcome.RETRYABLE_FAILURE)
    transition = machine.on_upload_outcome(UploadOutcome.SUCCESS)
    assert transition.status == NetworkStatus.CONNECTED
    assert transition.retry_count == 0


def test_unresolved_address_disconnects_without_spending_retries(machine):
    machine.on_upload_outcome(UploadOutcome.RETRYABLE_FAILURE)
    transition = machine.on_upload_outcome(UploadOutcome.UNRESOLVED_ADDRESS)

    assert transition.status == NetworkStatus.DISCONNECTED
    assert transition.action == UploadAction.START_PROBE
    assert machine.retry_count == 0


def test_probe_results(machine):
    failed = machine.on_probe_result(False)
    assert failed.status == NetworkStatus.DISCONNECTED
    assert failed.action == UploadAction.START_PROBE

    recovered = machine.on_probe_result(True)
    assert recovered.status == NetworkStatus.CONNECTED
    assert recovered.action == UploadAction.SCHEDULE_NEXT
    assert machine.retry_count == 0


def test_small_retry_budget_from_config():
    machine = UploadStateMachine(UploadConfig(max_retry=1, base_delay=0.5))
    first = machine.on_upload_outcome(UploadOutcome.RETRYABLE_FAILURE)
    second = machine.on_upload_outcome(UploadOutcome.RETRYABLE_FAILURE)
    assert first.delay_seconds == 1.0
    assert second.status == NetworkStatus.DISCONNECTED


def test_reset(machine):
    machine.on_upload_outcome(UploadOutcome.RETRYABLE_FAILURE)
    machine.reset()
    assert machine.status == NetworkStatus.UNKNOWN
    assert machine.retry_count == 0
