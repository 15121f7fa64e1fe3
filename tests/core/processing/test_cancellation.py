"""Tests for session-scoped cancellation."""

from __future__ import annotations

import threading
import time

from core.processing.cancellation import CancellationScope


def test_cancel_propagates_to_children():
    root = CancellationScope("session")
    upload = root.child("upload")
    backoff = upload.child("backoff")

    root.cancel()

    assert upload.cancelled
    assert backoff.cancelled


def test_cancelling_child_leaves_parent_active():
    root = CancellationScope("session")
    probe = root.child("probe")
    probe.cancel()

    assert probe.cancelled
    assert not root.cancelled


def test_child_of_cancelled_scope_starts_cancelled():
    root = CancellationScope("session")
    root.cancel()
    assert root.child("late").cancelled


def test_wait_times_out_when_not_cancelled():
    token = CancellationScope("t")
    assert token.wait(0.01) is False
    assert token.wait(0) is False


def test_wait_returns_early_on_cancel():
    root = CancellationScope("session")
    token = root.child("upload")
    threading.Timer(0.05, root.cancel).start()

    started = time.monotonic()
    assert token.wait(10.0) is True
    assert time.monotonic() - started < 5.0
