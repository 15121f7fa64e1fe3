"""Tests for fixed-cadence calibration sampling."""

from __future__ import annotations

import itertools

from core.calibration.sample_collector import collect_samples
from core.processing.cancellation import CancellationScope


def test_collects_requested_count_in_order():
    counter = itertools.count()
    progress = []

    samples = collect_samples(
        lambda: next(counter), count=5, interval=0.001, on_progress=lambda n, total: progress.append((n, total))
    )

    assert samples == [0.0, 1.0, 2.0, 3.0, 4.0]
    assert progress[-1] == (5, 5)


def test_cancellation_returns_partial_list():
    token = CancellationScope("calibration")
    reads = []

    def read():
        reads.append(1)
        if len(reads) == 3:
            token.cancel()
        return 7.0

    samples = collect_samples(read, count=10, interval=0.01, token=token)
    assert samples == [7.0, 7.0, 7.0]


def test_already_cancelled_token_still_takes_first_read():
    token = CancellationScope("calibration")
    token.cancel()
    assert collect_samples(lambda: 1.0, count=10, interval=5.0, token=token) == [1.0]
