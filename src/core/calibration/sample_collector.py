"""Fixed-cadence sample collection for the calibration flows."""

import logging
from typing import Callable, List, Optional

from core.processing.cancellation import CancellationScope

log = logging.getLogger(__name__)


def collect_samples(
    read: Callable[[], float],
    count: int = 10,
    interval: float = 0.1,
    token: Optional[CancellationScope] = None,
    on_progress: Optional[Callable[[int, int], None]] = None,
) -> List[float]:
    """
    Read ``count`` values, ``interval`` seconds apart.

    Returns early with the partial list when ``token`` is cancelled.
    """
    token = token or CancellationScope("calibration")
    samples: List[float] = []

    for index in range(count):
        if index > 0 and token.wait(interval):
            log.info(f"[Calibration] Sampling cancelled after {len(samples)}/{count}")
            break
        samples.append(float(read()))
        if on_progress is not None:
            on_progress(len(samples), count)

    return samples
