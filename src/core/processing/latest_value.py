"""
Single-slot "latest value" publish/subscribe primitive.

One writer publishes, any number of readers take the most recent value
without blocking the writer for longer than a reference swap. Readers must
tolerate ``None`` before the first publish. Subscribers are called on the
writer's thread after the slot is updated; a failing subscriber is logged
and does not stop the others.

Usage:
    slot: LatestValue[OrientationSample] = LatestValue()
    slot.subscribe(lambda sample: print(sample.tilt_magnitude_deg))
    slot.publish(sample)
    current = slot.get()
"""

import logging
import threading
from typing import Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")

log = logging.getLogger(__name__)


class LatestValue(Generic[T]):
    """Thread-safe slot holding only the most recently published value."""

    def __init__(self, initial: Optional[T] = None) -> None:
        self._lock = threading.Lock()
        self._value: Optional[T] = initial
        self._version = 0
        self._subscribers: List[Callable[[T], None]] = []

    def publish(self, value: T) -> None:
        with self._lock:
            self._value = value
            self._version += 1
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(value)
            except Exception as exc:
                log.warning(f"[LatestValue] Subscriber {callback!r} failed: {exc}")

    def get(self) -> Optional[T]:
        with self._lock:
            return self._value

    @property
    def version(self) -> int:
        """Number of publishes so far (0 = never published)."""
        with self._lock:
            return self._version

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def clear(self) -> None:
        with self._lock:
            self._value = None
