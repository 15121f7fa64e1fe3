"""
Session-scoped cancellation for cooperative background tasks.

A CancellationScope is a tree: cancelling a scope cancels every child
scope created from it, so one call on the session root stops the upload
loop, the probe loop and any in-flight backoff sleep together. Waiting is
done with ``token.wait(timeout)`` which returns early (True) as soon as
the scope is cancelled.

Usage:
    root = CancellationScope("session")
    upload = root.child("upload")
    if upload.wait(5.0):
        return  # cancelled while sleeping
    root.cancel()
"""

import threading
from typing import List, Optional


class CancellationScope:
    """Cancellable token with optional children."""

    def __init__(self, name: str = "root", parent: Optional["CancellationScope"] = None) -> None:
        self.name = name
        self.parent = parent
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: List["CancellationScope"] = []

    def child(self, name: str) -> "CancellationScope":
        """Create a child scope; it starts cancelled if this scope already is."""
        scope = CancellationScope(name, parent=self)
        with self._lock:
            self._children = [c for c in self._children if not c.cancelled]
            self._children.append(scope)
            cancelled = self._event.is_set()
        if cancelled:
            scope.cancel()
        return scope

    def cancel(self) -> None:
        with self._lock:
            self._event.set()
            children = list(self._children)
            self._children.clear()
        for scope in children:
            scope.cancel()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float]) -> bool:
        """Sleep up to ``timeout`` seconds; True if cancelled meanwhile."""
        if timeout is not None and timeout <= 0:
            return self._event.is_set()
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"CancellationScope({self.name!r}, {state})"
