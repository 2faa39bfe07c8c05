"""Run deadline and cooperative cancellation.

A single ``Deadline`` starts when the run starts. Every blocking operation
receives the same ``CancellationToken`` and polls it; nothing is interrupted
from the outside.
"""

from __future__ import annotations

import threading
import time
from typing import Optional

from ..exceptions import StageTimeout


class Deadline:
    """Monotonic countdown shared by every stage of a run."""

    def __init__(self, seconds: Optional[float] = None, clock=time.monotonic):
        self._clock = clock
        self.seconds = seconds
        self._started = clock()

    @classmethod
    def unbounded(cls) -> Deadline:
        return cls(None)

    def elapsed(self) -> float:
        return self._clock() - self._started

    def remaining(self) -> Optional[float]:
        """Seconds left, never negative. None when there is no deadline."""
        if self.seconds is None:
            return None
        return max(0.0, self.seconds - self.elapsed())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0


class CancellationToken:
    """Cancellation signal observed by subprocesses and scans.

    The token reports cancelled once ``cancel()`` was called on it or on its
    parent, or once the shared deadline has expired.
    """

    def __init__(self, deadline: Optional[Deadline] = None, parent: Optional[CancellationToken] = None):
        if deadline is None:
            deadline = parent.deadline if parent is not None else Deadline.unbounded()
        self.deadline = deadline
        self.parent = parent
        self._event = threading.Event()

    def child(self) -> CancellationToken:
        """Token cancelled with this one, but cancellable on its own."""
        return CancellationToken(parent=self)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set() or self.deadline.expired:
            return True
        return self.parent is not None and self.parent.cancelled

    def remaining(self) -> Optional[float]:
        if self.cancelled:
            return 0.0
        return self.deadline.remaining()

    def raise_if_cancelled(self, what: str) -> None:
        """Raise ``StageTimeout`` naming the interrupted operation."""
        if self.cancelled:
            raise StageTimeout(what, timeout_seconds=self.deadline.seconds)
