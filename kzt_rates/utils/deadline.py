"""Deadline-bound, cancellable context shared by concurrent fetches."""

from __future__ import annotations

import threading
import time


class FetchContext:
    """Carries an optional deadline and a cancellation flag across threads.

    Adapters consult the context before sending a request and bound their
    request timeout by :meth:`timeout`. A request that is already in flight is
    not interrupted; it simply cannot outlive the remaining deadline.
    """

    __slots__ = ("_expires_at", "_cancelled")

    def __init__(self, deadline: float | None = None) -> None:
        if deadline is not None and deadline <= 0:
            raise ValueError("deadline must be positive")
        self._expires_at = time.monotonic() + deadline if deadline is not None else None
        self._cancelled = threading.Event()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, ``None`` when unbounded."""

        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    def cancel(self) -> None:
        self._cancelled.set()

    def timeout(self, default: float) -> float:
        """Return the request timeout to use: ``default`` capped by the deadline."""

        remaining = self.remaining()
        if remaining is None:
            return default
        return min(default, remaining)


__all__ = ["FetchContext"]
