"""Caller-level deadline and cancellation

A Deadline travels with a single `Resolver.resolve()` call into cache I/O,
request coalescing and every redirect hop, so a slow upstream host only ever
costs the caller that asked for it.

Example:
    >>> deadline = Deadline(timeout=2.5)
    >>> deadline.remaining()
    2.4999...
    >>> deadline.bound(5.0)     # per-hop timeout capped by what is left
    2.4999...
    >>> deadline.cancel()
    >>> deadline.check()
    Traceback (most recent call last):
        ...
    unshortlink.exceptions.ResolutionCancelledError: Resolution cancelled by caller.
"""

import time
import threading

from unshortlink.exceptions import DeadlineExceededError, ResolutionCancelledError


class Deadline:
    """Absolute point in time (monotonic clock) plus a cancellation flag

    A Deadline created without a timeout never expires but can still be cancelled.
    Safe to share between threads.
    """

    def __init__(self, timeout: float | None = None):
        self.expires_at = None if timeout is None else time.monotonic() + timeout
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        """Seconds left, never negative; None if there is no deadline"""
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.monotonic())

    def check(self) -> None:
        """Raise if the caller cancelled or the deadline has passed

        Raises:
            ResolutionCancelledError: after cancel()
            DeadlineExceededError: once the deadline has passed
        """
        if self.cancelled:
            raise ResolutionCancelledError('Resolution cancelled by caller.')
        if self.remaining() == 0.0:
            raise DeadlineExceededError('Caller deadline exceeded.')

    def bound(self, timeout: float) -> float:
        """Cap a timeout by the time left, raising when nothing is left"""
        self.check()
        remaining = self.remaining()
        return timeout if remaining is None else min(timeout, remaining)
