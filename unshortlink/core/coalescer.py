"""Request coalescing for concurrent cache misses

When several threads miss the cache for the same short URL at once, only the
first one (the leader) walks the redirect chain; the others wait on the
leader's Future and share its result or its exception.

Deadlines stay per caller. Followers wait in short slices and check their own
deadline between them. A leader that fails because *its* caller ran out of
time or cancelled does not fail the followers: they elect a new leader among
themselves and carry on under their own deadlines.

The registry lock only guards the in-flight map. It is never held while the
leader does I/O or while followers wait.

Example:
    >>> coalescer = Coalescer()
    >>> coalescer.run('http://bit.ly/x', lambda: walker.walk(url, deadline), deadline=deadline)
    ResolvedLink(...)
"""

import logging
import threading
from concurrent.futures import Future, wait
from typing import TypeVar
from collections.abc import Callable

from unshortlink.constants import Resolver
from unshortlink.core.deadline import Deadline
from unshortlink.exceptions import DeadlineExceededError, ResolutionCancelledError


logger = logging.getLogger(__name__)

T = TypeVar('T')

# Errors that belong to the caller who raised them, never to the call itself
CALLER_SCOPED_ERRORS = (DeadlineExceededError, ResolutionCancelledError)

_LEADER_GAVE_UP = object()


class Coalescer:
    """Mutex-guarded map of key -> Future for calls in flight"""

    def __init__(self, poll_interval: float = Resolver.COALESCE_POLL_INTERVAL):
        self.poll_interval = poll_interval
        self._lock = threading.Lock()
        self._in_flight: dict[str, Future] = {}

    def in_flight(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def run(self, key: str, func: Callable[[], T], deadline: Deadline | None = None) -> T:
        """Run `func` once per key among concurrent callers

        Args:
            key (str):
                Coalescing key (normalized short URL).
            func (Callable[[], T]):
                Work to perform if no call for `key` is in flight. Should honor
                the same `deadline`, since it runs on this caller's behalf.
            deadline (Deadline | None):
                This caller's deadline; bounds how long it waits for a leader.

        Returns:
            T: the leader's result.

        Raises:
            DeadlineExceededError / ResolutionCancelledError:
                If this caller's own deadline runs out or it is cancelled.
            Exception:
                Whatever the leader's `func` raised (other than the leader's own
                deadline or cancellation), re-raised in every caller.
        """
        deadline = deadline or Deadline()

        while True:
            with self._lock:
                future = self._in_flight.get(key)
                leader = future is None
                if leader:
                    future = Future()
                    self._in_flight[key] = future

            if leader:
                return self._lead(key, future, func)

            result = self._follow(key, future, deadline)
            if result is not _LEADER_GAVE_UP:
                return result
            logger.debug('Leader gave up on in-flight resolution; electing a new one.', extra={'shortUrl': key})

    def _lead(self, key: str, future: Future, func: Callable[[], T]) -> T:
        # The key is released before the outcome is published: followers that
        # retry after a failed leader must not find this Future again
        try:
            result = func()
        except BaseException as e:
            self._release(key)
            future.set_exception(e)
            raise

        self._release(key)
        future.set_result(result)
        return result

    def _follow(self, key: str, future: Future, deadline: Deadline):
        logger.debug('Joining in-flight resolution.', extra={'shortUrl': key})
        while not future.done():
            wait([future], timeout=deadline.bound(self.poll_interval))

        if isinstance(future.exception(), CALLER_SCOPED_ERRORS):
            return _LEADER_GAVE_UP
        return future.result()

    def _release(self, key: str) -> None:
        with self._lock:
            del self._in_flight[key]
