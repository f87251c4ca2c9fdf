import pytest

from unshortlink.core import Deadline
from unshortlink.exceptions import DeadlineExceededError, ResolutionCancelledError, UpstreamTimeoutError


@pytest.fixture
def clock(monkeypatch):
    """Controllable monotonic clock"""
    now = [1000.0]
    monkeypatch.setattr('unshortlink.core.deadline.time.monotonic', lambda: now[0])
    return now


def test_no_timeout_never_expires(clock):
    deadline = Deadline()
    clock[0] += 10**6

    assert deadline.remaining() is None
    assert deadline.bound(5.0) == 5.0
    deadline.check()


def test_remaining_counts_down(clock):
    deadline = Deadline(timeout=3.0)
    clock[0] += 1.0
    assert deadline.remaining() == 2.0


def test_remaining_never_negative(clock):
    deadline = Deadline(timeout=1.0)
    clock[0] += 5.0
    assert deadline.remaining() == 0.0


def test_bound_caps_timeout(clock):
    deadline = Deadline(timeout=2.0)
    assert deadline.bound(5.0) == 2.0
    assert deadline.bound(0.5) == 0.5


def test_expired_deadline_raises(clock):
    deadline = Deadline(timeout=1.0)
    clock[0] += 1.0

    with pytest.raises(DeadlineExceededError, match='deadline exceeded'):
        deadline.check()
    with pytest.raises(DeadlineExceededError):
        deadline.bound(5.0)


def test_cancel(clock):
    deadline = Deadline(timeout=60)
    assert deadline.cancelled is False

    deadline.cancel()

    assert deadline.cancelled is True
    with pytest.raises(ResolutionCancelledError, match='cancelled by caller'):
        deadline.check()


def test_caller_errors_are_timeouts():
    assert issubclass(DeadlineExceededError, UpstreamTimeoutError)
    assert issubclass(ResolutionCancelledError, UpstreamTimeoutError)
    assert DeadlineExceededError('x').retryable is True
