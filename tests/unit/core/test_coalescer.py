import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from unshortlink.core import Coalescer, Deadline
from unshortlink.exceptions import DeadlineExceededError, ResolutionCancelledError, UpstreamUnreachableError


# -------------------------------
# Fixtures
# -------------------------------


@pytest.fixture
def joined(caplog):
    """Wait until `n` followers have joined an in-flight call"""
    caplog.set_level(logging.DEBUG, logger='unshortlink.core.coalescer')

    def wait(n: int):
        give_up = time.monotonic() + 5
        while sum(r.getMessage() == 'Joining in-flight resolution.' for r in caplog.records) < n:
            assert time.monotonic() < give_up, 'followers never joined'
            time.sleep(0.001)

    return wait


def wait_in_flight(coalescer: Coalescer):
    give_up = time.monotonic() + 5
    while coalescer.in_flight() == 0:
        assert time.monotonic() < give_up, 'leader never started'
        time.sleep(0.001)


def follower_func():
    raise AssertionError('follower ran the work')


# -------------------------------
# Tests
# -------------------------------


def test_single_caller_runs_func():
    coalescer = Coalescer()
    assert coalescer.run('k', lambda: 42) == 42
    assert coalescer.in_flight() == 0


def test_concurrent_callers_share_one_call(joined):
    coalescer = Coalescer()
    release = threading.Event()
    calls = []

    def work():
        calls.append(1)
        release.wait(timeout=5)
        return 'result'

    with ThreadPoolExecutor(max_workers=6) as pool:
        leader = pool.submit(coalescer.run, 'k', work)
        wait_in_flight(coalescer)
        followers = [pool.submit(coalescer.run, 'k', follower_func) for _ in range(5)]
        joined(5)
        release.set()

        assert leader.result(timeout=5) == 'result'
        assert [f.result(timeout=5) for f in followers] == ['result'] * 5

    assert calls == [1]
    assert coalescer.in_flight() == 0


def test_leader_error_is_shared(joined):
    coalescer = Coalescer()
    release = threading.Event()

    def work():
        release.wait(timeout=5)
        raise UpstreamUnreachableError("Can't reach 'http://down.example/'.")

    with ThreadPoolExecutor(max_workers=4) as pool:
        leader = pool.submit(coalescer.run, 'k', work)
        wait_in_flight(coalescer)
        followers = [pool.submit(coalescer.run, 'k', follower_func) for _ in range(3)]
        joined(3)
        release.set()

        with pytest.raises(UpstreamUnreachableError):
            leader.result(timeout=5)
        for follower in followers:
            with pytest.raises(UpstreamUnreachableError):
                follower.result(timeout=5)

    assert coalescer.in_flight() == 0


def test_follower_gives_up_at_its_own_deadline():
    coalescer = Coalescer()
    release = threading.Event()

    with ThreadPoolExecutor(max_workers=1) as pool:
        leader = pool.submit(coalescer.run, 'k', lambda: release.wait(timeout=5))
        wait_in_flight(coalescer)

        with pytest.raises(DeadlineExceededError, match='Caller deadline exceeded'):
            coalescer.run('k', follower_func, deadline=Deadline(timeout=0.05))

        release.set()
        assert leader.result(timeout=5) is True


def test_follower_cancelled_while_waiting(joined):
    coalescer = Coalescer()
    release = threading.Event()
    deadline = Deadline(timeout=30)

    with ThreadPoolExecutor(max_workers=2) as pool:
        leader = pool.submit(coalescer.run, 'k', lambda: release.wait(timeout=5))
        wait_in_flight(coalescer)
        follower = pool.submit(coalescer.run, 'k', follower_func, deadline)
        joined(1)
        deadline.cancel()

        with pytest.raises(ResolutionCancelledError):
            follower.result(timeout=5)
        assert not leader.done()

        release.set()
        assert leader.result(timeout=5) is True


@pytest.mark.parametrize(
    'leader_error',
    [DeadlineExceededError('Caller deadline exceeded.'), ResolutionCancelledError('Resolution cancelled by caller.')],
)
def test_follower_takes_over_when_leader_gives_up(joined, leader_error):
    coalescer = Coalescer()
    release = threading.Event()

    def leader_work():
        release.wait(timeout=5)
        raise leader_error

    with ThreadPoolExecutor(max_workers=2) as pool:
        leader = pool.submit(coalescer.run, 'k', leader_work, Deadline(timeout=30))
        wait_in_flight(coalescer)
        follower = pool.submit(coalescer.run, 'k', lambda: 'own result', Deadline(timeout=30))
        joined(1)
        release.set()

        with pytest.raises(type(leader_error)):
            leader.result(timeout=5)
        assert follower.result(timeout=5) == 'own result'

    assert coalescer.in_flight() == 0


def test_all_followers_recover_after_leader_gives_up(joined):
    coalescer = Coalescer()
    release = threading.Event()
    calls = []

    def leader_work():
        release.wait(timeout=5)
        raise DeadlineExceededError('Caller deadline exceeded.')

    def retry_work():
        calls.append(1)
        time.sleep(0.05)
        return 'result'

    with ThreadPoolExecutor(max_workers=5) as pool:
        leader = pool.submit(coalescer.run, 'k', leader_work)
        wait_in_flight(coalescer)
        followers = [pool.submit(coalescer.run, 'k', retry_work, Deadline(timeout=30)) for _ in range(4)]
        joined(4)
        release.set()

        with pytest.raises(DeadlineExceededError):
            leader.result(timeout=5)
        assert [f.result(timeout=5) for f in followers] == ['result'] * 4

    # A follower arriving after the retried call finished runs one of its own
    assert 1 <= len(calls) <= 4
    assert coalescer.in_flight() == 0


def test_distinct_keys_do_not_coalesce():
    coalescer = Coalescer()
    assert coalescer.run('a', lambda: 'a') == 'a'
    assert coalescer.run('b', lambda: 'b') == 'b'


def test_sequential_calls_run_again():
    coalescer = Coalescer()
    calls = []

    for _ in range(3):
        coalescer.run('k', lambda: calls.append(1))

    assert len(calls) == 3


def test_error_clears_in_flight_entry():
    coalescer = Coalescer()

    with pytest.raises(ValueError):
        coalescer.run('k', lambda: int('x'))

    assert coalescer.in_flight() == 0
    assert coalescer.run('k', lambda: 'ok') == 'ok'
