"""Unit tests for the ResolvedLinkRedisDAO

Test coverage includes:

1. Lookup behavior
   - Ensures cached entries are returned as a populated ResolvedLink.
   - Confirms missing keys return None.
   - Confirms unreadable entries raise DataStoreError.
   - Ensures invalid parameter types raise type errors.
   - Confirms Redis connection errors and timeouts raise DataStoreError.

2. Store behavior
   - Ensures new links are SET NX with the configured TTL and counted.
   - Confirms existing entries are left untouched and not counted.
   - Confirms Redis connection errors raise DataStoreError.

3. Counter operations
   - Ensures the counter is read as an int, 0 when missing.
"""

import json
from datetime import datetime, UTC

import pytest
import redis
from beartype.roar import BeartypeCallHintParamViolation
from freezegun import freeze_time

from unshortlink.core import normalize
from unshortlink.models import ResolvedLink
from unshortlink.constants import TTL
from unshortlink.dao.exceptions import DataStoreError
from unshortlink.dao.redis import ResolvedLinkRedisDAO


# -------------------------------
# Fixtures
# -------------------------------


@pytest.fixture
def dao(redis_client, app_prefix):
    return ResolvedLinkRedisDAO(redis_client=redis_client, prefix=app_prefix)


@pytest.fixture
def link():
    return ResolvedLink(
        short_url=normalize('bit.ly/x'),
        long_url=normalize('https://example.com/article'),
        resolved_at=datetime(2026, 10, 19, 12, 0, tzinfo=UTC),
        hops=2,
    )


# -------------------------------
# 1. Lookup behavior
# -------------------------------


def test_lookup_cached_link(dao, redis_client):
    """Ensure a cached entry is rebuilt into a ResolvedLink."""
    redis_client.get.return_value = json.dumps(
        {'long_url': 'https://example.com/article', 'resolved_at': '2026-10-19T12:00:00+00:00', 'hops': 2}
    )

    link = dao.lookup(normalize('bit.ly/x'))

    redis_client.get.assert_called_once_with('testapp:test:links:http://bit.ly/x')
    assert str(link.short_url) == 'http://bit.ly/x'
    assert str(link.long_url) == 'https://example.com/article'
    assert link.resolved_at == datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
    assert link.hops == 2
    assert link.blacklisted is False


def test_lookup_missing_link(dao, redis_client):
    """Ensure a cache miss returns None rather than raising."""
    redis_client.get.return_value = None
    assert dao.lookup(normalize('bit.ly/unknown')) is None


@pytest.mark.parametrize(
    'raw',
    [
        'not json',
        json.dumps({'resolved_at': '2026-10-19T12:00:00+00:00'}),
        json.dumps({'long_url': 'https://example.com', 'resolved_at': 'yesterday'}),
        json.dumps({'long_url': 'mailto:someone', 'resolved_at': '2026-10-19T12:00:00+00:00'}),
    ],
)
def test_lookup_unreadable_entry(dao, redis_client, raw):
    """Ensure corrupt entries raise DataStoreError instead of leaking parse errors."""
    redis_client.get.return_value = raw
    with pytest.raises(DataStoreError, match="Unreadable cache entry for short URL 'http://bit.ly/x'"):
        dao.lookup(normalize('bit.ly/x'))


def test_lookup_with_invalid_type(dao):
    """Ensure a plain string key raises TypeError or Beartype error."""
    with pytest.raises((TypeError, BeartypeCallHintParamViolation)):
        dao.lookup('http://bit.ly/x')


@pytest.mark.parametrize('error', [redis.exceptions.ConnectionError('down'), redis.exceptions.TimeoutError('slow')])
def test_lookup_with_redis_connection_error(dao, redis_client, error):
    """Ensure Redis connection errors and timeouts during lookup raise DataStoreError."""
    redis_client.get.side_effect = error
    with pytest.raises(DataStoreError, match="Can't connect to Redis at redis.test:6379/0."):
        dao.lookup(normalize('bit.ly/x'))


# -------------------------------
# 2. Store behavior
# -------------------------------


def test_store_new_link(dao, redis_client, link):
    """Ensure a new link is SET NX with the default one year TTL and counted."""
    redis_client.set.return_value = True

    assert dao.store(link) is True

    key, value = redis_client.set.call_args.args
    assert key == 'testapp:test:links:http://bit.ly/x'
    assert redis_client.set.call_args.kwargs == {'nx': True, 'ex': TTL.ONE_YEAR}
    assert json.loads(value) == {
        'long_url': 'https://example.com/article',
        'resolved_at': '2026-10-19T12:00:00+00:00',
        'hops': 2,
    }
    redis_client.incr.assert_called_once_with('testapp:test:links:counter')


def test_store_existing_link(dao, redis_client, link):
    """Ensure an existing entry is kept and the counter untouched."""
    redis_client.set.return_value = None

    assert dao.store(link) is False
    redis_client.incr.assert_not_called()


def test_store_without_ttl(redis_client, app_prefix, link):
    """Ensure link_ttl=None stores links without expiry."""
    dao = ResolvedLinkRedisDAO(redis_client=redis_client, prefix=app_prefix, link_ttl=None)
    dao.store(link)
    assert redis_client.set.call_args.kwargs == {'nx': True, 'ex': None}


@freeze_time('2026-10-19 08:30:00')
def test_store_round_trips_default_timestamp(dao, redis_client):
    """Ensure the default resolved_at is stored as an aware ISO timestamp."""
    dao.store(ResolvedLink(short_url=normalize('bit.ly/y'), long_url=normalize('example.com')))
    _, value = redis_client.set.call_args.args
    assert json.loads(value)['resolved_at'] == '2026-10-19T08:30:00+00:00'


def test_store_with_invalid_type(dao):
    """Ensure storing something else than a ResolvedLink raises type errors."""
    with pytest.raises((TypeError, BeartypeCallHintParamViolation)):
        dao.store({'short_url': 'http://bit.ly/x'})


def test_store_with_redis_connection_error(dao, redis_client, link):
    """Ensure Redis connection errors during store raise DataStoreError."""
    redis_client.set.side_effect = redis.exceptions.ConnectionError('Connection error')
    with pytest.raises(DataStoreError, match="Can't connect to Redis at redis.test:6379/0."):
        dao.store(link)


# -------------------------------
# 3. Counter operations
# -------------------------------


@pytest.mark.parametrize('stored, expected', [('42', 42), (None, 0)])
def test_count(dao, redis_client, stored, expected):
    redis_client.get.return_value = stored
    assert dao.count() == expected
    redis_client.get.assert_called_once_with('testapp:test:links:counter')
