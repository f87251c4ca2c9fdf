"""Data Access Object (DAO) implementation for the resolution cache in Redis

This module provides a Redis-based implementation of ResolvedLinkBaseDAO.

Responsibilities:
    - Look up and store resolved links, keyed by normalized short URL;
    - Keep the first stored destination for a short URL (no overwrites);
    - Maintain a global counter of resolved links;
    - Raise appropriate DAO exceptions on connectivity issues or unreadable entries.

Storage layout (see RedisKeySchema):
    <prefix>:links:<short url>   -> JSON {"long_url": ..., "resolved_at": ..., "hops": ...} EX <link ttl>
    <prefix>:links:counter       -> number of links ever stored

Classes:
    ResolvedLinkRedisDAO:
        DAO for storing and retrieving ResolvedLink in a Redis datastore.

Example:
    >>> from unshortlink.core import normalize
    >>> from unshortlink.models import ResolvedLink
    >>> from unshortlink.dao.redis import ResolvedLinkRedisDAO

    >>> dao = ResolvedLinkRedisDAO(prefix="unshortlink:dev")
    >>> link = ResolvedLink(short_url=normalize('bit.ly/x'), long_url=normalize('https://example.com'))
    >>> dao.store(link)
    True
    >>> dao.lookup(normalize('bit.ly/x')).long_url
    NormalizedURL(scheme='https', netloc='example.com', path='', query='', fragment='')
    >>> dao.count()
    1
"""

import json
import logging
from datetime import datetime

from beartype import beartype

from unshortlink.models import NormalizedURL, ResolvedLink
from unshortlink.constants import TTL
from unshortlink.core.normalizer import normalize
from unshortlink.exceptions import MalformedURLError
from unshortlink.dao.base import ResolvedLinkBaseDAO
from unshortlink.dao.redis.mixins import RedisClientMixin
from unshortlink.dao.redis.helpers import handle_redis_connection_error
from unshortlink.dao.exceptions import DataStoreError


logger = logging.getLogger(__name__)


class ResolvedLinkRedisDAO(RedisClientMixin, ResolvedLinkBaseDAO):
    """Redis-based Data Access Object (DAO) for the resolution cache

    Attributes (see RedisClientMixin):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.
        link_ttl (int | None):
            Seconds a resolved link is kept. None keeps links forever.

    Methods:
        lookup(short_url: NormalizedURL, **kwargs) -> ResolvedLink | None:
            Retrieve a resolved link. Returns None when missing.
            Raises DataStoreError on connectivity issues or unreadable entries.

        store(link: ResolvedLink, **kwargs) -> bool:
            SET NX the link and bump the global counter when it was new.
            Raises DataStoreError on connectivity issues with Redis.

        count(**kwargs) -> int:
            Retrieve the global resolved link counter.
            Raises DataStoreError on connectivity issues with Redis.
    """

    def __init__(self, link_ttl: int | None = TTL.ONE_YEAR, **kwargs):
        super().__init__(**kwargs)
        self.link_ttl = link_ttl

    @handle_redis_connection_error
    @beartype
    def lookup(self, short_url: NormalizedURL, **kwargs) -> ResolvedLink | None:
        """Retrieve a resolved link by normalized short URL

        Args:
            short_url (NormalizedURL):
                Normalized short URL.
            **kwargs:
                Optional keyword arguments (for future use).

        Returns:
            ResolvedLink | None:
                The cached link (`blacklisted` is always False), or None on a miss.

        Raises:
            DataStoreError:
                If Redis connectivity issues occur or the stored entry is unreadable.
        """
        raw = self.redis.get(self.keys.link_key(str(short_url)))
        if raw is None:
            return None

        try:
            entry = json.loads(raw)
            return ResolvedLink(
                short_url=short_url,
                long_url=normalize(entry['long_url']),
                resolved_at=datetime.fromisoformat(entry['resolved_at']),
                hops=int(entry.get('hops', 0)),
            )
        except (ValueError, KeyError, TypeError, MalformedURLError) as e:
            # json.JSONDecodeError is a ValueError
            raise DataStoreError(f"Unreadable cache entry for short URL '{short_url}'.") from e

    @handle_redis_connection_error
    @beartype
    def store(self, link: ResolvedLink, **kwargs) -> bool:
        """Store a resolved link unless its short URL already has an entry

        NOTE: SET NX makes concurrent stores of the same short URL safe: exactly
              one of them creates the entry, the others become no-ops. The counter
              INCR runs only for the creator, in a second round trip. A crash in
              between undercounts by one, which is fine for a display-only counter.

        Args:
            link (ResolvedLink):
                Freshly resolved link.
            **kwargs:
                Optional keyword arguments (for future use).

        Returns:
            bool: True if the entry was created, False if it already existed.

        Raises:
            DataStoreError:
                If Redis connectivity issues occur.
        """
        value = json.dumps(
            {
                'long_url': str(link.long_url),
                'resolved_at': link.resolved_at.isoformat(),
                'hops': link.hops,
            }
        )
        created = self.redis.set(self.keys.link_key(str(link.short_url)), value, nx=True, ex=self.link_ttl)
        if not created:
            logger.debug('Resolved link already cached; keeping existing entry.', extra={'shortUrl': str(link.short_url)})
            return False

        self.redis.incr(self.keys.counter_key())
        return True

    @handle_redis_connection_error
    def count(self, **kwargs) -> int:
        """Retrieve global resolved link counter

        Returns:
            int: number of resolved links stored so far (0 if none).

        Example:
            >>> dao.count()
            123
        """
        value = self.redis.get(self.keys.counter_key())
        return int(value) if value is not None else 0
