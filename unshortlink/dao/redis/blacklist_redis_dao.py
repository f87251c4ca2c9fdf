"""Blacklist oracle backed by a Redis set of host names

The set (`<prefix>:blacklist:hosts`) is maintained by an external process; this
DAO only reads it. A host is blacklisted when it or any of its parent domains
is a member, so listing `evil.example` also covers `www.evil.example`.
"""

import logging

from beartype import beartype

from unshortlink.dao.base import BlacklistBaseDAO, candidate_hosts
from unshortlink.dao.redis.mixins import RedisClientMixin
from unshortlink.dao.redis.helpers import handle_redis_connection_error
from unshortlink.dao.exceptions import DataStoreError


logger = logging.getLogger(__name__)


class BlacklistRedisDAO(RedisClientMixin, BlacklistBaseDAO):
    """Redis-based blacklist oracle

    Example:
        >>> dao = BlacklistRedisDAO(prefix='unshortlink:dev')
        >>> dao.is_blacklisted('www.evil.example')
        True
    """

    @beartype
    def is_blacklisted(self, host: str) -> bool:
        try:
            return self._any_member(candidate_hosts(host))
        except DataStoreError:
            # Oracle failures never fail a resolution
            logger.warning('Blacklist lookup failed; treating host as not blacklisted.', exc_info=True, extra={'host': host})
            return False

    @handle_redis_connection_error
    def _any_member(self, hosts: list[str]) -> bool:
        if not hosts:
            return False
        return any(self.redis.smismember(self.keys.blacklist_key(), hosts))
