"""Shortener provider registry backed by a Redis set of host names

Like the blacklist, the set (`<prefix>:providers:hosts`) is filled by an
external process and only read here.
"""

from beartype import beartype

from unshortlink.dao.base import ProviderBaseDAO
from unshortlink.dao.redis.mixins import RedisClientMixin
from unshortlink.dao.redis.helpers import handle_redis_connection_error


class ProviderRedisDAO(RedisClientMixin, ProviderBaseDAO):
    """Redis-based provider registry

    Example:
        >>> dao = ProviderRedisDAO(prefix='unshortlink:dev')
        >>> dao.hosts()
        ['bit.ly', 't.co']
    """

    @handle_redis_connection_error
    @beartype
    def hosts(self, **kwargs) -> list[str]:
        return sorted(self.redis.smembers(self.keys.providers_key()))
