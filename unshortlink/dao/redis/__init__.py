from unshortlink.dao.redis.redis_key_schema import RedisKeySchema
from unshortlink.dao.redis.mixins import RedisClientMixin
from unshortlink.dao.redis.resolved_link_redis_dao import ResolvedLinkRedisDAO
from unshortlink.dao.redis.blacklist_redis_dao import BlacklistRedisDAO
from unshortlink.dao.redis.provider_redis_dao import ProviderRedisDAO


__all__ = [
    'RedisKeySchema',
    'RedisClientMixin',
    'ResolvedLinkRedisDAO',
    'BlacklistRedisDAO',
    'ProviderRedisDAO',
]
