import functools
from typing import Any
from collections.abc import Callable

import redis

from unshortlink.dao.exceptions import DataStoreError


__all__ = ['handle_redis_connection_error']


def handle_redis_connection_error[F: Callable[..., Any]](method: F) -> F:
    """Turn Redis connection failures and socket timeouts into DataStoreError

    Args:
        method (Callable[..., Any]):
            DAO method performing Redis operations which may raise
            redis.exceptions.ConnectionError or redis.exceptions.TimeoutError.

    Returns:
        Callable[..., Any]:
            Wrapped method which raises DataStoreError on connectivity issues with Redis.

    Example:
        >>> @handle_redis_connection_error
        ... def count(self):
        ...     return self.redis.get(self.keys.counter_key())
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            info = self.redis.connection_pool.connection_kwargs
            location = f"{info.get('host')}:{info.get('port')}/{info.get('db')}"
            raise DataStoreError(f"Can't connect to Redis at {location}.") from e

    return wrapper
