import functools
from collections.abc import Callable


__all__ = ['RedisKeySchema']  # hide internal decorator prefix_key from imports


def prefix_key(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs) -> str:
        key = func(self, *args, **kwargs)
        return f'{self.prefix}:{key}' if self.prefix is not None else key

    return wrapper


class RedisKeySchema:
    """Provide standardized Redis keys for resolved links, the blacklist and known providers.

    An optional prefix can be provided to namespace all generated keys.
    It is highly encouraged to set a custom prefix for each app and environment,
    e.g. "unshortlink:prod" or "unshortlink:dev".
    """

    def __init__(self, prefix: str | None = None):
        if prefix is not None and not isinstance(prefix, str):
            raise TypeError(f'Prefix must be of type string (given type: {type(prefix)}).')

        self.prefix = prefix

    @prefix_key
    def link_key(self, short_url: str) -> str:
        return f'links:{short_url}'

    @prefix_key
    def counter_key(self) -> str:
        return 'links:counter'

    @prefix_key
    def blacklist_key(self) -> str:
        return 'blacklist:hosts'

    @prefix_key
    def providers_key(self) -> str:
        return 'providers:hosts'
