from collections.abc import Iterable

from unshortlink.dao.base import BlacklistBaseDAO, candidate_hosts


class BlacklistMemoryDAO(BlacklistBaseDAO):
    """Static, in-process blacklist oracle

    The host set is replaced wholesale by `update()`; readers always see either
    the old or the new set, never a partial one.

    Example:
        >>> oracle = BlacklistMemoryDAO(['evil.example'])
        >>> oracle.is_blacklisted('WWW.EVIL.EXAMPLE')
        True
        >>> oracle.is_blacklisted('example.com')
        False
    """

    def __init__(self, hosts: Iterable[str] = ()):
        self._hosts = self._normalize(hosts)

    def is_blacklisted(self, host: str) -> bool:
        hosts = self._hosts
        return any(candidate in hosts for candidate in candidate_hosts(host))

    def update(self, hosts: Iterable[str]) -> None:
        self._hosts = self._normalize(hosts)

    @staticmethod
    def _normalize(hosts: Iterable[str]) -> frozenset[str]:
        return frozenset(h.strip().rstrip('.').lower() for h in hosts if h and h.strip())
