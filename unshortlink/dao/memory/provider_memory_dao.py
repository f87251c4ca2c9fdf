from collections.abc import Iterable

from unshortlink.dao.base import ProviderBaseDAO


class ProviderMemoryDAO(ProviderBaseDAO):
    """Static, in-process list of known shortener hosts

    Example:
        >>> ProviderMemoryDAO(['T.co', 'bit.ly', 'bit.ly']).hosts()
        ['bit.ly', 't.co']
    """

    def __init__(self, hosts: Iterable[str] = ()):
        self._hosts = sorted({h.strip().rstrip('.').lower() for h in hosts if h and h.strip()})

    def hosts(self, **kwargs) -> list[str]:
        return list(self._hosts)
