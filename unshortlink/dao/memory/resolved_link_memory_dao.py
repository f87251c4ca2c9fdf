"""In-process resolution cache

Backs the `memory` backend (single warm Lambda container, local runs) and
stands in for Redis in tests. Entries live as long as the process does,
optionally bounded by a TTL.
"""

import time
import threading
from dataclasses import replace

from beartype import beartype

from unshortlink.models import NormalizedURL, ResolvedLink
from unshortlink.dao.base import ResolvedLinkBaseDAO


class ResolvedLinkMemoryDAO(ResolvedLinkBaseDAO):
    """Lock-guarded dict implementation of ResolvedLinkBaseDAO

    The lock only guards dict access; nothing blocking runs while it is held.

    Example:
        >>> dao = ResolvedLinkMemoryDAO()
        >>> dao.store(link)
        True
        >>> dao.lookup(link.short_url) == link
        True
    """

    def __init__(self, link_ttl: int | None = None):
        self.link_ttl = link_ttl
        self._entries: dict[str, tuple[ResolvedLink, float | None]] = {}
        self._stored = 0
        self._lock = threading.Lock()

    @beartype
    def lookup(self, short_url: NormalizedURL, **kwargs) -> ResolvedLink | None:
        key = str(short_url)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            link, expires_at = entry
            if expires_at is not None and expires_at <= time.monotonic():
                del self._entries[key]
                return None
        return link

    @beartype
    def store(self, link: ResolvedLink, **kwargs) -> bool:
        key = str(link.short_url)
        expires_at = time.monotonic() + self.link_ttl if self.link_ttl else None
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None and (existing[1] is None or existing[1] > time.monotonic()):
                return False
            self._entries[key] = (replace(link, blacklisted=False), expires_at)
            self._stored += 1
        return True

    def count(self, **kwargs) -> int:
        with self._lock:
            return self._stored
