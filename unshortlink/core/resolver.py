"""Resolution orchestrator

Composes normalizer, resolution cache, redirect walker and blacklist oracle
into a single operation:

    resolve(raw) -> ResolvedLink

    1. normalize `raw` (MalformedURLError on failure);
    2. look the normalized URL up in the cache;
    3. on a hit, skip to 5;
    4. on a miss, walk the redirect chain (coalesced per URL) and store the
       result before returning it; walker errors propagate and nothing is cached;
    5. recompute `blacklisted` from the destination host, always live;
    6. return the link.

Storage failures surface as CacheUnavailableError. The resolver never walks a
chain because the cache is unreachable, so storage outages are not masked.
"""

import logging

from unshortlink.models import NormalizedURL, ResolvedLink
from unshortlink.core.deadline import Deadline
from unshortlink.core.coalescer import Coalescer
from unshortlink.core.normalizer import normalize
from unshortlink.core.walker import RedirectWalker
from unshortlink.dao.base import ResolvedLinkBaseDAO, BlacklistBaseDAO, ProviderBaseDAO
from unshortlink.dao.exceptions import DataStoreError
from unshortlink.exceptions import CacheUnavailableError


logger = logging.getLogger(__name__)


class Resolver:
    """Resolve short URLs through the cache, walking redirect chains on misses

    Dependencies are injected so that in-memory fakes can replace Redis and the
    network in tests. The resolver keeps no state between calls besides the map
    of resolutions currently in flight.

    Attributes:
        cache (ResolvedLinkBaseDAO):
            Resolution cache.
        walker (RedirectWalker):
            Redirect chain walker used on cache misses.
        blacklist (BlacklistBaseDAO):
            Blacklist oracle consulted for every returned link.
        coalescer (Coalescer | None):
            Shares one walk between concurrent misses of the same URL.
            None disables coalescing (duplicate walks then race on an idempotent store).
        providers (ProviderBaseDAO | None):
            Registry of known shortener hosts, listed by `known_providers()`.

    Example:
        >>> resolver = Resolver(
        ...     cache=ResolvedLinkMemoryDAO(),
        ...     walker=RedirectWalker(),
        ...     blacklist=BlacklistMemoryDAO(['evil.example']),
        ... )
        >>> link = resolver.resolve('https:/example.com/a', timeout=10)
        >>> str(link.long_url), link.blacklisted
        ('https://example.com/b', False)
    """

    def __init__(
        self,
        cache: ResolvedLinkBaseDAO,
        walker: RedirectWalker,
        blacklist: BlacklistBaseDAO,
        coalescer: Coalescer | None = None,
        coalesce: bool = True,
        providers: ProviderBaseDAO | None = None,
    ):
        self.cache = cache
        self.walker = walker
        self.blacklist = blacklist
        self.coalescer = coalescer or (Coalescer() if coalesce else None)
        self.providers = providers

    def resolve(self, raw: str, timeout: float | None = None, deadline: Deadline | None = None) -> ResolvedLink:
        """Resolve a short URL string to its destination

        Args:
            raw (str):
                Short URL as received from the caller (scheme optional).
            timeout (float | None):
                Seconds the caller is willing to wait. Ignored when `deadline` is given.
            deadline (Deadline | None):
                Caller deadline/cancellation token shared with other work.

        Returns:
            ResolvedLink: the link with `blacklisted` computed now.

        Raises:
            MalformedURLError: `raw` is not a URL.
            TooManyRedirectsError, RedirectCycleError: pathological chain.
            UpstreamTimeoutError, UpstreamUnreachableError: transient network failure.
            CacheUnavailableError: the resolution cache failed.
        """
        deadline = deadline or Deadline(timeout)
        short_url = normalize(raw)

        link = self._lookup(short_url, deadline)
        if link is not None:
            logger.debug('Short URL found in cache.', extra={'shortUrl': str(short_url), 'longUrl': str(link.long_url)})
        elif self.coalescer is None:
            link = self._walk_and_store(short_url, deadline)
        else:
            link = self.coalescer.run(
                str(short_url),
                lambda: self._walk_and_store(short_url, deadline, recheck=True),
                deadline=deadline,
            )

        return link.with_blacklisted(self.blacklist.is_blacklisted(link.long_url.host))

    def link_count(self) -> int:
        """Number of resolved links known to the cache (for display)

        Raises:
            CacheUnavailableError: the resolution cache failed.
        """
        try:
            return self.cache.count()
        except DataStoreError as e:
            raise CacheUnavailableError(f'Resolution cache unavailable: {e}') from e

    def known_providers(self) -> list[str]:
        """Shortener hosts this deployment knows about, sorted (empty if none are configured)

        Raises:
            CacheUnavailableError: the provider registry failed.
        """
        if self.providers is None:
            return []
        try:
            return self.providers.hosts()
        except DataStoreError as e:
            raise CacheUnavailableError(f'Provider registry unavailable: {e}') from e

    def _lookup(self, short_url: NormalizedURL, deadline: Deadline) -> ResolvedLink | None:
        deadline.check()
        try:
            return self.cache.lookup(short_url)
        except DataStoreError as e:
            raise CacheUnavailableError(f'Resolution cache unavailable: {e}') from e

    def _walk_and_store(self, short_url: NormalizedURL, deadline: Deadline, recheck: bool = False) -> ResolvedLink:
        # A leader that starts right after a previous leader finished would
        # otherwise walk the same chain again
        if recheck:
            cached = self._lookup(short_url, deadline)
            if cached is not None:
                return cached

        logger.info('Get new URL from short link.', extra={'shortUrl': str(short_url)})
        link = self.walker.walk(short_url, deadline=deadline)

        # The walk succeeded, so the result is stored even if the deadline ran out meanwhile
        try:
            self.cache.store(link)
        except DataStoreError as e:
            raise CacheUnavailableError(f'Resolution cache unavailable: {e}') from e

        logger.info(
            'Resolved short URL from redirect chain.',
            extra={'shortUrl': str(short_url), 'longUrl': str(link.long_url), 'hops': link.hops},
        )
        return link
