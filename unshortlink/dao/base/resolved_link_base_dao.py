"""Abstract base class for resolved link data access objects (DAOs).

This is the resolution cache: a durable key/value store mapping a normalized
short URL to the long URL its redirect chain ended at. It is a passive store;
deciding *when* to walk a chain belongs to `unshortlink.core.resolver.Resolver`.

Responsibilities:
    - Look up previously resolved links by normalized short URL.
    - Store freshly resolved links idempotently (first write wins).
    - Count resolved links for display purposes.
    - Standardize error handling across data store implementations.

Example:
    Typical usage with a datastore-specific implementation:

        >>> from unshortlink.core import normalize
        >>> from unshortlink.models import ResolvedLink
        >>> from unshortlink.dao.redis import ResolvedLinkRedisDAO

        >>> dao = ResolvedLinkRedisDAO(...)

        >>> link = ResolvedLink(
        ...     short_url=normalize('bit.ly/x'),
        ...     long_url=normalize('https://example.com/article'),
        ... )
        >>> dao.store(link)
        True
        >>> dao.store(link)
        False

        >>> print(dao.lookup(normalize('bit.ly/x')).long_url)
        https://example.com/article

        >>> dao.lookup(normalize('bit.ly/unknown')) is None
        True
"""

from abc import ABC, abstractmethod

from unshortlink.models import NormalizedURL, ResolvedLink


class ResolvedLinkBaseDAO(ABC):
    """Interface for resolution cache data access objects (DAOs).

    Methods:
        lookup(short_url: NormalizedURL, **kwargs) -> ResolvedLink | None:
            Retrieve a previously resolved link. Returns None if not found.
            Raises DataStoreError on read failure.

        store(link: ResolvedLink, **kwargs) -> bool:
            Persist a resolved link unless one already exists for its short URL.
            Raises DataStoreError on write failure.

        count(**kwargs) -> int:
            Number of distinct resolved links.
            Raises DataStoreError on read failure.

    NOTE:
        - `blacklisted` is never persisted; lookup() always returns False for it.
        - Implementations must be safe under concurrent use from many threads.
    """

    @abstractmethod
    def lookup(self, short_url: NormalizedURL, **kwargs) -> ResolvedLink | None:
        """Retrieve a previously resolved link by normalized short URL.

        Args:
            short_url (NormalizedURL):
                The normalized short URL (cache key is its string form).

            **kwargs:
                Additional keyword arguments, used by data store.

        Returns:
            ResolvedLink | None:
                The cached link, or None if the short URL was never resolved.

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass  # pragma: no cover

    @abstractmethod
    def store(self, link: ResolvedLink, **kwargs) -> bool:
        """Persist a resolved link.

        Storing a link whose short URL already has an entry leaves the existing
        entry untouched, whatever its value.

        Args:
            link (ResolvedLink):
                Freshly resolved link.

            **kwargs:
                Additional keyword arguments, used by data store.

        Returns:
            bool:
                True if a new entry was created, False if one already existed.

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass  # pragma: no cover

    @abstractmethod
    def count(self, **kwargs) -> int:
        """Return the number of distinct resolved links.

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass  # pragma: no cover
