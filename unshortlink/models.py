from dataclasses import dataclass, field, replace
from datetime import datetime, UTC
from urllib.parse import urlunsplit


REQUESTABLE_SCHEMES = frozenset({'http', 'https'})


@dataclass(frozen=True)
class NormalizedURL:
    """Canonical, absolute URL produced by `unshortlink.core.normalizer.normalize()`

    Scheme and host are lower-cased, everything else is kept verbatim.
    Do not construct directly from untrusted input; go through normalize().

    Example:
        >>> url = NormalizedURL(scheme='https', netloc='example.com', path='/a')
        >>> str(url)
        'https://example.com/a'
        >>> url.host
        'example.com'
    """

    # fmt: off
    scheme: str         # Always non-empty, e.g. 'http' or 'https'
    netloc: str         # [userinfo@]host[:port], host lower-cased
    path: str = ''
    query: str = ''
    fragment: str = ''
    # fmt: on

    def __str__(self) -> str:
        return urlunsplit((self.scheme, self.netloc, self.path, self.query, self.fragment))

    @property
    def requestable(self) -> bool:
        """True if the URL can be fetched (and safely linked to) over HTTP"""
        return self.scheme in REQUESTABLE_SCHEMES

    @property
    def host(self) -> str:
        """Hostname without userinfo or port (IPv6 brackets stripped)"""
        hostport = self.netloc.rpartition('@')[2]
        if hostport.startswith('['):
            return hostport[1:].partition(']')[0]
        return hostport.partition(':')[0]


@dataclass(frozen=True)
class ResolvedLink:
    # fmt: off
    short_url: NormalizedURL            # URL the caller asked about
    long_url: NormalizedURL             # Final destination of the redirect chain
    blacklisted: bool = False           # Computed at read time, never persisted
    resolved_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    hops: int = 0                       # Redirects followed by the walker, 0 when unknown
    # fmt: on

    @property
    def redirected(self) -> bool:
        """True if the short URL points somewhere other than itself"""
        return str(self.short_url) != str(self.long_url)

    def with_blacklisted(self, blacklisted: bool) -> 'ResolvedLink':
        return replace(self, blacklisted=blacklisted)
