"""Live traversal of HTTP redirect chains

The walker requests each hop itself (redirects are never auto-followed) so that
every hop can be bounded and checked. Destinations are attacker-influenceable,
so nothing a hop sends back is trusted: bodies are never read, `Location`
headers are length-checked and re-normalized, and chain length is capped.

Classes:
    RedirectWalker:
        Follows a redirect chain from a NormalizedURL to its final destination.

Example:
    >>> walker = RedirectWalker(max_redirects=10, hop_timeout=5.0)
    >>> link = walker.walk(normalize('https:/example.com/a'))
    >>> str(link.long_url)
    'https://example.com/b'
    >>> link.hops
    1
"""

import logging
from urllib.parse import urljoin

import httpx

from unshortlink.models import NormalizedURL, ResolvedLink
from unshortlink.constants import Resolver
from unshortlink.core.deadline import Deadline
from unshortlink.core.normalizer import normalize
from unshortlink.exceptions import (
    MalformedURLError,
    TooManyRedirectsError,
    RedirectCycleError,
    UpstreamTimeoutError,
    UpstreamUnreachableError,
    DeadlineExceededError,
)


logger = logging.getLogger(__name__)


class RedirectWalker:
    """Follow redirect chains hop by hop with depth, cycle and timeout bounds

    Attributes:
        client (httpx.Client):
            HTTP client used for hop requests. Must not follow redirects itself;
            the walker passes follow_redirects=False on every request anyway.
        max_redirects (int):
            Redirects followed before TooManyRedirectsError is raised.
        hop_timeout (float):
            Timeout in seconds for each hop (connect, write, read and pool wait).

    Methods:
        walk(start: NormalizedURL, deadline: Deadline | None = None) -> ResolvedLink:
            Resolve `start` to the last URL of its redirect chain.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        max_redirects: int = Resolver.MAX_REDIRECTS,
        hop_timeout: float = Resolver.HOP_TIMEOUT,
        user_agent: str = Resolver.USER_AGENT,
    ):
        if client is None:
            client = httpx.Client(follow_redirects=False, headers={'User-Agent': user_agent})

        self.client = client
        self.max_redirects = max_redirects
        self.hop_timeout = hop_timeout

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> 'RedirectWalker':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def walk(self, start: NormalizedURL, deadline: Deadline | None = None) -> ResolvedLink:
        """Follow the redirect chain starting at `start`

        A hop whose scheme cannot be requested over HTTP (e.g. an app deep link)
        ends the chain and becomes the destination.

        Args:
            start (NormalizedURL):
                First hop of the chain.
            deadline (Deadline | None):
                Caller deadline; every hop timeout is capped by the time left.

        Returns:
            ResolvedLink:
                short_url=start, long_url=last hop, hops=redirects followed.
                `blacklisted` is left False; the resolver fills it in.

        Raises:
            TooManyRedirectsError: more than `max_redirects` redirects.
            RedirectCycleError: a hop redirects to an already visited hop.
            UpstreamTimeoutError: a hop did not answer within its timeout.
            DeadlineExceededError / ResolutionCancelledError: caller ran out of time or gave up.
            UpstreamUnreachableError: connection or protocol failure talking to a hop.
            MalformedURLError: a hop sent an unusable Location header.
        """
        deadline = deadline or Deadline()
        current = start
        visited = {str(start)}
        redirects = 0

        while current.requestable:
            location = self._request_hop(current, deadline)
            if location is None:
                break

            redirects += 1
            if redirects > self.max_redirects:
                raise TooManyRedirectsError(f"'{start}' redirected more than {self.max_redirects} times.")

            next_hop = self._next_hop(current, location)
            if str(next_hop) in visited:
                raise RedirectCycleError(f"'{start}' redirects in a cycle: '{current}' leads back to '{next_hop}'.")

            visited.add(str(next_hop))
            current = next_hop

        logger.debug('Redirect chain walked.', extra={'shortUrl': str(start), 'longUrl': str(current), 'hops': redirects})
        return ResolvedLink(short_url=start, long_url=current, hops=redirects)

    def _request_hop(self, url: NormalizedURL, deadline: Deadline) -> str | None:
        """Request one hop and return its redirect target, or None if it is final"""
        timeout = deadline.bound(self.hop_timeout)

        try:
            # stream() + no read: the body of an untrusted host is never downloaded
            with self.client.stream('GET', str(url), timeout=timeout, follow_redirects=False) as response:
                logger.debug('Hop answered.', extra={'url': str(url), 'statusCode': response.status_code})
                if not response.is_redirect:
                    return None
                locations = response.headers.get_list('location')
        except httpx.TimeoutException as e:
            # A hop timeout cut short by the caller deadline is the caller's deadline
            if timeout < self.hop_timeout or deadline.remaining() == 0.0:
                raise DeadlineExceededError(f"Caller deadline exceeded while requesting '{url}'.") from e
            raise UpstreamTimeoutError(f"'{url}' did not respond within {timeout:.1f}s.") from e
        except httpx.InvalidURL as e:
            raise MalformedURLError(f"'{url}' cannot be requested: {e}") from e
        except httpx.HTTPError as e:
            raise UpstreamUnreachableError(f"Can't reach '{url}': {e.__class__.__name__}.") from e

        location = locations[0].strip() if locations else ''
        # A 3xx with an empty Location is a final response
        return location or None

    @staticmethod
    def _next_hop(current: NormalizedURL, location: str) -> NormalizedURL:
        if len(location) > Resolver.MAX_LOCATION_LENGTH:
            raise MalformedURLError(f"'{current}' sent a Location header longer than {Resolver.MAX_LOCATION_LENGTH} characters.")

        try:
            return normalize(urljoin(str(current), location))
        except (MalformedURLError, ValueError) as e:
            raise MalformedURLError(f"'{current}' redirects to malformed location {location[:200]!r}.") from e
