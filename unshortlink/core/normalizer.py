"""URL normalization

Turns whatever is left of a request path after route stripping into a
NormalizedURL. Browsers and API Gateway both like to squash `//` into `/`, so
`/https:/bit.ly/x` is a perfectly ordinary input here.

Rules, in order:
    1. trim surrounding whitespace and leading `/`;
    2. collapse a run of `http(s):/...` markers at the start into one canonical
       `scheme://` (`https://https://x` and `https:/x` both become `https://x`);
    3. default to `http://` when no explicit scheme is present (`host:port`
       is not a scheme);
    4. parse, lower-case scheme and host, reject script schemes
       (`javascript:`, `data:`, `vbscript:`) and anything without a usable host.

Example:
    >>> str(normalize('https:/example.com/a'))
    'https://example.com/a'
    >>> str(normalize('bit.ly/x'))
    'http://bit.ly/x'
    >>> str(normalize('/http://https://Example.COM/Path?q=1'))
    'https://example.com/Path?q=1'
"""

import re
from urllib.parse import urlsplit

from unshortlink.models import NormalizedURL
from unshortlink.exceptions import MalformedURLError


# One or more http/https markers, the last one wins. A marker with no slash
# right before digits is a `http:8080` host and port, not a scheme
_HTTP_SCHEME_RUN = re.compile(r'^(?:(https?):(?:/+|(?!\d+(?:[/?#]|$))))+', re.IGNORECASE)
# `scheme:` unless what follows the colon looks like a port
_EXPLICIT_SCHEME = re.compile(r'^[a-z][a-z0-9+.\-]*:(?!\d+(?:[/?#]|$))', re.IGNORECASE)
_ILLEGAL_URL_CHARS = re.compile(r'[\x00-\x20\x7f]')
_ILLEGAL_HOST_CHARS = re.compile(r'[<>"{}|\\^`%@/?#\s]')
# Schemes a browser would execute instead of navigating to
_SCRIPT_SCHEMES = frozenset({'javascript', 'vbscript', 'data'})


def normalize(raw: str) -> NormalizedURL:
    """Canonicalize an arbitrary string into a NormalizedURL

    Args:
        raw (str):
            Candidate URL, typically a request path tail.

    Returns:
        NormalizedURL: the canonical URL.

    Raises:
        MalformedURLError:
            If the string cannot be parsed as an absolute URL with a host.
    """
    if not isinstance(raw, str):
        raise MalformedURLError(f'URL must be a string (given type: {type(raw)}).')

    candidate = raw.strip().lstrip('/')
    if not candidate:
        raise MalformedURLError('URL is empty.')
    if _ILLEGAL_URL_CHARS.search(candidate):
        raise MalformedURLError(f"URL '{raw}' contains whitespace or control characters.")

    match = _HTTP_SCHEME_RUN.match(candidate)
    if match:
        candidate = f'{match.group(1).lower()}://{candidate[match.end():]}'
    elif not _EXPLICIT_SCHEME.match(candidate):
        candidate = f'http://{candidate}'

    try:
        parts = urlsplit(candidate)
        parts.port  # raises ValueError on out-of-range / non-numeric ports
    except ValueError as e:
        raise MalformedURLError(f"URL '{raw}' cannot be parsed: {e}") from e

    scheme = parts.scheme.lower()
    if scheme in _SCRIPT_SCHEMES:
        raise MalformedURLError(f"URL '{raw}' uses the unsafe scheme '{scheme}:'.")

    host = parts.hostname
    if not parts.netloc or not host:
        raise MalformedURLError(f"URL '{raw}' has no host.")
    if _ILLEGAL_HOST_CHARS.search(host):
        raise MalformedURLError(f"URL '{raw}' has an invalid host '{host}'.")

    userinfo, at, hostport = parts.netloc.rpartition('@')
    return NormalizedURL(
        scheme=scheme,
        netloc=f'{userinfo}{at}{hostport.lower()}',
        path=parts.path,
        query=parts.query,
        fragment=parts.fragment,
    )
