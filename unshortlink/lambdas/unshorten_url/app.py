import json
import logging
from typing import Any

from unshortlink.constants import Route
from unshortlink.core import Resolver, RedirectWalker
from unshortlink.models import ResolvedLink
from unshortlink.dao.redis import ResolvedLinkRedisDAO, BlacklistRedisDAO, ProviderRedisDAO
from unshortlink.dao.memory import ResolvedLinkMemoryDAO, BlacklistMemoryDAO, ProviderMemoryDAO
from unshortlink.dao.exceptions import DataStoreError
from unshortlink.exceptions import (
    UnshortLinkError,
    ConfigurationError,
    MalformedURLError,
    TooManyRedirectsError,
    RedirectCycleError,
    UpstreamTimeoutError,
    UpstreamUnreachableError,
    CacheUnavailableError,
)
from unshortlink.utils import load_config, resolver_settings, app_prefix, base_url, request_path
from unshortlink.utils.helpers import guarantee_500_response
from unshortlink.lambdas.unshorten_url import pages
from unshortlink.lambdas.unshorten_url.constants import (
    INDEX_SERVED,
    LINK_RESOLVED,
    LINK_BLACKLISTED,
    RESOLUTION_FAILED,
    CONFIGURATION_FAILED,
    PROVIDERS_LISTED,
)


logger = logging.getLogger(__name__)

# Built on first use and kept for the lifetime of the (warm) container
_resolver: Resolver | None = None
_request_timeout: float | None = None

STATUS_CODES: dict[type[UnshortLinkError], int] = {
    MalformedURLError: 400,
    TooManyRedirectsError: 502,
    RedirectCycleError: 502,
    UpstreamUnreachableError: 502,
    UpstreamTimeoutError: 504,
    CacheUnavailableError: 503,
}


def status_code_for(error: UnshortLinkError) -> int:
    for error_type in type(error).__mro__:
        if error_type in STATUS_CODES:
            return STATUS_CODES[error_type]
    return 500


def response_json(status_code: int, body: dict | list) -> dict:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(body),
    }


def response_html(status_code: int, body: str) -> dict:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'text/html; charset=utf-8'},
        'body': body,
    }


def response_308(*, location: str) -> dict:
    return {
        'statusCode': 308,
        'headers': {'Location': location},
        'body': '',
    }


def response_error(error: UnshortLinkError, *, api: bool, server_url: str) -> dict:
    status_code = status_code_for(error)
    if api:
        return response_json(status_code, {'message': str(error), 'error_code': error.error_code})
    return response_html(status_code, pages.error_page(server_url, str(error)))


def parse_route(path: str) -> tuple[str | None, str]:
    """Split a request path into (route, short URL string)

    Example:
        >>> parse_route('/api/bit.ly/x')
        ('api', 'bit.ly/x')
        >>> parse_route('/https:/bit.ly/x')
        (None, 'https:/bit.ly/x')
        >>> parse_route('/providers')
        ('providers', '')
        >>> parse_route('/')
        (None, '')
    """
    tail = path.lstrip('/')
    if tail.rstrip('/') == Route.PROVIDERS:
        return Route.PROVIDERS, ''
    head, _, rest = tail.partition('/')
    if head in (Route.API, Route.REDIRECT):
        return head, rest
    return None, tail


def build_resolver(app_config: dict[str, Any]) -> tuple[Resolver, float]:
    """Build a Resolver from the lambda's config section

    Returns:
        tuple[Resolver, float]: the resolver and the per-request timeout

    Raises:
        BadConfigurationError: invalid resolver settings
        DataStoreError: Redis backend is unreachable
    """
    settings = resolver_settings(app_config)

    if 'redis' in app_config:
        redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}
        cache = ResolvedLinkRedisDAO(**redis_config, prefix=app_prefix(), link_ttl=settings['link_ttl'])
        blacklist = BlacklistRedisDAO(redis_client=cache.redis, prefix=app_prefix())
        providers = ProviderRedisDAO(redis_client=cache.redis, prefix=app_prefix())
    else:
        memory_config = app_config.get('memory') or {}
        cache = ResolvedLinkMemoryDAO(link_ttl=settings['link_ttl'])
        blacklist = BlacklistMemoryDAO(memory_config.get('blacklist', []))
        providers = ProviderMemoryDAO(memory_config.get('providers', []))

    walker = RedirectWalker(
        max_redirects=settings['max_redirects'],
        hop_timeout=settings['hop_timeout'],
        user_agent=settings['user_agent'],
    )
    return Resolver(cache=cache, walker=walker, blacklist=blacklist, providers=providers), settings['request_timeout']


def get_resolver() -> tuple[Resolver, float]:
    global _resolver, _request_timeout
    if _resolver is None:
        _resolver, _request_timeout = build_resolver(load_config('unshorten_url'))
    return _resolver, _request_timeout


@guarantee_500_response
def lambda_handler(event: dict, context: Any) -> dict:
    """Handle incoming API Gateway requests to unshorten URLs

    Routes (the short URL may keep or drop its scheme, e.g. `/bit.ly/x`):
        /                   HTML index page with the number of resolved links
        /api/<short url>    JSON {short_link, long_link, blacklisted}
        /redirect/<url>     308 to the destination (HTML page if blacklisted or not a redirect)
        /providers          JSON list of known shortener hosts
        /<short url>        HTML page showing the destination (or a blacklist warning)

    HTTP responses:
        200: page or JSON body
        308: redirect to destination
        400: malformed short URL
        500: configuration or unexpected internal error
        502: redirect loop, too many redirects, or unreachable upstream
        503: resolution cache unavailable
        504: upstream (or request) timeout

    Args:
        event (dict):
            API Gateway proxy event.
        context (LambdaContext):
            AWS Lambda runtime context object (not used directly).

    Returns:
        dict:
            API Gateway-compatible response including statusCode, headers, and body.

    Example:
        >>> event = {'path': '/api/bit.ly/x'}
        >>> response = lambda_handler(event, None)
        >>> json.loads(response['body'])
        {'short_link': 'http://bit.ly/x', 'long_link': 'https://example.com/article', 'blacklisted': False}
    """
    route, target = parse_route(request_path(event))
    api = route in (Route.API, Route.PROVIDERS)
    server_url = base_url(event)

    # 0- Build (or reuse) the resolver from the application's config
    try:
        resolver, request_timeout = get_resolver()
    except ConfigurationError as e:
        logger.exception('Failed to load configuration. Responding with 500.', extra={'event': CONFIGURATION_FAILED})
        return response_error(e, api=api, server_url=server_url)
    except DataStoreError as e:
        logger.exception('Resolution cache unreachable. Responding with 503.', extra={'event': CONFIGURATION_FAILED})
        return response_error(CacheUnavailableError(str(e)), api=api, server_url=server_url)

    # 1- Index page
    if route is None and not target:
        try:
            link_count = resolver.link_count()
        except CacheUnavailableError as e:
            logger.exception('Could not get link count.', extra={'event': RESOLUTION_FAILED})
            return response_error(e, api=False, server_url=server_url)
        logger.debug('Serving index page.', extra={'event': INDEX_SERVED, 'linkCount': link_count})
        return response_html(200, pages.index_page(server_url, link_count))

    # 2- Known shortener hosts
    if route == Route.PROVIDERS:
        try:
            providers = resolver.known_providers()
        except CacheUnavailableError as e:
            logger.exception('Could not get hosts from the provider registry.', extra={'event': RESOLUTION_FAILED})
            return response_error(e, api=True, server_url=server_url)
        logger.debug('Serving provider list.', extra={'event': PROVIDERS_LISTED, 'providerCount': len(providers)})
        return response_json(200, providers)

    # 3- Resolve the short URL
    try:
        link = resolver.resolve(target, timeout=request_timeout)
    except UnshortLinkError as e:
        logger.info(
            'Could not resolve short URL. Responding with %s.',
            status_code_for(e),
            extra={'shortUrl': target, 'event': RESOLUTION_FAILED, 'errorCode': e.error_code},
        )
        return response_error(e, api=api, server_url=server_url)

    logger.info(
        'Access url.',
        extra={'shortUrl': str(link.short_url), 'longUrl': str(link.long_url), 'blacklisted': link.blacklisted, 'event': LINK_RESOLVED},
    )

    # 4- Present the result
    return present(link, route=route, server_url=server_url)


def present(link: ResolvedLink, *, route: str | None, server_url: str) -> dict:
    if route == Route.API:
        return response_json(
            200,
            {
                'short_link': str(link.short_url),
                'long_link': str(link.long_url),
                'blacklisted': link.blacklisted,
            },
        )

    if link.blacklisted:
        logger.info('Destination host is blacklisted.', extra={'longUrl': str(link.long_url), 'event': LINK_BLACKLISTED})
        return response_html(200, pages.blacklist_page(server_url, link))

    # Only web destinations are redirected to; anything else gets the show page
    if route != Route.REDIRECT or not link.redirected or not link.long_url.requestable:
        return response_html(200, pages.show_page(server_url, link))

    return response_308(location=str(link.long_url))
