"""Utility functions for application configuration management.

This module provides a standardized interface for Lambda functions to access
configuration data stored in **AWS AppConfig**. Each environment (`APP_ENV`) has
a dedicated AppConfig *Environment* within the shared AppConfig *Application*
identified by `APP_NAME`. Configuration data is stored as a JSON document under
a configuration profile (typically `backend-config`) and deployed to the
corresponding environment.

The configuration JSON follows this structure:

    {
        "build": 7,
        "active_backend": "redis",
        "configs": {
            "unshorten_url": {
                "redis": { "host": "...", "port": 6379, "db": 0 },
                "memory": { "blacklist": ["evil.example"], "providers": ["bit.ly", "t.co"] },
                "resolver": { "max_redirects": 10, "hop_timeout": 5.0 }
            }
        }
    }

Each Lambda loads its own section (e.g., `"unshorten_url"`): the block of the
active backend plus the backend-independent `"resolver"` block.

Typical usage inside a Lambda handler:
    >>> from unshortlink.utils.config import load_config
    >>> config = load_config('unshorten_url')
    >>> config['redis']['host']
    'redis-15501.host.docker.internal'
    >>> resolver_settings(config)['max_redirects']
    10
"""

import os
import json
import functools
import urllib.parse
import urllib.request
import logging
from typing import Any
from collections.abc import Callable

import boto3

from unshortlink.types import AppConfig, LambdaConfiguration
from unshortlink.constants import ENV, TTL, Resolver
from unshortlink.utils.helpers import require_environment
from unshortlink.utils.runtime import running_locally
from unshortlink.exceptions import BadConfigurationError


logger = logging.getLogger(__name__)

BACKENDS = frozenset({'redis', 'memory'})


def app_env() -> str:
    return os.environ.get(ENV.App.APP_ENV, 'local').lower()


def app_name() -> str | None:
    return os.environ.get(ENV.App.APP_NAME)


def app_prefix() -> str | None:
    return None if app_name() is None else f'{app_name()}:{app_env()}'


def extract_lambda_config(document: AppConfig, lambda_name: str) -> LambdaConfiguration:
    """Pick the active backend block and the resolver block for a lambda

    Args:
        document (AppConfig):
            Full AppConfig document.
        lambda_name (str):
            Name of the Lambda (e.g., "unshorten_url").

    Returns:
        LambdaConfiguration: {'<backend>': {...}, 'resolver': {...}}

    Raises:
        BadConfigurationError:
            If the document lacks the active backend or the lambda section,
            or names an unknown backend.
    """
    try:
        backend = document['active_backend']
        section = document['configs'][lambda_name]
        backend_config = section.get(backend, {}) if backend == 'memory' else section[backend]
    except (KeyError, TypeError) as e:
        raise BadConfigurationError(f"AppConfig document has no usable '{lambda_name}' section: missing {e}") from e

    if backend not in BACKENDS:
        raise BadConfigurationError(f"Unknown active backend '{backend}' (expected one of {sorted(BACKENDS)}).")

    return {backend: backend_config, 'resolver': section.get('resolver', {})}


def resolver_settings(config: LambdaConfiguration) -> dict[str, Any]:
    """Merge the `resolver` config block with defaults and validate it

    Returns:
        dict: max_redirects, hop_timeout, request_timeout, link_ttl, user_agent

    Raises:
        BadConfigurationError: on non-numeric or out-of-range values
    """
    raw = config.get('resolver') or {}
    settings = {
        'max_redirects': raw.get('max_redirects', Resolver.MAX_REDIRECTS),
        'hop_timeout': raw.get('hop_timeout', Resolver.HOP_TIMEOUT),
        'request_timeout': raw.get('request_timeout', Resolver.REQUEST_TIMEOUT),
        'link_ttl': raw.get('link_ttl', TTL.ONE_YEAR),
        'user_agent': raw.get('user_agent', Resolver.USER_AGENT),
    }

    try:
        settings['max_redirects'] = int(settings['max_redirects'])
        settings['hop_timeout'] = float(settings['hop_timeout'])
        settings['request_timeout'] = float(settings['request_timeout'])
        # 0 / null disables expiry of resolved links
        settings['link_ttl'] = int(settings['link_ttl']) if settings['link_ttl'] else None
    except (TypeError, ValueError) as e:
        raise BadConfigurationError(f'Invalid resolver configuration: {raw!r}') from e

    if settings['max_redirects'] < 0:
        raise BadConfigurationError(f"'max_redirects' must be >= 0 (given: {settings['max_redirects']}).")
    if settings['hop_timeout'] <= 0 or settings['request_timeout'] <= 0:
        raise BadConfigurationError("'hop_timeout' and 'request_timeout' must be positive.")

    return settings


def _sam_load_local_appconfig(func: Callable) -> Callable:  # pragma: no cover
    """Decorator: load AppConfig from a local AppConfig Agent when running under SAM.

    Behavior:
        - If the application is running locally and `APPCONFIG_AGENT_URL` is set
          to a safe local URL, fetch the app configuration JSON from the local AppConfig agent.
        - Else, call the wrapped function (which pulls from AWS AppConfig via boto3).

    Environment variables used:
        APPCONFIG_AGENT_URL     – Base URL of the local AppConfig Agent (e.g., http://host.docker.internal:2772).
        APPCONFIG_PROFILE_NAME  – Optional profile name (default: "backend-config").
    """

    # ruff: noqa: E701
    def __validate_appconfig_url(url: str | None) -> str:
        if not url:
            return ''
        components = urllib.parse.urlparse(url)
        if components.scheme not in {'http', 'https'}:
            raise BadConfigurationError(f'Bad scheme {url}')
        if components.hostname not in {'localhost', '127.0.0.1', 'host.docker.internal'}:
            raise BadConfigurationError(f'Bad host {url}')
        if components.port not in {2772, None}:
            raise BadConfigurationError(f'Bad port {url}')
        return url

    # ruff: enable

    @functools.wraps(func)
    def wrapper(lambda_name: str, *args, **kwargs) -> LambdaConfiguration:
        agent_url = __validate_appconfig_url(os.getenv(ENV.AppConfig.AGENT_URL))
        if not running_locally() or not agent_url:
            return func(lambda_name, *args, **kwargs)

        profile_name = os.getenv(ENV.AppConfig.PROFILE_NAME, 'backend-config')
        url = f'{agent_url}/applications/{app_name()}/environments/{app_env()}/configurations/{profile_name}'

        logger.debug('Trying to load AppConfig from local agent.', extra={'agentUrl': url, 'lambdaName': lambda_name})
        with urllib.request.urlopen(url, timeout=5) as r:  # noqa: S310
            document = json.load(r)

        data = extract_lambda_config(document, lambda_name)
        logger.debug('Loaded AppConfig from local agent.', extra={'lambdaName': lambda_name, 'build': document.get('build')})
        return data

    return wrapper


@_sam_load_local_appconfig
@require_environment(ENV.AppConfig.APP_ID, ENV.AppConfig.ENV_ID, ENV.AppConfig.PROFILE_ID)
def load_config(lambda_name: str) -> LambdaConfiguration:
    """Load configuration for a given Lambda from AWS AppConfig

    Fetches the AppConfig JSON once and returns the section relevant
    to the requested Lambda function (e.g., 'unshorten_url').

    Environment variables required:
        APPCONFIG_APP_ID       – AppConfig Application ID
        APPCONFIG_ENV_ID       – AppConfig Environment ID
        APPCONFIG_PROFILE_ID   – AppConfig Configuration Profile ID

    Args:
        lambda_name (str):
            Name of the Lambda (e.g., "unshorten_url").

    Returns:
        LambdaConfiguration: The lambda's config section as a Python dictionary.

    Raises:
        MissingEnvironmentVariableError:
            If any of the AppConfig identifiers is not set.
        BadConfigurationError:
            If the document has no usable section for this lambda.
    """
    logger.debug('Trying to load AppConfig from AWS AppConfig.', extra={'lambdaName': lambda_name})

    appconfig = boto3.client('appconfigdata')

    # Start an AppConfig data session
    session_token = appconfig.start_configuration_session(
        ApplicationIdentifier=os.environ[ENV.AppConfig.APP_ID],
        EnvironmentIdentifier=os.environ[ENV.AppConfig.ENV_ID],
        ConfigurationProfileIdentifier=os.environ[ENV.AppConfig.PROFILE_ID],
    )['InitialConfigurationToken']

    # Fetch the configuration
    response = appconfig.get_latest_configuration(ConfigurationToken=session_token)
    content = response['Configuration'].read()
    document = json.loads(content.decode('utf-8'))

    data = extract_lambda_config(document, lambda_name)
    logger.debug('Loaded AppConfig from AWS AppConfig.', extra={'lambdaName': lambda_name, 'build': document.get('build')})
    return data
