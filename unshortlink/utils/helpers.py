"""Helper utilities for AWS lambda functions.

Functions:
    base_url() -> str
        Extract correct public base URL from API Gateway event
    request_path() -> str
        Extract the raw request path (with query string) from API Gateway event
    require_environment(*names: str) -> Callable
        Decorator: Ensure required environment variables are present
    guarantee_500_response(handler: Callable) -> Callable
        Decorator: Turn unexpected handler exceptions into a JSON 500 response

Example:
    Typical usage inside a Lambda handler:

        >>> from unshortlink.utils.helpers import base_url
        >>> event = {
        ...     "requestContext": {
        ...         "domainName": "abc123.execute-api.us-east-1.amazonaws.com",
        ...         "stage": "Prod"
        ...     }
        ... }
        >>> base_url(event)
        'https://abc123.execute-api.us-east-1.amazonaws.com/Prod'

        >>> base_url({})
        'http://localhost:3000'
"""

import os
import json
import logging
import functools
from urllib.parse import urlencode, quote
from typing import Any
from collections.abc import Callable

from unshortlink.constants import UNKNOWN_INTERNAL_SERVER_ERROR
from unshortlink.exceptions import MissingEnvironmentVariableError
from unshortlink.utils.runtime import running_locally


logger = logging.getLogger(__name__)


def base_url(event: dict[str, Any]) -> str:
    """Extract public base URL from API Gateway event

    Works seamlessly with both custom and default AWS API Gateway domains.
    If a custom domain is configured, the stage name is omitted.
    If using the default AWS execute-api domain, the stage name is included.

    Args:
        event (dict): API Gateway event object passed to Lambda handler

    Returns:
        str: Base URL, e.g.:
             - "https://unshort.link"
             - "https://abc123.execute-api.us-east-1.amazonaws.com/Prod"
    """
    request_context = event.get('requestContext', {})
    domain = request_context.get('domainName', '')
    stage = request_context.get('stage', '')

    if domain and 'execute-api' not in domain:
        # If the domain is a custom domain (no execute-api), skip stage
        return f'https://{domain}'
    elif domain:
        # Otherwise include the stage (for AWS default domains)
        return f'https://{domain}/{stage}'
    else:
        # Fallback: local invocation (SAM CLI, tests, etc.)
        return 'http://localhost:3000'


def request_path(event: dict[str, Any]) -> str:
    """Extract the request path, re-attaching the query string

    Short URLs routinely carry their own query strings (e.g. `/api/youtu.be/x?t=42`)
    which API Gateway splits off into `queryStringParameters`. HTTP API (v2)
    events keep the original query in `rawQueryString`, which is used verbatim.
    REST (v1) events only carry the decoded parameters, so they are re-encoded
    with `/` and `:` left alone (`?next=/a` stays `?next=/a`).

    Args:
        event (dict): API Gateway event object passed to Lambda handler

    Returns:
        str: request path, e.g. '/api/youtu.be/x?t=42'
    """
    path = event.get('path') or event.get('rawPath') or '/'
    query = event.get('rawQueryString')
    if not query:
        params = event.get('multiValueQueryStringParameters') or {}
        if params:
            pairs = [(k, v) for k, values in params.items() for v in values]
        else:
            pairs = list((event.get('queryStringParameters') or {}).items())
        query = urlencode(pairs, safe='/:', quote_via=quote)
    return f'{path}?{query}' if query else path


def require_environment(*names: str) -> Callable:
    """Decorator ensuring required environment variables are present.

    Args:
        *names (str):
            Names of required environment variables.

    Raises:
        MissingEnvironmentVariableError:
            If any required environment variable is missing or empty.

    Example:
        >>> @require_environment('APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID')
        ... def my_function():
        ...     pass
        >>> my_function()
        MissingEnvironmentVariableError: Missing required environment variables: 'APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID'
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            missing = [name for name in names if not os.environ.get(name)]
            if missing:
                missing_list = ', '.join(f"'{name}'" for name in missing)
                raise MissingEnvironmentVariableError(f'Missing required environment variables: {missing_list}')
            return func(*args, **kwargs)

        return wrapper

    return decorator


def guarantee_500_response(handler: Callable) -> Callable:
    """Decorator: respond with a JSON 500 when the handler raises unexpectedly

    When running locally the exception is re-raised instead, so SAM shows the traceback.
    """

    @functools.wraps(handler)
    def wrapper(event: dict, context: Any) -> dict:
        try:
            return handler(event, context)
        except Exception:
            if running_locally():
                raise
            logger.exception('Unhandled exception in lambda handler. Responding with 500.', extra={'event': UNKNOWN_INTERNAL_SERVER_ERROR})
            return {
                'statusCode': 500,
                'headers': {'Content-Type': 'application/json'},
                'body': json.dumps({'message': 'Internal Server Error', 'error_code': UNKNOWN_INTERNAL_SERVER_ERROR}),
            }

    return wrapper
