"""Application-specific exceptions.

Every error raised by the resolution engine derives from UnshortLinkError and
carries a stable `error_code` (used in JSON error bodies and logs) plus a
`retryable` flag telling callers whether trying again later may succeed.

Hierarchy:

    UnshortLinkError
    ├── MalformedURLError
    ├── ResolutionError
    │   ├── TooManyRedirectsError
    │   ├── RedirectCycleError
    │   ├── UpstreamTimeoutError
    │   │   ├── DeadlineExceededError
    │   │   └── ResolutionCancelledError
    │   └── UpstreamUnreachableError
    ├── CacheUnavailableError
    └── ConfigurationError
        ├── MissingEnvironmentVariableError
        └── BadConfigurationError
"""


class UnshortLinkError(Exception):
    """Base exception for all application-specific errors."""

    error_code = 'app:unshortlink_error'
    retryable = False


class MalformedURLError(UnshortLinkError):
    """Raised when a string cannot be parsed as an absolute URL."""

    error_code = 'url:malformed_url_error'


class ResolutionError(UnshortLinkError):
    """Base exception for failures while walking a redirect chain."""

    error_code = 'resolve:resolution_error'


class TooManyRedirectsError(ResolutionError):
    """Raised when a redirect chain is longer than the configured bound."""

    error_code = 'resolve:too_many_redirects_error'


class RedirectCycleError(ResolutionError):
    """Raised when a redirect chain revisits one of its own hops."""

    error_code = 'resolve:redirect_cycle_error'


class UpstreamTimeoutError(ResolutionError):
    """Raised when a hop request does not complete in time."""

    error_code = 'resolve:upstream_timeout_error'
    retryable = True


class DeadlineExceededError(UpstreamTimeoutError):
    """Raised when the caller's own deadline runs out mid-resolution."""

    error_code = 'resolve:deadline_exceeded_error'


class ResolutionCancelledError(UpstreamTimeoutError):
    """Raised when the caller cancels a resolution in progress."""

    error_code = 'resolve:resolution_cancelled_error'


class UpstreamUnreachableError(ResolutionError):
    """Raised on network or connection failures talking to a hop."""

    error_code = 'resolve:upstream_unreachable_error'
    retryable = True


class CacheUnavailableError(UnshortLinkError):
    """Raised when the resolution cache cannot be read or written."""

    error_code = 'infra:cache_unavailable_error'
    retryable = True


class ConfigurationError(UnshortLinkError):
    """Base exception for all configuration errors."""

    error_code = 'config:configuration_error'


class MissingEnvironmentVariableError(ConfigurationError):
    """Raised when a required environment variable is missing."""

    error_code = 'config:missing_environment_variable_error'


class BadConfigurationError(ConfigurationError):
    """Raised when the application is configured with invalid parameters."""

    error_code = 'config:bad_configuration_error'
