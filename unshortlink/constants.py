from enum import StrEnum


class TTL:
    """TTL durations in seconds."""

    # Resolved link retention period (1 year in seconds)
    ONE_YEAR = 31_536_000  # 60 * 60 * 24 * 365


class Resolver:
    """Default redirect walker and orchestrator settings."""

    MAX_REDIRECTS = 10  # Redirects followed before giving up
    HOP_TIMEOUT = 5.0  # Seconds allowed per hop request
    REQUEST_TIMEOUT = 25.0  # Seconds allowed per caller-level resolution
    MAX_LOCATION_LENGTH = 8_192  # Longest accepted Location header
    COALESCE_POLL_INTERVAL = 0.05  # Seconds between deadline checks while waiting on another caller
    USER_AGENT = 'unshortlink/1.0 (+https://github.com/unshortlink)'


class Route(StrEnum):
    """Path prefixes understood by the unshorten_url lambda."""

    API = 'api'
    REDIRECT = 'redirect'
    PROVIDERS = 'providers'


class ENV:
    """Environment variable names."""

    class App(StrEnum):
        APP_ENV = 'APP_ENV'
        APP_NAME = 'APP_NAME'
        AWS_SAM_LOCAL = 'AWS_SAM_LOCAL'
        LOG_LEVEL = 'LOG_LEVEL'

    class AppConfig(StrEnum):
        APP_ID = 'APPCONFIG_APP_ID'
        ENV_ID = 'APPCONFIG_ENV_ID'
        PROFILE_ID = 'APPCONFIG_PROFILE_ID'
        AGENT_URL = 'APPCONFIG_AGENT_URL'
        PROFILE_NAME = 'APPCONFIG_PROFILE_NAME'


# Error codes
UNKNOWN_INTERNAL_SERVER_ERROR = 'UNKNOWN_INTERNAL_SERVER_ERROR'
