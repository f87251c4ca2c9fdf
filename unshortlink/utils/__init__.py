from unshortlink.utils.config import app_env, app_name, app_prefix, load_config, resolver_settings
from unshortlink.utils.helpers import base_url, request_path, require_environment, guarantee_500_response
from unshortlink.utils.logging import initialize_logging


__all__ = [
    'app_env',
    'app_name',
    'app_prefix',
    'load_config',
    'resolver_settings',
    'base_url',
    'request_path',
    'require_environment',
    'guarantee_500_response',
    'initialize_logging',
]
