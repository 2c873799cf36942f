"""Configuration module for eventfeed."""

from eventfeed.config.settings import (
    SERVER_CONFIG,
    UPSTREAM_CONFIG,
    ServerConfig,
    UpstreamConfig,
)
from eventfeed.config.constants import (
    KEYRING_SERVICE_NAME,
    KEYRING_ACCOUNT_NAME,
    SUPABASE_URL_ENV_VAR,
    SUPABASE_KEY_ENV_VAR,
    DEFAULT_MAX_OCCURRENCES,
    ICS_PRODID,
)

__all__ = [
    "SERVER_CONFIG",
    "UPSTREAM_CONFIG",
    "ServerConfig",
    "UpstreamConfig",
    "KEYRING_SERVICE_NAME",
    "KEYRING_ACCOUNT_NAME",
    "SUPABASE_URL_ENV_VAR",
    "SUPABASE_KEY_ENV_VAR",
    "DEFAULT_MAX_OCCURRENCES",
    "ICS_PRODID",
]
