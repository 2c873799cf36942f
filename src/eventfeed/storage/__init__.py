"""Upstream credential storage for eventfeed."""

from eventfeed.storage.credentials import (
    UpstreamCredentials,
    load_credentials,
    resolve_credentials,
    save_anon_key,
)
from eventfeed.storage.env_storage import get_user_config_dir, get_env_file_path

__all__ = [
    "UpstreamCredentials",
    "load_credentials",
    "resolve_credentials",
    "save_anon_key",
    "get_user_config_dir",
    "get_env_file_path",
]
