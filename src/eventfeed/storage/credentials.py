"""High-level upstream credential management."""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

from eventfeed.config.constants import SUPABASE_KEY_ENV_VAR, SUPABASE_URL_ENV_VAR
from eventfeed.exceptions.errors import FeedConfigurationError
from eventfeed.storage.env_storage import (
    get_env_file_path,
    get_working_dir_env_path,
    load_from_env_file,
    store_in_env_file,
)
from eventfeed.storage.keyring_storage import load_from_keyring, save_to_keyring
from eventfeed.utils.masking import mask_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpstreamCredentials:
    """Supabase project URL and anon (public) key."""

    url: str
    anon_key: str

    def __repr__(self) -> str:
        return f"UpstreamCredentials(url={self.url!r}, anon_key={mask_key(self.anon_key)!r})"


def _first(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value:
            return value
    return None


def resolve_credentials() -> Tuple[Optional[str], Optional[str], List[str]]:
    """Look up the URL and key without failing.

    Priority for each value:
        1. Environment variables
        2. OS keyring, per project URL (anon key only)
        3. User config .env
        4. .env in the working directory

    Returns:
        Tuple of (url, anon_key, names_of_missing_variables).
    """
    user_env = load_from_env_file(get_env_file_path())
    cwd_env = load_from_env_file(get_working_dir_env_path())

    url = _first(os.environ.get(SUPABASE_URL_ENV_VAR, "").strip(), user_env["url"], cwd_env["url"])

    anon_key = os.environ.get(SUPABASE_KEY_ENV_VAR, "").strip() or None
    if not anon_key:
        lookup = load_from_keyring(url)
        if not lookup.found:
            logger.debug("Keyring skipped: %s", lookup.reason)
        anon_key = _first(lookup.anon_key, user_env["anon_key"], cwd_env["anon_key"])

    missing = []
    if not url:
        missing.append(SUPABASE_URL_ENV_VAR)
    if not anon_key:
        missing.append(SUPABASE_KEY_ENV_VAR)
    return url, anon_key, missing


def load_credentials() -> UpstreamCredentials:
    """Load upstream credentials.

    Returns:
        The resolved credentials.

    Raises:
        FeedConfigurationError: If the URL or the key cannot be found.
    """
    url, anon_key, missing = resolve_credentials()
    if missing:
        raise FeedConfigurationError(missing)
    logger.debug("Using upstream %s with key %s", url, mask_key(anon_key))
    return UpstreamCredentials(url=url, anon_key=anon_key)


def save_anon_key(anon_key: str, url: Optional[str] = None) -> bool:
    """Save the anon key securely.

    Primary: OS keyring. A copy always goes to the per-user config .env,
    which is also where the optional URL is kept.

    Args:
        anon_key: The key to save.
        url: Optional project URL.

    Returns:
        True if saved successfully, False otherwise.
    """
    anon_key = anon_key.strip().strip("'\"").strip()
    if not anon_key:
        return False

    if save_to_keyring(anon_key, url):
        logger.info("Anon key saved to keyring")
    else:
        logger.warning("Keyring unavailable, using file storage only")

    try:
        path = store_in_env_file(anon_key, url)
    except OSError as e:
        logger.error("Failed to save anon key: %s", e)
        return False

    logger.info("Credentials written to %s", path)
    return True
