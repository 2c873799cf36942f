"""OS keyring storage for anon keys, one entry per Supabase project."""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

import keyring
from keyring.errors import KeyringError

from eventfeed.config.constants import KEYRING_ACCOUNT_NAME, KEYRING_SERVICE_NAME

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyringLookup:
    """Result of reading the keyring. ``reason`` explains a missing key."""

    anon_key: Optional[str] = None
    reason: str = ""

    @property
    def found(self) -> bool:
        return bool(self.anon_key)


def account_for(url: Optional[str]) -> str:
    """Keyring account holding the key for a project URL.

    ``https://abc.supabase.co`` maps to ``supabase_anon_key@abc.supabase.co``.
    Without a usable URL the shared account is used.
    """
    host = urlsplit(url.strip()).netloc.lower() if url else ""
    return f"{KEYRING_ACCOUNT_NAME}@{host}" if host else KEYRING_ACCOUNT_NAME


def load_from_keyring(url: Optional[str] = None) -> KeyringLookup:
    """Read the anon key for a project, falling back to the shared account.

    Args:
        url: Project URL the key belongs to, if known.

    Returns:
        A KeyringLookup carrying the key, or the reason none was found.
    """
    accounts = [account_for(url)]
    if accounts[0] != KEYRING_ACCOUNT_NAME:
        accounts.append(KEYRING_ACCOUNT_NAME)

    for account in accounts:
        try:
            value = keyring.get_password(KEYRING_SERVICE_NAME, account)
        except KeyringError as e:
            return KeyringLookup(reason=f"keyring unavailable: {e}")
        if value and value.strip():
            logger.debug("Anon key found in keyring account %s", account)
            return KeyringLookup(anon_key=value.strip())

    return KeyringLookup(reason=f"no keyring entry for {' or '.join(accounts)}")


def save_to_keyring(anon_key: str, url: Optional[str] = None) -> bool:
    """Store the anon key under the project's account.

    Args:
        anon_key: The key to save.
        url: Project URL the key belongs to. Omit to use the shared account.

    Returns:
        True if saved, False if the keyring rejected it.
    """
    account = account_for(url)
    try:
        keyring.set_password(KEYRING_SERVICE_NAME, account, anon_key)
    except KeyringError as e:
        logger.warning("Keyring save to %s failed: %s", account, e)
        return False
    return True
