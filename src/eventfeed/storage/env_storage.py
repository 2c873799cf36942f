"""Environment file storage for upstream credentials."""

import logging
import os
import sys
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values, set_key

from eventfeed.config.constants import SUPABASE_KEY_ENV_VAR, SUPABASE_URL_ENV_VAR

logger = logging.getLogger(__name__)


def get_user_config_dir() -> Path:
    """Return a per-user config directory that works across platforms.

    Returns:
        Path to the user's config directory for this application.
    """
    if sys.platform.startswith("win"):
        base_str = os.environ.get("APPDATA") or os.environ.get("LOCALAPPDATA")
        base = Path(base_str) if base_str else (Path.home() / "AppData" / "Roaming")
        return base / "eventfeed"

    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "eventfeed"

    base_str = os.environ.get("XDG_CONFIG_HOME")
    base = Path(base_str) if base_str else (Path.home() / ".config")
    return base / "eventfeed"


def get_env_file_path() -> Path:
    """Get managed .env path under the user config directory."""
    return get_user_config_dir() / ".env"


def get_working_dir_env_path() -> Path:
    """Get the .env in the current working directory (deployment checkouts)."""
    return Path.cwd() / ".env"


def harden_file_permissions(path: Path) -> None:
    """Best-effort: restrict permissions to the current user on POSIX.

    Args:
        path: Path to the file to secure.
    """
    if os.name != "posix":
        return
    try:
        path.chmod(0o600)
    except OSError as e:
        logger.warning("Could not tighten permissions on %s: %s", path, e)


def harden_directory_permissions(path: Path) -> None:
    """Best-effort: restrict directory permissions to the current user on POSIX."""
    if os.name != "posix":
        return
    try:
        path.chmod(0o700)
    except OSError as e:
        logger.warning("Could not tighten permissions on %s: %s", path, e)


def _clean(value) -> Optional[str]:
    if not value:
        return None
    cleaned = str(value).strip().strip("'\"").strip()
    return cleaned or None


def load_from_env_file(path: Path) -> Dict[str, Optional[str]]:
    """Load the upstream URL and anon key from an environment file.

    Args:
        path: Path to the .env file.

    Returns:
        Dict with ``url`` and ``anon_key`` entries, either of which may be None.
    """
    if not path.exists():
        return {"url": None, "anon_key": None}

    # Parse without mutating os.environ (avoids leaking secrets to child processes).
    values = dotenv_values(path)
    return {
        "url": _clean(values.get(SUPABASE_URL_ENV_VAR)),
        "anon_key": _clean(values.get(SUPABASE_KEY_ENV_VAR)),
    }


def store_in_env_file(anon_key: str, url: Optional[str] = None) -> Path:
    """Write credentials to the per-user config .env with secure permissions.

    Args:
        anon_key: The anon key to store.
        url: Optional project URL to store alongside it.

    Returns:
        The path written to.
    """
    env_path = get_env_file_path()

    env_path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    harden_directory_permissions(env_path.parent)

    # Create file with secure permissions atomically
    if not env_path.exists():
        try:
            fd = os.open(str(env_path), os.O_CREAT | os.O_WRONLY | os.O_EXCL, 0o600)
            os.close(fd)
        except FileExistsError:
            pass

    harden_file_permissions(env_path)

    set_key(str(env_path), SUPABASE_KEY_ENV_VAR, anon_key)
    if url:
        set_key(str(env_path), SUPABASE_URL_ENV_VAR, url)

    harden_file_permissions(env_path)
    return env_path
