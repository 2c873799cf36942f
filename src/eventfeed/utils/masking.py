"""Utilities for masking secrets in log output."""

from typing import Dict, Optional

SENSITIVE_HEADERS = frozenset({"apikey", "authorization"})


def mask_key(key: Optional[str]) -> str:
    """Mask an API key for safe logging.

    Anon keys are JWTs whose prefix is always the same header, so only the
    tail is shown.

    Args:
        key: The key to mask.

    Returns:
        Masked key showing only the last 6 characters.
    """
    if not key:
        return "<empty>"
    if len(key) <= 12:
        return "***"
    return f"...{key[-6:]}"


def redact_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Copy of ``headers`` with credential-bearing values masked."""
    return {
        name: mask_key(value) if name.lower() in SENSITIVE_HEADERS else value
        for name, value in headers.items()
    }
