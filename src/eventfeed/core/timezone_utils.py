"""Timezone resolution for the feed display timezone and wall-clock arithmetic."""

import logging
import os
from datetime import datetime
from typing import Optional, Tuple

import pytz
import tzlocal
from dateutil import tz as du_tz

from eventfeed.config.constants import FEED_TIMEZONE_ENV_VAR, ICS_TIMEZONE

logger = logging.getLogger(__name__)


def resolve_timezone(tz_str: Optional[str]) -> Tuple[object, Optional[str]]:
    """Resolve a timezone string to a timezone object.

    Args:
        tz_str: The timezone string (e.g., "Europe/Dublin", "local").

    Returns:
        Tuple of (timezone_object, warning_message or None).
    """
    tz_str_raw = tz_str or "local"
    warning = None

    if tz_str_raw.upper() == "LOCAL":
        # Host system zone
        local_tz_obj = tzlocal.get_localzone()
        tz_name = getattr(local_tz_obj, "zone", None) or getattr(local_tz_obj, "key", str(local_tz_obj))
    else:
        tz_name = tz_str_raw

    try:
        return pytz.timezone(tz_name), None
    except pytz.UnknownTimeZoneError:
        # Last-ditch attempt with dateutil (may return fixed offset)
        local_tz = du_tz.gettz(tz_name)
        if local_tz is None:
            local_tz = pytz.utc
            warning = f"Couldn't resolve timezone '{tz_str_raw}' - using UTC."
            logger.warning(warning)
        return local_tz, warning


def timezone_name(tzobj) -> str:
    """Return the IANA-style name of a resolved timezone object."""
    name = getattr(tzobj, "zone", None)
    if name:
        return name
    return str(tzobj.tzname(datetime.now()) or "UTC")


def feed_timezone_name() -> str:
    """Display timezone advertised in the feed preamble.

    Reads ``EVENTFEED_TIMEZONE`` when set. Unknown names fall back to the
    default display timezone.
    """
    override = os.environ.get(FEED_TIMEZONE_ENV_VAR, "").strip()
    if not override:
        return ICS_TIMEZONE

    tzobj, warning = resolve_timezone(override)
    if warning:
        logger.warning("Ignoring %s=%s; using %s", FEED_TIMEZONE_ENV_VAR, override, ICS_TIMEZONE)
        return ICS_TIMEZONE
    return timezone_name(tzobj)


def attach_timezone(tzobj, naive_dt: datetime) -> datetime:
    """Return timezone-aware datetime, using proper DST rules where possible.

    Args:
        tzobj: The timezone object (pytz or dateutil).
        naive_dt: A naive datetime to attach the timezone to.

    Returns:
        A timezone-aware datetime.
    """
    if hasattr(tzobj, "localize"):
        # pytz - honour DST rules automatically
        try:
            return tzobj.localize(naive_dt, is_dst=None)
        except (pytz.AmbiguousTimeError, pytz.NonExistentTimeError):
            return tzobj.localize(naive_dt, is_dst=True)
    return naive_dt.replace(tzinfo=tzobj)

