"""Date and time parsing utilities for upstream rows."""

import logging
from datetime import datetime
from typing import Optional

import pytz
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=pytz.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalize a datetime to UTC. Naive values are taken to be UTC already."""
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=pytz.utc)
    return dt.astimezone(pytz.utc)


def parse_timestamp(value) -> Optional[datetime]:
    """Parse an upstream timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (the REST API's format) and datetime objects.
    Naive values are interpreted as UTC.

    Args:
        value: The raw timestamp value.

    Returns:
        A UTC datetime, or None if the value is empty or unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str):
        logger.warning("Unsupported timestamp type %s: %r", type(value).__name__, value)
        return None

    try:
        parsed = dateutil_parser.isoparse(value.strip())
    except ValueError:
        try:
            parsed = dateutil_parser.parse(value)
        except (ValueError, OverflowError) as exc:
            logger.warning("Could not parse timestamp %r: %s", value, exc)
            return None
    return ensure_utc(parsed)


def to_epoch_millis(dt: datetime) -> int:
    """Milliseconds since the Unix epoch, truncated to whole milliseconds."""
    delta = ensure_utc(dt) - EPOCH
    return delta.days * 86_400_000 + delta.seconds * 1000 + delta.microseconds // 1000
