"""ICS feed serialization.

TEXT values are escaped here and handed to icalendar as ``vInline`` so they
are written verbatim. Content lines longer than 75 octets are folded by
icalendar as RFC 5545 requires, so a long title spans several physical
lines; clients unfold it back into one logical line.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import Iterable, Optional

import pytz
from icalendar import Calendar, Event, vDatetime, vDuration
from icalendar.prop import vInline

from eventfeed.config.constants import (
    ICS_CALNAME,
    ICS_CALSCALE,
    ICS_METHOD,
    ICS_PRODID,
    ICS_REFRESH_HOURS,
    ICS_SEQUENCE,
    ICS_STATUS,
    ICS_UID_NAMESPACE,
    ICS_VERSION,
)
from eventfeed.core.event_model import Occurrence
from eventfeed.core.timezone_utils import feed_timezone_name
from eventfeed.utils.date_parsing import ensure_utc

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")


def serialize(occurrences: Iterable[Occurrence], generated_at: Optional[datetime] = None) -> bytes:
    """Build a complete calendar document from expanded occurrences.

    Args:
        occurrences: Occurrences to publish, in the order they should appear.
        generated_at: DTSTAMP for every event. Defaults to the current UTC
            time, taken once per document.

    Returns:
        The UTF-8 encoded document with CRLF line endings.
    """
    stamp = ensure_utc(generated_at) if generated_at is not None else datetime.now(pytz.utc)

    cal = _create_feed_calendar()
    count = 0
    for occurrence in occurrences:
        cal.add_component(_create_occurrence_event(occurrence, stamp))
        count += 1

    logger.debug("Serialized %d occurrence(s)", count)
    return _format_ics_output(cal)


def escape_text(text: str) -> str:
    """Escape a TEXT value: backslash first, then comma, semicolon and line breaks."""
    escaped = text.replace("\\", "\\\\").replace(",", "\\,").replace(";", "\\;")
    return _LINE_BREAK.sub(r"\\n", escaped)


def _text(value: str) -> vInline:
    return vInline(escape_text(value))


def format_utc(dt: datetime) -> str:
    """Render a timestamp as ``YYYYMMDDTHHMMSSZ``."""
    return vDatetime(ensure_utc(dt)).to_ical().decode("ascii")


def event_uid(occurrence: Occurrence) -> str:
    """Globally unique UID for an occurrence."""
    return f"{occurrence.uid}@{ICS_UID_NAMESPACE}"


def _create_feed_calendar() -> Calendar:
    """Create a new calendar carrying the fixed feed preamble.

    Returns:
        A Calendar object with the publishing headers.
    """
    refresh = timedelta(hours=ICS_REFRESH_HOURS)

    cal = Calendar()
    cal.add("VERSION", ICS_VERSION)
    cal.add("PRODID", ICS_PRODID)
    cal.add("CALSCALE", ICS_CALSCALE)
    cal.add("METHOD", ICS_METHOD)
    cal.add("X-WR-CALNAME", ICS_CALNAME)
    cal.add("X-WR-TIMEZONE", feed_timezone_name())
    cal.add("REFRESH-INTERVAL", vDuration(refresh), parameters={"VALUE": "DURATION"})
    cal.add("X-PUBLISHED-TTL", vDuration(refresh))
    return cal


def _create_occurrence_event(occurrence: Occurrence, stamp: datetime) -> Event:
    """Create the VEVENT for one occurrence.

    Args:
        occurrence: The occurrence to render.
        stamp: DTSTAMP value shared by the whole document.

    Returns:
        An Event component ready to add to a calendar.
    """
    start = ensure_utc(occurrence.start)

    ve = Event()
    ve.add("UID", event_uid(occurrence))
    ve.add("DTSTAMP", stamp)
    ve.add("DTSTART", start)
    ve.add("DTEND", start + occurrence.duration)
    ve.add("SUMMARY", _text(occurrence.title))

    if occurrence.description:
        ve.add("DESCRIPTION", _text(occurrence.description))
    if occurrence.location:
        ve.add("LOCATION", _text(occurrence.location))
    if occurrence.category:
        ve.add("CATEGORIES", _text(occurrence.category))

    ve.add("SEQUENCE", ICS_SEQUENCE)
    ve.add("STATUS", ICS_STATUS)
    return ve


def _format_ics_output(cal: Calendar) -> bytes:
    """Serialize the calendar in insertion order with CRLF line endings.

    Lines longer than 75 octets are folded by icalendar as RFC 5545 requires.
    """
    raw_ical = cal.to_ical(sorted=False)
    decoded_ical = raw_ical.decode("utf-8", errors="replace")
    crlf_ical = decoded_ical.replace("\r\n", "\n").replace("\n", "\r\n")
    return crlf_ical.encode("utf-8")
