"""Core business logic for eventfeed."""

from eventfeed.core.event_model import EventRecord, Occurrence, RecurrenceType, load_records
from eventfeed.core.recurrence import default_window, expand
from eventfeed.core.ics_builder import escape_text, format_utc, serialize
from eventfeed.core.feed import build_feed, build_feed_from_records, fetch_feed

__all__ = [
    "EventRecord",
    "Occurrence",
    "RecurrenceType",
    "load_records",
    "default_window",
    "expand",
    "escape_text",
    "format_utc",
    "serialize",
    "build_feed",
    "build_feed_from_records",
    "fetch_feed",
]
