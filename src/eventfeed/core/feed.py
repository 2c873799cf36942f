"""Feed pipeline: upstream rows -> records -> occurrences -> ICS bytes."""

import logging
from datetime import datetime
from typing import Dict, Iterable, Optional

import httpx

from eventfeed.core.event_model import EventRecord, load_records
from eventfeed.core.ics_builder import serialize
from eventfeed.core.recurrence import default_window, expand
from eventfeed.core.source import SupabaseEventSource
from eventfeed.storage.credentials import UpstreamCredentials

logger = logging.getLogger(__name__)


def build_feed_from_records(
    records: Iterable[EventRecord],
    range_start: Optional[datetime] = None,
    range_end: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> bytes:
    """Expand and serialize event records.

    Either bound left as None is taken from :func:`default_window`.

    Args:
        records: Publishable event records.
        range_start: Inclusive window start.
        range_end: Inclusive window end.
        now: Reference time for the default window and for DTSTAMP.

    Returns:
        The calendar document bytes.
    """
    records = list(records)
    default_start, default_end = default_window(records, now)
    range_start = range_start or default_start
    range_end = range_end or default_end

    occurrences = expand(records, range_start, range_end)
    logger.info(
        "Expanded %d event(s) into %d occurrence(s) between %s and %s",
        len(records), len(occurrences), range_start.isoformat(), range_end.isoformat(),
    )
    return serialize(occurrences, generated_at=now)


def build_feed(rows: Iterable[Dict], now: Optional[datetime] = None) -> bytes:
    """Build the feed document from raw upstream rows using the default window."""
    return build_feed_from_records(load_records(rows), now=now)


async def fetch_feed(
    credentials: UpstreamCredentials,
    client: Optional[httpx.AsyncClient] = None,
    now: Optional[datetime] = None,
) -> bytes:
    """Fetch published events and build the feed.

    Raises:
        UpstreamFetchError: If the events cannot be fetched.
    """
    async with SupabaseEventSource(credentials, client=client) as source:
        rows = await source.fetch_events()
    return build_feed(rows, now=now)
