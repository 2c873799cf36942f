"""Recurrence expansion: turn stored event records into dated occurrences.

All arithmetic happens in UTC on the anchor's wall clock. Month and year
steps are computed from the anchor rather than from the previous
occurrence, and ``relativedelta`` clamps them to the last valid day of the
target month: an event anchored on Jan 31 recurs on Feb 29 (or 28), then
Mar 31, Apr 30 and so on. An event anchored on Feb 29 recurs yearly on
Feb 28 in common years.

Nothing here raises for malformed recurrence data. Unknown recurrence types
expand as daily events and are logged.
"""

import logging
from datetime import datetime, time, timedelta
from typing import Iterable, List, Optional, Tuple

import pytz
from dateutil.relativedelta import relativedelta

from eventfeed.config.constants import DEFAULT_MAX_OCCURRENCES, DEFAULT_WINDOW_YEARS
from eventfeed.core.event_model import EventRecord, Occurrence, RecurrenceType
from eventfeed.core.timezone_utils import attach_timezone
from eventfeed.utils.date_parsing import ensure_utc

logger = logging.getLogger(__name__)

_INTERVAL_TYPES = {
    RecurrenceType.DAILY.value,
    RecurrenceType.WEEKLY.value,
    RecurrenceType.MONTHLY.value,
    RecurrenceType.YEARLY.value,
}


def expand(
    events: Iterable[EventRecord],
    range_start: datetime,
    range_end: datetime,
) -> List[Occurrence]:
    """Expand events into the occurrences that fall inside a window.

    Args:
        events: Event records to expand.
        range_start: Inclusive lower bound of the window.
        range_end: Inclusive upper bound of the window.

    Returns:
        Occurrences grouped by event, in input order. Within an event,
        occurrences move forward in time.
    """
    range_start = ensure_utc(range_start)
    range_end = ensure_utc(range_end)

    occurrences: List[Occurrence] = []
    for event in events:
        occurrences.extend(expand_event(event, range_start, range_end))
    return occurrences


def expand_event(event: EventRecord, range_start: datetime, range_end: datetime) -> List[Occurrence]:
    """Expand a single event record. See :func:`expand`."""
    kind = event.recurrence

    if not event.is_recurring:
        if _in_window(event.start, range_start, range_end):
            return [event.occurrence_at(event.start, rewrite_uid=False)]
        return []

    if kind == RecurrenceType.CUSTOM.value:
        return _expand_custom(event, range_start, range_end)

    if kind == RecurrenceType.WEEKLY.value and event.weekdays:
        return _expand_weekdays(event, range_start, range_end)

    return _expand_interval(event, range_start, range_end)


def default_window(
    events: Iterable[EventRecord],
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """Window used when the caller does not supply one.

    Runs from the earlier of ``now`` and the earliest event anchor, so that
    ongoing recurring events are included, to midnight UTC two calendar years
    after ``now``.

    Args:
        events: The events that will be expanded.
        now: Reference time. Defaults to the current UTC time.

    Returns:
        Tuple of (range_start, range_end).
    """
    now = ensure_utc(now) if now is not None else datetime.now(pytz.utc)
    range_start = min([now] + [event.start for event in events])
    horizon = now.date() + relativedelta(years=DEFAULT_WINDOW_YEARS)
    range_end = attach_timezone(pytz.utc, datetime.combine(horizon, time.min))
    return range_start, range_end


def _in_window(moment: datetime, range_start: datetime, range_end: datetime) -> bool:
    return range_start <= moment <= range_end


def _limits(event: EventRecord, range_end: datetime) -> Tuple[datetime, int]:
    """Return the effective end bound and the occurrence cap for an event."""
    end_bound = min(event.end_date, range_end) if event.end_date else range_end
    limit = event.max_occurrences or 0
    if limit < 1:
        limit = DEFAULT_MAX_OCCURRENCES
    return end_bound, limit


def _expand_custom(event: EventRecord, range_start: datetime, range_end: datetime) -> List[Occurrence]:
    return [
        event.occurrence_at(moment)
        for moment in event.custom_dates
        if _in_window(moment, range_start, range_end)
    ]


def _expand_weekdays(event: EventRecord, range_start: datetime, range_end: datetime) -> List[Occurrence]:
    """Fan a weekly rule out across its weekdays, one interval week at a time.

    Weekdays are day offsets from the Sunday that starts the cursor week.
    Candidates take the anchor's hour, minute and second with no fraction.
    An anchor carrying fractional seconds is therefore later than the
    candidate on its own day, and that day is skipped.
    """
    end_bound, limit = _limits(event, range_end)
    anchor = event.start
    tzinfo = anchor.tzinfo
    anchor_time = anchor.time().replace(microsecond=0)

    # Sunday of the anchor's week; weekday() counts from Monday=0
    week_day = anchor.date() - timedelta(days=(anchor.weekday() + 1) % 7)
    week_start = attach_timezone(tzinfo, datetime.combine(week_day, time.min))

    occurrences: List[Occurrence] = []
    while week_start <= end_bound and len(occurrences) < limit:
        for offset in event.weekdays:
            candidate_day = week_day + timedelta(days=offset)
            candidate = attach_timezone(tzinfo, datetime.combine(candidate_day, anchor_time))
            if candidate < anchor or not _in_window(candidate, range_start, end_bound):
                continue
            if len(occurrences) >= limit:
                break
            occurrences.append(event.occurrence_at(candidate))

        week_day += timedelta(days=7 * max(event.interval, 1))
        week_start = attach_timezone(tzinfo, datetime.combine(week_day, time.min))

    return occurrences


def _expand_interval(event: EventRecord, range_start: datetime, range_end: datetime) -> List[Occurrence]:
    """Advance a cursor from the anchor, emitting each step inside the window."""
    end_bound, limit = _limits(event, range_end)
    kind, interval = event.recurrence, max(event.interval, 1)

    if kind not in _INTERVAL_TYPES:
        logger.warning(
            "Event '%s' has unrecognized recurrence type %r; expanding as daily",
            event.uid, kind,
        )
        kind, interval = RecurrenceType.DAILY.value, 1

    occurrences: List[Occurrence] = []
    steps = 0
    cursor = event.start
    while cursor <= end_bound and len(occurrences) < limit:
        if cursor >= range_start:
            occurrences.append(event.occurrence_at(cursor))
        steps += interval
        cursor = _step(event.start, kind, steps)

    return occurrences


def _step(anchor: datetime, kind: str, units: int) -> datetime:
    """Return ``anchor`` moved forward by ``units`` of the recurrence kind."""
    if kind == RecurrenceType.WEEKLY.value:
        return anchor + timedelta(weeks=units)
    if kind == RecurrenceType.MONTHLY.value:
        return anchor + relativedelta(months=units)
    if kind == RecurrenceType.YEARLY.value:
        return anchor + relativedelta(years=units)
    return anchor + timedelta(days=units)
