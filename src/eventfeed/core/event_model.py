"""Event data model: stored event records and their materialized occurrences."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from eventfeed.config.constants import (
    DEFAULT_EVENT_DURATION_MINUTES,
    DEFAULT_RECURRENCE_INTERVAL,
)
from eventfeed.exceptions.errors import EventRecordError
from eventfeed.utils.date_parsing import parse_timestamp, to_epoch_millis

logger = logging.getLogger(__name__)


class RecurrenceType(str, Enum):
    """Recurrence kinds understood by the expander."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


@dataclass(frozen=True)
class EventRecord:
    """Type-safe representation of a stored, publishable event.

    ``recurrence`` keeps the raw lowercase string so that values outside
    :class:`RecurrenceType` survive ingest and reach the expander's fallback.
    """

    uid: str
    title: str
    start: datetime
    description: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    recurrence: str = RecurrenceType.NONE.value
    interval: int = DEFAULT_RECURRENCE_INTERVAL
    end_date: Optional[datetime] = None
    max_occurrences: Optional[int] = None
    weekdays: Tuple[int, ...] = ()
    custom_dates: Tuple[datetime, ...] = ()

    # Required fields for validation
    REQUIRED_FIELDS = frozenset({"id", "title", "date"})

    @property
    def is_recurring(self) -> bool:
        return self.recurrence not in ("", RecurrenceType.NONE.value)

    @classmethod
    def from_dict(cls, data: Dict) -> "EventRecord":
        """Create an EventRecord from an upstream row.

        Only the identifier, title and anchor date are required. Every
        recurrence field is read permissively: bad values are replaced by
        their defaults and logged.

        Args:
            data: Dictionary in the REST API's snake_case shape.

        Returns:
            A validated EventRecord instance.

        Raises:
            EventRecordError: If required fields are missing or the anchor
                date cannot be parsed.
        """
        event_id = str(data.get("id") or "Unknown")
        missing = {key for key in cls.REQUIRED_FIELDS if data.get(key) in (None, "")}
        if missing:
            raise EventRecordError(missing_fields=missing, event_id=event_id)

        start = parse_timestamp(data["date"])
        if start is None:
            raise EventRecordError(missing_fields={"date"}, event_id=event_id)

        recurrence = str(data.get("recurrence_type") or RecurrenceType.NONE.value).strip().lower()

        return cls(
            uid=event_id,
            title=str(data["title"]),
            start=start,
            description=data.get("description") or None,
            location=data.get("location") or None,
            category=data.get("category") or None,
            recurrence=recurrence,
            interval=_parse_interval(data.get("recurrence_interval"), event_id),
            end_date=parse_timestamp(data.get("recurrence_end_date")),
            max_occurrences=_parse_max_occurrences(data.get("recurrence_occurrences"), event_id),
            weekdays=_parse_weekdays(data.get("recurrence_days_of_week"), event_id),
            custom_dates=_parse_custom_dates(data.get("recurrence_custom_dates")),
        )

    def occurrence_at(self, start: datetime, rewrite_uid: bool = True) -> "Occurrence":
        """Materialize this event at ``start``.

        Args:
            start: The resolved start of the occurrence.
            rewrite_uid: Suffix the identifier with the start's epoch
                milliseconds. One-off events keep their stored identifier.
        """
        uid = f"{self.uid}_{to_epoch_millis(start)}" if rewrite_uid else self.uid
        return Occurrence(
            uid=uid,
            event_uid=self.uid,
            title=self.title,
            start=start,
            description=self.description,
            location=self.location,
            category=self.category,
        )


@dataclass(frozen=True)
class Occurrence:
    """One concrete, dated instance of an event."""

    uid: str
    event_uid: str
    title: str
    start: datetime
    description: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    duration: timedelta = timedelta(minutes=DEFAULT_EVENT_DURATION_MINUTES)

    @property
    def end(self) -> datetime:
        return self.start + self.duration


def load_records(rows: Iterable[Dict]) -> List[EventRecord]:
    """Build EventRecords from upstream rows, skipping rows that cannot be used.

    Args:
        rows: Iterable of row dictionaries.

    Returns:
        List of EventRecords in input order.
    """
    records = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            logger.warning("Skipping row %d: expected an object, got %s", index, type(row).__name__)
            continue
        try:
            records.append(EventRecord.from_dict(row))
        except EventRecordError as exc:
            logger.warning("Skipping row %d: %s", index, exc)
    return records


def _parse_interval(value, event_id: str) -> int:
    if value in (None, ""):
        return DEFAULT_RECURRENCE_INTERVAL
    try:
        interval = int(value)
    except (TypeError, ValueError):
        interval = 0
    if interval < 1:
        logger.warning("Event '%s' has invalid recurrence interval %r; using 1", event_id, value)
        return DEFAULT_RECURRENCE_INTERVAL
    return interval


def _parse_max_occurrences(value, event_id: str) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        count = int(value)
    except (TypeError, ValueError):
        count = 0
    if count < 1:
        logger.warning("Event '%s' has invalid occurrence limit %r; using default", event_id, value)
        return None
    return count


def _parse_weekdays(values, event_id: str) -> Tuple[int, ...]:
    if not values:
        return ()
    days = set()
    for value in values:
        try:
            day = int(value)
        except (TypeError, ValueError):
            day = -1
        if 0 <= day <= 6:
            days.add(day)
        else:
            logger.warning("Event '%s' has invalid weekday %r; ignoring it", event_id, value)
    return tuple(sorted(days))


def _parse_custom_dates(values) -> Tuple[datetime, ...]:
    if not values:
        return ()
    dates = (parse_timestamp(value) for value in values)
    return tuple(d for d in dates if d is not None)
