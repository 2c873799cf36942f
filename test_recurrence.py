import logging
from datetime import datetime, timedelta

import pytest
import pytz

from eventfeed.config.constants import DEFAULT_MAX_OCCURRENCES
from eventfeed.core.event_model import EventRecord
from eventfeed.core.recurrence import default_window, expand
from eventfeed.utils.date_parsing import to_epoch_millis

UTC = pytz.utc


def at(year, month, day, hour=0, minute=0, second=0) -> datetime:
    return datetime(year, month, day, hour, minute, second, tzinfo=UTC)


def starts(occurrences):
    return [occ.start for occ in occurrences]


def test_one_off_event_inside_window_keeps_its_identifier() -> None:
    event = EventRecord(uid="evt-1", title="Launch", start=at(2024, 3, 1, 18))

    result = expand([event], at(2024, 1, 1), at(2024, 12, 31))

    assert len(result) == 1
    assert result[0].uid == "evt-1"
    assert result[0].start == at(2024, 3, 1, 18)


def test_one_off_event_outside_window_is_dropped() -> None:
    event = EventRecord(uid="evt-1", title="Launch", start=at(2023, 3, 1, 18))

    assert expand([event], at(2024, 1, 1), at(2024, 12, 31)) == []


def test_window_bounds_are_inclusive() -> None:
    start = at(2024, 3, 1, 18)
    event = EventRecord(uid="evt-1", title="Launch", start=start)

    assert len(expand([event], start, start)) == 1


def test_inverted_window_yields_nothing() -> None:
    event = EventRecord(uid="d", title="Daily", start=at(2024, 1, 1, 10), recurrence="daily")

    assert expand([event], at(2024, 2, 1), at(2024, 1, 1)) == []


def test_daily_every_second_day_until_end_date() -> None:
    event = EventRecord(
        uid="evt-1",
        title="Standup",
        start=at(2024, 1, 1, 10),
        recurrence="daily",
        interval=2,
        end_date=at(2024, 1, 10),
    )

    result = expand([event], at(2024, 1, 1), at(2024, 1, 31))

    assert starts(result) == [at(2024, 1, day, 10) for day in (1, 3, 5, 7, 9)]
    assert result[0].uid == "evt-1_1704103200000"


def test_daily_starts_at_window_start_for_old_anchor() -> None:
    event = EventRecord(uid="d", title="Daily", start=at(2023, 6, 1, 8), recurrence="daily")

    result = expand([event], at(2024, 1, 1), at(2024, 1, 3, 23))

    assert starts(result) == [at(2024, 1, 1, 8), at(2024, 1, 2, 8), at(2024, 1, 3, 8)]


def test_max_occurrences_caps_output() -> None:
    event = EventRecord(
        uid="d", title="Daily", start=at(2024, 1, 1, 9), recurrence="daily", max_occurrences=3
    )

    result = expand([event], at(2024, 1, 1), at(2024, 4, 10))

    assert len(result) == 3


def test_default_cap_applies_without_explicit_limit() -> None:
    event = EventRecord(uid="d", title="Daily", start=at(2020, 1, 1, 9), recurrence="daily")

    result = expand([event], at(2020, 1, 1), at(2030, 1, 1))

    assert len(result) == DEFAULT_MAX_OCCURRENCES


def test_weekly_without_weekdays_steps_by_interval_weeks() -> None:
    event = EventRecord(
        uid="w", title="Sync", start=at(2024, 1, 2, 15), recurrence="weekly", interval=2
    )

    result = expand([event], at(2024, 1, 1), at(2024, 2, 10))

    assert starts(result) == [at(2024, 1, 2, 15), at(2024, 1, 16, 15), at(2024, 1, 30, 15)]


def test_weekly_weekdays_fan_out_from_monday_anchor() -> None:
    # 2024-01-08 is a Monday
    anchor = at(2024, 1, 8, 9, 30)
    event = EventRecord(
        uid="w", title="Class", start=anchor, recurrence="weekly", weekdays=(1, 3)
    )

    result = expand([event], at(2024, 1, 7), at(2024, 1, 20, 23, 59, 59))

    assert starts(result) == [
        at(2024, 1, 8, 9, 30),
        at(2024, 1, 10, 9, 30),
        at(2024, 1, 15, 9, 30),
        at(2024, 1, 17, 9, 30),
    ]
    assert all(occ.start >= anchor for occ in result)
    assert len({occ.uid for occ in result}) == 4


def test_weekly_weekdays_skip_days_before_anchor_in_first_week() -> None:
    # Anchored on Wednesday 2024-01-10; that week's Monday is not emitted
    event = EventRecord(
        uid="w", title="Class", start=at(2024, 1, 10, 9), recurrence="weekly", weekdays=(1, 3)
    )

    result = expand([event], at(2024, 1, 1), at(2024, 1, 16, 12))

    assert starts(result) == [at(2024, 1, 10, 9), at(2024, 1, 15, 9)]


def test_weekly_weekdays_drop_fractional_seconds() -> None:
    anchor = at(2024, 1, 8, 9, 30).replace(microsecond=500000)
    event = EventRecord(
        uid="w", title="Class", start=anchor, recurrence="weekly", weekdays=(1, 3)
    )

    result = expand([event], at(2024, 1, 7), at(2024, 1, 20, 23, 59, 59))

    # The anchor's own Monday lands half a second before the anchor
    assert starts(result) == [
        at(2024, 1, 10, 9, 30),
        at(2024, 1, 15, 9, 30),
        at(2024, 1, 17, 9, 30),
    ]
    assert result[0].uid == f"w_{to_epoch_millis(at(2024, 1, 10, 9, 30))}"
    assert all(occ.uid.endswith("000") for occ in result)


def test_weekly_weekdays_with_interval_and_end_date() -> None:
    # Sunday anchor, every other week on Sunday and Friday
    event = EventRecord(
        uid="w",
        title="Market",
        start=at(2024, 1, 7, 11),
        recurrence="weekly",
        interval=2,
        weekdays=(0, 5),
        end_date=at(2024, 2, 1),
    )

    result = expand([event], at(2024, 1, 1), at(2024, 3, 1))

    assert starts(result) == [
        at(2024, 1, 7, 11),
        at(2024, 1, 12, 11),
        at(2024, 1, 21, 11),
        at(2024, 1, 26, 11),
    ]


def test_weekly_weekdays_respect_max_occurrences() -> None:
    event = EventRecord(
        uid="w",
        title="Class",
        start=at(2024, 1, 8, 9),
        recurrence="weekly",
        weekdays=(1, 2, 3, 4, 5),
        max_occurrences=7,
    )

    result = expand([event], at(2024, 1, 1), at(2024, 6, 1))

    assert len(result) == 7
    assert result[-1].start == at(2024, 1, 16, 9)


def test_monthly_clamps_to_month_end_without_drift() -> None:
    event = EventRecord(uid="m", title="Report", start=at(2024, 1, 31, 12), recurrence="monthly")

    result = expand([event], at(2024, 1, 1), at(2024, 5, 1))

    assert starts(result) == [
        at(2024, 1, 31, 12),
        at(2024, 2, 29, 12),
        at(2024, 3, 31, 12),
        at(2024, 4, 30, 12),
    ]


def test_yearly_leap_day_falls_back_to_february_28() -> None:
    event = EventRecord(uid="y", title="Leap party", start=at(2024, 2, 29, 20), recurrence="yearly")

    result = expand([event], at(2024, 1, 1), at(2028, 12, 31))

    assert starts(result) == [
        at(2024, 2, 29, 20),
        at(2025, 2, 28, 20),
        at(2026, 2, 28, 20),
        at(2027, 2, 28, 20),
        at(2028, 2, 29, 20),
    ]


def test_custom_dates_inside_window_only() -> None:
    dates = (at(2024, 5, 1, 10), at(2024, 5, 20, 10), at(2025, 1, 1, 10))
    event = EventRecord(
        uid="c",
        title="Workshop",
        start=dates[0],
        recurrence="custom",
        interval=3,
        max_occurrences=1,
        custom_dates=dates,
    )

    first = expand([event], at(2024, 1, 1), at(2024, 12, 31))
    second = expand([event], at(2024, 1, 1), at(2024, 12, 31))

    assert starts(first) == [dates[0], dates[1]]
    assert [occ.uid for occ in first] == [f"c_{to_epoch_millis(d)}" for d in dates[:2]]
    assert [occ.uid for occ in first] == [occ.uid for occ in second]


def test_custom_without_dates_yields_nothing() -> None:
    event = EventRecord(uid="c", title="Workshop", start=at(2024, 5, 1), recurrence="custom")

    assert expand([event], at(2024, 1, 1), at(2024, 12, 31)) == []


def test_unknown_recurrence_expands_as_daily(caplog: pytest.LogCaptureFixture) -> None:
    event = EventRecord(
        uid="u", title="Odd", start=at(2024, 1, 1, 7), recurrence="fortnightly", interval=5
    )

    with caplog.at_level(logging.WARNING, logger="eventfeed.core.recurrence"):
        result = expand([event], at(2024, 1, 1), at(2024, 1, 3, 23))

    assert starts(result) == [at(2024, 1, 1, 7), at(2024, 1, 2, 7), at(2024, 1, 3, 7)]
    assert "fortnightly" in caplog.text


def test_occurrences_keep_event_fields() -> None:
    event = EventRecord(
        uid="d",
        title="Yoga",
        start=at(2024, 1, 1, 7),
        description="Bring a mat",
        location="Hall B",
        category="Wellness",
        recurrence="daily",
        max_occurrences=2,
    )

    result = expand([event], at(2024, 1, 1), at(2024, 1, 31))

    assert [(o.title, o.description, o.location, o.category) for o in result] == [
        ("Yoga", "Bring a mat", "Hall B", "Wellness")
    ] * 2
    assert all(o.event_uid == "d" for o in result)
    assert result[0].end - result[0].start == timedelta(hours=1)


def test_events_are_expanded_in_input_order() -> None:
    later = EventRecord(uid="b", title="B", start=at(2024, 6, 1))
    earlier = EventRecord(uid="a", title="A", start=at(2024, 2, 1))

    result = expand([later, earlier], at(2024, 1, 1), at(2024, 12, 31))

    assert [occ.uid for occ in result] == ["b", "a"]


def test_default_window_reaches_back_to_earliest_event() -> None:
    now = at(2024, 6, 15, 13, 45)
    events = [
        EventRecord(uid="a", title="A", start=at(2024, 9, 1)),
        EventRecord(uid="b", title="B", start=at(2023, 2, 1, 8)),
    ]

    range_start, range_end = default_window(events, now)

    assert range_start == at(2023, 2, 1, 8)
    assert range_end == at(2026, 6, 15)


def test_default_window_without_events_starts_now() -> None:
    now = at(2024, 6, 15, 13, 45)

    assert default_window([], now) == (now, at(2026, 6, 15))
