"""Deterministic synthetic day for demos and tests."""

from __future__ import annotations

import datetime as dt

from daytrace.core.defaults import DEFAULT_DUMMY_EVENTS, MS_PER_MINUTE
from daytrace.core.time import to_epoch_ms
from daytrace.core.types import Category, EventKind, RawActivityEvent

# (source_name, kind, title, url, category_id)
_DUMMY_ACTIVITIES: list[tuple[str, EventKind, str, str | None, str]] = [
    ("Code", EventKind.WINDOW, "pipeline.py - daytrace", None, "dev"),
    ("Terminal", EventKind.WINDOW, "zsh", None, "dev"),
    ("Firefox", EventKind.BROWSER, "Python docs", "https://docs.python.org/3/", "dev"),
    ("Slack", EventKind.WINDOW, "#general", None, "comms"),
    ("Firefox", EventKind.BROWSER, "YouTube", "https://www.youtube.com/", "leisure"),
]


def generate_dummy_categories() -> list[Category]:
    """Three categories matching the ids used by :func:`generate_dummy_events`."""
    return [
        Category(id="dev", name="Development", color="#2563EB", is_productive=True),
        Category(id="comms", name="Communication", color="#F59E0B", is_productive=True),
        Category(id="leisure", name="Leisure", color="#DC2626", is_productive=False),
    ]


def generate_dummy_events(
    date: dt.date, n_events: int = DEFAULT_DUMMY_EVENTS
) -> list[RawActivityEvent]:
    """Create *n_events* activity events on *date*, plus calendar and manual entries.

    Activity starts at 09:00 UTC with one event every 4 minutes; after the
    first half there is a 20-minute gap so the day contains an idle block.
    Two overlapping meetings and one isolated meeting exercise calendar
    grouping, and one manual entry covers the lunch hour.

    Args:
        date: The calendar date to generate events for.
        n_events: Number of window/browser events.

    Returns:
        Events in chronological order with stable ids.
    """
    day_start = to_epoch_ms(dt.datetime(date.year, date.month, date.day, tzinfo=dt.timezone.utc))
    cursor = day_start + 9 * 60 * MS_PER_MINUTE
    events: list[RawActivityEvent] = []

    for i in range(n_events):
        if i == n_events // 2:
            cursor += 20 * MS_PER_MINUTE
        source, kind, title, url, category_id = _DUMMY_ACTIVITIES[(i // 3) % len(_DUMMY_ACTIVITIES)]
        events.append(RawActivityEvent(
            id=f"dummy-{i:03d}",
            timestamp=cursor,
            source_name=source,
            kind=kind,
            title=title,
            url=url,
            category_id=category_id,
        ))
        cursor += 4 * MS_PER_MINUTE

    hour = 60 * MS_PER_MINUTE
    events.append(RawActivityEvent(
        id="dummy-manual-lunch",
        timestamp=day_start + 12 * hour,
        source_name="Lunch",
        kind=EventKind.MANUAL,
        category_id="leisure",
        explicit_duration_ms=hour,
    ))
    for j, (start_min, length_min, title) in enumerate([
        (14 * 60, 60, "Planning"),
        (14 * 60 + 30, 60, "1:1"),
        (17 * 60, 30, "Retro"),
    ]):
        events.append(RawActivityEvent(
            id=f"dummy-cal-{j}",
            timestamp=day_start + start_min * MS_PER_MINUTE,
            source_name=title,
            kind=EventKind.CALENDAR,
            explicit_duration_ms=length_min * MS_PER_MINUTE,
        ))

    events.sort(key=lambda e: e.timestamp or 0)
    return events
