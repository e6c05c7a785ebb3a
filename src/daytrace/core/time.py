"""Epoch-millisecond arithmetic: day bounds, slot ranges, and overlaps.

All instants inside the engine are integer milliseconds since the Unix
epoch so that duration bookkeeping stays exact.  Conversions to and from
:class:`~datetime.datetime` happen only at the edges.  Naive datetimes are
interpreted as UTC.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

from daytrace.core.defaults import (
    DEFAULT_SLOT_WIDTH_MINUTES,
    MINUTES_PER_DAY,
    MS_PER_MINUTE,
)


def to_epoch_ms(value: int | datetime) -> int:
    """Return *value* as epoch milliseconds.

    Integers are assumed to already be epoch ms and are returned unchanged.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    return int(value)


def ms_to_datetime(ms: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def resolve_timezone(name: str) -> tzinfo:
    """Map an IANA zone name to a :class:`tzinfo` (``"UTC"`` is special-cased).

    Raises:
        zoneinfo.ZoneInfoNotFoundError: If *name* is not a known zone.
    """
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def day_of(ms: int, tz: tzinfo = timezone.utc) -> date:
    """Calendar date of the instant *ms* as seen in *tz*."""
    return ms_to_datetime(ms).astimezone(tz).date()


def day_bounds(day: date, tz: tzinfo = timezone.utc) -> tuple[int, int]:
    """Return ``(start_ms, end_ms)`` of local midnight-to-midnight for *day*.

    The end is the following local midnight, so DST transition days are
    23 or 25 hours long.
    """
    start = datetime.combine(day, time(), tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time(), tzinfo=tz)
    return to_epoch_ms(start), to_epoch_ms(end)


def minute_of_day(ms: int, day_start_ms: int) -> float:
    """Fractional minutes elapsed between *day_start_ms* and *ms*."""
    return (ms - day_start_ms) / MS_PER_MINUTE


def slots_per_day(slot_width_minutes: int = DEFAULT_SLOT_WIDTH_MINUTES) -> int:
    """Number of fixed-width slots in one day.

    Raises:
        ValueError: If *slot_width_minutes* is not a positive divisor of 1440.
    """
    if slot_width_minutes <= 0 or MINUTES_PER_DAY % slot_width_minutes:
        raise ValueError(
            f"slot_width_minutes must be a positive divisor of {MINUTES_PER_DAY}, "
            f"got {slot_width_minutes}"
        )
    return MINUTES_PER_DAY // slot_width_minutes


def generate_slot_range(
    day_start_ms: int,
    slot_width_minutes: int = DEFAULT_SLOT_WIDTH_MINUTES,
) -> list[tuple[int, int]]:
    """Enumerate ``(start_ms, end_ms)`` for every slot of the day.

    Args:
        day_start_ms: Local midnight of the day, epoch ms.
        slot_width_minutes: Slot width in minutes (default 10 -> 144 slots).

    Returns:
        Contiguous, half-open slot windows in ascending order.
    """
    count = slots_per_day(slot_width_minutes)
    width = slot_width_minutes * MS_PER_MINUTE
    return [
        (day_start_ms + i * width, day_start_ms + (i + 1) * width)
        for i in range(count)
    ]


def overlap_ms(start_a: int, end_a: int, start_b: int, end_b: int) -> int:
    """Length of the intersection of two half-open intervals (0 if disjoint)."""
    return max(0, min(end_a, end_b) - max(start_a, start_b))
