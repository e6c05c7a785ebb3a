"""Renderable day segments and the helpers that position them.

A :class:`DaySegment` is the output unit for a 24-hour timeline.  Its
``top_percent`` and ``height_percent`` are linear in minute-of-day:
``minute / 1440 * 100``.  Segments produced for the same track (activity,
manual, idle) never overlap; calendar segments form a parallel track.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Mapping, Sequence

from pydantic import BaseModel, Field

from daytrace.core.defaults import (
    IDLE_CATEGORY_COLOR,
    IDLE_CATEGORY_ID,
    IDLE_CATEGORY_NAME,
    MINUTES_PER_DAY,
)
from daytrace.core.time import minute_of_day, ms_to_datetime
from daytrace.core.types import CanonicalBlock, Category, EventKind

_UNTRUNCATED_KINDS = frozenset({EventKind.MANUAL, EventKind.CALENDAR})


class ActivityContribution(BaseModel, frozen=True):
    """Time one activity key contributed to a segment, with its source events."""

    duration_ms: int = Field(ge=0, description="Accumulated milliseconds.")
    event_ids: tuple[str, ...] = Field(default=(), description="Sorted contributing event ids.")


class DaySegment(BaseModel, frozen=True):
    """A positioned, renderable time range with its dominant activity."""

    start_ms: int = Field(description="Segment start, epoch ms.")
    end_ms: int = Field(description="Segment end, epoch ms.")
    duration_ms: int = Field(ge=0, description="end_ms - start_ms.")
    kind: EventKind = Field(description="Track the segment belongs to.")
    name: str = Field(description="Dominant activity key or block name.")
    description: str = Field(default="", description="Title of the dominant block.")
    url: str | None = Field(default=None, description="URL of the dominant block.")
    category_id: str | None = Field(default=None)
    category_name: str | None = Field(default=None)
    category_color: str | None = Field(default=None)
    is_productive: bool | None = Field(default=None)
    top_percent: float = Field(description="Start minute-of-day / 1440 * 100.")
    height_percent: float = Field(description="Duration minutes / 1440 * 100.")
    all_activities: dict[str, ActivityContribution] = Field(default_factory=dict)
    source_event_ids: tuple[str, ...] = Field(default=())
    grouped_segments: tuple[DaySegment, ...] = Field(
        default=(), description="Members of a collapsed overlap group."
    )

    @property
    def start_time(self) -> datetime:
        return ms_to_datetime(self.start_ms)

    @property
    def end_time(self) -> datetime:
        return ms_to_datetime(self.end_ms)

    @property
    def is_group(self) -> bool:
        return bool(self.grouped_segments)


def position(start_ms: int, end_ms: int, day_start_ms: int) -> tuple[float, float]:
    """Return ``(top_percent, height_percent)`` of a range within its day."""
    start_minute = minute_of_day(start_ms, day_start_ms)
    duration_minutes = minute_of_day(end_ms, start_ms)
    return (
        start_minute / MINUTES_PER_DAY * 100,
        duration_minutes / MINUTES_PER_DAY * 100,
    )


def category_fields(
    category_id: str | None,
    categories_by_id: Mapping[str, Category],
) -> dict[str, object]:
    """Display fields for *category_id*; empty for unknown ids."""
    if category_id == IDLE_CATEGORY_ID:
        return {
            "category_name": IDLE_CATEGORY_NAME,
            "category_color": IDLE_CATEGORY_COLOR,
            "is_productive": None,
        }
    category = categories_by_id.get(category_id) if category_id else None
    if category is None:
        return {}
    return {
        "category_name": category.name,
        "category_color": category.color,
        "is_productive": category.is_productive,
    }


def merge_activities(
    maps: Iterable[Mapping[str, ActivityContribution]],
) -> dict[str, ActivityContribution]:
    """Sum activity maps key-by-key, taking the union of event ids."""
    durations: dict[str, int] = {}
    ids: dict[str, set[str]] = {}
    for mapping in maps:
        for key, contribution in mapping.items():
            durations[key] = durations.get(key, 0) + contribution.duration_ms
            ids.setdefault(key, set()).update(contribution.event_ids)
    return {
        key: ActivityContribution(duration_ms=durations[key], event_ids=tuple(sorted(ids[key])))
        for key in durations
    }


def collect_event_ids(activities: Mapping[str, ActivityContribution]) -> tuple[str, ...]:
    """Sorted union of the event ids across an activity map."""
    ids: set[str] = set()
    for contribution in activities.values():
        ids.update(contribution.event_ids)
    return tuple(sorted(ids))


def direct_segment(
    block: CanonicalBlock,
    day_start_ms: int,
    categories_by_id: Mapping[str, Category],
) -> DaySegment:
    """Map one manual, idle or calendar block 1:1 onto a segment."""
    top, height = position(block.start_ms, block.end_ms, day_start_ms)
    return DaySegment(
        start_ms=block.start_ms,
        end_ms=block.end_ms,
        duration_ms=block.duration_ms,
        kind=block.kind,
        name=block.name,
        description=block.description,
        url=block.url,
        category_id=block.category_id,
        top_percent=top,
        height_percent=height,
        all_activities={
            block.name: ActivityContribution(
                duration_ms=block.duration_ms,
                event_ids=block.source_event_ids,
            ),
        },
        source_event_ids=block.source_event_ids,
        **category_fields(block.category_id, categories_by_id),
    )


def sort_segments(segments: Iterable[DaySegment]) -> list[DaySegment]:
    """Order segments by start time (stable for equal starts)."""
    return sorted(segments, key=lambda s: s.start_ms)


def truncate_in_progress(
    segments: Sequence[DaySegment],
    now_ms: int,
    day_start_ms: int,
) -> list[DaySegment]:
    """Clip in-progress tracked segments so none extends past *now_ms*.

    Every segment that is neither manual nor calendar and whose range
    strictly contains *now_ms* ends at *now_ms*.

    Args:
        segments: Segments sorted by start time.
        now_ms: Reference "now", epoch ms.
        day_start_ms: Midnight of the rendered day, epoch ms.

    Returns:
        A new list; the input is left untouched.
    """
    result: list[DaySegment] = []
    for seg in segments:
        if seg.kind not in _UNTRUNCATED_KINDS and seg.start_ms < now_ms < seg.end_ms:
            _, height = position(seg.start_ms, now_ms, day_start_ms)
            seg = seg.model_copy(update={
                "end_ms": now_ms,
                "duration_ms": now_ms - seg.start_ms,
                "height_percent": height,
            })
        result.append(seg)
    return result
