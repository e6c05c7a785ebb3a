"""End-to-end timeline reconstruction for one calendar day.

Typical flow::

    result = build_day_timeline(events, categories, reference_now=now_ms)
    result.segments     # positioned DaySegments, sorted by start
    result.categories   # ProcessedCategory list
    result.metrics      # ProductivityMetrics

The rendering path (slots, merging, overlap grouping) and the analytics
path (category rollup, metrics) both consume the same canonical blocks and
do not depend on each other.  Every call is a pure function of its inputs.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Sequence

from pydantic import BaseModel, Field, ValidationError

from daytrace.core.config import TimelineConfig, default_timeline_config
from daytrace.core.defaults import DEFAULT_SLOT_WIDTH_MINUTES
from daytrace.core.time import day_bounds, day_of, to_epoch_ms
from daytrace.core.types import CanonicalBlock, Category, RawActivityEvent
from daytrace.report.categories import ProcessedCategory, aggregate_by_category
from daytrace.report.metrics import (
    HourlyProductivity,
    ProductivityMetrics,
    calculate_productivity_metrics,
    hourly_productivity,
)
from daytrace.timeline.blocks import MaterializedBlocks, materialize_blocks
from daytrace.timeline.normalize import normalize_events
from daytrace.timeline.overlap import group_overlapping
from daytrace.timeline.segments import (
    DaySegment,
    direct_segment,
    sort_segments,
    truncate_in_progress,
)
from daytrace.timeline.sessions import Session, detect_sessions
from daytrace.timeline.slots import slot_segments

logger = logging.getLogger(__name__)


class TimelineResult(BaseModel, frozen=True):
    """Everything one pipeline run produces for a day."""

    day: date
    day_start_ms: int
    is_today: bool
    segments: list[DaySegment] = Field(default_factory=list)
    categories: list[ProcessedCategory] = Field(default_factory=list)
    metrics: ProductivityMetrics = Field(default_factory=ProductivityMetrics)
    hourly: list[HourlyProductivity] = Field(default_factory=list)
    sessions: list[Session] = Field(default_factory=list)
    blocks: list[CanonicalBlock] = Field(default_factory=list, description="Tracked canonical blocks.")
    system_markers: list[RawActivityEvent] = Field(default_factory=list)
    dropped_events: int = Field(default=0, ge=0)


def _coerce_categories(categories: Iterable[Category | Mapping[str, Any]]) -> list[Category]:
    valid: list[Category] = []
    for raw in categories:
        if isinstance(raw, Category):
            valid.append(raw)
            continue
        try:
            valid.append(Category.model_validate(dict(raw)))
        except (ValidationError, TypeError, ValueError):
            logger.warning("Ignoring malformed category record")
    return valid


def clip_to_day(
    blocks: Iterable[CanonicalBlock], day_start_ms: int, day_end_ms: int,
) -> list[CanonicalBlock]:
    """Clip *blocks* to ``[day_start_ms, day_end_ms)``, dropping those outside it."""
    clipped: list[CanonicalBlock] = []
    for block in blocks:
        start = max(block.start_ms, day_start_ms)
        end = min(block.end_ms, day_end_ms)
        if end <= start:
            continue
        if (start, end) != (block.start_ms, block.end_ms):
            block = block.model_copy(update={
                "start_ms": start, "end_ms": end, "duration_ms": end - start,
            })
        clipped.append(block)
    return clipped


def assemble_segments(
    blocks: MaterializedBlocks,
    *,
    day_start_ms: int,
    day_end_ms: int,
    categories_by_id: Mapping[str, Category],
    slot_width_minutes: int = DEFAULT_SLOT_WIDTH_MINUTES,
    now_ms: int | None = None,
) -> list[DaySegment]:
    """Build the sorted segment list for one day.

    Activity blocks are quantized and merged; manual and idle blocks map
    1:1; calendar blocks are overlap-grouped.  Non-activity blocks are
    clipped to the day first, since only slot quantization bounds the
    activity track.  When *now_ms* is given (the day is today) in-progress
    tracked segments are clipped to it.
    """
    activity = slot_segments(
        blocks.activity,
        day_start_ms,
        categories_by_id,
        slot_width_minutes=slot_width_minutes,
    )
    direct = [
        direct_segment(b, day_start_ms, categories_by_id)
        for b in clip_to_day([*blocks.manual, *blocks.idle], day_start_ms, day_end_ms)
    ]
    calendar = group_overlapping(
        [
            direct_segment(b, day_start_ms, categories_by_id)
            for b in clip_to_day(blocks.calendar, day_start_ms, day_end_ms)
        ],
        day_start_ms,
    )

    segments = sort_segments([*activity, *direct, *calendar])
    if now_ms is not None:
        segments = truncate_in_progress(segments, now_ms, day_start_ms)
    return segments


def _anchor_ms(blocks: MaterializedBlocks, now_ms: int) -> int:
    for track in (blocks.activity, blocks.tracked, blocks.calendar):
        if track:
            return track[0].start_ms
    return now_ms


def build_day_timeline(
    events: Iterable[RawActivityEvent | Mapping[str, Any]],
    categories: Sequence[Category | Mapping[str, Any]],
    *,
    reference_now: int | datetime,
    day: date | None = None,
    is_today: bool | None = None,
    config: TimelineConfig | None = None,
) -> TimelineResult:
    """Reconstruct and aggregate the timeline of one day.

    Never raises for malformed events or categories: bad records are
    dropped and an empty input yields empty segments and zero metrics.

    Args:
        events: Raw events in any order (models or plain mappings).
        categories: Known categories (models or plain mappings).
        reference_now: Current instant, epoch ms or datetime.
        day: Calendar day to render.  Defaults to the day of the first
            activity block, or of *reference_now* when there is none.
        is_today: Whether *day* is today.  Defaults to whether
            *reference_now* falls inside *day*.
        config: Gap cap, slot width and timezone; defaults when ``None``.

    Returns:
        A :class:`TimelineResult`.
    """
    cfg = config or default_timeline_config()
    tz = cfg.tz
    now_ms = to_epoch_ms(reference_now)
    known = _coerce_categories(categories)
    categories_by_id = {c.id: c for c in known}

    normalized = normalize_events(events)
    blocks = materialize_blocks(normalized, now_ms=now_ms, max_gap_ms=cfg.max_gap_ms)

    if day is None:
        day = day_of(_anchor_ms(blocks, now_ms), tz)
    day_start_ms, day_end_ms = day_bounds(day, tz)
    if is_today is None:
        is_today = day_start_ms <= now_ms < day_end_ms

    segments = assemble_segments(
        blocks,
        day_start_ms=day_start_ms,
        day_end_ms=day_end_ms,
        categories_by_id=categories_by_id,
        slot_width_minutes=cfg.slot_width_minutes,
        now_ms=now_ms if is_today else None,
    )

    result = TimelineResult(
        day=day,
        day_start_ms=day_start_ms,
        is_today=is_today,
        segments=segments,
        categories=aggregate_by_category(blocks.tracked, known),
        metrics=calculate_productivity_metrics(blocks.tracked, known),
        hourly=hourly_productivity(blocks.tracked, known, day_start_ms),
        sessions=detect_sessions(blocks.tracked, normalized.system_markers),
        blocks=blocks.tracked,
        system_markers=normalized.system_markers,
        dropped_events=normalized.dropped,
    )
    logger.info(
        "Built timeline for %s: %d segments, %d categories, %d dropped events",
        day.isoformat(), len(result.segments), len(result.categories), result.dropped_events,
    )
    return result
