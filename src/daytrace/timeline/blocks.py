"""Block materialization: turn consecutive events into canonical time blocks.

Each event lasts until the next one starts, capped at ``max_gap_ms``.  When
the gap to the next event is longer than the cap, the remainder of the gap
becomes a synthesized idle block, so time is never double counted:

    event A at 0, event B at 600000, max_gap 300000
    -> A [0, 300000)  idle [300000, 600000)  B [600000, ...)

For any maximal run of non-manual events,
``sum(block durations) + sum(idle durations) == last.start - first.start``
plus the capped extension of the final event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence, cast

from daytrace.core.defaults import (
    DEFAULT_MAX_GAP_MS,
    IDLE_CATEGORY_ID,
    IDLE_CATEGORY_NAME,
)
from daytrace.core.types import CanonicalBlock, EventKind, RawActivityEvent
from daytrace.timeline.normalize import NormalizedEvents

logger = logging.getLogger(__name__)

_EXPLICIT_DURATION_KINDS = frozenset({EventKind.MANUAL, EventKind.CALENDAR})


@dataclass(frozen=True)
class MaterializedBlocks:
    """Canonical blocks split into the four rendering tracks.

    ``tracked`` holds the activity, manual and idle blocks in
    materialization (chronological) order; it is what the analytics path
    consumes.
    """

    activity: list[CanonicalBlock] = field(default_factory=list)
    manual: list[CanonicalBlock] = field(default_factory=list)
    idle: list[CanonicalBlock] = field(default_factory=list)
    calendar: list[CanonicalBlock] = field(default_factory=list)
    tracked: list[CanonicalBlock] = field(default_factory=list)


def idle_block(start_ms: int, end_ms: int) -> CanonicalBlock:
    """Build a synthetic idle block covering ``[start_ms, end_ms)``."""
    return CanonicalBlock(
        start_ms=start_ms,
        end_ms=end_ms,
        duration_ms=end_ms - start_ms,
        name=IDLE_CATEGORY_NAME,
        category_id=IDLE_CATEGORY_ID,
        kind=EventKind.IDLE,
    )


def _event_to_block(event: RawActivityEvent, start_ms: int, end_ms: int) -> CanonicalBlock:
    if event.kind == EventKind.IDLE:
        return CanonicalBlock(
            start_ms=start_ms,
            end_ms=end_ms,
            duration_ms=end_ms - start_ms,
            name=IDLE_CATEGORY_NAME,
            description=event.title or "",
            category_id=IDLE_CATEGORY_ID,
            kind=EventKind.IDLE,
            source_event_ids=(event.id,),
        )
    return CanonicalBlock(
        start_ms=start_ms,
        end_ms=end_ms,
        duration_ms=end_ms - start_ms,
        name=event.source_name,
        description=event.title or "",
        url=event.url or None,
        category_id=event.category_id,
        kind=event.kind,
        source_event_ids=(event.id,),
    )


def _event_bounds(
    events: Sequence[RawActivityEvent],
    index: int,
    *,
    now_ms: int,
    max_gap_ms: int,
) -> tuple[int, int, int | None]:
    """Return ``(start, end, idle_end)`` for ``events[index]``.

    ``idle_end`` is set only when the gap to the next event exceeds
    *max_gap_ms*; the idle span is then ``[end, idle_end)``.
    """
    event = events[index]
    # normalization drops events without a timestamp
    start = cast(int, event.timestamp)

    if event.kind in _EXPLICIT_DURATION_KINDS and event.explicit_duration_ms is not None:
        return start, start + event.explicit_duration_ms, None

    if index == len(events) - 1:
        return start, min(now_ms, start + max_gap_ms), None

    next_start = cast(int, events[index + 1].timestamp)
    raw_gap = next_start - start
    if raw_gap > max_gap_ms:
        return start, start + max_gap_ms, next_start
    return start, start + raw_gap, None


def _materialize_stream(
    events: Sequence[RawActivityEvent],
    *,
    now_ms: int,
    max_gap_ms: int,
    synthesize_idle: bool,
) -> tuple[list[CanonicalBlock], int, int]:
    blocks: list[CanonicalBlock] = []
    idle_created = 0
    discarded = 0

    for i, event in enumerate(events):
        start, end, idle_end = _event_bounds(
            events, i, now_ms=now_ms, max_gap_ms=max_gap_ms,
        )
        if end > start:
            blocks.append(_event_to_block(event, start, end))
        else:
            discarded += 1

        if synthesize_idle and idle_end is not None and idle_end > end:
            blocks.append(idle_block(end, idle_end))
            idle_created += 1

    return blocks, idle_created, discarded


def materialize_blocks(
    normalized: NormalizedEvents,
    *,
    now_ms: int,
    max_gap_ms: int = DEFAULT_MAX_GAP_MS,
) -> MaterializedBlocks:
    """Convert normalized events into canonical blocks.

    Args:
        normalized: Output of :func:`~daytrace.timeline.normalize.normalize_events`.
        now_ms: Reference "now" (epoch ms); the final event of each stream
            never extends past it.
        max_gap_ms: Gap cap; longer gaps are split into a capped block
            plus an idle block.

    Returns:
        :class:`MaterializedBlocks` with the activity, manual, idle and
        calendar tracks.  Zero- or negative-duration blocks are discarded.
    """
    tracked, idle_created, discarded = _materialize_stream(
        normalized.tracked,
        now_ms=now_ms,
        max_gap_ms=max_gap_ms,
        synthesize_idle=True,
    )
    calendar, _, calendar_discarded = _materialize_stream(
        normalized.calendar,
        now_ms=now_ms,
        max_gap_ms=max_gap_ms,
        synthesize_idle=False,
    )

    activity = [b for b in tracked if b.is_activity]
    manual = [b for b in tracked if b.kind == EventKind.MANUAL]
    idle = [b for b in tracked if b.kind == EventKind.IDLE]

    logger.debug(
        "Materialized %d tracked blocks (%d idle synthesized, %d discarded) "
        "and %d calendar blocks (%d discarded)",
        len(tracked), idle_created, discarded, len(calendar), calendar_discarded,
    )
    return MaterializedBlocks(
        activity=activity,
        manual=manual,
        idle=idle,
        calendar=calendar,
        tracked=tracked,
    )
