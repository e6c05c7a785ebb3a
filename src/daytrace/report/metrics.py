"""Productivity metrics over canonical blocks.

Time is split by the productivity flag of each block's category.  Idle
blocks count as idle; blocks whose category is missing or unknown count
as uncategorized and are in neither the productive nor the unproductive
bucket.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from pydantic import BaseModel, Field

from daytrace.core.defaults import MS_PER_HOUR
from daytrace.core.time import overlap_ms
from daytrace.core.types import CanonicalBlock, Category, EventKind


class ProductivityMetrics(BaseModel, frozen=True):
    """Summed durations for a set of blocks."""

    productive_ms: int = Field(default=0, ge=0)
    unproductive_ms: int = Field(default=0, ge=0)
    idle_ms: int = Field(default=0, ge=0)
    uncategorized_ms: int = Field(default=0, ge=0)
    session_span_ms: int = Field(default=0, ge=0, description="Last block end - first block start.")
    active_ms: int = Field(default=0, ge=0, description="productive_ms + unproductive_ms.")

    @property
    def productive_ratio(self) -> float:
        """Share of active time that was productive (0.0 with no active time)."""
        if not self.active_ms:
            return 0.0
        return self.productive_ms / self.active_ms


class HourlyProductivity(BaseModel, frozen=True):
    """Productivity split for one hour of the day."""

    hour: int = Field(ge=0, le=23)
    productive_ms: int = Field(default=0, ge=0)
    unproductive_ms: int = Field(default=0, ge=0)
    idle_ms: int = Field(default=0, ge=0)


def _bucket_for(
    block: CanonicalBlock,
    categories_by_id: Mapping[str, Category],
) -> str:
    if block.kind == EventKind.IDLE:
        return "idle"
    category = categories_by_id.get(block.category_id) if block.category_id else None
    if category is None:
        return "uncategorized"
    return "productive" if category.is_productive else "unproductive"


def session_span_ms(blocks: Sequence[CanonicalBlock]) -> int:
    """End of the last block (by start) minus start of the first block."""
    if not blocks:
        return 0
    ordered = sorted(blocks, key=lambda b: b.start_ms)
    return max(0, ordered[-1].end_ms - ordered[0].start_ms)


def calculate_productivity_metrics(
    blocks: Sequence[CanonicalBlock],
    categories: Sequence[Category],
) -> ProductivityMetrics:
    """Sum productive, unproductive, idle and uncategorized time over *blocks*.

    Args:
        blocks: Tracked canonical blocks (any kind).
        categories: Categories providing the productivity flag.

    Returns:
        :class:`ProductivityMetrics`; all zeros for an empty input.
    """
    categories_by_id = {c.id: c for c in categories}
    totals = {"productive": 0, "unproductive": 0, "idle": 0, "uncategorized": 0}
    for block in blocks:
        totals[_bucket_for(block, categories_by_id)] += block.duration_ms

    return ProductivityMetrics(
        productive_ms=totals["productive"],
        unproductive_ms=totals["unproductive"],
        idle_ms=totals["idle"],
        uncategorized_ms=totals["uncategorized"],
        session_span_ms=session_span_ms(blocks),
        active_ms=totals["productive"] + totals["unproductive"],
    )


def hourly_productivity(
    blocks: Sequence[CanonicalBlock],
    categories: Sequence[Category],
    day_start_ms: int,
) -> list[HourlyProductivity]:
    """Split productive, unproductive and idle time into 24 hour buckets.

    Blocks straddling an hour boundary are divided by overlap; time outside
    the day is ignored.
    """
    categories_by_id = {c.id: c for c in categories}
    hours = [{"productive": 0, "unproductive": 0, "idle": 0} for _ in range(24)]

    for block in blocks:
        bucket = _bucket_for(block, categories_by_id)
        if bucket == "uncategorized":
            continue
        first = max(0, (block.start_ms - day_start_ms) // MS_PER_HOUR)
        last = min(23, (block.end_ms - 1 - day_start_ms) // MS_PER_HOUR)
        for hour in range(first, last + 1):
            hour_start = day_start_ms + hour * MS_PER_HOUR
            hours[hour][bucket] += overlap_ms(
                block.start_ms, block.end_ms, hour_start, hour_start + MS_PER_HOUR,
            )

    return [
        HourlyProductivity(
            hour=hour,
            productive_ms=sums["productive"],
            unproductive_ms=sums["unproductive"],
            idle_ms=sums["idle"],
        )
        for hour, sums in enumerate(hours)
    ]
