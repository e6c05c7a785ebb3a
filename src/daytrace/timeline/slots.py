"""Slot quantization and merging of activity blocks into day segments.

The day is cut into fixed-width slots (10 minutes by default, 144 per
day).  Every activity block adds its overlap with a slot under a grouping
key: the page title for browser blocks that have one, the application name
otherwise.  The key with the most time in a slot is that slot's dominant
activity.

Runs of consecutive slots with the same dominant key and category are then
folded into a single :class:`~daytrace.timeline.segments.DaySegment`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, NamedTuple, Sequence

from daytrace.core.defaults import DEFAULT_SLOT_WIDTH_MINUTES, MS_PER_MINUTE
from daytrace.core.time import generate_slot_range, overlap_ms
from daytrace.core.types import CanonicalBlock, Category, EventKind
from daytrace.timeline.segments import (
    ActivityContribution,
    DaySegment,
    category_fields,
    collect_event_ids,
    merge_activities,
    position,
)


@dataclass(frozen=True)
class SlotActivity:
    """Accumulated time of one grouping key within a slot.

    ``block`` is the first block that contributed to the key and supplies
    the display fields when the key is dominant.
    """

    duration_ms: int
    block: CanonicalBlock
    event_ids: tuple[str, ...]

    def contribution(self) -> ActivityContribution:
        return ActivityContribution(duration_ms=self.duration_ms, event_ids=self.event_ids)


@dataclass(frozen=True)
class Slot:
    """One fixed-width bucket of the day."""

    index: int
    start_ms: int
    end_ms: int
    activities: dict[str, SlotActivity] = field(default_factory=dict)

    @property
    def dominant(self) -> tuple[str, SlotActivity] | None:
        """Key with the most accumulated time; ties go to the first key seen."""
        best: tuple[str, SlotActivity] | None = None
        for key, activity in self.activities.items():
            if best is None or activity.duration_ms > best[1].duration_ms:
                best = (key, activity)
        return best


class RunIdentity(NamedTuple):
    """What two adjacent slots must share to be merged."""

    key: str
    category_id: str | None


@dataclass(frozen=True)
class SlotRun:
    """A maximal run of consecutive slots sharing one :class:`RunIdentity`."""

    first_index: int
    slot_count: int
    start_ms: int
    end_ms: int
    key: str
    block: CanonicalBlock
    activities: dict[str, ActivityContribution]


def grouping_key(block: CanonicalBlock) -> str:
    """Page title for titled browser blocks, application name otherwise."""
    if block.kind == EventKind.BROWSER and block.description.strip():
        return block.description
    return block.name


def build_slots(
    activity_blocks: Sequence[CanonicalBlock],
    day_start_ms: int,
    slot_width_minutes: int = DEFAULT_SLOT_WIDTH_MINUTES,
) -> list[Slot]:
    """Quantize *activity_blocks* into the slots of one day.

    Blocks are visited in chronological order, so within a slot keys are
    recorded in first-encountered order.  Parts of blocks outside the day
    are ignored.

    Args:
        activity_blocks: Window/browser blocks.
        day_start_ms: Midnight of the day, epoch ms.
        slot_width_minutes: Slot width (must divide 1440).

    Returns:
        Every slot of the day in order, including empty ones.

    Raises:
        ValueError: If *slot_width_minutes* does not divide a day.
    """
    bounds = generate_slot_range(day_start_ms, slot_width_minutes)
    width = slot_width_minutes * MS_PER_MINUTE
    count = len(bounds)

    durations: list[dict[str, int]] = [{} for _ in range(count)]
    first_blocks: list[dict[str, CanonicalBlock]] = [{} for _ in range(count)]
    ids: list[dict[str, set[str]]] = [{} for _ in range(count)]

    for block in sorted(activity_blocks, key=lambda b: b.start_ms):
        first = max(0, (block.start_ms - day_start_ms) // width)
        last = min(count - 1, (block.end_ms - 1 - day_start_ms) // width)
        key = grouping_key(block)
        for idx in range(first, last + 1):
            slot_start, slot_end = bounds[idx]
            overlap = overlap_ms(block.start_ms, block.end_ms, slot_start, slot_end)
            if overlap <= 0:
                continue
            durations[idx][key] = durations[idx].get(key, 0) + overlap
            first_blocks[idx].setdefault(key, block)
            ids[idx].setdefault(key, set()).update(block.source_event_ids)

    slots: list[Slot] = []
    for idx, (slot_start, slot_end) in enumerate(bounds):
        activities = {
            key: SlotActivity(
                duration_ms=duration,
                block=first_blocks[idx][key],
                event_ids=tuple(sorted(ids[idx][key])),
            )
            for key, duration in durations[idx].items()
        }
        slots.append(Slot(index=idx, start_ms=slot_start, end_ms=slot_end, activities=activities))
    return slots


@dataclass
class _OpenRun:
    identity: RunIdentity
    first_index: int
    start_ms: int
    end_ms: int
    block: CanonicalBlock
    slots: list[Slot]

    def close(self) -> SlotRun:
        return SlotRun(
            first_index=self.first_index,
            slot_count=len(self.slots),
            start_ms=self.start_ms,
            end_ms=self.end_ms,
            key=self.identity.key,
            block=self.block,
            activities=merge_activities(
                {k: a.contribution() for k, a in slot.activities.items()}
                for slot in self.slots
            ),
        )


def merge_slots(slots: Sequence[Slot]) -> list[SlotRun]:
    """Fold consecutive slots with the same dominant key and category into runs.

    Empty slots close the open run and produce nothing.

    Args:
        slots: Slots in index order (as from :func:`build_slots`).

    Returns:
        Ordered, non-overlapping runs.
    """
    runs: list[SlotRun] = []
    current: _OpenRun | None = None

    for slot in slots:
        dominant = slot.dominant
        if dominant is None:
            if current is not None:
                runs.append(current.close())
                current = None
            continue

        key, activity = dominant
        identity = RunIdentity(key=key, category_id=activity.block.category_id)
        if current is not None and current.identity == identity and current.end_ms == slot.start_ms:
            current.end_ms = slot.end_ms
            current.slots.append(slot)
            continue

        if current is not None:
            runs.append(current.close())
        current = _OpenRun(
            identity=identity,
            first_index=slot.index,
            start_ms=slot.start_ms,
            end_ms=slot.end_ms,
            block=activity.block,
            slots=[slot],
        )

    if current is not None:
        runs.append(current.close())
    return runs


def run_to_segment(
    run: SlotRun,
    day_start_ms: int,
    slot_width_minutes: int,
    categories_by_id: Mapping[str, Category],
) -> DaySegment:
    """Convert a merged slot run into a positioned :class:`DaySegment`."""
    top, height = position(run.start_ms, run.end_ms, day_start_ms)
    block = run.block
    return DaySegment(
        start_ms=run.start_ms,
        end_ms=run.end_ms,
        duration_ms=run.slot_count * slot_width_minutes * MS_PER_MINUTE,
        kind=block.kind,
        name=run.key,
        description=block.description,
        url=block.url,
        category_id=block.category_id,
        top_percent=top,
        height_percent=height,
        all_activities=run.activities,
        source_event_ids=collect_event_ids(run.activities),
        **category_fields(block.category_id, categories_by_id),
    )


def slot_segments(
    activity_blocks: Sequence[CanonicalBlock],
    day_start_ms: int,
    categories_by_id: Mapping[str, Category],
    *,
    slot_width_minutes: int = DEFAULT_SLOT_WIDTH_MINUTES,
) -> list[DaySegment]:
    """Quantize, merge, and position activity blocks for one day."""
    if not activity_blocks:
        return []
    slots = build_slots(activity_blocks, day_start_ms, slot_width_minutes)
    return [
        run_to_segment(run, day_start_ms, slot_width_minutes, categories_by_id)
        for run in merge_slots(slots)
    ]
