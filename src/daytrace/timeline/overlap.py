"""Collapse transitively overlapping calendar segments into groups.

Segments are visited in start order while a running ``group_end`` tracks
the latest end seen in the open group.  A segment joins the group iff it
starts before ``group_end``; otherwise the group is closed.  This is the
classic single-pass interval merge, O(n log n) overall.
"""

from __future__ import annotations

from typing import Sequence

from daytrace.core.defaults import OVERLAP_GROUP_LABEL
from daytrace.timeline.segments import (
    DaySegment,
    collect_event_ids,
    merge_activities,
    position,
)


def partition_overlapping(segments: Sequence[DaySegment]) -> list[list[DaySegment]]:
    """Split *segments* into groups of transitively overlapping members.

    Returns:
        Groups in start order; every input segment appears in exactly one
        group.  Touching segments (``end == start``) do not overlap.
    """
    if not segments:
        return []

    ordered = sorted(segments, key=lambda s: s.start_ms)
    groups: list[list[DaySegment]] = [[ordered[0]]]
    group_end = ordered[0].end_ms

    for seg in ordered[1:]:
        if seg.start_ms < group_end:
            groups[-1].append(seg)
            group_end = max(group_end, seg.end_ms)
        else:
            groups.append([seg])
            group_end = seg.end_ms
    return groups


def collapse_group(group: Sequence[DaySegment], day_start_ms: int) -> DaySegment:
    """Represent *group* as one segment spanning the union of its members.

    A single-member group is returned unchanged.
    """
    if len(group) == 1:
        return group[0]

    first = group[0]
    start = min(s.start_ms for s in group)
    end = max(s.end_ms for s in group)
    top, height = position(start, end, day_start_ms)
    activities = merge_activities(s.all_activities for s in group)
    return first.model_copy(update={
        "name": OVERLAP_GROUP_LABEL.format(count=len(group)),
        "description": "",
        "url": None,
        "start_ms": start,
        "end_ms": end,
        "duration_ms": end - start,
        "top_percent": top,
        "height_percent": height,
        "all_activities": activities,
        "source_event_ids": collect_event_ids(activities),
        "grouped_segments": tuple(group),
    })


def group_overlapping(
    segments: Sequence[DaySegment],
    day_start_ms: int,
) -> list[DaySegment]:
    """Group overlapping calendar segments; one output segment per group."""
    return [collapse_group(g, day_start_ms) for g in partition_overlapping(segments)]
