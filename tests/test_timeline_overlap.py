"""Tests for calendar overlap grouping.

Covers: the two-overlap-plus-isolated scenario, touching intervals,
transitive chains, and single-member passthrough.
"""

from __future__ import annotations

from typing import Callable

from daytrace.core.types import CanonicalBlock, EventKind
from daytrace.timeline.overlap import group_overlapping, partition_overlapping
from daytrace.timeline.segments import DaySegment, direct_segment


def _calendar(day_start_ms: int, make_block: Callable[..., CanonicalBlock], start: int, end: int, title: str) -> DaySegment:
    block = make_block(start, end, title, kind=EventKind.CALENDAR, category_id=None, source_event_ids=(title,))
    return direct_segment(block, day_start_ms, {})


class TestGroupOverlapping:
    def test_two_overlapping_and_one_isolated(
        self, day_start_ms: int, at: Callable[..., int], make_block: Callable[..., CanonicalBlock],
    ) -> None:
        segs = [
            _calendar(day_start_ms, make_block, at(10), at(11), "Planning"),
            _calendar(day_start_ms, make_block, at(10, 30), at(11, 30), "Sync"),
            _calendar(day_start_ms, make_block, at(13), at(14), "Review"),
        ]
        grouped = group_overlapping(segs, day_start_ms)
        assert len(grouped) == 2

        group, single = grouped
        assert group.name == "2 overlapping events"
        assert (group.start_ms, group.end_ms) == (at(10), at(11, 30))
        assert group.duration_ms == 5_400_000
        assert group.is_group
        assert [s.name for s in group.grouped_segments] == ["Planning", "Sync"]
        assert group.source_event_ids == ("Planning", "Sync")
        assert set(group.all_activities) == {"Planning", "Sync"}

        assert single == segs[2]
        assert not single.is_group

    def test_touching_segments_do_not_group(
        self, day_start_ms: int, at: Callable[..., int], make_block: Callable[..., CanonicalBlock],
    ) -> None:
        segs = [
            _calendar(day_start_ms, make_block, at(10), at(11), "A"),
            _calendar(day_start_ms, make_block, at(11), at(12), "B"),
        ]
        assert len(group_overlapping(segs, day_start_ms)) == 2

    def test_transitive_chain(
        self, day_start_ms: int, at: Callable[..., int], make_block: Callable[..., CanonicalBlock],
    ) -> None:
        segs = [
            _calendar(day_start_ms, make_block, at(11, 45), at(12, 30), "C"),
            _calendar(day_start_ms, make_block, at(10), at(11), "A"),
            _calendar(day_start_ms, make_block, at(10, 30), at(12), "B"),
        ]
        (group,) = group_overlapping(segs, day_start_ms)
        assert group.name == "3 overlapping events"
        assert (group.start_ms, group.end_ms) == (at(10), at(12, 30))

    def test_every_segment_in_exactly_one_group(
        self, day_start_ms: int, at: Callable[..., int], make_block: Callable[..., CanonicalBlock],
    ) -> None:
        segs = [
            _calendar(day_start_ms, make_block, at(h), at(h, 45), f"m{h}")
            for h in range(8, 18)
        ] + [_calendar(day_start_ms, make_block, at(9, 30), at(10, 15), "x")]
        groups = partition_overlapping(segs)
        members = [s.name for g in groups for s in g]
        assert sorted(members) == sorted(s.name for s in segs)

    def test_empty(self, day_start_ms: int) -> None:
        assert group_overlapping([], day_start_ms) == []
