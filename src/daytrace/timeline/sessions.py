"""Session detection from canonical blocks and system markers.

A *session* is a contiguous run of non-idle blocks.  A new session starts
when the next block begins after the current session has ended (the gap
was idle), or when a sleep/lock marker falls between two blocks.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Sequence

from daytrace.core.defaults import SESSION_ENDING_MARKERS
from daytrace.core.types import CanonicalBlock, EventKind, RawActivityEvent


@dataclass(frozen=True)
class Session:
    """One uninterrupted stretch of tracked activity."""

    start_ms: int
    end_ms: int
    active_ms: int
    block_count: int

    @property
    def span_ms(self) -> int:
        return self.end_ms - self.start_ms


def _cut_points(markers: Sequence[RawActivityEvent]) -> list[int]:
    return sorted(
        m.timestamp for m in markers
        if m.timestamp is not None and m.source_name in SESSION_ENDING_MARKERS
    )


def detect_sessions(
    blocks: Sequence[CanonicalBlock],
    markers: Sequence[RawActivityEvent] = (),
) -> list[Session]:
    """Split *blocks* into sessions.

    Args:
        blocks: Tracked canonical blocks in any order; idle blocks only act
            as separators.
        markers: System markers from normalization.  Only sleep and lock
            markers end a session.

    Returns:
        Sessions in chronological order.  Empty if there are no non-idle
        blocks.
    """
    active = sorted(
        (b for b in blocks if b.kind != EventKind.IDLE),
        key=lambda b: b.start_ms,
    )
    if not active:
        return []

    cuts = _cut_points(markers)
    sessions: list[Session] = []

    first = active[0]
    start, end = first.start_ms, first.end_ms
    active_ms, count = first.duration_ms, 1
    prev_start = first.start_ms

    for block in active[1:]:
        crossed = bisect.bisect_right(cuts, block.start_ms) - bisect.bisect_right(cuts, prev_start)
        if block.start_ms > end or crossed > 0:
            sessions.append(Session(start_ms=start, end_ms=end, active_ms=active_ms, block_count=count))
            start, end = block.start_ms, block.end_ms
            active_ms, count = block.duration_ms, 1
        else:
            end = max(end, block.end_ms)
            active_ms += block.duration_ms
            count += 1
        prev_start = block.start_ms

    sessions.append(Session(start_ms=start, end_ms=end, active_ms=active_ms, block_count=count))
    return sessions


def session_for_instant(ms: int, sessions: Sequence[Session]) -> Session | None:
    """Find the session containing *ms* via binary search over start times."""
    starts = [s.start_ms for s in sessions]
    idx = bisect.bisect_right(starts, ms) - 1
    if idx < 0:
        return None
    session = sessions[idx]
    return session if ms < session.end_ms else None
