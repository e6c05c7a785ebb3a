"""Event normalization: validate, sort, and partition a raw event stream.

Malformed observations (missing or non-numeric timestamps, unknown kinds)
are dropped, never raised.  System markers (sleep/wake/lock/unlock) are
split off: they are not rendered as activity but callers may use them as
session boundaries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from daytrace.core.types import EventKind, RawActivityEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedEvents:
    """Chronologically sorted events, partitioned by source type."""

    tracked: list[RawActivityEvent] = field(default_factory=list)
    calendar: list[RawActivityEvent] = field(default_factory=list)
    system_markers: list[RawActivityEvent] = field(default_factory=list)
    dropped: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.tracked and not self.calendar


def _coerce_event(raw: RawActivityEvent | Mapping[str, Any]) -> RawActivityEvent | None:
    if isinstance(raw, RawActivityEvent):
        return raw
    if not isinstance(raw, Mapping):
        return None
    try:
        return RawActivityEvent.model_validate(dict(raw))
    except ValidationError as exc:
        logger.debug("Dropping malformed event: %d validation error(s)", exc.error_count())
        return None


def normalize_events(
    events: Iterable[RawActivityEvent | Mapping[str, Any]],
) -> NormalizedEvents:
    """Validate, sort, and partition *events*.

    Sorting is stable and ascending by timestamp, so events sharing a
    timestamp keep their input order.

    Args:
        events: Raw events in any order, either as ``RawActivityEvent``
            instances or as plain mappings (e.g. decoded JSON records).

    Returns:
        A :class:`NormalizedEvents` with the ``tracked`` stream
        (window/browser/manual/idle), the ``calendar`` stream, the
        ``system_markers`` and the number of ``dropped`` entries.
    """
    valid: list[RawActivityEvent] = []
    dropped = 0

    for raw in events:
        event = _coerce_event(raw)
        if event is None or event.timestamp is None:
            dropped += 1
            continue
        valid.append(event)

    valid.sort(key=lambda e: e.timestamp)

    tracked: list[RawActivityEvent] = []
    calendar: list[RawActivityEvent] = []
    markers: list[RawActivityEvent] = []
    for event in valid:
        if event.is_system_marker:
            markers.append(event)
        elif event.kind == EventKind.CALENDAR:
            calendar.append(event)
        else:
            tracked.append(event)

    logger.debug(
        "Normalized %d events (%d tracked, %d calendar, %d markers, %d dropped)",
        len(valid), len(tracked), len(calendar), len(markers), dropped,
    )
    return NormalizedEvents(
        tracked=tracked,
        calendar=calendar,
        system_markers=markers,
        dropped=dropped,
    )
