"""Core data contracts: raw events, categories, and canonical time blocks."""

from __future__ import annotations

import math
import re
from datetime import datetime
from enum import StrEnum
from typing import Any, Final

from pydantic import BaseModel, Field, field_validator, model_validator

from daytrace.core.defaults import IDLE_CATEGORY_ID, SYSTEM_EVENT_NAMES
from daytrace.core.hashing import stable_hash
from daytrace.core.time import ms_to_datetime, to_epoch_ms

_HEX_COLOR_RE: Final[re.Pattern[str]] = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _timestamp_ms(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("timestamp must be numeric, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"timestamp must be finite, got {value}")
        return int(value)
    if isinstance(value, datetime):
        return to_epoch_ms(value)
    raise ValueError(f"timestamp must be numeric, got {type(value).__name__}")


class EventKind(StrEnum):
    """Source type of an observation.

    ``window`` and ``browser`` events are the *activity* track; the other
    kinds are rendered (or ignored) on their own.
    """

    WINDOW = "window"
    BROWSER = "browser"
    SYSTEM = "system"
    MANUAL = "manual"
    CALENDAR = "calendar"
    IDLE = "idle"


ACTIVITY_KINDS: Final[frozenset[EventKind]] = frozenset({EventKind.WINDOW, EventKind.BROWSER})


class RawActivityEvent(BaseModel, frozen=True):
    """One "what was focused at time T" observation.

    ``timestamp`` is epoch milliseconds and may be ``None`` for malformed
    records; those are dropped during normalization rather than rejected
    here.  When ``id`` is missing a deterministic one is derived from the
    event content so block/segment event-id sets stay stable across runs.
    """

    id: str = Field(default="", description="Event identifier (derived when empty).")
    timestamp: int | None = Field(default=None, description="Observation instant, epoch ms.")
    source_name: str = Field(default="", description="Owning application / source name.")
    kind: EventKind = Field(default=EventKind.WINDOW, description="Source type.")
    url: str | None = Field(default=None, description="Page URL for browser events.")
    title: str | None = Field(default=None, description="Window or page title.")
    category_id: str | None = Field(default=None, description="Assigned category id.")
    explicit_duration_ms: int | None = Field(
        default=None, ge=0, description="Explicit duration (manual and calendar entries)."
    )

    @model_validator(mode="before")
    @classmethod
    def _derive_id(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("id"):
            return data
        try:
            timestamp = _timestamp_ms(data.get("timestamp"))
        except ValueError:
            return data
        payload = "|".join([
            str(timestamp),
            str(data.get("source_name") or ""),
            str(data.get("kind") or EventKind.WINDOW),
            str(data.get("url") or ""),
            str(data.get("title") or ""),
        ])
        return {**data, "id": f"evt-{stable_hash(payload)}"}

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> int | None:
        return _timestamp_ms(value)

    @property
    def is_system_marker(self) -> bool:
        return self.kind == EventKind.SYSTEM or self.source_name in SYSTEM_EVENT_NAMES


class Category(BaseModel, frozen=True):
    """A user-defined category as supplied by the category store."""

    id: str = Field(min_length=1, description="Category identifier.")
    name: str = Field(min_length=1, description="Display name.")
    color: str = Field(default="#808080", description="Hex color for display.")
    is_productive: bool = Field(default=False, description="Whether time here is desirable.")
    is_archived: bool = Field(default=False, description="Hidden from pickers but still resolvable.")

    @field_validator("color")
    @classmethod
    def _check_color(cls, value: str) -> str:
        if not _HEX_COLOR_RE.match(value):
            raise ValueError(f"Invalid hex color {value!r}; expected format #RRGGBB")
        return value


class CanonicalBlock(BaseModel, frozen=True):
    """A materialized, non-negative time interval attributed to one source.

    ``duration_ms`` always equals ``end_ms - start_ms``.  Idle blocks carry
    the :data:`~daytrace.core.defaults.IDLE_CATEGORY_ID` sentinel as their
    category.
    """

    start_ms: int = Field(description="Block start, epoch ms (inclusive).")
    end_ms: int = Field(description="Block end, epoch ms (exclusive).")
    duration_ms: int = Field(ge=0, description="end_ms - start_ms.")
    name: str = Field(description="Source / application name.")
    description: str = Field(default="", description="Window or page title.")
    url: str | None = Field(default=None, description="Page URL, if any.")
    category_id: str | None = Field(default=None, description="Assigned category id.")
    kind: EventKind = Field(description="Source type of the originating event.")
    source_event_ids: tuple[str, ...] = Field(
        default=(), description="Sorted, de-duplicated ids of contributing events."
    )

    @field_validator("source_event_ids", mode="before")
    @classmethod
    def _sort_ids(cls, value: Any) -> tuple[str, ...]:
        return tuple(sorted(set(value or ())))

    @model_validator(mode="after")
    def _check_invariants(self) -> CanonicalBlock:
        if self.end_ms - self.start_ms != self.duration_ms:
            raise ValueError(
                f"duration_ms ({self.duration_ms}) must equal end_ms - start_ms "
                f"({self.end_ms - self.start_ms})"
            )
        if self.kind == EventKind.IDLE and self.category_id != IDLE_CATEGORY_ID:
            raise ValueError(
                f"idle blocks must use category_id={IDLE_CATEGORY_ID!r}, "
                f"got {self.category_id!r}"
            )
        return self

    @property
    def start_time(self) -> datetime:
        return ms_to_datetime(self.start_ms)

    @property
    def end_time(self) -> datetime:
        return ms_to_datetime(self.end_ms)

    @property
    def is_activity(self) -> bool:
        return self.kind in ACTIVITY_KINDS
