"""Centralised default constants for daytrace.

Every project-wide magic number / string lives here.
Import these instead of hard-coding values in function signatures or CLI options.
"""

from __future__ import annotations

from typing import Final

# ── Timing / slots ──
MS_PER_SECOND: Final[int] = 1_000
MS_PER_MINUTE: Final[int] = 60_000
MS_PER_HOUR: Final[int] = 3_600_000
MINUTES_PER_DAY: Final[int] = 24 * 60
DEFAULT_MAX_GAP_MS: Final[int] = 5 * MS_PER_MINUTE
DEFAULT_SLOT_WIDTH_MINUTES: Final[int] = 10
DEFAULT_TIMEZONE: Final[str] = "UTC"

# ── System markers ──
SYSTEM_EVENT_NAMES: Final[frozenset[str]] = frozenset({
    "System Sleep",
    "System Wake",
    "System Lock",
    "System Unlock",
})
SESSION_ENDING_MARKERS: Final[frozenset[str]] = frozenset({
    "System Sleep",
    "System Lock",
})

# ── Synthetic categories ──
IDLE_CATEGORY_ID: Final[str] = "__idle__"
IDLE_CATEGORY_NAME: Final[str] = "Idle"
IDLE_CATEGORY_COLOR: Final[str] = "#374151"
UNCATEGORIZED_ID: Final[str] = "uncategorized"
UNCATEGORIZED_NAME: Final[str] = "Uncategorized"
UNCATEGORIZED_COLOR: Final[str] = "#808080"

# ── Calendar grouping ──
OVERLAP_GROUP_LABEL: Final[str] = "{count} overlapping events"

# ── Paths ──
DEFAULT_OUT_DIR: Final[str] = "artifacts"
DEFAULT_CONFIG_PATH: Final[str] = "configs/timeline.yaml"

# ── ActivityWatch ──
DEFAULT_AW_HOST: Final[str] = "http://localhost:5600"
DEFAULT_AW_TIMEOUT_SECONDS: Final[int] = 10

# ── Synthetic data ──
DEFAULT_DUMMY_EVENTS: Final[int] = 40
