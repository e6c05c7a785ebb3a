"""Timeline engine configuration.

The engine itself never reads files; callers build a :class:`TimelineConfig`
(directly, or from YAML via :func:`load_timeline_config`) and pass it in.

Example ``configs/timeline.yaml``::

    max_gap_ms: 300000
    slot_width_minutes: 10
    timezone: Europe/Berlin
"""

from __future__ import annotations

import logging
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, Field, field_validator

from daytrace.core.defaults import (
    DEFAULT_MAX_GAP_MS,
    DEFAULT_SLOT_WIDTH_MINUTES,
    DEFAULT_TIMEZONE,
    MINUTES_PER_DAY,
    MS_PER_MINUTE,
)
from daytrace.core.time import resolve_timezone

logger = logging.getLogger(__name__)


class TimelineConfig(BaseModel, frozen=True):
    """Tuning constants for block materialization and slot quantization."""

    max_gap_ms: int = Field(
        default=DEFAULT_MAX_GAP_MS,
        gt=0,
        description="Longest gap attributed to the preceding event; longer gaps become idle.",
    )
    slot_width_minutes: int = Field(
        default=DEFAULT_SLOT_WIDTH_MINUTES,
        gt=0,
        description="Width of a quantization slot; must divide 1440.",
    )
    timezone: str = Field(
        default=DEFAULT_TIMEZONE,
        description="IANA zone used to define calendar-day boundaries.",
    )

    @field_validator("slot_width_minutes")
    @classmethod
    def _check_slot_width(cls, value: int) -> int:
        if MINUTES_PER_DAY % value:
            raise ValueError(
                f"slot_width_minutes must divide {MINUTES_PER_DAY} evenly, got {value}"
            )
        return value

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            resolve_timezone(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone {value!r}") from exc
        return value

    @property
    def slot_width_ms(self) -> int:
        return self.slot_width_minutes * MS_PER_MINUTE

    @property
    def tz(self) -> tzinfo:
        return resolve_timezone(self.timezone)


def default_timeline_config() -> TimelineConfig:
    """Configuration with the stock 5-minute gap and 10-minute slots in UTC."""
    return TimelineConfig()


def load_timeline_config(path: Path) -> TimelineConfig:
    """Load and validate a timeline config from a YAML file.

    An empty file yields the defaults.

    Args:
        path: Path to a YAML file matching the config schema.

    Returns:
        Validated ``TimelineConfig``.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValidationError: If the YAML holds invalid values.
    """
    raw = yaml.safe_load(path.read_text()) or {}
    config = TimelineConfig.model_validate(raw)
    logger.debug("Loaded timeline config from %s: %s", path, config)
    return config


def save_timeline_config(config: TimelineConfig, path: Path) -> Path:
    """Serialize *config* to YAML.

    Args:
        config: Validated config to write.
        path: Destination file path.

    Returns:
        The *path* that was written.
    """
    data = config.model_dump(mode="json")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False))
    return path
