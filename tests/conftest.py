"""Shared fixtures for the daytrace test suite."""

from __future__ import annotations

import datetime as dt
from typing import Any, Callable

import pytest

from daytrace.core.defaults import MS_PER_MINUTE
from daytrace.core.time import day_bounds
from daytrace.core.types import CanonicalBlock, Category, EventKind, RawActivityEvent


@pytest.fixture()
def sample_date() -> dt.date:
    return dt.date(2025, 6, 15)


@pytest.fixture()
def day_start_ms(sample_date: dt.date) -> int:
    return day_bounds(sample_date)[0]


@pytest.fixture()
def at(day_start_ms: int) -> Callable[..., int]:
    """Epoch ms for ``hour:minute`` on the sample date (UTC)."""

    def _at(hour: int, minute: int = 0, second: int = 0) -> int:
        return day_start_ms + (hour * 60 + minute) * MS_PER_MINUTE + second * 1000

    return _at


@pytest.fixture()
def categories() -> list[Category]:
    return [
        Category(id="work", name="Work", color="#2563EB", is_productive=True),
        Category(id="social", name="Social", color="#DC2626", is_productive=False),
    ]


@pytest.fixture()
def make_event() -> Callable[..., RawActivityEvent]:
    """Factory for RawActivityEvent with sensible defaults."""

    def _make(timestamp: int, source_name: str = "Code", **kwargs: Any) -> RawActivityEvent:
        kwargs.setdefault("kind", EventKind.WINDOW)
        kwargs.setdefault("category_id", "work")
        return RawActivityEvent(timestamp=timestamp, source_name=source_name, **kwargs)

    return _make


@pytest.fixture()
def make_block() -> Callable[..., CanonicalBlock]:
    """Factory for CanonicalBlock with duration derived from the bounds."""

    def _make(start_ms: int, end_ms: int, name: str = "Code", **kwargs: Any) -> CanonicalBlock:
        kwargs.setdefault("kind", EventKind.WINDOW)
        kwargs.setdefault("category_id", "work")
        return CanonicalBlock(
            start_ms=start_ms,
            end_ms=end_ms,
            duration_ms=end_ms - start_ms,
            name=name,
            **kwargs,
        )

    return _make
