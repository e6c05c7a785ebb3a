"""Tests for productivity metrics and the hourly breakdown."""

from __future__ import annotations

from typing import Callable

import pytest

from daytrace.core.types import CanonicalBlock, Category
from daytrace.report.metrics import (
    ProductivityMetrics,
    calculate_productivity_metrics,
    hourly_productivity,
    session_span_ms,
)
from daytrace.timeline.blocks import idle_block


class TestCalculateProductivityMetrics:
    def test_productive_and_unproductive_sum_to_active(
        self, make_block: Callable[..., CanonicalBlock], categories: list[Category],
    ) -> None:
        blocks = [
            make_block(0, 3_600_000, "Code", category_id="work"),
            make_block(3_600_000, 5_400_000, "Twitter", category_id="social"),
        ]
        metrics = calculate_productivity_metrics(blocks, categories)
        assert metrics.productive_ms == 3_600_000
        assert metrics.unproductive_ms == 1_800_000
        assert metrics.active_ms == 5_400_000
        assert metrics.session_span_ms == 5_400_000
        assert metrics.productive_ratio == pytest.approx(2 / 3)

    def test_idle_and_uncategorized_buckets(
        self, make_block: Callable[..., CanonicalBlock], categories: list[Category],
    ) -> None:
        blocks = [
            make_block(0, 1_000, "Code"),
            idle_block(1_000, 3_000),
            make_block(3_000, 7_000, "Mystery", category_id="deleted"),
        ]
        metrics = calculate_productivity_metrics(blocks, categories)
        assert metrics.idle_ms == 2_000
        assert metrics.uncategorized_ms == 4_000
        assert metrics.active_ms == 1_000
        assert metrics.session_span_ms == 7_000

    def test_empty(self, categories: list[Category]) -> None:
        metrics = calculate_productivity_metrics([], categories)
        assert metrics == ProductivityMetrics()
        assert metrics.productive_ratio == 0.0


class TestSessionSpan:
    def test_uses_last_block_by_start(self, make_block: Callable[..., CanonicalBlock]) -> None:
        blocks = [make_block(500, 900), make_block(0, 100)]
        assert session_span_ms(blocks) == 900


class TestHourlyProductivity:
    def test_straddling_block_split(
        self,
        day_start_ms: int,
        at: Callable[..., int],
        make_block: Callable[..., CanonicalBlock],
        categories: list[Category],
    ) -> None:
        hours = hourly_productivity(
            [make_block(at(9, 45), at(10, 15)), idle_block(at(10, 15), at(10, 30))],
            categories,
            day_start_ms,
        )
        assert len(hours) == 24
        assert hours[9].productive_ms == 900_000
        assert hours[10].productive_ms == 900_000
        assert hours[10].idle_ms == 900_000
        assert sum(h.unproductive_ms for h in hours) == 0

    def test_time_outside_day_ignored(
        self, day_start_ms: int, make_block: Callable[..., CanonicalBlock], categories: list[Category],
    ) -> None:
        hours = hourly_productivity(
            [make_block(day_start_ms - 600_000, day_start_ms + 600_000)], categories, day_start_ms,
        )
        assert hours[0].productive_ms == 600_000
