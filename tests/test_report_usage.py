"""Tests for the top-applications rollup."""

from __future__ import annotations

from typing import Callable

import pytest

from daytrace.core.types import CanonicalBlock, EventKind
from daytrace.report.usage import summarize_app_usage
from daytrace.timeline.blocks import idle_block


class TestSummarizeAppUsage:
    @pytest.fixture()
    def blocks(self, make_block: Callable[..., CanonicalBlock]) -> list[CanonicalBlock]:
        return [
            make_block(0, 6_000, "Firefox", kind=EventKind.BROWSER,
                       url="https://www.github.com/a", description="Repo - Firefox"),
            make_block(6_000, 8_000, "Firefox", kind=EventKind.BROWSER,
                       url="https://docs.python.org/3/", description="Python docs"),
            make_block(8_000, 10_000, "Code"),
            idle_block(10_000, 50_000),
        ]

    def test_ranking_and_percentages(self, blocks: list[CanonicalBlock]) -> None:
        firefox, code = summarize_app_usage(blocks)
        assert (firefox.name, firefox.duration_ms, firefox.percentage) == ("Firefox", 8_000, 80.0)
        assert (code.name, code.percentage, code.websites) == ("Code", 20.0, [])

    def test_nested_websites(self, blocks: list[CanonicalBlock]) -> None:
        firefox = summarize_app_usage(blocks)[0]
        assert [(w.domain, w.title, w.duration_ms) for w in firefox.websites] == [
            ("github.com", "Repo", 6_000),
            ("docs.python.org", "Python docs", 2_000),
        ]

    def test_limit(self, blocks: list[CanonicalBlock]) -> None:
        assert [a.name for a in summarize_app_usage(blocks, limit=1)] == ["Firefox"]

    def test_idle_only(self) -> None:
        assert summarize_app_usage([idle_block(0, 10)]) == []
