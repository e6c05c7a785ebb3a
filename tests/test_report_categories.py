"""Tests for the per-category activity rollup.

Covers:
- website name extraction (browser suffixes, notification counts,
  domain fallback)
- activity identification for URL, titled-browser and app blocks
- Uncategorized fallback, idle exclusion, and sort order
"""

from __future__ import annotations

from typing import Callable

import pytest

from daytrace.core.types import CanonicalBlock, Category, EventKind
from daytrace.report.categories import (
    UNCATEGORIZED,
    activity_details,
    aggregate_by_category,
    extract_website_info,
)
from daytrace.timeline.blocks import idle_block


class TestExtractWebsiteInfo:
    @pytest.mark.parametrize("url, title, expected", [
        ("https://www.github.com/org/repo", "GitHub - Google Chrome", ("github.com", "GitHub")),
        ("https://mail.example.com/", "(3) Inbox - Firefox", ("mail.example.com", "Inbox")),
        ("https://news.ycombinator.com/", "HN", ("news.ycombinator.com", "news.ycombinator.com")),
        ("https://www.python.org/", "Python.org", ("python.org", "python.org")),
        ("https://docs.python.org/3/", "3.13 Documentation", ("docs.python.org", "3.13 Documentation")),
    ])
    def test_cases(self, url: str, title: str, expected: tuple[str, str]) -> None:
        assert extract_website_info(url, title) == expected

    def test_unparseable_url(self) -> None:
        assert extract_website_info("not a url", "Some page") == ("unknown", "Some page")
        assert extract_website_info("not a url", "") == ("unknown", "Unknown Website")


class TestActivityDetails:
    def test_url_is_website_keyed_by_url(self, make_block: Callable[..., CanonicalBlock]) -> None:
        block = make_block(0, 10, "Firefox", kind=EventKind.BROWSER,
                           url="https://github.com/a", description="Repo A")
        details = activity_details(block)
        assert details.item_type == "website"
        assert details.identifier == "https://github.com/a"
        assert details.original_url == "https://github.com/a"
        assert details.name == "Repo A"

    def test_browser_title_without_url(self, make_block: Callable[..., CanonicalBlock]) -> None:
        block = make_block(0, 10, "Safari", kind=EventKind.BROWSER, description="Docs")
        details = activity_details(block)
        assert (details.item_type, details.identifier, details.name) == ("website", "Docs", "Docs")

    def test_app(self, make_block: Callable[..., CanonicalBlock]) -> None:
        details = activity_details(make_block(0, 10, "Code", description="main.py"))
        assert (details.item_type, details.identifier, details.name) == ("app", "Code", "Code")


class TestAggregateByCategory:
    def test_totals_and_sorting(
        self, make_block: Callable[..., CanonicalBlock], categories: list[Category],
    ) -> None:
        blocks = [
            make_block(0, 1_000, "Code", source_event_ids=("e1",)),
            make_block(1_000, 4_000, "Terminal"),
            make_block(4_000, 5_000, "Code", source_event_ids=("e2",)),
            make_block(5_000, 15_000, "Twitter", category_id="social"),
            idle_block(15_000, 99_000),
        ]
        result = aggregate_by_category(blocks, categories)
        assert [c.id for c in result] == ["work", "social"]

        work = result[0]
        assert work.total_duration_ms == 5_000
        assert [a.identifier for a in work.activities] == ["Terminal", "Code"]
        code = work.activities[1]
        assert code.duration_ms == 2_000
        assert code.event_ids == ("e1", "e2")
        assert work.total_duration_ms == sum(a.duration_ms for a in work.activities)

    def test_unknown_category_falls_back(
        self, make_block: Callable[..., CanonicalBlock], categories: list[Category],
    ) -> None:
        result = aggregate_by_category([
            make_block(0, 1_000, "Mystery", category_id="deleted"),
            make_block(1_000, 2_000, "Nothing", category_id=None),
        ], categories)
        (cat,) = result
        assert cat.id == UNCATEGORIZED.id
        assert cat.name == "Uncategorized"
        assert cat.total_duration_ms == 2_000

    def test_archived_category_still_resolves(self, make_block: Callable[..., CanonicalBlock]) -> None:
        archived = Category(id="old", name="Old", is_archived=True, is_productive=True)
        (cat,) = aggregate_by_category([make_block(0, 10, category_id="old")], [archived])
        assert cat.name == "Old"

    def test_pages_of_same_site_stay_separate(self, make_block: Callable[..., CanonicalBlock]) -> None:
        (cat,) = aggregate_by_category([
            make_block(0, 10, "Firefox", kind=EventKind.BROWSER, url="https://github.com/a", description="Repo"),
            make_block(10, 30, "Firefox", kind=EventKind.BROWSER, url="https://github.com/b", description="Repo"),
        ], [])
        assert [a.identifier for a in cat.activities] == ["https://github.com/b", "https://github.com/a"]

    def test_productive_first_even_when_smaller(
        self, make_block: Callable[..., CanonicalBlock], categories: list[Category],
    ) -> None:
        result = aggregate_by_category([
            make_block(0, 10, category_id="work"),
            make_block(10, 1_000, "Twitter", category_id="social"),
        ], categories)
        assert [c.id for c in result] == ["work", "social"]

    def test_empty(self, categories: list[Category]) -> None:
        assert aggregate_by_category([], categories) == []
