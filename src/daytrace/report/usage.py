"""Top applications and the websites visited inside each browser."""

from __future__ import annotations

from collections import defaultdict
from typing import Sequence

from pydantic import BaseModel, Field

from daytrace.core.types import CanonicalBlock, EventKind
from daytrace.report.categories import extract_website_info


class WebsiteUsage(BaseModel, frozen=True):
    domain: str
    title: str
    url: str
    duration_ms: int = Field(ge=0)


class AppUsage(BaseModel, frozen=True):
    """Total time in one application, with nested websites for browsers."""

    name: str
    duration_ms: int = Field(ge=0)
    percentage: float = Field(ge=0.0, le=100.0, description="Share of all non-idle time.")
    websites: list[WebsiteUsage] = Field(default_factory=list)


def summarize_app_usage(
    blocks: Sequence[CanonicalBlock],
    *,
    limit: int | None = None,
) -> list[AppUsage]:
    """Rank applications by time spent.

    Idle blocks are excluded.  Websites are keyed by URL and listed under
    the browser that showed them.

    Args:
        blocks: Tracked canonical blocks.
        limit: Keep only the *limit* longest applications.

    Returns:
        Applications sorted by duration (descending); each one's websites
        sorted the same way.
    """
    app_totals: dict[str, int] = defaultdict(int)
    site_totals: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    site_titles: dict[str, dict[str, str]] = defaultdict(dict)

    for block in blocks:
        if block.kind == EventKind.IDLE or block.duration_ms <= 0:
            continue
        app_totals[block.name] += block.duration_ms
        if block.url:
            site_totals[block.name][block.url] += block.duration_ms
            site_titles[block.name].setdefault(block.url, block.description)

    grand_total = sum(app_totals.values())
    apps: list[AppUsage] = []
    for name, duration in sorted(app_totals.items(), key=lambda kv: (-kv[1], kv[0])):
        websites = []
        for url, site_ms in sorted(site_totals[name].items(), key=lambda kv: (-kv[1], kv[0])):
            domain, title = extract_website_info(url, site_titles[name][url])
            websites.append(WebsiteUsage(domain=domain, title=title, url=url, duration_ms=site_ms))
        apps.append(AppUsage(
            name=name,
            duration_ms=duration,
            percentage=round(duration / grand_total * 100, 2) if grand_total else 0.0,
            websites=websites,
        ))

    return apps[:limit] if limit is not None else apps
