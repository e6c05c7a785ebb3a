"""Per-category activity rollup.

Every non-idle tracked block is attributed to its category (or to a
synthetic *Uncategorized* category when the id is missing or no longer
exists) and accumulated per activity identifier.  The identifier is the
full URL for websites, so two pages of the same site stay separate even
when their display names coincide.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Final, Literal, Mapping, NamedTuple, Sequence
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from daytrace.core.defaults import (
    UNCATEGORIZED_COLOR,
    UNCATEGORIZED_ID,
    UNCATEGORIZED_NAME,
)
from daytrace.core.types import CanonicalBlock, Category, EventKind

logger = logging.getLogger(__name__)

UNCATEGORIZED: Final[Category] = Category(
    id=UNCATEGORIZED_ID,
    name=UNCATEGORIZED_NAME,
    color=UNCATEGORIZED_COLOR,
    is_productive=False,
)

_BROWSER_SUFFIX_RE: Final[re.Pattern[str]] = re.compile(
    r" - (Google Chrome|Chrome|Safari|Microsoft Edge|Firefox)$", re.IGNORECASE,
)
_NOTIFICATION_COUNT_RE: Final[re.Pattern[str]] = re.compile(r"^\([0-9]+\) ")
_MIN_TITLE_LENGTH: Final[int] = 3

ItemType = Literal["app", "website"]


class ActivityItem(BaseModel, frozen=True):
    """Total time of one activity identifier inside a category."""

    identifier: str = Field(description="Full URL, browser title, or app name.")
    name: str = Field(description="Display name.")
    item_type: ItemType = Field(description="'website' or 'app'.")
    duration_ms: int = Field(ge=0, description="Accumulated milliseconds.")
    original_url: str | None = Field(default=None)
    event_ids: tuple[str, ...] = Field(default=())


class ProcessedCategory(BaseModel, frozen=True):
    """A category with its activities, sorted longest first."""

    id: str
    name: str
    color: str
    is_productive: bool
    total_duration_ms: int = Field(ge=0, description="Sum of activity durations.")
    activities: list[ActivityItem] = Field(default_factory=list)


class ActivityKey(NamedTuple):
    category_id: str
    identifier: str


class ActivityDetails(NamedTuple):
    name: str
    item_type: ItemType
    identifier: str
    original_url: str | None


def extract_website_info(url: str, title: str) -> tuple[str, str]:
    """Return ``(domain, display_name)`` for a page.

    Browser suffixes ("- Google Chrome") and notification counts ("(2) ")
    are stripped from *title*; the domain is used when the remaining title
    is too short or just repeats the domain.
    """
    hostname = urlparse(url).hostname
    if not hostname:
        return "unknown", title or "Unknown Website"

    domain = hostname.removeprefix("www.")
    clean = _NOTIFICATION_COUNT_RE.sub("", _BROWSER_SUFFIX_RE.sub("", title)).strip()
    if len(clean) < _MIN_TITLE_LENGTH or clean.lower() == domain.lower():
        clean = domain
    return domain, clean


def activity_details(block: CanonicalBlock) -> ActivityDetails:
    """Identify the activity a block represents.

    1. A URL makes it a website keyed by the full URL.
    2. A browser block without URL but with a title is keyed by the title.
    3. Anything else is an app keyed by its source name.
    """
    if block.url:
        _, name = extract_website_info(block.url, block.description or block.name)
        return ActivityDetails(name, "website", block.url, block.url)

    title = block.description.strip()
    if block.kind == EventKind.BROWSER and title:
        return ActivityDetails(title, "website", title, None)

    return ActivityDetails(block.name, "app", block.name, None)


def resolve_category(
    category_id: str | None,
    categories_by_id: Mapping[str, Category],
) -> Category:
    """Look up *category_id*, falling back to :data:`UNCATEGORIZED`."""
    if category_id and category_id in categories_by_id:
        return categories_by_id[category_id]
    return UNCATEGORIZED


def aggregate_by_category(
    blocks: Sequence[CanonicalBlock],
    categories: Sequence[Category],
) -> list[ProcessedCategory]:
    """Roll *blocks* into per-category, per-activity totals.

    Idle blocks and blocks with no duration are skipped.

    Args:
        blocks: Tracked canonical blocks (activity, manual, idle).
        categories: Known categories; archived ones still resolve.

    Returns:
        Categories with activities sorted by duration (descending);
        categories sorted productive-first, then by total (descending).
    """
    categories_by_id = {c.id: c for c in categories}
    resolved: dict[str, Category] = {}
    durations: dict[ActivityKey, int] = defaultdict(int)
    details: dict[ActivityKey, ActivityDetails] = {}
    event_ids: dict[ActivityKey, set[str]] = defaultdict(set)
    fallbacks = 0

    for block in blocks:
        if block.kind == EventKind.IDLE or block.duration_ms <= 0:
            continue

        category = resolve_category(block.category_id, categories_by_id)
        if category is UNCATEGORIZED:
            fallbacks += 1
        resolved.setdefault(category.id, category)

        info = activity_details(block)
        key = ActivityKey(category.id, info.identifier)
        durations[key] += block.duration_ms
        details.setdefault(key, info)
        event_ids[key].update(block.source_event_ids)

    if fallbacks:
        logger.debug("%d block(s) fell back to %s", fallbacks, UNCATEGORIZED_NAME)

    per_category: dict[str, list[ActivityItem]] = defaultdict(list)
    for key, duration in durations.items():
        info = details[key]
        per_category[key.category_id].append(ActivityItem(
            identifier=info.identifier,
            name=info.name,
            item_type=info.item_type,
            duration_ms=duration,
            original_url=info.original_url,
            event_ids=tuple(sorted(event_ids[key])),
        ))

    result: list[ProcessedCategory] = []
    for category_id, items in per_category.items():
        category = resolved[category_id]
        items.sort(key=lambda a: -a.duration_ms)
        result.append(ProcessedCategory(
            id=category.id,
            name=category.name,
            color=category.color,
            is_productive=category.is_productive,
            total_duration_ms=sum(a.duration_ms for a in items),
            activities=items,
        ))

    result.sort(key=lambda c: (not c.is_productive, -c.total_duration_ms))
    return result
