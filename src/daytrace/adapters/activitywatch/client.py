"""ActivityWatch data access: JSON export parsing and REST API client.

Provides two ingestion paths that both yield
:class:`~daytrace.core.types.RawActivityEvent` lists:

* **File-based** -- :func:`parse_aw_export` reads an AW JSON export
  (*Export all buckets as JSON* in the AW web UI, or ``GET /api/0/export``).
* **REST-based** -- :func:`fetch_aw_events` queries a running
  ``aw-server`` for a time range.

Window events become ``window`` or ``browser`` events; browser events pick
up the URL of the aw-watcher-web tab that was active at the same instant.
``afk`` periods from aw-watcher-afk become ``idle`` events.  AW durations
are not used: the timeline derives durations from successive timestamps.
"""

from __future__ import annotations

import bisect
import json
import logging
import urllib.request
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from daytrace.adapters.activitywatch.mapping import classify_app, is_web_bucket
from daytrace.core.defaults import DEFAULT_AW_TIMEOUT_SECONDS
from daytrace.core.time import to_epoch_ms
from daytrace.core.types import EventKind, RawActivityEvent

logger = logging.getLogger(__name__)

_CURRENTWINDOW_TYPE = "currentwindow"
_AFK_TYPE = "afkstatus"


def _parse_timestamp(raw: str) -> int:
    """Parse an ISO-8601 AW timestamp into epoch milliseconds."""
    ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return to_epoch_ms(ts)


def _event_timestamp(bucket_id: str, raw: dict[str, Any]) -> int | None:
    """Timestamp of an AW event, or ``None`` (logged) when missing or unparseable."""
    value = raw.get("timestamp")
    if isinstance(value, str):
        try:
            return _parse_timestamp(value)
        except ValueError:
            pass
    logger.debug("Skipping event without a valid timestamp in bucket %s", bucket_id)
    return None


def _event_id(bucket_id: str, raw: dict[str, Any]) -> str:
    return f"aw-{bucket_id}-{raw['id']}" if "id" in raw else ""


class _WebIndex:
    """Sorted aw-watcher-web tab spans for URL lookup by instant."""

    def __init__(self, spans: list[tuple[int, int, str]]) -> None:
        self._spans = sorted(spans)
        self._starts = [s[0] for s in self._spans]

    def url_at(self, ms: int) -> str | None:
        idx = bisect.bisect_right(self._starts, ms) - 1
        if idx < 0:
            return None
        start, end, url = self._spans[idx]
        return url if start <= ms < end else None


def _web_spans(bucket_id: str, raw_events: Iterable[dict[str, Any]]) -> list[tuple[int, int, str]]:
    spans: list[tuple[int, int, str]] = []
    for raw in raw_events:
        url = raw.get("data", {}).get("url")
        if not url:
            continue
        start = _event_timestamp(bucket_id, raw)
        if start is None:
            continue
        end = start + int(float(raw.get("duration", 0)) * 1000)
        spans.append((start, max(end, start + 1), url))
    return spans


def _window_events(
    bucket_id: str,
    raw_events: Iterable[dict[str, Any]],
    web: _WebIndex,
) -> list[RawActivityEvent]:
    events: list[RawActivityEvent] = []
    for raw in raw_events:
        data = raw.get("data", {})
        app_name = data.get("app", "unknown")
        timestamp = _event_timestamp(bucket_id, raw)
        if timestamp is None:
            continue
        kind = classify_app(app_name)
        events.append(RawActivityEvent(
            id=_event_id(bucket_id, raw),
            timestamp=timestamp,
            source_name=app_name,
            kind=kind,
            title=data.get("title") or None,
            url=web.url_at(timestamp) if kind == EventKind.BROWSER else None,
        ))
    return events


def _afk_events(bucket_id: str, raw_events: Iterable[dict[str, Any]]) -> list[RawActivityEvent]:
    events: list[RawActivityEvent] = []
    for raw in raw_events:
        if raw.get("data", {}).get("status") != "afk":
            continue
        timestamp = _event_timestamp(bucket_id, raw)
        if timestamp is None:
            continue
        events.append(RawActivityEvent(
            id=_event_id(bucket_id, raw),
            timestamp=timestamp,
            source_name="aw-watcher-afk",
            kind=EventKind.IDLE,
        ))
    return events


def events_from_buckets(buckets: dict[str, Any]) -> list[RawActivityEvent]:
    """Convert AW bucket dicts (each with an ``events`` list) into raw events.

    Args:
        buckets: Mapping of bucket id to bucket metadata plus ``events``.

    Returns:
        Raw events sorted by timestamp.
    """
    web_spans: list[tuple[int, int, str]] = []
    for bucket_id, bucket in buckets.items():
        if is_web_bucket(bucket.get("type", ""), bucket.get("client", "")):
            web_spans.extend(_web_spans(bucket_id, bucket.get("events", [])))
    web = _WebIndex(web_spans)

    events: list[RawActivityEvent] = []
    for bucket_id, bucket in buckets.items():
        bucket_type = bucket.get("type", "")
        raw_events = bucket.get("events", [])
        if bucket_type == _CURRENTWINDOW_TYPE:
            logger.info("Processing bucket %s (%d events)", bucket_id, len(raw_events))
            events.extend(_window_events(bucket_id, raw_events, web))
        elif bucket_type == _AFK_TYPE:
            logger.info("Processing afk bucket %s (%d events)", bucket_id, len(raw_events))
            events.extend(_afk_events(bucket_id, raw_events))
        else:
            logger.debug("Skipping bucket %s (type=%s)", bucket_id, bucket_type)

    events.sort(key=lambda e: e.timestamp or 0)
    return events


# ---------------------------------------------------------------------------
# File-based ingestion
# ---------------------------------------------------------------------------


def parse_aw_export(path: Path) -> list[RawActivityEvent]:
    """Parse an ActivityWatch JSON export file into raw events.

    Args:
        path: Path to the AW export JSON file.

    Returns:
        Raw events sorted by timestamp.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file is not a JSON object of buckets.
    """
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"Expected a JSON object of buckets, got {type(raw).__name__}")
    buckets: dict[str, Any] = raw.get("buckets", raw)
    return events_from_buckets(buckets)


# ---------------------------------------------------------------------------
# REST API helpers
# ---------------------------------------------------------------------------


def _api_get(url: str) -> Any:
    """Issue a GET request and return the parsed JSON body."""
    req = urllib.request.Request(url, headers={"Accept": "application/json"})
    with urllib.request.urlopen(req, timeout=DEFAULT_AW_TIMEOUT_SECONDS) as resp:
        return json.loads(resp.read().decode("utf-8"))


def list_aw_buckets(host: str) -> dict[str, dict]:
    """List all buckets from a running AW server.

    Args:
        host: Base URL of the AW server (e.g. ``"http://localhost:5600"``).

    Returns:
        Dict mapping bucket IDs to their metadata.
    """
    return _api_get(f"{host.rstrip('/')}/api/0/buckets/")


def fetch_aw_events(host: str, start: datetime, end: datetime) -> list[RawActivityEvent]:
    """Fetch window, web and afk events from the AW REST API for a time range.

    Args:
        host: Base URL of the AW server.
        start: Inclusive start of the query window.
        end: Exclusive end of the query window.

    Returns:
        Raw events sorted by timestamp.
    """
    base = host.rstrip("/")
    start_iso = start.isoformat() + "Z" if start.tzinfo is None else start.isoformat()
    end_iso = end.isoformat() + "Z" if end.tzinfo is None else end.isoformat()

    buckets: dict[str, Any] = {}
    for bucket_id, meta in list_aw_buckets(host).items():
        bucket_type = meta.get("type", "")
        wanted = bucket_type in (_CURRENTWINDOW_TYPE, _AFK_TYPE) or is_web_bucket(
            bucket_type, meta.get("client", ""),
        )
        if not wanted:
            continue
        url = f"{base}/api/0/buckets/{bucket_id}/events?start={start_iso}&end={end_iso}"
        buckets[bucket_id] = {**meta, "events": _api_get(url)}

    return events_from_buckets(buckets)
