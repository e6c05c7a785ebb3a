"""Read event and category dumps exported by the desktop event store.

Records may use the store's camelCase field names (``ownerName``,
``categoryId``, ``durationMs``, ``_id``) or daytrace's snake_case names.
Records are returned as plain dicts so that malformed entries reach the
normalizer and are dropped there instead of failing the whole file.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Final

_EVENT_ALIASES: Final[dict[str, str]] = {
    "_id": "id",
    "ownerName": "source_name",
    "sourceName": "source_name",
    "type": "kind",
    "categoryId": "category_id",
    "durationMs": "explicit_duration_ms",
    "explicitDurationMs": "explicit_duration_ms",
}

_CATEGORY_ALIASES: Final[dict[str, str]] = {
    "_id": "id",
    "isProductive": "is_productive",
    "isArchived": "is_archived",
}


def _rename(record: dict[str, Any], aliases: dict[str, str]) -> dict[str, Any]:
    return {aliases.get(key, key): value for key, value in record.items()}


def _records(path: Path, container_key: str) -> list[Any]:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        raw = raw.get(container_key, [])
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a list or an object with {container_key!r}")
    return raw


def load_events_json(path: Path) -> list[dict[str, Any]]:
    """Load raw event records from *path*.

    The file holds a JSON list of events or an object with an ``events``
    list.  Non-object entries are skipped.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the top-level structure is neither form.
    """
    return [
        _rename(record, _EVENT_ALIASES)
        for record in _records(path, "events")
        if isinstance(record, dict)
    ]


def load_categories_json(path: Path) -> list[dict[str, Any]]:
    """Load category records from *path* (a list or ``{"categories": [...]}``)."""
    return [
        _rename(record, _CATEGORY_ALIASES)
        for record in _records(path, "categories")
        if isinstance(record, dict)
    ]
