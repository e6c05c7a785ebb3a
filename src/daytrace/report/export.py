"""Timeline export utilities: JSON, CSV, and Parquet output.

Every writer goes through :func:`_atomic_write`: output lands in a
temporary file beside the target and is moved into place with
:func:`os.replace`, so a reader never sees a half-written export.
"""

from __future__ import annotations

import contextlib
import csv
import json
import os
import tempfile
from pathlib import Path
from typing import Callable

import pandas as pd

from daytrace.core.hashing import fingerprint
from daytrace.timeline.pipeline import TimelineResult

_SEGMENT_COLUMNS = [
    "date",
    "start_ms",
    "end_ms",
    "duration_ms",
    "kind",
    "name",
    "category_id",
    "category_name",
    "top_percent",
    "height_percent",
    "event_count",
]

_CATEGORY_COLUMNS = [
    "date",
    "category_id",
    "category_name",
    "is_productive",
    "identifier",
    "activity_name",
    "item_type",
    "duration_ms",
]


def _atomic_write(path: Path, write: Callable[[str], None]) -> Path:
    """Call ``write(tmp_path)`` then atomically replace *path* with the result."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=f"{path.suffix}.tmp")
    try:
        os.close(fd)
        write(tmp)
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp)
        raise
    return path


def timeline_document(result: TimelineResult) -> str:
    """Serialize *result* to a deterministic JSON string."""
    return json.dumps(result.model_dump(mode="json"), indent=2, sort_keys=True)


def export_timeline_json(result: TimelineResult, path: Path) -> Path:
    """Write the full timeline *result* to a JSON file.

    Args:
        result: Output of :func:`~daytrace.timeline.pipeline.build_day_timeline`.
        path: Destination JSON file path.

    Returns:
        The *path* that was written.
    """
    document = timeline_document(result)
    return _atomic_write(path, lambda tmp: Path(tmp).write_text(document, encoding="utf-8"))


def timeline_fingerprint(result: TimelineResult) -> str:
    """SHA-256 of the serialized result; equal inputs give equal fingerprints."""
    return fingerprint(timeline_document(result))


def read_timeline_json(path: Path) -> TimelineResult:
    """Read a result written by :func:`export_timeline_json`."""
    return TimelineResult.model_validate_json(path.read_text(encoding="utf-8"))


def segments_to_rows(result: TimelineResult) -> list[dict[str, object]]:
    """Flatten segments into tabular rows (one per segment)."""
    day = result.day.isoformat()
    return [
        {
            "date": day,
            "start_ms": seg.start_ms,
            "end_ms": seg.end_ms,
            "duration_ms": seg.duration_ms,
            "kind": seg.kind.value,
            "name": seg.name,
            "category_id": seg.category_id or "",
            "category_name": seg.category_name or "",
            "top_percent": round(seg.top_percent, 4),
            "height_percent": round(seg.height_percent, 4),
            "event_count": len(seg.source_event_ids),
        }
        for seg in result.segments
    ]


def categories_to_rows(result: TimelineResult) -> list[dict[str, object]]:
    """Flatten the category rollup into rows (one per category/activity pair)."""
    day = result.day.isoformat()
    rows: list[dict[str, object]] = []
    for category in result.categories:
        for activity in category.activities:
            rows.append({
                "date": day,
                "category_id": category.id,
                "category_name": category.name,
                "is_productive": category.is_productive,
                "identifier": activity.identifier,
                "activity_name": activity.name,
                "item_type": activity.item_type,
                "duration_ms": activity.duration_ms,
            })
    return rows


def _write_csv(rows: list[dict[str, object]], columns: list[str], path: Path) -> Path:
    def write(tmp: str) -> None:
        with open(tmp, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=columns)
            writer.writeheader()
            writer.writerows(rows)

    return _atomic_write(path, write)


def export_segments_csv(result: TimelineResult, path: Path) -> Path:
    """Write one CSV row per segment."""
    return _write_csv(segments_to_rows(result), _SEGMENT_COLUMNS, path)


def export_categories_csv(result: TimelineResult, path: Path) -> Path:
    """Write one CSV row per (category, activity) pair."""
    return _write_csv(categories_to_rows(result), _CATEGORY_COLUMNS, path)


def export_categories_parquet(result: TimelineResult, path: Path) -> Path:
    """Write the category rollup as Parquet; schema matches the CSV export."""
    df = pd.DataFrame(categories_to_rows(result), columns=_CATEGORY_COLUMNS)
    return _atomic_write(path, lambda tmp: df.to_parquet(tmp, engine="pyarrow", index=False))


def read_categories_parquet(path: Path) -> pd.DataFrame:
    """Read a category rollup written by :func:`export_categories_parquet`."""
    return pd.read_parquet(path, engine="pyarrow")
