"""Write a synthetic day as event and category dumps under samples/.

Run from the repo root:

    uv run python scripts/generate_sample_day.py [YYYY-MM-DD]

Creates:
  - samples/events_<date>.json:   camelCase event records, as the desktop
                                  event store exports them
  - samples/categories.json:      the matching category records

Feed them back through the CLI with::

    uv run daytrace timeline build --events samples/events_<date>.json \
        --categories samples/categories.json
"""

from __future__ import annotations

import datetime as dt
import json
import sys
from pathlib import Path

from daytrace.adapters.synthetic import generate_dummy_categories, generate_dummy_events

SAMPLES_DIR = Path(__file__).resolve().parent.parent / "samples"


def _event_record(event) -> dict:
    record = {
        "_id": event.id,
        "timestamp": event.timestamp,
        "ownerName": event.source_name,
        "type": event.kind.value,
        "title": event.title,
        "url": event.url,
        "categoryId": event.category_id,
        "durationMs": event.explicit_duration_ms,
    }
    return {k: v for k, v in record.items() if v is not None}


def _category_record(category) -> dict:
    return {
        "_id": category.id,
        "name": category.name,
        "color": category.color,
        "isProductive": category.is_productive,
        "isArchived": category.is_archived,
    }


def main() -> None:
    day = dt.date.fromisoformat(sys.argv[1]) if len(sys.argv) > 1 else dt.date.today()
    SAMPLES_DIR.mkdir(parents=True, exist_ok=True)

    events_path = SAMPLES_DIR / f"events_{day.isoformat()}.json"
    events_path.write_text(json.dumps([_event_record(e) for e in generate_dummy_events(day)], indent=2))
    print(f"  wrote {events_path}")

    categories_path = SAMPLES_DIR / "categories.json"
    categories_path.write_text(json.dumps([_category_record(c) for c in generate_dummy_categories()], indent=2))
    print(f"  wrote {categories_path}")


if __name__ == "__main__":
    main()
