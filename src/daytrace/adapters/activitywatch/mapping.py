"""App-name classification for ActivityWatch window events.

ActivityWatch reports the foreground application by its human-readable
name (e.g. ``"Firefox"``, ``"Google Chrome"``).  Browsers become
``browser``-kind events so the timeline groups them by page title.
"""

from __future__ import annotations

from typing import Final

from daytrace.core.types import EventKind

KNOWN_BROWSERS: Final[frozenset[str]] = frozenset({
    "firefox",
    "google chrome",
    "google-chrome",
    "chrome",
    "chromium",
    "chromium-browser",
    "safari",
    "arc",
    "brave browser",
    "brave-browser",
    "microsoft edge",
    "msedge",
    "vivaldi",
    "opera",
    "zen browser",
})

# aw-watcher-web bucket clients, e.g. "aw-watcher-web-chrome".
_WEB_CLIENT_PREFIX: Final[str] = "aw-watcher-web"


def is_browser(app_name: str) -> bool:
    """Case-insensitive lookup in :data:`KNOWN_BROWSERS`."""
    return app_name.strip().lower() in KNOWN_BROWSERS


def classify_app(app_name: str) -> EventKind:
    """``browser`` for known browsers, ``window`` for everything else."""
    return EventKind.BROWSER if is_browser(app_name) else EventKind.WINDOW


def is_web_bucket(bucket_type: str, client: str) -> bool:
    """True for aw-watcher-web tab buckets."""
    return bucket_type == "web.tab.current" or client.startswith(_WEB_CLIENT_PREFIX)
