"""Log redaction for window titles and page URLs.

Titles and URLs describe what a user was looking at.  Pipeline code logs
counts, never payloads, but a :class:`SanitizingFilter` on the output
handlers makes sure a stray ``title=...`` or a bare ``https://`` link is
replaced before anything is written.
"""

from __future__ import annotations

import logging
import re
from typing import Final

_TITLE_KEYS: Final[tuple[str, ...]] = ("window_title", "page_title", "title", "description")
_URL_KEYS: Final[tuple[str, ...]] = ("full_url", "url")

_REDACTED: Final[str] = "[REDACTED]"

_PAIR_RE: Final[re.Pattern[str]] = re.compile(
    r"\b(?P<key>" + "|".join(map(re.escape, _TITLE_KEYS + _URL_KEYS)) + r")"
    r"\s*[=:]\s*(?:\"[^\"]*\"|'[^']*'|\S+)",
    re.IGNORECASE,
)
_BARE_URL_RE: Final[re.Pattern[str]] = re.compile(r"\bhttps?://[^\s\"'<>]+", re.IGNORECASE)

_LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def redact_message(message: str) -> str:
    """Redact title/URL ``key=value`` (or ``key: value``) pairs and bare URLs.

    Args:
        message: Fully formatted log message.

    Returns:
        *message* with every sensitive value replaced by ``[REDACTED]``.
    """
    message = _PAIR_RE.sub(lambda m: f"{m['key']}={_REDACTED}", message)
    return _BARE_URL_RE.sub(_REDACTED, message)


class SanitizingFilter(logging.Filter):
    """Formats the record, redacts the result, and drops the args."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact_message(record.getMessage())
        record.args = ()
        return True


def install_sanitizing_filter(
    target: logging.Logger | logging.Handler | None = None,
) -> SanitizingFilter:
    """Attach a new :class:`SanitizingFilter` to *target* (the root logger if ``None``).

    Logger filters only see records logged on that logger itself, not ones
    propagated from children; attach to handlers to cover a whole tree.
    """
    filt = SanitizingFilter()
    (target or logging.getLogger()).addFilter(filt)
    return filt


def configure_logging(verbose: bool = False) -> list[SanitizingFilter]:
    """Set up root logging for CLI use and sanitize every root handler."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=_LOG_FORMAT,
    )
    root = logging.getLogger()
    if verbose:
        root.setLevel(logging.DEBUG)
    return [install_sanitizing_filter(handler) for handler in root.handlers]
