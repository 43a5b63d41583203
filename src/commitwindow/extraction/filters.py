"""Predicates used to select repositories and commits."""

from datetime import datetime
from typing import Optional

from commitwindow.models import DateWindow
from commitwindow.models.commit import as_utc


def in_window(timestamp: datetime, window: DateWindow) -> bool:
    """Whether ``timestamp`` lies in ``[window.since, window.until)``."""
    ts = as_utc(timestamp)
    return window.since <= ts < window.until


def updated_after(timestamp: datetime, window: DateWindow) -> bool:
    """Whether a repository updated at ``timestamp`` may hold commits in the window.

    Only the lower bound matters here, and it is strict.
    """
    return as_utc(timestamp) > window.since


def matches_prefix(name: str, prefix: Optional[str]) -> bool:
    """Case-insensitive prefix test; an empty prefix matches everything."""
    if not prefix:
        return True
    if len(name) < len(prefix):
        return False
    return name[: len(prefix)].lower() == prefix.lower()
