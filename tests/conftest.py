"""Shared fixtures: an in-memory repository with Bitbucket-style paging."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from commitwindow.models import Changeset, PageResult
from commitwindow.remote.base import RepositoryHandle


class InMemoryRepository(RepositoryHandle):
    """Serves pages of a fixed history the way the changesets endpoint does.

    A page requested at ``anchor`` holds up to ``page_size`` changesets ending
    at the anchor (inclusive), returned newest first.
    """

    def __init__(self, history: List[Changeset], failures: Optional[list] = None, name: str = "demo") -> None:
        super().__init__("acme", name.lower(), name)
        self.history = history  # oldest first
        self.failures = list(failures or [])
        self.calls: List[Optional[str]] = []

    async def fetch_changesets(self, page_size: int, anchor: Optional[str] = None) -> PageResult:
        self.calls.append(anchor)
        if self.failures:
            raise self.failures.pop(0)

        if anchor is None:
            end = len(self.history) - 1
        else:
            end = [c.raw_node for c in self.history].index(anchor)
        start = max(0, end - page_size + 1)
        page = list(reversed(self.history[start : end + 1]))
        return PageResult.from_newest_first(page)


def make_changeset(index: int, timestamp: datetime, message: Optional[str] = None) -> Changeset:
    raw = f"{index:040x}"
    return Changeset(
        node=raw[:12],
        raw_node=raw,
        branch="default",
        author="jdoe",
        raw_author="John Doe <john@example.com>",
        timestamp=timestamp,
        message=message or f"Commit {index}",
    )


def make_history(count: int, start: datetime = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)) -> List[Changeset]:
    """One changeset per day starting at ``start``, oldest first."""
    return [make_changeset(i, start + timedelta(days=i)) for i in range(count)]


@pytest.fixture
def history_factory():
    return make_history


@pytest.fixture
def changeset_factory():
    return make_changeset


@pytest.fixture
def repository_factory():
    return InMemoryRepository
