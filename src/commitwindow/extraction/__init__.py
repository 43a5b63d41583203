"""Commit window extraction."""

from commitwindow.extraction.filters import in_window, matches_prefix, updated_after
from commitwindow.extraction.resolver import CommitWindowResolver
from commitwindow.extraction.scanner import RepositoryScanner

__all__ = [
    "CommitWindowResolver",
    "RepositoryScanner",
    "in_window",
    "matches_prefix",
    "updated_after",
]
