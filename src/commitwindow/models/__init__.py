"""Data models for commit window reports."""

from commitwindow.models.commit import Changeset, Commit, PageResult, Resolution, clean_message
from commitwindow.models.config import Credentials, DateWindow, FilterConfig, Settings, parse_report_date
from commitwindow.models.repository import (
    RepositoryReport,
    RepositorySummary,
    ScanResult,
    SkippedRepository,
)

__all__ = [
    "Changeset",
    "Commit",
    "PageResult",
    "Resolution",
    "clean_message",
    "Credentials",
    "DateWindow",
    "FilterConfig",
    "Settings",
    "parse_report_date",
    "RepositoryReport",
    "RepositorySummary",
    "ScanResult",
    "SkippedRepository",
]
