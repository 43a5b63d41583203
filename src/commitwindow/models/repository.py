"""Data models for repositories and scan results."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from commitwindow.models.commit import Commit, as_utc


class RepositorySummary(BaseModel):
    """A repository as returned by the listing endpoint."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., description="Repository owner (user or team)")
    name: str = Field(..., description="Repository display name")
    slug: str = Field(..., description="URL slug of the repository")
    last_updated: datetime = Field(..., description="Last update time (UTC)")

    @field_validator("last_updated")
    @classmethod
    def _normalize_last_updated(cls, value: datetime) -> datetime:
        return as_utc(value)


class RepositoryReport(BaseModel):
    """Commits found for one repository."""

    owner: str = Field(..., description="Repository owner")
    name: str = Field(..., description="Repository name")
    commits: List[Commit] = Field(default_factory=list, description="Commits inside the window")
    error: Optional[str] = Field(None, description="Error that cut the commit list short")

    @property
    def is_empty(self) -> bool:
        return not self.commits


class SkippedRepository(BaseModel):
    """A repository that could not be looked up or resolved."""

    owner: str
    name: str
    error: str


class ScanResult(BaseModel):
    """Result of scanning every accessible repository."""

    total_repositories: int = Field(0, description="Repositories returned by the listing")
    matched_repositories: int = Field(0, description="Repositories passing the date and prefix filters")
    reports: List[RepositoryReport] = Field(default_factory=list, description="Reports to render")
    skipped: List[SkippedRepository] = Field(default_factory=list, description="Repositories that could not be read")

    @property
    def total_commits(self) -> int:
        return sum(len(report.commits) for report in self.reports)
