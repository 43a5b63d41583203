"""Data models for changesets and the commits selected from them."""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def clean_message(message: str, truncate_length: int = 0) -> str:
    """Strip line breaks from a commit message and optionally cut it.

    Args:
        message: Raw commit message
        truncate_length: Maximum length to keep (0 keeps the whole message)

    Returns:
        Single-line message
    """
    cleaned = message.replace("\r", "").replace("\n", "")
    if truncate_length > 0:
        cleaned = cleaned[:truncate_length]
    return cleaned


class Changeset(BaseModel):
    """One raw changeset record as delivered by the history API."""

    model_config = ConfigDict(frozen=True)

    node: str = Field(..., description="Short changeset hash")
    raw_node: str = Field(..., description="Full changeset hash")
    branch: Optional[str] = Field(None, description="Branch the changeset was made on")
    author: str = Field("", description="Author display name")
    raw_author: str = Field("", description="Author as recorded in the commit, e.g. 'Name <email>'")
    timestamp: datetime = Field(..., description="Changeset timestamp (UTC)")
    message: str = Field("", description="Full commit message")

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return as_utc(value)


class Commit(BaseModel):
    """A changeset that falls inside the requested window."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "repo_name": "billing-api",
                "branch": "default",
                "short_hash": "3f2a9c1b7d44",
                "full_hash": "3f2a9c1b7d4410e2a0c9b5e8f16d2c7a9b0e4f11",
                "author": "jdoe",
                "raw_author": "John Doe <john@example.com>",
                "timestamp": "2024-01-15T10:30:00Z",
                "message": "Fix rounding of invoice totals",
            }
        },
    )

    repo_name: str = Field(..., description="Repository name")
    branch: Optional[str] = Field(None, description="Branch name")
    short_hash: str = Field(..., description="Short commit hash")
    full_hash: str = Field(..., description="Full commit hash")
    author: str = Field("", description="Author display name")
    raw_author: str = Field("", description="Raw author string")
    timestamp: datetime = Field(..., description="Commit timestamp (UTC)")
    message: str = Field("", description="Single-line, possibly truncated, commit message")

    @property
    def short_date(self) -> str:
        """Commit date formatted as DD/MM/YYYY."""
        return self.timestamp.strftime("%d/%m/%Y")

    @classmethod
    def from_changeset(
        cls,
        repo_name: str,
        changeset: Changeset,
        truncate_length: int = 0,
    ) -> "Commit":
        """Build a commit from a raw changeset.

        Args:
            repo_name: Name of the repository the changeset belongs to
            changeset: Raw changeset record
            truncate_length: Maximum message length (0 = no truncation)

        Returns:
            Commit with a cleaned message
        """
        return cls(
            repo_name=repo_name,
            branch=changeset.branch,
            short_hash=changeset.node,
            full_hash=changeset.raw_node,
            author=changeset.author,
            raw_author=changeset.raw_author,
            timestamp=changeset.timestamp,
            message=clean_message(changeset.message, truncate_length),
        )


class PageResult(BaseModel):
    """One page of changesets, newest first."""

    changesets: List[Changeset] = Field(default_factory=list, description="Changesets, newest first")
    next_cursor: Optional[str] = Field(None, description="Hash of the oldest changeset in the page")

    @classmethod
    def from_newest_first(cls, changesets: List[Changeset]) -> "PageResult":
        """Build a page, deriving the cursor from its oldest entry."""
        next_cursor = changesets[-1].raw_node if changesets else None
        return cls(changesets=changesets, next_cursor=next_cursor)


class Resolution(BaseModel):
    """Outcome of resolving the commit window of one repository."""

    commits: List[Commit] = Field(default_factory=list, description="Commits found, newest first")
    pages_fetched: int = Field(0, description="Number of pages successfully fetched")
    retries: int = Field(0, description="Number of transient failures that were retried")
    error: Optional[str] = Field(None, description="Error that stopped the resolution early")

    @property
    def is_partial(self) -> bool:
        """Whether the resolution stopped because of an error."""
        return self.error is not None
