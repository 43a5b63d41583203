"""Configuration models."""

from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from commitwindow.models.commit import as_utc

DATE_FORMATS = ("%d/%m/%Y", "%d/%m/%Y %H:%M:%S")


def parse_report_date(value: str) -> datetime:
    """Parse a ``DD/MM/YYYY`` (optionally ``DD/MM/YYYY HH:MM:SS``) string as UTC.

    Raises:
        ValueError: If the value matches none of the accepted formats
    """
    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    raise ValueError(f"Invalid date '{value}', expected DD/MM/YYYY")


class DateWindow(BaseModel):
    """Half-open UTC interval ``[since, until)`` used to select commits.

    ``since <= until`` is not enforced: an inverted window simply matches
    nothing.
    """

    model_config = ConfigDict(frozen=True)

    since: datetime = Field(..., description="Inclusive lower bound (UTC)")
    until: datetime = Field(..., description="Exclusive upper bound (UTC)")

    @field_validator("since", "until")
    @classmethod
    def _normalize(cls, value: datetime) -> datetime:
        return as_utc(value)

    @classmethod
    def from_dates(cls, start: date, end: date) -> "DateWindow":
        """Build a window from calendar dates taken as UTC start-of-day."""
        return cls(
            since=datetime.combine(start, time.min, tzinfo=timezone.utc),
            until=datetime.combine(end, time.min, tzinfo=timezone.utc),
        )


class FilterConfig(BaseModel):
    """Immutable filter settings shared by the scanner and the resolver."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "window": {"since": "2024-01-01T00:00:00Z", "until": "2024-02-01T00:00:00Z"},
                "prefix": "billing",
                "show_empty": False,
                "truncate_length": 80,
            }
        },
    )

    window: DateWindow = Field(..., description="Commit date window")
    prefix: str = Field("", description="Case-insensitive repository name prefix")
    show_empty: bool = Field(False, description="Report repositories without commits")
    truncate_length: int = Field(0, ge=0, description="Maximum message length (0 = no truncation)")


class Credentials(BaseModel):
    """Credentials forwarded as-is to the source host."""

    model_config = ConfigDict(frozen=True)

    username: str = Field(..., description="Account username or email")
    password: SecretStr = Field(..., description="Account password or app password")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Source host
    bitbucket_username: Optional[str] = None
    bitbucket_password: Optional[SecretStr] = None
    api_url: str = "https://api.bitbucket.org/1.0"

    # Resolution
    page_size: int = 15
    retry_delay_seconds: float = 3.0
    max_retries: int = 5
    fetch_timeout_seconds: float = 30.0
    max_concurrency: int = 4

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
