"""Bitbucket REST (1.0) client."""

from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
import structlog
from pydantic import ValidationError

from commitwindow.models import Changeset, Credentials, PageResult, RepositorySummary
from commitwindow.remote.base import RepositoryHandle, SourceHostClient
from commitwindow.remote.errors import (
    AuthError,
    FetchTimeoutError,
    NetworkError,
    NotFoundError,
    ParseError,
)

logger = structlog.get_logger(__name__)

DEFAULT_API_URL = "https://api.bitbucket.org/1.0"

# Anchor understood by the changesets endpoint as "most recent changeset"
HEAD_ANCHOR = "HEAD"


class BitbucketRepository(RepositoryHandle):
    """Handle for a single Bitbucket repository."""

    def __init__(self, client: "BitbucketClient", owner: str, slug: str, name: Optional[str] = None) -> None:
        super().__init__(owner, slug, name)
        self._client = client

    async def fetch_changesets(self, page_size: int, anchor: Optional[str] = None) -> PageResult:
        """Fetch one page of changesets ending at ``anchor`` (inclusive).

        The endpoint delivers the page oldest-first; it is returned
        newest-first.
        """
        path = f"/repositories/{self.owner}/{self.slug}/changesets"
        params = {"limit": page_size, "start": anchor or HEAD_ANCHOR}
        response = await self._client._get(path, params=params)
        if response.status_code == 404:
            raise NotFoundError(f"Repository {self.owner}/{self.slug} not found")
        self._client._raise_for_status(response)

        data = self._client._decode(response)
        if not isinstance(data, dict):
            raise ParseError(f"Unexpected changesets payload for {self.owner}/{self.slug}")

        raw_changesets = data.get("changesets") or []
        try:
            changesets = [_parse_changeset(item) for item in raw_changesets]
        except (ValidationError, TypeError, KeyError, ValueError) as e:
            raise ParseError(f"Malformed changeset in {self.owner}/{self.slug}: {e}") from e

        changesets.reverse()
        return PageResult.from_newest_first(changesets)


class BitbucketClient(SourceHostClient):
    """Async client for the Bitbucket 1.0 REST API."""

    def __init__(
        self,
        credentials: Credentials,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            credentials: Username and password sent as HTTP basic auth
            api_url: Base URL of the 1.0 API
            timeout: Read timeout in seconds for each request
            transport: Optional transport (used by tests)
        """
        self.credentials = credentials
        self.api_url = api_url
        self._http = httpx.AsyncClient(
            base_url=api_url,
            auth=(credentials.username, credentials.password.get_secret_value()),
            timeout=httpx.Timeout(timeout, connect=10.0),
            headers={"Accept": "application/json", "User-Agent": "commitwindow"},
            transport=transport,
        )

    async def list_repositories(self) -> List[RepositorySummary]:
        """List every repository visible to the authenticated user."""
        response = await self._get("/user/repositories")
        if response.status_code in (401, 403):
            raise AuthError(f"Authentication failed for user {self.credentials.username}")
        self._raise_for_status(response)

        data = self._decode(response)
        if not isinstance(data, list):
            raise ParseError("Unexpected repository listing payload")

        try:
            repositories = [_parse_repository(item) for item in data]
        except (ValidationError, TypeError, KeyError, ValueError) as e:
            raise ParseError(f"Malformed repository in listing: {e}") from e

        logger.debug("listed_repositories", count=len(repositories))
        return repositories

    async def get_repository(self, owner: str, slug: str) -> BitbucketRepository:
        """Look up a repository and return a handle for it."""
        response = await self._get(f"/repositories/{owner}/{slug}")
        if response.status_code in (401, 403, 404):
            raise NotFoundError(f"Repository {owner}/{slug} not found or not accessible")
        self._raise_for_status(response)

        data = self._decode(response)
        name = data.get("name") if isinstance(data, dict) else None
        return BitbucketRepository(self, owner, slug, name=name)

    async def close(self) -> None:
        await self._http.aclose()

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        try:
            return await self._http.get(path, params=params)
        except httpx.TimeoutException as e:
            raise FetchTimeoutError(f"Request to {path} timed out") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Request to {path} failed: {e}") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_error:
            raise NetworkError(f"HTTP {response.status_code} from {response.request.url}")

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"Malformed response body from {response.request.url}") from e


def _parse_changeset(item: Dict[str, Any]) -> Changeset:
    return Changeset(
        node=item["node"],
        raw_node=item["raw_node"],
        branch=item.get("branch"),
        author=item.get("author") or "",
        raw_author=item.get("raw_author") or "",
        timestamp=_parse_timestamp(item["utctimestamp"]),
        message=item.get("message") or "",
    )


def _parse_repository(item: Dict[str, Any]) -> RepositorySummary:
    return RepositorySummary(
        owner=item["owner"],
        name=item["name"],
        slug=item.get("slug") or item["name"].lower(),
        last_updated=_parse_timestamp(item["utc_last_updated"]),
    )


def _parse_timestamp(value: str) -> datetime:
    # e.g. "2013-03-05 21:43:02+00:00"
    return datetime.fromisoformat(value)
