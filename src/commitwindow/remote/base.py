"""Base classes for source-host clients."""

from abc import ABC, abstractmethod
from typing import List, Optional

from commitwindow.models import PageResult, RepositorySummary


class RepositoryHandle(ABC):
    """A repository whose changeset history can be paged backwards."""

    def __init__(self, owner: str, slug: str, name: Optional[str] = None) -> None:
        """Initialize the handle.

        Args:
            owner: Repository owner
            slug: Repository URL slug
            name: Display name (defaults to the slug)
        """
        self.owner = owner
        self.slug = slug
        self.name = name or slug

    @abstractmethod
    async def fetch_changesets(self, page_size: int, anchor: Optional[str] = None) -> PageResult:
        """Fetch one page of changesets ending at ``anchor``.

        Args:
            page_size: Maximum number of changesets in the page
            anchor: Hash of the newest changeset to include, None for the most recent

        Returns:
            Page of changesets, newest first

        Raises:
            ParseError: If the response could not be decoded
            FetchTimeoutError: If the request timed out
            NetworkError: On any other transport or HTTP failure
        """
        pass


class SourceHostClient(ABC):
    """Abstract client for a hosted source-control service."""

    @abstractmethod
    async def list_repositories(self) -> List[RepositorySummary]:
        """List every repository the user can access.

        Raises:
            AuthError: If the credentials are rejected
            NetworkError: If the service cannot be reached
        """
        pass

    @abstractmethod
    async def get_repository(self, owner: str, slug: str) -> RepositoryHandle:
        """Get a handle for one repository.

        Raises:
            NotFoundError: If the repository does not exist or is not accessible
            NetworkError: If the service cannot be reached
        """
        pass

    async def close(self) -> None:
        """Release network resources."""

    async def __aenter__(self) -> "SourceHostClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
