"""Scans every accessible repository for commits inside the window."""

import asyncio
from typing import List, Optional, Union

import structlog

from commitwindow.extraction.filters import matches_prefix, updated_after
from commitwindow.extraction.resolver import CommitWindowResolver
from commitwindow.models import (
    FilterConfig,
    RepositoryReport,
    RepositorySummary,
    ScanResult,
    SkippedRepository,
)
from commitwindow.remote.base import SourceHostClient
from commitwindow.remote.errors import SourceHostError

logger = structlog.get_logger(__name__)


class RepositoryScanner:
    """Lists repositories, filters them and resolves each one's commit window."""

    def __init__(
        self,
        client: SourceHostClient,
        config: FilterConfig,
        resolver: Optional[CommitWindowResolver] = None,
        max_concurrency: int = 4,
    ) -> None:
        """Initialize the scanner.

        Args:
            client: Source-host client used for listing and lookups
            config: Filter settings
            resolver: Resolver to use (defaults to one built from ``config``)
            max_concurrency: Repositories resolved at the same time
        """
        self.client = client
        self.config = config
        self.resolver = resolver or CommitWindowResolver(config)
        self.max_concurrency = max(1, max_concurrency)

    def filter_repositories(self, repositories: List[RepositorySummary]) -> List[RepositorySummary]:
        """Keep repositories updated after the window start whose name matches the prefix."""
        return [
            repo
            for repo in repositories
            if updated_after(repo.last_updated, self.config.window)
            and matches_prefix(repo.name, self.config.prefix)
        ]

    async def scan(self) -> ScanResult:
        """Scan all repositories.

        Returns:
            ScanResult with one report per repository, in listing order

        Raises:
            SourceHostError: If the repository listing itself fails
        """
        repositories = await self.client.list_repositories()
        candidates = self.filter_repositories(repositories)
        logger.info("repositories_filtered", total=len(repositories), matched=len(candidates))

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(summary: RepositorySummary) -> Union[RepositoryReport, SkippedRepository]:
            async with semaphore:
                return await self.scan_repository(summary)

        outcomes = await asyncio.gather(*(run(summary) for summary in candidates))

        result = ScanResult(
            total_repositories=len(repositories),
            matched_repositories=len(candidates),
        )
        for outcome in outcomes:
            if isinstance(outcome, SkippedRepository):
                result.skipped.append(outcome)
            elif outcome.is_empty and not self.config.show_empty:
                continue
            else:
                result.reports.append(outcome)

        return result

    async def scan_repository(self, summary: RepositorySummary) -> Union[RepositoryReport, SkippedRepository]:
        """Resolve the commit window of a single repository.

        Lookup failures and unexpected resolver errors are recorded as a
        skipped repository instead of aborting the scan.
        """
        logger.info("resolving_repository", owner=summary.owner, repo=summary.name)
        try:
            handle = await self.client.get_repository(summary.owner, summary.slug)
        except SourceHostError as e:
            logger.warning(
                "repository_lookup_failed",
                owner=summary.owner,
                repo=summary.name,
                error=str(e),
            )
            return SkippedRepository(owner=summary.owner, name=summary.name, error=str(e))
        except Exception as e:
            logger.error("repository_lookup_crashed", owner=summary.owner, repo=summary.name, error=repr(e))
            return SkippedRepository(owner=summary.owner, name=summary.name, error=f"Unexpected error: {e}")

        try:
            resolution = await self.resolver.resolve(handle)
        except Exception as e:
            logger.error("resolution_crashed", owner=summary.owner, repo=summary.name, error=repr(e))
            return SkippedRepository(owner=summary.owner, name=summary.name, error=f"Unexpected error: {e}")

        return RepositoryReport(
            owner=summary.owner,
            name=summary.name,
            commits=resolution.commits,
            error=resolution.error,
        )
