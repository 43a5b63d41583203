"""Backward-paginated resolution of the commits inside a date window."""

import asyncio
from typing import Awaitable, Callable, List, Optional

import structlog

from commitwindow.extraction.filters import in_window
from commitwindow.models import Commit, DateWindow, FilterConfig, PageResult, Resolution
from commitwindow.remote.base import RepositoryHandle
from commitwindow.remote.errors import (
    FetchTimeoutError,
    RetriesExhaustedError,
    SourceHostError,
    TransientFetchError,
)

logger = structlog.get_logger(__name__)

DEFAULT_PAGE_SIZE = 15
DEFAULT_RETRY_DELAY = 3.0
DEFAULT_MAX_RETRIES = 5
DEFAULT_FETCH_TIMEOUT = 30.0

Sleep = Callable[[float], Awaitable[None]]


class _ResolverState:
    """Mutable state of one resolve() call. Never shared between calls."""

    def __init__(self, window: DateWindow, truncate_length: int, cursor: Optional[str]) -> None:
        self.window = window
        self.truncate_length = truncate_length
        self.cursor = cursor
        self.collected: List[Commit] = []
        self.pages_fetched = 0
        self.retries = 0

    def to_resolution(self, error: Optional[str] = None) -> Resolution:
        return Resolution(
            commits=list(self.collected),
            pages_fetched=self.pages_fetched,
            retries=self.retries,
            error=error,
        )


class CommitWindowResolver:
    """Walks a repository's changeset history backwards, one page at a time.

    Each page is requested with the hash of the oldest changeset of the
    previous page as its anchor. Fetching stops as soon as a page reaches a
    changeset older than the window, or when history is exhausted.
    """

    def __init__(
        self,
        config: FilterConfig,
        page_size: int = DEFAULT_PAGE_SIZE,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        max_retries: int = DEFAULT_MAX_RETRIES,
        fetch_timeout: Optional[float] = DEFAULT_FETCH_TIMEOUT,
        sleep: Optional[Sleep] = None,
        stop_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            config: Window and message settings
            page_size: Changesets requested per page
            retry_delay: Seconds to wait before retrying a transient failure
            max_retries: Retries allowed per page before giving up
            fetch_timeout: Seconds allowed for one page fetch (None disables it)
            sleep: Coroutine used to wait between retries (defaults to asyncio.sleep)
            stop_event: When set, no further pages are requested
        """
        self.config = config
        self.page_size = page_size
        self.retry_delay = retry_delay
        self.max_retries = max_retries
        self.fetch_timeout = fetch_timeout
        self._sleep = sleep or asyncio.sleep
        self.stop_event = stop_event

    async def resolve(self, repo: RepositoryHandle, cursor: Optional[str] = None) -> Resolution:
        """Collect every commit of ``repo`` inside the configured window.

        Args:
            repo: Repository to walk
            cursor: Hash to start from (None for the most recent changeset)

        Returns:
            Resolution with the commits newest first. If a fetch fails for
            good, the commits gathered so far are returned with the error.
        """
        state = _ResolverState(self.config.window, self.config.truncate_length, cursor)
        log = logger.bind(repo=f"{repo.owner}/{repo.slug}")

        while True:
            if self.stop_event is not None and self.stop_event.is_set():
                log.info("resolution_stopped", commits=len(state.collected))
                return state.to_resolution(error="Stopped before completion")

            log.debug("fetching_changesets", anchor=(state.cursor or "HEAD")[:12])
            try:
                page = await self._fetch_page(repo, state, log)
            except SourceHostError as e:
                log.warning(
                    "resolution_failed",
                    error=str(e),
                    commits=len(state.collected),
                    pages=state.pages_fetched,
                )
                return state.to_resolution(error=str(e))
            state.pages_fetched += 1

            more_needed = self._classify_page(repo, page, state)
            next_cursor = page.next_cursor
            if not more_needed or not next_cursor or next_cursor == state.cursor:
                break
            state.cursor = next_cursor

        log.debug("resolution_complete", commits=len(state.collected), pages=state.pages_fetched)
        return state.to_resolution()

    async def _fetch_page(self, repo: RepositoryHandle, state: _ResolverState, log) -> PageResult:
        """Fetch the page at the current cursor, retrying transient failures."""
        attempts = 0
        while True:
            attempts += 1
            try:
                return await asyncio.wait_for(
                    repo.fetch_changesets(self.page_size, state.cursor),
                    timeout=self.fetch_timeout,
                )
            except asyncio.TimeoutError:
                error: SourceHostError = FetchTimeoutError(
                    f"Changeset fetch timed out after {self.fetch_timeout}s"
                )
            except TransientFetchError as e:
                error = e

            if attempts > self.max_retries:
                raise RetriesExhaustedError(attempts, error) from error

            state.retries += 1
            log.warning(
                "changeset_fetch_retry",
                error=str(error),
                attempt=attempts,
                delay=self.retry_delay,
            )
            await self._sleep(self.retry_delay)

    def _classify_page(self, repo: RepositoryHandle, page: PageResult, state: _ResolverState) -> bool:
        """Emit the in-window changesets of a page and decide whether to go further back.

        The page is walked newest to oldest, so the decision left at the end
        is the one made for the oldest changeset.
        """
        window = state.window
        more_needed = False

        for changeset in page.changesets:
            if state.cursor is not None and changeset.raw_node == state.cursor:
                # Anchor of this page, already classified on the previous one
                more_needed = False
            elif in_window(changeset.timestamp, window):
                state.collected.append(
                    Commit.from_changeset(repo.name, changeset, state.truncate_length)
                )
                more_needed = True
            elif changeset.timestamp > window.since:
                more_needed = True
            else:
                more_needed = False

        return more_needed
