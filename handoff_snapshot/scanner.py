"""Cursor pagination driver shared by both scans."""

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime

from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from .config import ScanSettings
from .constants import FIRST_PAGE, LogMessage, ScanName, StopReason
from .exceptions import RateLimitedError, ScanAbortedError
from .models import Page, ScanStats, Ticket
from .stop_policies import CutoffStopPolicy

FetchPage = Callable[[str | None, int], Awaitable[Page]]
Sleep = Callable[[float], Awaitable[None]]


class wait_retry_after(wait_base):
    """Wait for the server's Retry-After hint, else defer to ``fallback``."""

    def __init__(self, fallback: wait_base):
        self.fallback = fallback

    def __call__(self, retry_state: RetryCallState) -> float:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        hint = getattr(exc, "retry_after", None)
        if hint is not None and hint >= 0:
            return float(hint)
        return self.fallback(retry_state)


class PaginatedScanner:
    """Fetches pages one at a time until a stop condition is met.

    A scan stops when the API reports no further page, when the early-stop
    policy says later pages cannot matter, when a cursor repeats, or when
    the page ceiling is reached. Throttled requests are retried in place.

    Attributes:
        name: Label used in log output.
        settings: Page size, ceiling, delay and retry policy.
    """

    def __init__(
        self,
        *,
        name: ScanName,
        settings: ScanSettings,
        sleep: Sleep = asyncio.sleep,
    ):
        self.name = name
        self.settings = settings
        self._sleep = sleep

    async def scan(
        self,
        *,
        fetch_page: FetchPage,
        early_stop: CutoffStopPolicy,
        on_item: Callable[[Ticket], None],
        progress: Callable[[], Mapping[str, int]] | None = None,
    ) -> ScanStats:
        """Run the scan to completion.

        Args:
            fetch_page: Coroutine returning the page for a cursor and page size.
            early_stop: Policy consulted with each page's oldest creation time.
            on_item: Called once for every ticket on every page.
            progress: Returns running bucket sizes for progress logging.

        Returns:
            ScanStats: Pages fetched, items seen and why the scan stopped.

        Raises:
            ScanAbortedError: A page stayed throttled past the retry limit.
            UpstreamError: The API returned a non-success or malformed page.
        """
        stats = ScanStats(name=self.name)
        cursor: str | None = None
        seen_cursors: set[str] = set()
        previous_oldest: datetime | None = None
        page_index = FIRST_PAGE - 1

        while True:
            page_index += 1
            page = await self._fetch_with_retry(fetch_page, cursor)
            stats.pages = page_index
            stats.items_seen += len(page.items)

            previous_oldest = self._check_ordering(
                page, page_index, previous_oldest, stats
            )

            for item in page.items:
                on_item(item)

            sizes = dict(progress()) if progress else {}
            logger.info(
                LogMessage.PAGE_FETCHED.format(
                    self.name,
                    page_index,
                    len(page.items),
                    " ".join(f"{k}={v}" for k, v in sizes.items()),
                ).rstrip()
            )

            if not page.has_next_page or not page.next_cursor:
                stats.stop_reason = StopReason.NO_NEXT_PAGE
                break

            oldest = page.oldest_created_at()
            if early_stop.should_stop(oldest, page_index):
                logger.info(
                    LogMessage.EARLY_STOP.format(
                        self.name, oldest.isoformat(), early_stop.cutoff.isoformat()
                    )
                )
                stats.stop_reason = StopReason.EARLY_STOP
                break

            if page.next_cursor in seen_cursors:
                logger.warning(LogMessage.CURSOR_REPEATED.format(self.name))
                stats.stop_reason = StopReason.CURSOR_REPEATED
                break
            seen_cursors.add(page.next_cursor)

            if page_index >= self.settings.max_pages:
                logger.warning(
                    LogMessage.MAX_PAGES_REACHED.format(
                        self.name, self.settings.max_pages
                    )
                )
                stats.stop_reason = StopReason.MAX_PAGES
                break

            cursor = page.next_cursor
            await self._sleep(self.settings.inter_page_delay)

        logger.success(
            LogMessage.SCAN_COMPLETE.format(self.name, stats.pages, stats.items_seen)
        )
        return stats

    async def _fetch_with_retry(self, fetch_page: FetchPage, cursor: str | None) -> Page:
        """Fetch one page, retrying while the API is throttling us."""
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RateLimitedError),
            stop=stop_after_attempt(self.settings.max_attempts),
            wait=wait_retry_after(
                fallback=wait_exponential(
                    multiplier=self.settings.backoff_base,
                    max=self.settings.backoff_cap,
                )
            ),
            sleep=self._sleep,
            before_sleep=self._log_retry,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    page = await fetch_page(cursor, self.settings.page_size)
        except RetryError as e:
            last = e.last_attempt.exception()
            raise ScanAbortedError(
                f"[{self.name}] rate limited after "
                f"{e.last_attempt.attempt_number} attempts: {last}"
            ) from last

        return page

    def _log_retry(self, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(LogMessage.RATE_LIMITED.format(retry_state.attempt_number, delay))

    def _check_ordering(
        self,
        page: Page,
        page_index: int,
        previous_oldest: datetime | None,
        stats: ScanStats,
    ) -> datetime | None:
        """Flag pages that are newer than the page before them.

        Returns the oldest timestamp seen so far, for the next comparison.
        """
        newest = page.newest_created_at()
        if previous_oldest is not None and newest is not None and newest > previous_oldest:
            stats.ordering_violations += 1
            logger.error(
                LogMessage.ORDERING_VIOLATION.format(
                    self.name,
                    page_index,
                    newest.isoformat(),
                    previous_oldest.isoformat(),
                )
            )

        oldest = page.oldest_created_at()
        if oldest is None:
            return previous_oldest
        if previous_oldest is None:
            return oldest
        return min(oldest, previous_oldest)
