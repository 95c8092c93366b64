"""One snapshot run: shift scan, roster breakdown, queue scan, report."""

import asyncio
from datetime import datetime
from typing import Protocol

from loguru import logger

from .aggregator import BucketAggregator, roster_breakdown
from .classifier import TicketClassifier
from .config import SnapshotConfig
from .constants import REPORT_DATE_FORMAT, Bucket, LogMessage, Region, ScanName
from .models import Page, QueueMetrics, Ticket, WindowScanResult
from .report import HandoffReport
from .scanner import PaginatedScanner, Sleep
from .stop_policies import BoundedWindowStop, LookbackHorizonStop
from .windows import TimeWindowCalculator

QUEUE_BUCKETS = (
    Bucket.SLA_PENDING_HIGH,
    Bucket.SLA_PENDING_LOW,
    Bucket.AGED,
    Bucket.HANDOFF,
    Bucket.COMMUNITY_OPEN,
)


class IssueSource(Protocol):
    async def search_issues(self, cursor: str | None, limit: int) -> Page: ...

    async def fetch_user_directory(self) -> dict[str, str]: ...


class HandoffSnapshot:
    """Builds the handoff report for one region.

    Attributes:
        config: Run configuration.
        client: Ticket source used by both scans.
        calculator: Shift window calculator.
        classifier: Bucket classifier.
    """

    def __init__(
        self,
        *,
        config: SnapshotConfig,
        client: IssueSource,
        sleep: Sleep = asyncio.sleep,
    ):
        self.config = config
        self.client = client
        self.calculator = TimeWindowCalculator(
            regions=config.regions, timezone_name=config.timezone
        )
        self.classifier = TicketClassifier(config=config.classifier)
        self._sleep = sleep

    async def scan_created_during_shift(
        self, region: Region | str, now: datetime
    ) -> WindowScanResult:
        """Collect team tickets created inside the shift window, open or closed."""
        window = self.calculator.window_for(region, now)
        aggregator = BucketAggregator(classifier=self.classifier)

        def on_item(ticket: Ticket) -> None:
            if self.classifier.created_in_window(ticket, window):
                aggregator.add(ticket, (Bucket.NEW_IN_WINDOW,))

        scanner = PaginatedScanner(
            name=ScanName.WINDOW, settings=self.config.window_scan, sleep=self._sleep
        )
        stats = await scanner.scan(
            fetch_page=self.client.search_issues,
            early_stop=BoundedWindowStop(window=window),
            on_item=on_item,
            progress=lambda: {"createdInShift": aggregator.count(Bucket.NEW_IN_WINDOW)},
        )

        return WindowScanResult(
            window=window,
            matched_ids=aggregator.ids(Bucket.NEW_IN_WINDOW),
            items=aggregator.tickets(Bucket.NEW_IN_WINDOW),
            stats=stats,
        )

    async def scan_queue(self, now: datetime) -> QueueMetrics:
        """Classify the current queue, paging back no further than the lookback."""
        aggregator = BucketAggregator(classifier=self.classifier)

        def on_item(ticket: Ticket) -> None:
            aggregator.add(ticket, self.classifier.classify(ticket, now=now))

        def progress() -> dict[str, int]:
            return {
                "handoff": aggregator.count(Bucket.HANDOFF),
                "p0p1": aggregator.count(Bucket.SLA_PENDING_HIGH),
                "p2p3": aggregator.count(Bucket.SLA_PENDING_LOW),
                "agedAll": aggregator.count(Bucket.AGED),
            }

        scanner = PaginatedScanner(
            name=ScanName.QUEUE, settings=self.config.queue_scan, sleep=self._sleep
        )
        stats = await scanner.scan(
            fetch_page=self.client.search_issues,
            early_stop=LookbackHorizonStop(
                now=now, lookback_days=self.config.lookback_days
            ),
            on_item=on_item,
            progress=progress,
        )

        return QueueMetrics(
            counts=aggregator.counts(QUEUE_BUCKETS),
            sla_high_items=aggregator.details(Bucket.SLA_PENDING_HIGH),
            aged_items=aggregator.aged_details(),
            handoff_items=aggregator.details(Bucket.HANDOFF),
            stats=stats,
            lookback_days=self.config.lookback_days,
        )

    async def build_report(
        self, region: Region | str, now: datetime | None = None
    ) -> HandoffReport:
        """Run both scans sequentially and assemble the report model.

        Args:
            region: Region handing off.
            now: Evaluation time; defaults to the current local time.

        Returns:
            HandoffReport: Report ready to render.
        """
        region_cfg = self.config.region(region)
        now = self.calculator.to_local(now) if now else self.calculator.now()

        directory = await self.client.fetch_user_directory()

        created = await self.scan_created_during_shift(region_cfg.key, now)
        breakdown = roster_breakdown(
            created.items,
            roster=region_cfg.roster,
            resolve_name=directory.get,
            designated_source=self.config.breakdown_source,
        )

        queue = await self.scan_queue(now)

        logger.info(
            LogMessage.SNAPSHOT_SUMMARY.format(
                region_cfg.key,
                created.count,
                " ".join(f"{b}={n}" for b, n in queue.counts.items()),
            )
        )

        return HandoffReport(
            region=region_cfg,
            date_label=now.strftime(REPORT_DATE_FORMAT),
            window=created.window,
            new_in_window=created.count,
            breakdown=breakdown,
            queue=queue,
            user_directory=directory,
            ordering_violations=(
                created.stats.ordering_violations + queue.stats.ordering_violations
            ),
            community_source=self.config.classifier.community_source,
        )
