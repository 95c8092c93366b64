"""Shift handoff snapshot package."""

from .aggregator import BucketAggregator, roster_breakdown
from .classifier import TicketClassifier
from .client import PylonClient
from .config import ClassifierConfig, RegionConfig, ScanSettings, SnapshotConfig
from .models import Page, Ticket, Window
from .report import HandoffReport, render_report
from .scanner import PaginatedScanner
from .snapshot import HandoffSnapshot
from .stop_policies import BoundedWindowStop, LookbackHorizonStop
from .windows import TimeWindowCalculator

__all__ = [
    "BoundedWindowStop",
    "BucketAggregator",
    "ClassifierConfig",
    "HandoffReport",
    "HandoffSnapshot",
    "LookbackHorizonStop",
    "Page",
    "PaginatedScanner",
    "PylonClient",
    "RegionConfig",
    "ScanSettings",
    "SnapshotConfig",
    "Ticket",
    "TicketClassifier",
    "TimeWindowCalculator",
    "Window",
    "render_report",
    "roster_breakdown",
]
