"""Data models for the shift handoff snapshot."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from .constants import (
    ApiResponseKey,
    Bucket,
    ScanName,
    SeverityTier,
    StopReason,
)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an API timestamp into an aware UTC datetime.

    Accepts ISO 8601 strings (with or without a trailing ``Z``) and aware or
    naive datetimes. Naive values are taken to be UTC.

    Args:
        value: Raw timestamp value.

    Returns:
        datetime | None: UTC datetime, or None if the value cannot be parsed.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _nested_id(data: dict[str, Any], key: str) -> str | None:
    nested = data.get(key)
    if isinstance(nested, dict):
        value = nested.get(ApiResponseKey.ID)
        return str(value) if value else None
    return None


@dataclass
class Ticket:
    """An issue returned by the ticketing API.

    Custom fields are kept raw; use ``text_field`` and ``flag_field`` to read
    them so missing or malformed values resolve to a documented default.

    Attributes:
        id: Unique identifier for the issue.
        number: Human-facing issue number.
        title: Issue subject line.
        state: Workflow state (e.g. 'new', 'on_hold').
        source: Origin channel (e.g. 'discord').
        created_at: Creation instant in UTC, None if missing or unparsable.
        team_id: Owning team, if any.
        assignee_id: Assigned user, if any.
        custom_fields: Raw custom field values keyed by slug.
    """

    id: str
    number: int | str | None = None
    title: str | None = None
    state: str | None = None
    source: str | None = None
    created_at: datetime | None = None
    team_id: str | None = None
    assignee_id: str | None = None
    custom_fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, *, data: dict[str, Any]) -> "Ticket":
        """Create a Ticket from an API issue payload.

        Args:
            data: Dictionary containing issue data.

        Returns:
            Ticket: A new Ticket; ``id`` is an empty string when absent.
        """
        raw_fields = data.get(ApiResponseKey.CUSTOM_FIELDS)
        custom_fields: dict[str, Any] = {}
        if isinstance(raw_fields, dict):
            for slug, entry in raw_fields.items():
                # Fields arrive wrapped as {"value": ...}
                if isinstance(entry, dict):
                    custom_fields[slug] = entry.get(ApiResponseKey.VALUE)
                else:
                    custom_fields[slug] = entry

        raw_id = data.get(ApiResponseKey.ID)

        return cls(
            id=str(raw_id) if raw_id else "",
            number=data.get(ApiResponseKey.NUMBER),
            title=data.get(ApiResponseKey.TITLE),
            state=data.get(ApiResponseKey.STATE),
            source=data.get(ApiResponseKey.SOURCE),
            created_at=parse_timestamp(data.get(ApiResponseKey.CREATED_AT)),
            team_id=_nested_id(data, ApiResponseKey.TEAM),
            assignee_id=_nested_id(data, ApiResponseKey.ASSIGNEE),
            custom_fields=custom_fields,
        )

    def text_field(self, slug: str) -> str | None:
        """Return a custom field as trimmed text, or None if absent or blank."""
        value = self.custom_fields.get(slug)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    def flag_field(self, slug: str) -> bool:
        """Return a custom boolean field.

        Only a real ``True`` or the exact text ``"true"`` count as set; any
        other value, including absence, is False.
        """
        value = self.custom_fields.get(slug)
        return value is True or value == "true"


@dataclass(frozen=True)
class Window:
    """Half-open UTC interval ``[start, end)``."""

    start: datetime
    end: datetime

    def __contains__(self, instant: datetime | None) -> bool:
        if instant is None:
            return False
        return self.start <= instant < self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass
class Page:
    """One page of search results.

    Attributes:
        items: Tickets on the page, newest first.
        has_next_page: Whether the API reports more pages.
        next_cursor: Continuation token for the next page.
    """

    items: list[Ticket]
    has_next_page: bool = False
    next_cursor: str | None = None

    def oldest_created_at(self) -> datetime | None:
        stamps = [t.created_at for t in self.items if t.created_at is not None]
        return min(stamps) if stamps else None

    def newest_created_at(self) -> datetime | None:
        stamps = [t.created_at for t in self.items if t.created_at is not None]
        return max(stamps) if stamps else None


@dataclass(frozen=True)
class TicketDetail:
    """Line-item projection of a ticket for the report.

    Attributes:
        id: Issue identifier.
        number: Human-facing issue number.
        tier: Severity tier label.
        assignee_id: Assigned user, if any.
        subject: Issue title, if any.
        created_at: Creation instant, used for ordering aged items.
        handoff_label: Destination region label (handoff bucket only).
        meeting_required: Whether a handoff call was requested (handoff bucket only).
    """

    id: str
    number: int | str | None
    tier: SeverityTier
    assignee_id: str | None = None
    subject: str | None = None
    created_at: datetime | None = None
    handoff_label: str | None = None
    meeting_required: bool = False


@dataclass
class ScanStats:
    """Bookkeeping for one paginated scan."""

    name: ScanName
    pages: int = 0
    items_seen: int = 0
    stop_reason: StopReason | None = None
    ordering_violations: int = 0


@dataclass
class WindowScanResult:
    """Tickets created inside the shift window.

    Attributes:
        window: Shift window that was scanned.
        matched_ids: Unique ids of matching tickets.
        items: Matching tickets in first-seen order.
        stats: Paging statistics.
    """

    window: Window
    matched_ids: set[str]
    items: list[Ticket]
    stats: ScanStats

    @property
    def count(self) -> int:
        return len(self.matched_ids)


@dataclass
class RosterBreakdown:
    """Per-person counts for the shift roster, split by ticket source.

    Attributes:
        roster: Ordered roster names.
        designated_source: Source counted in ``designated``.
        designated: Counts of tickets from the designated source.
        other: Counts of tickets from every other source.
    """

    roster: tuple[str, ...]
    designated_source: str
    designated: dict[str, int]
    other: dict[str, int]


@dataclass
class QueueMetrics:
    """Bucket sizes and line items from the queue classification scan."""

    counts: dict[Bucket, int]
    sla_high_items: list[TicketDetail]
    aged_items: list[TicketDetail]
    handoff_items: list[TicketDetail]
    stats: ScanStats
    lookback_days: int
