"""Report model and Slack-formatted rendering."""

import re
from dataclasses import dataclass, field

from .config import RegionConfig
from .constants import (
    NO_SUBJECT,
    OTHER_SOURCES_LABEL,
    PYLON_ISSUE_URL_TEMPLATE,
    UNASSIGNED,
    VIEW_COMMUNITY_OPEN,
    VIEW_HANDOFF_ISSUES,
    VIEW_SLA_PENDING_HIGH,
    VIEW_SLA_PENDING_LOW,
    Bucket,
    TicketSource,
)
from .models import QueueMetrics, RosterBreakdown, TicketDetail, Window

_WHITESPACE = re.compile(r"\s+")


@dataclass
class HandoffReport:
    """Everything needed to render one handoff message.

    Attributes:
        region: Shift that is handing off.
        date_label: Local date of the run, already formatted.
        window: Shift window the new-ticket count covers.
        new_in_window: Team tickets created during the shift.
        breakdown: New tickets per roster member, split by source.
        queue: Bucket counts and line items from the queue scan.
        user_directory: User id -> display name.
        ordering_violations: Pages that arrived out of order across both scans.
        community_source: Source counted in the community bucket.
    """

    region: RegionConfig
    date_label: str
    window: Window
    new_in_window: int
    breakdown: RosterBreakdown
    queue: QueueMetrics
    user_directory: dict[str, str] = field(default_factory=dict)
    ordering_violations: int = 0
    community_source: str = TicketSource.DISCORD

    def count(self, bucket: Bucket) -> int:
        if bucket == Bucket.NEW_IN_WINDOW:
            return self.new_in_window
        return self.queue.counts.get(bucket, 0)


def status_emoji(count: int, *, critical: bool = False) -> str:
    if count == 0:
        return "✅"
    return "🚨" if critical else "⚠️"


def source_label(source: str) -> str:
    """Display name for a ticket source, e.g. ``discord`` -> ``Discord``."""
    return str(source).replace("_", " ").title()


def slack_link(url: str, label: str) -> str:
    return f"<{url}|{label}>"


def issue_link(detail: TicketDetail) -> str:
    return slack_link(PYLON_ISSUE_URL_TEMPLATE.format(detail.id), f"#{detail.number}")


def assignee_display(assignee_id: str | None, directory: dict[str, str]) -> str:
    if not assignee_id:
        return UNASSIGNED
    return directory.get(assignee_id, assignee_id)


def clean_subject(subject: str | None) -> str:
    text = _WHITESPACE.sub(" ", subject or "").strip()
    return text or NO_SUBJECT


def format_breakdown_line(roster: tuple[str, ...], counts: dict[str, int]) -> str:
    return " | ".join(f"{name}: {counts.get(name, 0)}" for name in roster)


def format_subject_line(detail: TicketDetail, directory: dict[str, str]) -> str:
    return (
        f"{detail.tier} | {issue_link(detail)} | "
        f"Assignee: {assignee_display(detail.assignee_id, directory)} | "
        f"Subject: {clean_subject(detail.subject)}"
    )


def format_handoff_line(detail: TicketDetail, directory: dict[str, str]) -> str:
    meeting = "Yes" if detail.meeting_required else "No"
    return (
        f"{detail.tier}->{issue_link(detail)} | "
        f"Assignee: {assignee_display(detail.assignee_id, directory)} | "
        f"Handoff Region: {detail.handoff_label} | "
        f"Handoff meeting required: {meeting}"
    )


def render_report(report: HandoffReport) -> str:
    """Render the handoff message as Slack mrkdwn text.

    Line items are only listed under buckets with a non-zero count.

    Args:
        report: Report model.

    Returns:
        str: Message text.
    """
    directory = report.user_directory
    queue = report.queue
    sla_high = report.count(Bucket.SLA_PENDING_HIGH)
    sla_low = report.count(Bucket.SLA_PENDING_LOW)
    aged = report.count(Bucket.AGED)
    handoff = report.count(Bucket.HANDOFF)
    community = report.count(Bucket.COMMUNITY_OPEN)
    roster = report.breakdown.roster
    designated = source_label(report.breakdown.designated_source)
    community_label = source_label(report.community_source)

    lines = [
        f"*<{report.region.header_label} team handoff>*",
        f"Date: {report.date_label}",
        f"(New tickets during {report.region.label}: {report.new_in_window})",
        f"Assigned ({OTHER_SOURCES_LABEL}): "
        f"{format_breakdown_line(roster, report.breakdown.other)}",
        f"Assigned ({designated}): "
        f"{format_breakdown_line(roster, report.breakdown.designated)}",
        f"🎫 {slack_link(VIEW_COMMUNITY_OPEN, f'{community_label} Community Issues')}: "
        f"{community}",
        f"{status_emoji(sla_high, critical=True)} "
        f"{slack_link(VIEW_SLA_PENDING_HIGH, 'FR SLA Pending P0/P1')}: {sla_high}",
    ]

    if sla_high > 0:
        lines.extend(format_subject_line(d, directory) for d in queue.sla_high_items)

    lines.append(
        f"{status_emoji(sla_low)} "
        f"{slack_link(VIEW_SLA_PENDING_LOW, 'FR SLA Pending P2/P3')}: {sla_low}"
    )
    lines.append(f"{status_emoji(aged)} FR SLA Pending Aged > 1 Week: {aged}")

    if aged > 0:
        lines.extend(format_subject_line(d, directory) for d in queue.aged_items)

    lines.append(
        f"{status_emoji(handoff)} "
        f"{slack_link(VIEW_HANDOFF_ISSUES, 'Handoff Issues')}: {handoff}"
    )

    if handoff > 0:
        lines.extend(format_handoff_line(d, directory) for d in queue.handoff_items)

    if report.ordering_violations:
        lines.append(
            f"⚠️ Ticket API returned {report.ordering_violations} page(s) out of "
            "order; counts may be incomplete."
        )

    return "\n".join(lines)
