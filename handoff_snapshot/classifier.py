"""Rule-based ticket classification into report buckets."""

from datetime import datetime, timedelta

from .config import ClassifierConfig
from .constants import UNKNOWN_TIER_RANK, Bucket, SeverityTier, TicketState
from .models import Ticket, Window

TIER_RANKS: dict[SeverityTier, int] = {
    SeverityTier.P0: 0,
    SeverityTier.P1: 1,
    SeverityTier.P2: 2,
    SeverityTier.P3: 3,
}


def tier_rank(tier: SeverityTier | str) -> int:
    """Sort key for severity tiers: P0 first, unknown last."""
    return TIER_RANKS.get(tier, UNKNOWN_TIER_RANK)


class TicketClassifier:
    """Maps a ticket to the set of report buckets it belongs to.

    Buckets overlap; every predicate is evaluated independently:

    - SLA pending high/low: team scope, state ``new``, severity tier in the
      high or low pair.
    - Aged: team scope, state ``new``, created more than ``aged_days``
      before the evaluation time, any priority.
    - Handoff: team scope, open state, handoff region field set.
    - Community open: open state and community source, regardless of team.

    Attributes:
        config: Predicate tables.
    """

    def __init__(self, *, config: ClassifierConfig):
        self.config = config

    def severity_raw(self, ticket: Ticket) -> str | None:
        return ticket.text_field(self.config.priority_field)

    def severity_tier(self, raw: object) -> SeverityTier:
        """Map a raw priority to its tier; anything unmapped is UNKNOWN."""
        if not isinstance(raw, str):
            return SeverityTier.UNKNOWN
        return self.config.severity_tiers.get(raw, SeverityTier.UNKNOWN)

    def ticket_tier(self, ticket: Ticket) -> SeverityTier:
        return self.severity_tier(self.severity_raw(ticket))

    def in_team(self, ticket: Ticket) -> bool:
        return ticket.team_id is not None and ticket.team_id == self.config.target_team_id

    def is_open(self, ticket: Ticket) -> bool:
        return ticket.state in self.config.open_states

    def is_new(self, ticket: Ticket) -> bool:
        return ticket.state == TicketState.NEW

    def handoff_slug(self, ticket: Ticket) -> str | None:
        return ticket.text_field(self.config.handoff_field)

    def handoff_label(self, slug: str | None) -> str:
        if slug is None:
            return self.config.unknown_handoff_label
        return self.config.handoff_labels.get(slug, self.config.unknown_handoff_label)

    def meeting_required(self, ticket: Ticket) -> bool:
        return ticket.flag_field(self.config.meeting_field)

    def classify(self, ticket: Ticket, *, now: datetime) -> set[Bucket]:
        """Return every bucket the ticket belongs to at evaluation time ``now``.

        Args:
            ticket: Ticket to classify.
            now: Evaluation instant (aware).

        Returns:
            set[Bucket]: Possibly empty set of bucket tags.
        """
        tags: set[Bucket] = set()

        if self.is_open(ticket) and ticket.source == self.config.community_source:
            tags.add(Bucket.COMMUNITY_OPEN)

        if not self.in_team(ticket):
            return tags

        if self.is_new(ticket):
            tier = self.ticket_tier(ticket)
            if tier in self.config.high_tiers:
                tags.add(Bucket.SLA_PENDING_HIGH)
            elif tier in self.config.low_tiers:
                tags.add(Bucket.SLA_PENDING_LOW)

            aged_cutoff = now - timedelta(days=self.config.aged_days)
            if ticket.created_at is not None and ticket.created_at < aged_cutoff:
                tags.add(Bucket.AGED)

        if self.is_open(ticket) and self.handoff_slug(ticket) is not None:
            tags.add(Bucket.HANDOFF)

        return tags

    def created_in_window(self, ticket: Ticket, window: Window) -> bool:
        """Scan A predicate: team scope and creation inside the shift window."""
        return self.in_team(ticket) and ticket.created_at in window
