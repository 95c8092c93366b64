"""Deduplicated bucket accumulation and roster breakdowns."""

from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime, timezone

from .classifier import TicketClassifier, tier_rank
from .constants import Bucket
from .models import RosterBreakdown, Ticket, TicketDetail

# Buckets whose tickets are listed individually in the report
LINE_ITEM_BUCKETS: frozenset[Bucket] = frozenset(
    {Bucket.SLA_PENDING_HIGH, Bucket.AGED, Bucket.HANDOFF}
)

_LATEST = datetime.max.replace(tzinfo=timezone.utc)


class BucketAggregator:
    """Accumulates classified tickets into per-bucket id sets.

    A ticket id is counted at most once per bucket. For line-item buckets
    the first sighting's detail record is kept; later sightings of the same
    id (re-fetched pages) never overwrite it.

    Attributes:
        classifier: Used to project tickets into detail records.
    """

    def __init__(self, *, classifier: TicketClassifier):
        self.classifier = classifier
        self._tickets: dict[Bucket, dict[str, Ticket]] = {b: {} for b in Bucket}
        self._details: dict[Bucket, dict[str, TicketDetail]] = {
            b: {} for b in LINE_ITEM_BUCKETS
        }

    def add(self, ticket: Ticket, tags: Iterable[Bucket]) -> None:
        """Record ``ticket`` in every bucket named by ``tags``."""
        if not ticket.id:
            return

        for bucket in tags:
            seen = self._tickets[bucket]
            if ticket.id in seen:
                continue
            seen[ticket.id] = ticket
            if bucket in LINE_ITEM_BUCKETS:
                self._details[bucket][ticket.id] = self.build_detail(ticket, bucket)

    def build_detail(self, ticket: Ticket, bucket: Bucket) -> TicketDetail:
        detail = TicketDetail(
            id=ticket.id,
            number=ticket.number,
            tier=self.classifier.ticket_tier(ticket),
            assignee_id=ticket.assignee_id,
            subject=ticket.title,
            created_at=ticket.created_at,
        )
        if bucket == Bucket.HANDOFF:
            detail = replace(
                detail,
                handoff_label=self.classifier.handoff_label(
                    self.classifier.handoff_slug(ticket)
                ),
                meeting_required=self.classifier.meeting_required(ticket),
            )
        return detail

    def count(self, bucket: Bucket) -> int:
        return len(self._tickets[bucket])

    def ids(self, bucket: Bucket) -> set[str]:
        return set(self._tickets[bucket])

    def tickets(self, bucket: Bucket) -> list[Ticket]:
        """Tickets in ``bucket`` in first-seen order."""
        return list(self._tickets[bucket].values())

    def details(self, bucket: Bucket) -> list[TicketDetail]:
        """Detail records for a line-item bucket in first-seen order."""
        return list(self._details[bucket].values())

    def aged_details(self) -> list[TicketDetail]:
        return sort_aged(self.details(Bucket.AGED))

    def counts(self, buckets: Iterable[Bucket] | None = None) -> dict[Bucket, int]:
        selected = Bucket if buckets is None else buckets
        return {b: self.count(b) for b in selected}


def sort_aged(details: Iterable[TicketDetail]) -> list[TicketDetail]:
    """Order by severity tier, then oldest first; undated items go last."""
    return sorted(
        details,
        key=lambda d: (
            tier_rank(d.tier),
            d.created_at is None,
            d.created_at or _LATEST,
        ),
    )


def roster_breakdown(
    tickets: Iterable[Ticket],
    *,
    roster: Iterable[str],
    resolve_name: Callable[[str], str | None],
    designated_source: str,
) -> RosterBreakdown:
    """Count tickets per roster member, split by source.

    Tickets whose assignee does not resolve to a roster name are left out
    of the breakdown; they still count toward bucket totals elsewhere.

    Args:
        tickets: Tickets to attribute.
        roster: Ordered roster names.
        resolve_name: Maps a user id to a display name.
        designated_source: Source counted separately from everything else.

    Returns:
        RosterBreakdown: Counts for both sub-buckets, zero-filled for every roster name.
    """
    names = tuple(roster)
    designated = dict.fromkeys(names, 0)
    other = dict.fromkeys(names, 0)

    for ticket in tickets:
        if not ticket.assignee_id:
            continue
        name = resolve_name(ticket.assignee_id)
        if name is None or name not in designated:
            continue
        if ticket.source == designated_source:
            designated[name] += 1
        else:
            other[name] += 1

    return RosterBreakdown(
        roster=names,
        designated_source=designated_source,
        designated=designated,
        other=other,
    )
