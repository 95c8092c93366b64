"""Builders and fakes shared by the test modules."""

from __future__ import annotations

from datetime import datetime

import pytz

from handoff_snapshot.constants import TARGET_TEAM_ID
from handoff_snapshot.models import Page, Ticket

PACIFIC = pytz.timezone("America/Los_Angeles")


def _iso(dt: datetime | None) -> str | None:
    return dt.astimezone(pytz.utc).strftime("%Y-%m-%dT%H:%M:%SZ") if dt else None


def build_issue(
    issue_id: str,
    *,
    created_at: datetime | None = None,
    state: str = "new",
    priority: str | None = None,
    team_id: str | None = TARGET_TEAM_ID,
    assignee_id: str | None = None,
    source: str = "slack",
    number: int = 1,
    title: str | None = None,
    handoff_region: str | None = None,
    meeting_required: object = None,
) -> dict:
    """Raw issue payload shaped like the search endpoint's."""
    custom_fields: dict = {}
    if priority is not None:
        custom_fields["priority"] = {"value": priority}
    if handoff_region is not None:
        custom_fields["hand_off_region"] = {"value": handoff_region}
    if meeting_required is not None:
        custom_fields["handoff_call_required"] = {"value": meeting_required}

    return {
        "id": issue_id,
        "number": number,
        "title": title,
        "state": state,
        "source": source,
        "created_at": _iso(created_at),
        "team": {"id": team_id} if team_id else None,
        "assignee": {"id": assignee_id} if assignee_id else None,
        "custom_fields": custom_fields,
    }


def page_of(tickets: list[Ticket], cursor: str | None = None) -> Page:
    """A page whose next cursor is ``cursor``; None means last page."""
    return Page(items=tickets, has_next_page=cursor is not None, next_cursor=cursor)


class ScriptedSource:
    """Serves pre-built pages and records every cursor requested.

    Each entry in ``responses`` is either a Page or an exception to raise.
    """

    def __init__(self, responses, users: dict[str, str] | None = None):
        self.responses = list(responses)
        self.cursors: list[str | None] = []
        self.users = users or {}

    async def search_issues(self, cursor: str | None = None, limit: int = 200) -> Page:
        self.cursors.append(cursor)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def fetch_user_directory(self) -> dict[str, str]:
        return dict(self.users)


class SleepRecorder:
    """Async sleep stand-in that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
