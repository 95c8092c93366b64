"""Test configuration ensuring local package import when editable install not active.

If users invoke `pytest` outside the project's virtualenv, we still add the project
root to sys.path so `import handoff_snapshot` works.
"""

from __future__ import annotations

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
for path in (ROOT, ROOT / "tests"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from handoff_snapshot.models import Ticket  # noqa: E402
from helpers import PACIFIC, SleepRecorder, build_issue  # noqa: E402


@pytest.fixture
def now() -> datetime:
    """Evaluation time: 17 Oct 2026, 18:00 Pacific (PDT, UTC-7)."""
    return PACIFIC.localize(datetime(2026, 10, 17, 18, 0, 0))


@pytest.fixture
def make_ticket(now):
    """Factory for tickets; ``age`` sets created_at relative to ``now``."""

    def factory(issue_id: str = "t1", *, age: timedelta | None = None, **kwargs) -> Ticket:
        if age is not None:
            kwargs["created_at"] = now - age
        return Ticket.from_dict(data=build_issue(issue_id, **kwargs))

    return factory


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()
