import asyncio
from datetime import timedelta

import pytest
from loguru import logger

from handoff_snapshot.config import ClassifierConfig, SnapshotConfig
from handoff_snapshot.constants import Bucket, Region, StopReason
from handoff_snapshot.exceptions import ConfigurationError, UpstreamError
from handoff_snapshot.report import render_report
from handoff_snapshot.snapshot import HandoffSnapshot
from helpers import ScriptedSource, page_of

USERS = {"u-feran": "Feran Morgan", "u-tassia": "Tassia Shibuya"}


def _snapshot(source, sleep_recorder, **config) -> HandoffSnapshot:
    return HandoffSnapshot(
        config=SnapshotConfig(pylon_token="token", **config),
        client=source,
        sleep=sleep_recorder,
    )


@pytest.fixture
def shift_page(make_ticket):
    hour = timedelta(hours=1)
    return page_of(
        [
            make_ticket("a1", age=1 * hour, source="discord", assignee_id="u-feran"),
            make_ticket("a2", age=3 * hour, source="slack", assignee_id="u-tassia"),
            make_ticket("a3", age=4 * hour, team_id="another-team", assignee_id="u-feran"),
            make_ticket("a4", age=10 * hour, assignee_id="u-feran"),
        ],
        cursor="c1",
    )


@pytest.fixture
def queue_pages(make_ticket):
    day = timedelta(days=1)
    return [
        page_of(
            [
                make_ticket("b1", age=timedelta(hours=2), priority="urgent", title="Outage", number=11),
                make_ticket("b2", age=8 * day, priority="medium", number=12),
                make_ticket(
                    "b3",
                    age=1 * day,
                    state="on_hold",
                    handoff_region="america_apac",
                    meeting_required=True,
                    number=13,
                ),
                make_ticket("b4", age=1 * day, source="discord", team_id=None, number=14),
            ],
            cursor="q2",
        ),
        page_of(
            [make_ticket("b5", age=40 * day, priority="high", number=15)],
            cursor="q3",
        ),
    ]


def test_full_snapshot(now, shift_page, queue_pages, sleep_recorder):
    source = ScriptedSource([shift_page, *queue_pages], users=USERS)

    report = asyncio.run(_snapshot(source, sleep_recorder).build_report(Region.US, now))

    # The shift scan stops after its first page; the queue scan starts over.
    assert source.cursors == [None, None, "q2"]
    assert sleep_recorder.calls == [0.2]

    assert report.region.key == Region.US
    assert report.date_label == "10/17/2026"
    assert report.new_in_window == 2
    assert report.breakdown.designated == {"Feran Morgan": 1, "Tassia Shibuya": 0, "Fariha Marzan": 0}
    assert report.breakdown.other == {"Feran Morgan": 0, "Tassia Shibuya": 1, "Fariha Marzan": 0}

    assert report.queue.counts == {
        Bucket.SLA_PENDING_HIGH: 2,
        Bucket.SLA_PENDING_LOW: 1,
        Bucket.AGED: 2,
        Bucket.HANDOFF: 1,
        Bucket.COMMUNITY_OPEN: 1,
    }
    assert [d.id for d in report.queue.sla_high_items] == ["b1", "b5"]
    assert [d.id for d in report.queue.aged_items] == ["b5", "b2"]
    [handoff] = report.queue.handoff_items
    assert handoff.handoff_label == "APAC"
    assert handoff.meeting_required is True
    assert report.queue.stats.stop_reason == StopReason.EARLY_STOP
    assert report.ordering_violations == 0

    text = render_report(report)
    assert "(New tickets during US: 2)" in text
    assert "Assignee: Unassigned | Subject: Outage" in text


def test_shift_scan_alone(now, shift_page, sleep_recorder):
    source = ScriptedSource([shift_page])

    result = asyncio.run(_snapshot(source, sleep_recorder).scan_created_during_shift("us", now))

    assert result.matched_ids == {"a1", "a2"}
    assert [t.id for t in result.items] == ["a1", "a2"]
    assert result.stats.stop_reason == StopReason.EARLY_STOP
    assert result.stats.pages == 1


def test_lookback_days_controls_queue_horizon(now, queue_pages, sleep_recorder):
    source = ScriptedSource(queue_pages)

    metrics = asyncio.run(
        _snapshot(source, sleep_recorder, lookback_days=5).scan_queue(now)
    )

    # b2 (8 days old) already crosses the 5 day horizon on page one.
    assert source.cursors == [None]
    assert metrics.lookback_days == 5
    assert metrics.counts[Bucket.AGED] == 1


def test_out_of_order_pages_are_reported(now, make_ticket, sleep_recorder):
    hour = timedelta(hours=1)
    source = ScriptedSource(
        [
            page_of([make_ticket("a1", age=2 * hour)], cursor="c1"),
            page_of([make_ticket("a2", age=1 * hour)]),
            page_of([]),
        ]
    )

    report = asyncio.run(_snapshot(source, sleep_recorder).build_report(Region.US, now))

    assert report.new_in_window == 2
    assert report.ordering_violations == 1
    assert "out of order" in render_report(report)


def test_upstream_failure_aborts_the_run(now, sleep_recorder):
    source = ScriptedSource([UpstreamError("boom", status_code=500)])

    with pytest.raises(UpstreamError):
        asyncio.run(_snapshot(source, sleep_recorder).build_report(Region.EMEA, now))


def test_unknown_region(now, sleep_recorder):
    with pytest.raises(ConfigurationError):
        asyncio.run(_snapshot(ScriptedSource([]), sleep_recorder).build_report("mars", now))


def test_summary_is_logged_once_per_run(now, shift_page, queue_pages, sleep_recorder):
    messages: list[str] = []
    sink = logger.add(messages.append, format="{message}", level="INFO")
    try:
        asyncio.run(
            _snapshot(ScriptedSource([shift_page, *queue_pages]), sleep_recorder).build_report(
                Region.US, now
            )
        )
    finally:
        logger.remove(sink)

    summaries = [m.strip() for m in messages if m.startswith("Snapshot ")]
    assert summaries == [
        "Snapshot us: new=2 sla_pending_high=2 sla_pending_low=1 aged=2 handoff=1 community_open=1"
    ]


def test_report_carries_the_configured_community_source(now, make_ticket, sleep_recorder):
    source = ScriptedSource(
        [page_of([]), page_of([make_ticket("e1", source="email", team_id=None)])]
    )
    snapshot = _snapshot(
        source, sleep_recorder, classifier=ClassifierConfig(community_source="email")
    )

    report = asyncio.run(snapshot.build_report(Region.US, now))

    assert report.community_source == "email"
    assert report.count(Bucket.COMMUNITY_OPEN) == 1
    assert "|Email Community Issues>: 1" in render_report(report)
