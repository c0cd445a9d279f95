from __future__ import annotations

from datetime import UTC, datetime

import pytest

from eventstatus import scheduler
from eventstatus.feed import FeedError
from eventstatus.sweep import run_status_sweep

EVENTS = [
    {
        "id": "launch",
        "title": "Launch Party",
        "start_time": "2025-03-14T18:00:00Z",
        "end_time": "2025-03-14T20:00:00Z",
    },
    {
        "id": "workshop",
        "title": "Pottery Workshop",
        "start_time": "2025-03-10T10:00:00Z",
    },
    {"id": "broken", "title": "Broken", "start_time": "soon"},
]


def test_sweep_counts_statuses(write_feed):
    write_feed(EVENTS)
    stats = run_status_sweep(datetime(2025, 3, 14, 12, 0, tzinfo=UTC))
    assert stats == {
        "events": 3,
        "upcoming": 1,
        "live": 0,
        "completed": 1,
        "invalid": 1,
        "transitions": 0,
    }


def test_sweep_logs_transitions_between_runs(write_feed, caplog):
    write_feed(EVENTS)
    run_status_sweep(datetime(2025, 3, 14, 12, 0, tzinfo=UTC))
    with caplog.at_level("INFO", logger="uvicorn.error"):
        stats = run_status_sweep(datetime(2025, 3, 14, 19, 0, tzinfo=UTC))
    assert stats["live"] == 1
    assert stats["transitions"] == 1
    assert "launch (Launch Party) changed status: upcoming -> live" in caplog.text

    stats = run_status_sweep(datetime(2025, 3, 14, 21, 0, tzinfo=UTC))
    assert stats["completed"] == 2
    assert stats["transitions"] == 1


def test_sweep_forgets_removed_events(write_feed):
    write_feed(EVENTS)
    run_status_sweep(datetime(2025, 3, 14, 12, 0, tzinfo=UTC))
    write_feed(EVENTS[1:])
    run_status_sweep(datetime(2025, 3, 14, 12, 0, tzinfo=UTC))
    write_feed(EVENTS)
    stats = run_status_sweep(datetime(2025, 3, 14, 19, 0, tzinfo=UTC))
    assert stats["transitions"] == 0


def test_sweep_honours_timezone_override(write_feed):
    write_feed([EVENTS[1]])
    # 03:00 UTC on the 11th is still the 10th in Los Angeles.
    now = datetime(2025, 3, 11, 3, 0, tzinfo=UTC)
    assert run_status_sweep(now)["completed"] == 1
    assert run_status_sweep(now, tz="America/Los_Angeles")["live"] == 1


def test_sweep_raises_for_missing_feed(feed_path):
    with pytest.raises(FeedError):
        run_status_sweep()


def test_scheduler_is_not_started_when_disabled(feed_path):
    assert scheduler.start_scheduler() is None
    scheduler.stop_scheduler()


def test_scheduled_job_skips_missing_feed(feed_path, caplog):
    with caplog.at_level("WARNING", logger="uvicorn.error"):
        scheduler._sweep_job()
    assert "Skipping status sweep" in caplog.text
