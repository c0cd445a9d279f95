from __future__ import annotations

from datetime import UTC, datetime

import pytest

from eventstatus.feed import classify_feed, load_feed
from eventstatus.seed import seed_feed

NOW = datetime(2025, 3, 14, 12, 0, tzinfo=UTC)


def test_seed_feed_writes_requested_events(tmp_path):
    path = tmp_path / "data" / "events.json"
    stats = seed_feed(path, count=12, organizers=2, open_ended_percent=50, now=NOW)

    records = load_feed(path)
    assert stats["events"] == 12
    assert len(records) == 12
    assert len({r.organizer_id for r in records}) <= 2
    assert sum(1 for r in records if r.end_raw is None) == stats["open_ended"]
    assert all(r.event_type in {"gala", "concert", "marathon", "webinar", "conference", "workshop"} for r in records)
    assert all(e.status != "invalid" for e in classify_feed(records, NOW))


def test_seed_feed_open_ended_extremes(tmp_path):
    all_open = tmp_path / "open.json"
    seed_feed(all_open, count=5, open_ended_percent=100, now=NOW)
    assert all(r.end_raw is None for r in load_feed(all_open))

    all_closed = tmp_path / "closed.json"
    seed_feed(all_closed, count=5, open_ended_percent=0, now=NOW)
    assert all(r.end_raw is not None for r in load_feed(all_closed))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"count": -1},
        {"organizers": 0},
        {"open_ended_percent": 101},
    ],
)
def test_seed_feed_validates_arguments(tmp_path, kwargs):
    with pytest.raises(ValueError):
        seed_feed(tmp_path / "events.json", **kwargs)
