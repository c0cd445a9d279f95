from __future__ import annotations

import json

from typer.testing import CliRunner

from eventstatus import config
from eventstatus.cli import app
from eventstatus.feed import load_feed

runner = CliRunner()

EVENTS = [
    {
        "id": "past",
        "title": "Founders Dinner",
        "start_time": "2001-05-04T19:00:00Z",
        "end_time": "2001-05-04T22:00:00Z",
        "organizer_id": "org-1",
    },
    {
        "id": "future",
        "title": "Moon Base Conference",
        "start_time": "2999-01-01T09:00:00Z",
        "organizer_id": "org-2",
    },
]


def test_classify_prints_status_and_text():
    result = runner.invoke(
        app,
        [
            "classify",
            "2025-03-14T14:00:00Z",
            "--end",
            "2025-03-14T16:00:00Z",
            "--now",
            "2025-03-13T14:00:00Z",
        ],
    )
    assert result.exit_code == 0
    assert "Status: upcoming" in result.stdout
    assert "When: March 14, 2025 from 2:00 PM to 4:00 PM" in result.stdout
    assert "Starting tomorrow" in result.stdout


def test_classify_json_output():
    result = runner.invoke(
        app,
        ["classify", "2025-03-14T14:00:00Z", "--now", "2025-03-14T20:00:00Z", "--json"],
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {
        "status": "live",
        "date_range_text": "March 14, 2025 at 2:00 PM",
        "time_remaining_text": "",
    }


def test_classify_invalid_schedule_exits_with_error():
    result = runner.invoke(
        app,
        ["classify", "2025-03-14T16:00:00Z", "--end", "2025-03-14T14:00:00Z"],
    )
    assert result.exit_code == 1


def test_classify_unknown_timezone_exits_with_error():
    result = runner.invoke(app, ["classify", "2025-03-14T16:00:00Z", "--tz", "Nope/Nope"])
    assert result.exit_code == 1


def test_events_lists_feed(write_feed):
    write_feed(EVENTS)
    result = runner.invoke(app, ["events"])
    assert result.exit_code == 0
    assert "[completed] Founders Dinner" in result.stdout
    assert "Moon Base Conference" in result.stdout
    assert "Starting in" in result.stdout


def test_events_filters_and_json(write_feed):
    write_feed(EVENTS)
    result = runner.invoke(app, ["events", "--status", "upcoming", "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert [event["id"] for event in payload] == ["future"]


def test_events_missing_feed_exits_with_error(feed_path):
    result = runner.invoke(app, ["events"])
    assert result.exit_code == 1


def test_sweep_command(write_feed):
    write_feed(EVENTS)
    result = runner.invoke(app, ["sweep"])
    assert result.exit_code == 0
    assert "Sweep complete" in result.stdout


def test_seed_data_writes_feed(feed_path):
    result = runner.invoke(app, ["seed-data", "--count", "4", "--organizers", "2"])
    assert result.exit_code == 0
    assert len(load_feed(feed_path)) == 4


def test_config_show_and_update(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "settings", config.settings)
    config_path = tmp_path / "eventstatus.toml"
    result = runner.invoke(
        app,
        [
            "config",
            "--timezone",
            "Europe/Lisbon",
            "--config-path",
            str(config_path),
            "--show",
        ],
    )
    assert result.exit_code == 0
    assert 'timezone = "Europe/Lisbon"' in config_path.read_text()
    assert '"timezone": "Europe/Lisbon"' in result.stdout


def test_config_rejects_unknown_timezone(tmp_path):
    result = runner.invoke(
        app,
        ["config", "--timezone", "Nope/Nope", "--config-path", str(tmp_path / "c.toml")],
    )
    assert result.exit_code == 1
