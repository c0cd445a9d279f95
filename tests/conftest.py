"""Shared pytest fixtures for EventStatus."""

from __future__ import annotations

import json
import sys
from dataclasses import replace
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from eventstatus import config
from eventstatus.sweep import reset_sweep_state


@pytest.fixture()
def feed_path(tmp_path, monkeypatch):
    """Point the settings at an isolated feed file with the scheduler off."""

    path = tmp_path / "events.json"
    monkeypatch.setattr(
        config,
        "settings",
        replace(
            config.settings,
            data_dir=tmp_path,
            feed_path=path,
            timezone="UTC",
            enable_scheduler=False,
            events_per_page=25,
        ),
    )
    reset_sweep_state()
    yield path
    reset_sweep_state()


@pytest.fixture()
def write_feed(feed_path):
    """Write raw event dictionaries to the configured feed."""

    def _write(events: list[dict]) -> Path:
        feed_path.write_text(json.dumps({"events": events}), encoding="utf-8")
        return feed_path

    return _write
