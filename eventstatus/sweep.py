"""Periodic reclassification of the event feed."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path

from . import config
from .feed import INVALID_STATUS, classify_feed, load_feed
from .utils import resolve_timezone, utcnow

# Use uvicorn's error logger so sweep messages show up with level prefixes.
logger = logging.getLogger("uvicorn.error")

_last_statuses: dict[str, str] = {}
_lock = threading.Lock()


def reset_sweep_state() -> None:
    with _lock:
        _last_statuses.clear()


def run_status_sweep(
    now: datetime | None = None,
    *,
    path: Path | None = None,
    tz: str | None = None,
) -> dict:
    """Reclassify every event in the feed and log status transitions."""
    settings = config.settings
    feed_path = Path(path or settings.feed_path)
    zone = resolve_timezone(tz or settings.timezone)
    now = now or utcnow()
    stats = {
        "events": 0,
        "upcoming": 0,
        "live": 0,
        "completed": 0,
        INVALID_STATUS: 0,
        "transitions": 0,
    }

    logger.info("Status sweep started (feed=%s, timezone=%s)", feed_path, zone)
    events = classify_feed(load_feed(feed_path), now, tz=zone)

    with _lock:
        seen: set[str] = set()
        for event in events:
            event_id = event.record.id
            seen.add(event_id)
            stats["events"] += 1
            stats[event.status] += 1
            previous = _last_statuses.get(event_id)
            if previous is not None and previous != event.status:
                stats["transitions"] += 1
                logger.info(
                    "Event %s (%s) changed status: %s -> %s",
                    event_id,
                    event.record.title,
                    previous,
                    event.status,
                )
            _last_statuses[event_id] = event.status
        for stale_id in set(_last_statuses) - seen:
            del _last_statuses[stale_id]

    logger.info("Status sweep complete: %s", stats)
    return stats
