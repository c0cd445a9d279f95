"""Development helpers for generating a fake event feed."""

from __future__ import annotations

import random
import uuid
from datetime import datetime, timedelta
from pathlib import Path

from faker import Faker

from .feed import EventRecord, write_feed
from .utils import utcnow

_event_types = [
    "gala",
    "concert",
    "marathon",
    "webinar",
    "conference",
    "workshop",
]
_title_suffixes = {
    "gala": "Charity Gala",
    "concert": "Live Concert",
    "marathon": "City Marathon",
    "webinar": "Webinar",
    "conference": "Summit",
    "workshop": "Workshop",
}


def seed_feed(
    path: Path,
    *,
    count: int = 20,
    organizers: int = 3,
    open_ended_percent: int = 30,
    now: datetime | None = None,
) -> dict[str, int]:
    """Write a JSON feed of synthetic events and return summary stats."""
    if count < 0:
        raise ValueError("count must be >= 0")
    if organizers < 1:
        raise ValueError("organizers must be >= 1")
    if not 0 <= open_ended_percent <= 100:
        raise ValueError("open_ended_percent must be between 0 and 100")

    fake = Faker()
    now = now or utcnow()
    organizer_ids = [str(uuid.uuid4()) for _ in range(organizers)]
    stats = {"events": 0, "open_ended": 0, "organizers": organizers}

    records = []
    for _ in range(count):
        start_time = _random_start_time(now)
        end_time = _maybe_end_time(start_time, open_ended_percent)
        event_type = random.choice(_event_types)
        records.append(
            EventRecord(
                id=str(uuid.uuid4()),
                title=f"{fake.city()} {_title_suffixes[event_type]}",
                start_raw=start_time.isoformat(),
                end_raw=end_time.isoformat() if end_time else None,
                location=fake.address().replace("\n", ", "),
                event_type=event_type,
                organizer_id=random.choice(organizer_ids),
            )
        )
        stats["events"] += 1
        if end_time is None:
            stats["open_ended"] += 1

    write_feed(records, path)
    return stats


def _random_start_time(now: datetime) -> datetime:
    day_offset = random.randint(-7, 30)
    minute_offset = random.randint(0, 23 * 60)
    start = now + timedelta(days=day_offset, minutes=minute_offset)
    return start.replace(second=0, microsecond=0)


def _maybe_end_time(start_time: datetime, open_ended_percent: int) -> datetime | None:
    if random.randint(1, 100) <= open_ended_percent:
        return None
    duration_hours = random.randint(1, 6)
    return start_time + timedelta(hours=duration_hours)
