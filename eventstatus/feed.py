"""Loading and filtering of upstream event records."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from pathlib import Path
from typing import Any

from .classifier import EventSchedule, InvalidSchedule, ScheduleView, Status, describe

# Use uvicorn's error logger so feed messages show up with level prefixes.
logger = logging.getLogger("uvicorn.error")

INVALID_STATUS = "invalid"
STATUS_FILTERS = {"all", INVALID_STATUS, *(status.value for status in Status)}

STATUS_BADGES = {
    Status.UPCOMING.value: "bg-blue-100 text-blue-800",
    Status.LIVE.value: "bg-green-100 text-green-800",
    Status.COMPLETED.value: "bg-gray-100 text-gray-800",
}
DEFAULT_BADGE = "bg-gray-100 text-gray-800"

STATUS_LABELS = {
    Status.UPCOMING.value: "Upcoming",
    Status.LIVE.value: "Live Now",
    Status.COMPLETED.value: "Completed",
    INVALID_STATUS: "Needs attention",
}


class FeedError(RuntimeError):
    """Raised when the event feed cannot be read."""


@dataclass(frozen=True)
class EventRecord:
    id: str
    title: str
    start_raw: Any
    end_raw: Any = None
    location: str | None = None
    event_type: str | None = None
    organizer_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EventRecord":
        """Accept both snake_case keys and the document store's field names."""
        record_id = data.get("id") or data.get("_id")
        if not record_id:
            raise ValueError("Event record is missing an id")
        return cls(
            id=str(record_id),
            title=str(data.get("title") or "Untitled event"),
            start_raw=data.get("start_time", data.get("date")),
            end_raw=data.get("end_time", data.get("endDate")),
            location=data.get("location"),
            event_type=data.get("type") or data.get("event_type"),
            organizer_id=data.get("organizer_id") or data.get("userId"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "start_time": _raw_text(self.start_raw),
            "end_time": _raw_text(self.end_raw),
            "location": self.location,
            "type": self.event_type,
            "organizer_id": self.organizer_id,
        }


@dataclass(frozen=True)
class ClassifiedEvent:
    record: EventRecord
    schedule: EventSchedule | None
    view: ScheduleView | None
    error: str | None = None

    @property
    def status(self) -> str:
        if self.view is None:
            return INVALID_STATUS
        return self.view.status.value

    @property
    def badge_class(self) -> str:
        return STATUS_BADGES.get(self.status, DEFAULT_BADGE)

    @property
    def date_range_text(self) -> str:
        if self.view is None:
            return "No date specified"
        return self.view.date_range_text

    @property
    def time_remaining_text(self) -> str:
        return self.view.time_remaining_text if self.view else ""


def _raw_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def load_feed(path: Path) -> list[EventRecord]:
    """Read event records from a JSON array or an ``{"events": [...]}`` object.

    Entries that are not objects or lack an id are logged and skipped.
    """
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise FeedError(f"Event feed not found at {path}") from exc
    except json.JSONDecodeError as exc:
        raise FeedError(f"Event feed at {path} is not valid JSON: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get("events", [])
    if not isinstance(payload, list):
        raise FeedError(f"Event feed at {path} must contain a list of events")

    records: list[EventRecord] = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            logger.warning("Skipping event feed entry %d: not an object", index)
            continue
        try:
            records.append(EventRecord.from_dict(item))
        except ValueError as exc:
            logger.warning("Skipping event feed entry %d: %s", index, exc)
    return records


def write_feed(records: Iterable[EventRecord], path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"events": [record.to_dict() for record in records]}
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def classify_record(
    record: EventRecord, now: datetime, *, tz: tzinfo = UTC
) -> ClassifiedEvent:
    """Classify one record; invalid schedules are reported, not raised."""
    try:
        schedule = EventSchedule.from_values(record.start_raw, record.end_raw, tz=tz)
    except InvalidSchedule as exc:
        logger.warning("Event %s has an invalid schedule: %s", record.id, exc)
        return ClassifiedEvent(record=record, schedule=None, view=None, error=str(exc))
    return ClassifiedEvent(
        record=record, schedule=schedule, view=describe(schedule, now, tz=tz)
    )


def classify_feed(
    records: Iterable[EventRecord], now: datetime, *, tz: tzinfo = UTC
) -> list[ClassifiedEvent]:
    """Classify every record against the same ``now``."""
    return [classify_record(record, now, tz=tz) for record in records]


def _matches_query(record: EventRecord, query: str) -> bool:
    needle = query.lower()
    haystacks = (record.title, record.location, record.event_type)
    return any(needle in (value or "").lower() for value in haystacks)


def filter_events(
    events: Iterable[ClassifiedEvent],
    *,
    query: str | None = None,
    status: str | None = None,
    organizer_id: str | None = None,
) -> list[ClassifiedEvent]:
    normalized_status = (status or "all").strip().lower()
    if normalized_status not in STATUS_FILTERS:
        raise ValueError(f"Unknown status filter {status!r}")
    cleaned_query = (query or "").strip()

    results = []
    for event in events:
        if organizer_id and event.record.organizer_id != organizer_id:
            continue
        if cleaned_query and not _matches_query(event.record, cleaned_query):
            continue
        if normalized_status != "all" and event.status != normalized_status:
            continue
        results.append(event)
    return results


def sort_events(events: Iterable[ClassifiedEvent]) -> list[ClassifiedEvent]:
    """Order by start instant with invalid records last."""

    def sort_key(event: ClassifiedEvent):
        if event.schedule is None:
            return (1, 0.0, event.record.id)
        return (0, event.schedule.start.timestamp(), event.record.id)

    return sorted(events, key=sort_key)


def status_counts(events: Sequence[ClassifiedEvent]) -> dict[str, int]:
    counts = {status.value: 0 for status in Status}
    counts[INVALID_STATUS] = 0
    for event in events:
        counts[event.status] += 1
    counts["all"] = len(events)
    return counts


def serialize_event(event: ClassifiedEvent) -> dict[str, Any]:
    payload = {
        **event.record.to_dict(),
        "status": event.status,
        "badge_class": event.badge_class,
        "date_range_text": event.date_range_text,
        "time_remaining_text": event.time_remaining_text,
        "links": {"self": f"/api/v1/events/{event.record.id}"},
    }
    if event.error:
        payload["error"] = event.error
    return payload
