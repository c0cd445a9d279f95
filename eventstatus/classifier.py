"""Time-based status classification and display strings for events."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime, time, tzinfo
from enum import Enum

from .utils import (
    format_clock_time,
    format_long_date,
    parse_instant,
    utcnow,
)

SECONDS_PER_DAY = 60 * 60 * 24
# Last representable instant of a day at millisecond precision.
END_OF_DAY = time(23, 59, 59, 999000)


class Status(str, Enum):
    UPCOMING = "upcoming"
    LIVE = "live"
    COMPLETED = "completed"

    def __str__(self) -> str:
        return self.value


class InvalidSchedule(ValueError):
    """Raised when an event's start/end instants cannot be classified."""


@dataclass(frozen=True)
class EventSchedule:
    start: datetime
    end: datetime | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.start, datetime):
            raise InvalidSchedule("Event start time is required")
        if self.start.tzinfo is None:
            raise InvalidSchedule("Event start time must be timezone aware")
        if self.end is None:
            return
        if not isinstance(self.end, datetime) or self.end.tzinfo is None:
            raise InvalidSchedule("Event end time must be a timezone aware datetime")
        if self.end.astimezone(UTC) < self.start.astimezone(UTC):
            raise InvalidSchedule("Event end time is before its start time")

    @classmethod
    def from_values(
        cls,
        start: datetime | str | None,
        end: datetime | str | None = None,
        *,
        tz: tzinfo = UTC,
    ) -> "EventSchedule":
        """Build a schedule from stored values (ISO strings or datetimes)."""
        if start is None or (isinstance(start, str) and not start.strip()):
            raise InvalidSchedule("Event start time is required")
        try:
            start_dt = parse_instant(start, tz)
        except ValueError as exc:
            raise InvalidSchedule(f"Invalid start time: {exc}") from exc
        end_dt = None
        if end is not None and not (isinstance(end, str) and not end.strip()):
            try:
                end_dt = parse_instant(end, tz)
            except ValueError as exc:
                raise InvalidSchedule(f"Invalid end time: {exc}") from exc
        return cls(start=start_dt, end=end_dt)

    def window(self, tz: tzinfo) -> tuple[datetime, datetime]:
        """Return the interval the event is considered live for.

        Without an explicit end the event occupies the whole local calendar
        day of its start. Bounds are returned in UTC so comparisons never
        fall back to wall-clock ordering within one zone.
        """
        if self.end is not None:
            return self.start.astimezone(UTC), self.end.astimezone(UTC)
        day = self.start.astimezone(tz).date()
        day_start = datetime.combine(day, time.min, tzinfo=tz)
        day_end = datetime.combine(day, END_OF_DAY, tzinfo=tz)
        return day_start.astimezone(UTC), day_end.astimezone(UTC)


@dataclass(frozen=True)
class ScheduleView:
    status: Status
    date_range_text: str
    time_remaining_text: str

    def as_dict(self) -> dict[str, str]:
        return {
            "status": self.status.value,
            "date_range_text": self.date_range_text,
            "time_remaining_text": self.time_remaining_text,
        }


def _aware(now: datetime, tz: tzinfo) -> datetime:
    """Return ``now`` as a UTC instant, reading naive values in ``tz``."""
    if not isinstance(now, datetime):
        raise InvalidSchedule(f"Invalid current time {now!r}")
    if now.tzinfo is None:
        now = now.replace(tzinfo=tz)
    return now.astimezone(UTC)


def classify(schedule: EventSchedule, now: datetime, *, tz: tzinfo = UTC) -> Status:
    """Return whether the event is upcoming, live, or completed at ``now``."""
    now = _aware(now, tz)
    window_start, window_end = schedule.window(tz)
    if window_start <= now <= window_end:
        return Status.LIVE
    if now < window_start:
        return Status.UPCOMING
    return Status.COMPLETED


def _date_and_time(value: datetime) -> str:
    return f"{format_long_date(value)} at {format_clock_time(value)}"


def format_date_range(schedule: EventSchedule, *, tz: tzinfo = UTC) -> str:
    """Return e.g. 'March 14, 2025 from 2:00 PM to 4:00 PM'."""
    start = schedule.start.astimezone(tz)
    if schedule.end is None:
        return _date_and_time(start)

    end = schedule.end.astimezone(tz)
    if start.strftime("%Y-%m-%d") == end.strftime("%Y-%m-%d"):
        return (
            f"{format_long_date(start)} from {format_clock_time(start)} "
            f"to {format_clock_time(end)}"
        )
    return f"{_date_and_time(start)} to {_date_and_time(end)}"


def format_time_remaining(
    schedule: EventSchedule,
    now: datetime,
    status: Status | str,
    *,
    tz: tzinfo = UTC,
) -> str:
    """Return a countdown phrase for upcoming events, otherwise ''.

    A naive ``now`` is read in ``tz``, the same way ``classify`` reads it.
    """
    if status != Status.UPCOMING:
        return ""
    now = _aware(now, tz)
    seconds = (schedule.start - now).total_seconds()
    days_remaining = math.ceil(seconds / SECONDS_PER_DAY)
    if days_remaining == 0:
        return "Starting today"
    if days_remaining == 1:
        return "Starting tomorrow"
    return f"Starting in {days_remaining} days"


def describe(
    schedule: EventSchedule,
    now: datetime | None = None,
    *,
    tz: tzinfo = UTC,
) -> ScheduleView:
    """Classify and format a schedule against a single captured ``now``."""
    now = _aware(now if now is not None else utcnow(), tz)
    status = classify(schedule, now, tz=tz)
    return ScheduleView(
        status=status,
        date_range_text=format_date_range(schedule, tz=tz),
        time_remaining_text=format_time_remaining(schedule, now, status, tz=tz),
    )
