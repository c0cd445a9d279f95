"""Utility helpers for EventStatus."""

from __future__ import annotations

from datetime import UTC, datetime, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utcnow() -> datetime:
    """Return an aware UTC datetime."""

    return datetime.now(UTC)


def resolve_timezone(name: str | tzinfo | None) -> tzinfo:
    """Return a tzinfo for an IANA zone name, defaulting to UTC."""

    if isinstance(name, tzinfo):
        return name
    cleaned = (name or "").strip()
    if not cleaned or cleaned.upper() == "UTC":
        return UTC
    try:
        return ZoneInfo(cleaned)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone {cleaned!r}") from exc


def parse_instant(value: datetime | str | None, tz: tzinfo) -> datetime:
    """Return an aware datetime for ``value``.

    Strings are parsed as ISO 8601 (a trailing ``Z`` is accepted). Values
    without an offset are treated as wall-clock time in ``tz``.
    """

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            raise ValueError("Empty timestamp")
        if raw.endswith(("Z", "z")):
            raw = f"{raw[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise ValueError(f"Invalid timestamp {value!r}") from exc
    else:
        raise ValueError(f"Unsupported timestamp {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz)
    return parsed


def format_long_date(value: datetime) -> str:
    """Return a date such as 'March 14, 2025'."""

    return f"{value:%B} {value.day}, {value.year}"


def format_clock_time(value: datetime) -> str:
    """Return a 12-hour clock time such as '2:30 PM'."""

    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {meridiem}"


def humanize_time(value: datetime | None, *, now: datetime | None = None) -> str:
    """Return a friendly string such as 'in 2 weeks' or '3 hours ago'."""
    if not value:
        return ""
    now = now or utcnow()
    delta_seconds = (value - now).total_seconds()
    past = delta_seconds < 0
    seconds = abs(delta_seconds)

    units = [
        ("year", 365 * 24 * 3600),
        ("month", 30 * 24 * 3600),
        ("week", 7 * 24 * 3600),
        ("day", 24 * 3600),
        ("hour", 3600),
        ("minute", 60),
    ]

    amount = 0
    label = "minute"
    for name, step in units:
        value_count = int(seconds // step)
        if value_count >= 1:
            amount = value_count
            label = name
            break
    else:
        return "in moments" if not past else "moments ago"

    if amount != 1:
        label = f"{label}s"
    if past:
        return f"{amount} {label} ago"
    return f"in {amount} {label}"
