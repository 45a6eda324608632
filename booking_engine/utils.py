"""Shared time helpers used across the booking engine."""

import re
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_hhmm(value: str) -> time:
    """Parse a 24h ``HH:MM`` string into a ``time``.

    Examples:
        >>> parse_hhmm("09:30")
        datetime.time(9, 30)
    """
    match = _HHMM.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Expected 'HH:MM' (24h), got {value!r}")
    return time(int(match.group(1)), int(match.group(2)))


def resolve_timezone(name: str) -> ZoneInfo:
    """Look up an IANA timezone, raising ValueError for unknown names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {name!r}") from None


def to_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to UTC. Naive values are rejected."""
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"Datetime must be timezone-aware, got {value.isoformat()}")
    return value.astimezone(timezone.utc)


def at_local(day: date, clock_time: time, tz: ZoneInfo) -> datetime:
    """UTC instant of a wall-clock time on a local calendar day."""
    return datetime.combine(day, clock_time, tzinfo=tz).astimezone(timezone.utc)


def local_day_bounds(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """UTC [start, end) of a local calendar day."""
    start = at_local(day, time(0, 0), tz)
    end = at_local(day + timedelta(days=1), time(0, 0), tz)
    return start, end


def local_date(value: datetime, tz: ZoneInfo) -> date:
    """Calendar day of an instant as seen in the given timezone."""
    return to_utc(value).astimezone(tz).date()


def minutes(count: int) -> timedelta:
    return timedelta(minutes=count)


def format_label(value: datetime, tz: ZoneInfo, fmt: str) -> str:
    """Render an instant as a local display label."""
    return to_utc(value).astimezone(tz).strftime(fmt)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
