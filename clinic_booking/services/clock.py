"""Time-of-day parsing and the clinic's display conventions."""

from __future__ import annotations

from datetime import datetime, time, timezone, tzinfo
import re

_TIME_24 = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$", re.ASCII)
_TIME_12 = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?\s*(AM|PM)$", re.ASCII)

MINUTES_PER_DAY = 24 * 60


def normalize_time(raw: object) -> str | None:
    """Return ``HH:MM:SS`` for a 24h or 12h (AM/PM) time string, else ``None``.

    Accepted shapes are ``H:MM``, ``H:MM:SS`` and the same followed by
    ``AM``/``PM`` (case-insensitive). Minutes and seconds need two digits.
    """

    if not isinstance(raw, str):
        return None
    text = raw.strip().upper()
    if not text:
        return None

    match = _TIME_12.match(text)
    if match:
        hour, minute, second = int(match.group(1)), int(match.group(2)), int(match.group(3) or 0)
        if not 1 <= hour <= 12:
            return None
        if match.group(4) == "AM":
            hour = 0 if hour == 12 else hour
        else:
            hour = 12 if hour == 12 else hour + 12
    else:
        match = _TIME_24.match(text)
        if not match:
            return None
        hour, minute, second = int(match.group(1)), int(match.group(2)), int(match.group(3) or 0)
        if not 0 <= hour <= 23:
            return None

    if not (0 <= minute <= 59 and 0 <= second <= 59):
        return None
    return f"{hour:02d}:{minute:02d}:{second:02d}"


def parse_time(value: str) -> time:
    """Parse a canonical ``HH:MM:SS`` string."""

    return time.fromisoformat(value)


def minute_of_day(value: str) -> int:
    parsed = parse_time(value)
    return parsed.hour * 60 + parsed.minute


def time_from_minutes(total_minutes: int) -> str:
    total_minutes %= MINUTES_PER_DAY
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}:00"


def _twelve_hour(hour: int) -> tuple[int, str]:
    return hour % 12 or 12, "PM" if hour >= 12 else "AM"


def format_clock_label(value: str) -> str:
    """Render a canonical time as ``h:MM:SS AM``."""

    parsed = parse_time(value)
    hour, ampm = _twelve_hour(parsed.hour)
    return f"{hour}:{parsed.minute:02d}:{parsed.second:02d} {ampm}"


def format_short_label(total_minutes: int) -> str:
    """Render minutes since midnight as ``h:MM AM``."""

    total_minutes %= MINUTES_PER_DAY
    hour, ampm = _twelve_hour(total_minutes // 60)
    return f"{hour}:{total_minutes % 60:02d} {ampm}"


def format_timestamp(value: str, zone: tzinfo) -> str:
    """Render a stored ISO timestamp as ``M/D/YYYY, h:MM:SS AM`` in ``zone``."""

    stamp = datetime.fromisoformat(value)
    if stamp.tzinfo is None:
        # rows written without an offset are UTC
        stamp = stamp.replace(tzinfo=timezone.utc).astimezone(zone)
    else:
        stamp = stamp.astimezone(zone)
    hour, ampm = _twelve_hour(stamp.hour)
    return f"{stamp.month}/{stamp.day}/{stamp.year}, {hour}:{stamp.minute:02d}:{stamp.second:02d} {ampm}"
