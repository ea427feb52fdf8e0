from __future__ import annotations

import re
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

_TIME_RE = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?(?::\d{2})?\s*(am|pm)?\s*$", re.IGNORECASE)


def parse_event_date(value: str) -> date:
    """Parse YYYY-MM-DD (a trailing time part is ignored)."""
    try:
        return date.fromisoformat(value.strip()[:10])
    except (ValueError, AttributeError):
        raise ValueError(f"Invalid event date: {value!r}") from None


def parse_time_of_day(value: str | None, default: str) -> time:
    """Parse '17:00', '5pm' or '5:30 pm'. Empty values fall back to ``default``."""
    text = (value or "").strip() or default
    match = _TIME_RE.match(text)
    if not match:
        raise ValueError(f"Invalid time of day: {text!r}")

    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    meridiem = (match.group(3) or "").lower()
    if meridiem == "pm" and hour < 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0

    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time of day: {text!r}")
    return time(hour, minute)


def event_window(
    event_date: str,
    start_time: str | None,
    end_time: str | None,
    timezone: ZoneInfo,
    default_start: str = "17:00",
    default_end: str = "19:30",
) -> tuple[datetime, datetime]:
    """Combine the event date with its start/end times as wall-clock times in ``timezone``."""
    day = parse_event_date(event_date)
    start = datetime.combine(day, parse_time_of_day(start_time, default_start), tzinfo=timezone)
    end = datetime.combine(day, parse_time_of_day(end_time, default_end), tzinfo=timezone)
    return start, end


def start_date_of(value: str | None, timezone: ZoneInfo) -> date | None:
    """Calendar date of a CRM timestamp, seen from ``timezone``."""
    if not value:
        return None
    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone)
    return parsed.date()
