# File: cadence/models/common.py

import re
from datetime import date, datetime, time
from typing import Optional, Union

import pytz

HHMM_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def parse_iso_datetime(date_str: Optional[str]) -> Optional[datetime]:
    """Robustly parse ISO date strings with 'Z' or offsets."""
    if not date_str:
        return None
    try:
        # Python < 3.11 doesn't handle 'Z' natively in fromisoformat
        clean_str = date_str.replace('Z', '+00:00')
        return datetime.fromisoformat(clean_str)
    except ValueError:
        # Fallback for simple date strings without time
        try:
            return datetime.strptime(date_str, "%Y-%m-%d")
        except ValueError:
            return None


def parse_iso_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse a calendar date from a date, datetime or ISO string."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_iso_datetime(str(value))
    return parsed.date() if parsed else None


def parse_hhmm(value: Union[str, time]) -> time:
    """Parse an "HH:MM" string into a time. Raises ValueError when malformed."""
    if isinstance(value, time):
        return value
    match = HHMM_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Invalid time of day (expected HH:MM): {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time of day (expected HH:MM): {value!r}")
    return time(hour=hour, minute=minute)


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def get_timezone(name: str):
    """Resolve an IANA timezone id, raising ValueError for unknown ids."""
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        raise ValueError(f"Unknown timezone: {name!r}")


def localize(tz_name: str, wall_clock: datetime) -> datetime:
    """Attach a named timezone to a naive wall-clock datetime (DST aware)."""
    tz = get_timezone(tz_name)
    if wall_clock.tzinfo is not None:
        return wall_clock.astimezone(tz)
    return tz.normalize(tz.localize(wall_clock))
