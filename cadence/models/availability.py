# File: cadence/models/availability.py
"""
Data models for externally offered booking availability.
"""

import math
from dataclasses import dataclass
from datetime import time
from typing import Any, Dict, FrozenSet, Optional

from .common import format_hhmm, get_timezone, parse_hhmm
from .enums import Weekday
from .errors import ConfigurationError

DEFAULT_OPEN_TIME = time(9, 0)
DEFAULT_CLOSE_TIME = time(17, 0)
DEFAULT_SLOT_GRANULARITY_MINUTES = 30
DEFAULT_LOOK_AHEAD_DAYS = 30
MAX_BUFFER_HOURS = 24 * 366


def _as_time(value, label: str) -> time:
    try:
        return parse_hhmm(value)
    except ValueError as e:
        raise ConfigurationError(f"{label}: {e}")


@dataclass(frozen=True)
class DayHours:
    """Open/close window for one weekday. close_time is exclusive."""
    open_time: time
    close_time: time

    def __post_init__(self):
        """Convert "HH:MM" strings and check the window is not empty."""
        object.__setattr__(self, 'open_time', _as_time(self.open_time, 'openTime'))
        object.__setattr__(self, 'close_time', _as_time(self.close_time, 'closeTime'))
        if self.open_time >= self.close_time:
            raise ConfigurationError(
                f"Open time must be before close time: "
                f"{format_hhmm(self.open_time)}-{format_hhmm(self.close_time)}"
            )

    def to_dict(self) -> dict:
        return {'openTime': format_hhmm(self.open_time), 'closeTime': format_hhmm(self.close_time)}


@dataclass
class AvailabilityConfig:
    """
    Per-weekday business hours and booking constraints of one owner.

    per_weekday_hours keys may be Weekdays, day names or payload integers
    (0 = Sunday, 6 = Saturday).
    """
    owner_id: str
    per_weekday_hours: Dict[Weekday, DayHours]
    buffer_hours: float = 0.0
    slot_granularity_minutes: int = DEFAULT_SLOT_GRANULARITY_MINUTES
    look_ahead_days: int = DEFAULT_LOOK_AHEAD_DAYS
    timezone: str = "UTC"

    def __post_init__(self):
        """Normalize weekday keys and hour windows, then validate limits."""
        normalized = {}
        for raw_day, hours in (self.per_weekday_hours or {}).items():
            try:
                day = Weekday.parse(raw_day)
            except ValueError as e:
                raise ConfigurationError(str(e))
            if isinstance(hours, dict):
                hours = DayHours(
                    hours.get('openTime', hours.get('open_time', DEFAULT_OPEN_TIME)),
                    hours.get('closeTime', hours.get('close_time', DEFAULT_CLOSE_TIME)),
                )
            elif isinstance(hours, (tuple, list)):
                hours = DayHours(*hours)
            normalized[day] = hours
        self.per_weekday_hours = normalized

        if not self.per_weekday_hours:
            raise ConfigurationError(f"No weekday hours configured for owner {self.owner_id!r}")
        try:
            self.buffer_hours = float(self.buffer_hours)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Buffer hours must be a number, got {self.buffer_hours!r}")
        if not math.isfinite(self.buffer_hours):
            raise ConfigurationError(f"Buffer hours must be finite: {self.buffer_hours}")
        if self.buffer_hours < 0:
            raise ConfigurationError(f"Buffer hours cannot be negative: {self.buffer_hours}")
        if self.buffer_hours > MAX_BUFFER_HOURS:
            raise ConfigurationError(
                f"Buffer hours cannot exceed {MAX_BUFFER_HOURS} (one year): {self.buffer_hours}"
            )
        if self.slot_granularity_minutes <= 0:
            raise ConfigurationError(
                f"Slot granularity must be positive: {self.slot_granularity_minutes}"
            )
        if self.look_ahead_days <= 0:
            raise ConfigurationError(f"Look-ahead days must be positive: {self.look_ahead_days}")
        try:
            get_timezone(self.timezone)
        except ValueError as e:
            raise ConfigurationError(str(e))

    @property
    def open_weekdays(self) -> FrozenSet[Weekday]:
        return frozenset(self.per_weekday_hours)

    def hours_for(self, weekday: Weekday) -> Optional[DayHours]:
        """Hours for a weekday, or None when closed."""
        return self.per_weekday_hours.get(weekday)

    def to_dict(self) -> dict:
        """Convert to the allow-list payload shape."""
        ordered = sorted(self.per_weekday_hours, key=lambda d: d.value)
        return {
            'ownerId': self.owner_id,
            'availableDays': [d.name.lower() for d in ordered],
            'availableTimes': {d.name.lower(): self.per_weekday_hours[d].to_dict() for d in ordered},
            'bufferHours': self.buffer_hours,
            'slotGranularityMinutes': self.slot_granularity_minutes,
            'lookAheadDays': self.look_ahead_days,
            'timezone': self.timezone,
        }


def _hours_from_schedule(schedule: Dict[str, Any]) -> Dict[str, DayHours]:
    hours = {}
    for day_name, entry in schedule.items():
        entry = entry or {}
        if not entry.get('enabled'):
            continue
        hours[day_name] = DayHours(
            entry.get('openTime') or DEFAULT_OPEN_TIME,
            entry.get('closeTime') or DEFAULT_CLOSE_TIME,
        )
    return hours


def _hours_from_allow_list(days, times: Dict[str, Any]) -> Dict[str, DayHours]:
    hours = {}
    for day_name in days:
        entry = times.get(day_name) or {}
        hours[day_name] = DayHours(
            entry.get('openTime') or DEFAULT_OPEN_TIME,
            entry.get('closeTime') or DEFAULT_CLOSE_TIME,
        )
    return hours


def availability_config_from_payload(
    owner_id: str,
    payload: Dict[str, Any],
    timezone: str = "UTC",
    slot_granularity_minutes: int = DEFAULT_SLOT_GRANULARITY_MINUTES,
    look_ahead_days: int = DEFAULT_LOOK_AHEAD_DAYS,
) -> AvailabilityConfig:
    """
    Validate and normalize a raw availability payload.

    Two shapes are accepted:
        {"availableDays": ["monday"], "availableTimes": {"monday": {"openTime", "closeTime"}}}
        {"schedule": {"monday": {"enabled": true, "openTime", "closeTime"}}}
    An allowed day without times gets the default 09:00-17:00 window.
    Keyword arguments are fallbacks for keys missing from the payload.

    Raises:
        ConfigurationError: malformed payload or no open weekday.
    """
    if not isinstance(payload, dict):
        raise ConfigurationError("Availability payload must be a mapping")

    if isinstance(payload.get('schedule'), dict):
        hours = _hours_from_schedule(payload['schedule'])
    elif 'availableDays' in payload:
        hours = _hours_from_allow_list(payload.get('availableDays') or [], payload.get('availableTimes') or {})
    else:
        raise ConfigurationError("Availability payload has neither 'schedule' nor 'availableDays'")

    try:
        buffer_hours = float(payload.get('bufferHours', 0) or 0)
        granularity = int(payload.get('slotGranularityMinutes', slot_granularity_minutes))
        window = int(payload.get('lookAheadDays', look_ahead_days))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid numeric setting: {e}")

    return AvailabilityConfig(
        owner_id=owner_id,
        per_weekday_hours=hours,
        buffer_hours=buffer_hours,
        slot_granularity_minutes=granularity,
        look_ahead_days=window,
        timezone=payload.get('timezone') or timezone,
    )
