# File: cadence/processors/availability_processor.py
"""
Booking availability module for Cadence.
Computes candidate booking dates and per-day time slots from an AvailabilityConfig.

Lead-time policy: a date is offered only when its local start-of-day is at
least `buffer_hours` after the reference time. Everything here takes the
reference time as an argument; nothing reads the clock.
"""

from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Union

from cadence.core.config_manager import Config
from cadence.models import (
    AvailabilityConfig,
    AvailabilityResult,
    ConfigurationError,
    NoAvailability,
    Weekday,
    availability_config_from_payload,
    format_hhmm,
    get_timezone,
    localize,
)
from cadence.utils.logger import setup_logger

logger = setup_logger(__name__)

# Shown when a weekday has no configured hours: 09:00-16:00, lunch hour excluded
DEFAULT_TIME_SLOTS: List[time] = [
    time(9, 0), time(9, 30), time(10, 0), time(10, 30), time(11, 0), time(11, 30),
    time(13, 0), time(13, 30), time(14, 0), time(14, 30), time(15, 0), time(15, 30), time(16, 0),
]


def load_availability_config(owner_id: str, path: Optional[Path] = None) -> AvailabilityConfig:
    """
    Read a raw availability payload from disk and normalize it.

    Args:
        owner_id: Owner of the booking page
        path: JSON file (default: Config.AVAILABILITY_FILE)

    Returns:
        Validated AvailabilityConfig
    """
    payload = Config.load_availability_payload(path)
    config = availability_config_from_payload(
        owner_id,
        payload,
        timezone=Config.DEFAULT_TIMEZONE,
        slot_granularity_minutes=Config.SLOT_GRANULARITY_MINUTES,
        look_ahead_days=Config.LOOK_AHEAD_DAYS,
    )
    logger.info(
        f"Loaded availability for {owner_id}: "
        f"{len(config.per_weekday_hours)} open weekday(s), buffer {config.buffer_hours}h"
    )
    return config


def _local_now(config: AvailabilityConfig, reference_now: datetime) -> datetime:
    """Express the reference time in the owner's timezone (naive = already local)."""
    return localize(config.timezone, reference_now)


def _start_of_day(config: AvailabilityConfig, day: date) -> datetime:
    return localize(config.timezone, datetime.combine(day, time.min))


def candidate_dates(
    config: AvailabilityConfig,
    reference_now: datetime,
    window_days: Optional[int] = None,
) -> List[date]:
    """
    Dates that can be offered for booking.

    Scans forward from the day after `reference_now` for at most `window_days`
    calendar days and keeps every date whose weekday has hours and whose
    start-of-day is at least `buffer_hours` away. The scan never extends
    past the window, so a restrictive config may return few or no dates.

    Args:
        config: Owner availability
        reference_now: Injected "now" (aware, or naive in the owner's timezone)
        window_days: Days to scan (default: config.look_ahead_days)

    Returns:
        Ascending list of candidate dates

    Raises:
        ConfigurationError: if no weekday has hours
        ValueError: if window_days is negative
    """
    if not config.per_weekday_hours:
        raise ConfigurationError(f"No weekday hours configured for owner {config.owner_id!r}")
    if window_days is None:
        window_days = config.look_ahead_days
    if window_days < 0:
        raise ValueError(f"window_days cannot be negative: {window_days}")

    now_local = _local_now(config, reference_now)
    earliest_start = now_local + timedelta(hours=config.buffer_hours)
    first_day = now_local.date() + timedelta(days=1)

    dates = []
    skipped_for_buffer = 0
    for offset in range(window_days):
        day = first_day + timedelta(days=offset)
        if config.hours_for(Weekday(day.weekday())) is None:
            continue
        if _start_of_day(config, day) < earliest_start:
            skipped_for_buffer += 1
            continue
        dates.append(day)

    logger.debug(
        f"Candidate dates for {config.owner_id}: {len(dates)} in {window_days} day(s), "
        f"{skipped_for_buffer} inside the {config.buffer_hours}h buffer"
    )
    return dates


def search_availability(
    config: AvailabilityConfig,
    reference_now: datetime,
    window_days: Optional[int] = None,
) -> Union[AvailabilityResult, NoAvailability]:
    """Like candidate_dates, but reports an exhausted window as NoAvailability."""
    if window_days is None:
        window_days = config.look_ahead_days
    dates = candidate_dates(config, reference_now, window_days)
    if dates:
        return AvailabilityResult(dates=dates)

    window_start = _local_now(config, reference_now).date() + timedelta(days=1)
    window_end = window_start + timedelta(days=max(window_days - 1, 0))
    logger.info(f"No availability for {config.owner_id} between {window_start} and {window_end}")
    return NoAvailability(window_start=window_start, window_end=window_end)


def time_slots(config: AvailabilityConfig, day: date) -> List[time]:
    """
    Bookable times of day for a date.

    Steps by slot_granularity_minutes from the weekday's open time (inclusive)
    to strictly before its close time. A weekday without hours gets
    DEFAULT_TIME_SLOTS so callers always have something to render.

    Example:
        >>> # open 09:00, close 10:30, 30 minute slots
        >>> format_slots(time_slots(config, monday))
        ['09:00', '09:30', '10:00']
    """
    hours = config.hours_for(Weekday(day.weekday()))
    if hours is None:
        logger.debug(f"No hours for {day:%A}; using default slots")
        return list(DEFAULT_TIME_SLOTS)

    step = timedelta(minutes=config.slot_granularity_minutes)
    # Same-day arithmetic on a fixed reference date; close_time < 24:00 so no wraparound
    current = datetime.combine(day, hours.open_time)
    close = datetime.combine(day, hours.close_time)

    slots = []
    while current < close:
        slots.append(current.time())
        current += step
    return slots


def format_slots(slots: List[time]) -> List[str]:
    """Render slots as "HH:MM" strings."""
    return [format_hhmm(slot) for slot in slots]


def slot_datetime(config: AvailabilityConfig, day: date, slot: time) -> datetime:
    """Aware datetime of a slot in the owner's timezone."""
    return localize(config.timezone, datetime.combine(day, slot))


def slots_for_viewer(config: AvailabilityConfig, day: date, viewer_timezone: str) -> List[datetime]:
    """A day's slots re-expressed in the viewer's timezone."""
    viewer_tz = get_timezone(viewer_timezone)
    return [slot_datetime(config, day, slot).astimezone(viewer_tz) for slot in time_slots(config, day)]


def availability_calendar(
    config: AvailabilityConfig,
    reference_now: datetime,
    window_days: Optional[int] = None,
) -> Dict[date, List[time]]:
    """Map every candidate date to its time slots."""
    calendar = {day: time_slots(config, day) for day in candidate_dates(config, reference_now, window_days)}
    logger.info(
        f"Built availability calendar for {config.owner_id}: "
        f"{len(calendar)} date(s), {sum(len(s) for s in calendar.values())} slot(s)"
    )
    return calendar
