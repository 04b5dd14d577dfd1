# File: cadence/core/expander.py
"""
Recurrence expansion for Cadence.
Turns a recurrence rule and an anchor date into concrete occurrence dates.

Expansion is a pure function of (rule, anchor, max_count): no clock,
no shared state, and every loop is bounded by max_count or the terminator.
"""

from datetime import date, timedelta
from typing import Iterator, List, Tuple

from dateutil.relativedelta import relativedelta

from cadence.models.api import ValidationError
from cadence.models.enums import RepeatUnit, WORKING_DAYS, Weekday
from cadence.models.errors import InvalidRecurrenceRule
from cadence.models.recurrence import (
    After, Annually, Custom, Daily, Monthly, NoRecurrence, On,
    RecurrenceRule, Weekdays, Weekly, is_recurring,
)
from cadence.utils.logger import setup_logger

logger = setup_logger(__name__)

UNIT_NAMES = {
    RepeatUnit.DAY: ('Daily', 'days'),
    RepeatUnit.WEEK: ('Weekly', 'weeks'),
    RepeatUnit.MONTH: ('Monthly', 'months'),
    RepeatUnit.YEAR: ('Annually', 'years'),
}


# ==================== Validation ====================

def validate(rule: RecurrenceRule) -> List[ValidationError]:
    """
    Check a rule before it is expanded or stored.

    Args:
        rule: Any recurrence rule variant

    Returns:
        List of validation errors; empty when the rule is valid
    """
    errors: List[ValidationError] = []

    if isinstance(rule, Custom):
        if isinstance(rule.interval, bool) or not isinstance(rule.interval, int):
            errors.append(ValidationError('interval', f"Interval must be a whole number, got {rule.interval!r}"))
        elif rule.interval < 1:
            errors.append(ValidationError('interval', f"Interval must be at least 1, got {rule.interval}"))

        if rule.unit is RepeatUnit.WEEK and not rule.days_of_week:
            errors.append(ValidationError('days_of_week', "A weekly custom rule needs at least one day of the week"))
        elif rule.unit is not RepeatUnit.WEEK and rule.days_of_week:
            errors.append(ValidationError(
                'days_of_week', f"Days of the week only apply to weekly rules, not '{rule.unit.value}'"
            ))

    terminator = getattr(rule, 'terminator', None)
    if isinstance(terminator, After):
        if isinstance(terminator.occurrences, bool) or not isinstance(terminator.occurrences, int):
            errors.append(ValidationError('occurrences', f"Occurrences must be a whole number, got {terminator.occurrences!r}"))
        elif terminator.occurrences < 1:
            errors.append(ValidationError('occurrences', f"Occurrences must be at least 1, got {terminator.occurrences}"))
    elif isinstance(terminator, On) and not isinstance(terminator.until, date):
        errors.append(ValidationError('until', f"End date must be a date, got {terminator.until!r}"))

    return errors


def require_valid(rule: RecurrenceRule) -> None:
    """Raise InvalidRecurrenceRule when validate() reports any error."""
    errors = validate(rule)
    if errors:
        logger.debug(f"Rejected recurrence rule {rule!r}: {'; '.join(str(e) for e in errors)}")
        raise InvalidRecurrenceRule(errors)


# ==================== Date generators ====================

def _step_of(rule: RecurrenceRule) -> Tuple[int, RepeatUnit]:
    if isinstance(rule, Custom):
        return rule.interval, rule.unit
    if isinstance(rule, Daily):
        return 1, RepeatUnit.DAY
    if isinstance(rule, Monthly):
        return 1, RepeatUnit.MONTH
    if isinstance(rule, Annually):
        return 1, RepeatUnit.YEAR
    raise TypeError(f"Rule has no fixed step: {rule!r}")


def _shift(anchor: date, steps: int, unit: RepeatUnit) -> date:
    """anchor + steps units; missing month days clamp to the month's last day."""
    if unit is RepeatUnit.DAY:
        return anchor + timedelta(days=steps)
    if unit is RepeatUnit.WEEK:
        return anchor + timedelta(weeks=steps)
    if unit is RepeatUnit.MONTH:
        return anchor + relativedelta(months=steps)
    return anchor + relativedelta(years=steps)


def _stepped_dates(anchor: date, interval: int, unit: RepeatUnit) -> Iterator[date]:
    # Always measured from the anchor so Jan 31 -> Feb 28 -> Mar 31
    i = 0
    while True:
        yield _shift(anchor, i * interval, unit)
        i += 1


def _weekly_dates(anchor: date, interval: int, days) -> Iterator[date]:
    offsets = sorted(day.value for day in days)
    first_monday = anchor - timedelta(days=anchor.weekday())
    cycle = 0
    while True:
        cycle_start = first_monday + timedelta(weeks=cycle * interval)
        for offset in offsets:
            candidate = cycle_start + timedelta(days=offset)
            if candidate >= anchor:
                yield candidate
        cycle += 1


def _working_dates(anchor: date) -> Iterator[date]:
    for current in _stepped_dates(anchor, 1, RepeatUnit.DAY):
        if Weekday(current.weekday()) in WORKING_DAYS:
            yield current


def _candidates(rule: RecurrenceRule, anchor: date) -> Iterator[date]:
    if isinstance(rule, Weekdays):
        return _working_dates(anchor)
    if isinstance(rule, Weekly):
        days = rule.days_of_week or {Weekday(anchor.weekday())}
        return _weekly_dates(anchor, 1, days)
    if isinstance(rule, Custom) and rule.unit is RepeatUnit.WEEK:
        return _weekly_dates(anchor, rule.interval, rule.days_of_week)
    interval, unit = _step_of(rule)
    return _stepped_dates(anchor, interval, unit)


# ==================== Expansion ====================

def _bounded(rule: RecurrenceRule, anchor_date: date) -> Iterator[date]:
    """Occurrences from the anchor, stopping after an On terminator's date."""
    if isinstance(rule, NoRecurrence):
        yield anchor_date
        return

    until = rule.terminator.until if isinstance(rule.terminator, On) else None
    for current in _candidates(rule, anchor_date):
        if until is not None and current > until:
            return
        yield current


def expand_from(rule: RecurrenceRule, anchor_date: date, start_date: date, max_count: int) -> List[date]:
    """
    Occurrence dates on or after start_date of a series anchored earlier.

    Steps are still measured from anchor_date, so a monthly series anchored
    on the 31st yields Mar 31 even when start_date is Feb 28. An After(n)
    terminator counts only the dates returned.

    Raises:
        InvalidRecurrenceRule: if validate() rejects the rule
        ValueError: if max_count is negative
    """
    if max_count < 0:
        raise ValueError(f"max_count cannot be negative: {max_count}")
    require_valid(rule)

    limit = max_count
    terminator = getattr(rule, 'terminator', None)
    if isinstance(terminator, After):
        limit = min(limit, terminator.occurrences)

    occurrences: List[date] = []
    if limit == 0:
        return occurrences

    for current in _bounded(rule, anchor_date):
        if current < start_date:
            continue
        occurrences.append(current)
        if len(occurrences) >= limit:
            break

    logger.debug(
        f"Expanded {type(rule).__name__} from {anchor_date} starting {start_date}: {len(occurrences)} occurrence(s)"
    )
    return occurrences


def expand(rule: RecurrenceRule, anchor_date: date, max_count: int) -> List[date]:
    """
    Expand a rule into its occurrence dates.

    Args:
        rule: Recurrence rule to expand
        anchor_date: First date of the series
        max_count: Upper bound on the number of dates returned

    Returns:
        Ascending list of at most max_count dates, all >= anchor_date

    Raises:
        InvalidRecurrenceRule: if validate() rejects the rule
        ValueError: if max_count is negative

    Example:
        >>> expand(Custom(interval=2, unit=RepeatUnit.DAY), date(2025, 1, 1), 3)
        [datetime.date(2025, 1, 1), datetime.date(2025, 1, 3), datetime.date(2025, 1, 5)]
    """
    return expand_from(rule, anchor_date, anchor_date, max_count)


def occurs_on(rule: RecurrenceRule, anchor_date: date, day: date, max_count: int) -> bool:
    """Check whether `day` is one of the first max_count occurrences."""
    if day < anchor_date:
        return False
    return day in expand(rule, anchor_date, max_count)


def occurrence_index(rule: RecurrenceRule, anchor_date: date, day: date, max_count: int) -> int:
    """Zero-based position of `day` in the series. Raises ValueError if it is not an occurrence."""
    occurrences = expand(rule, anchor_date, max_count)
    try:
        return occurrences.index(day)
    except ValueError:
        raise ValueError(f"{day} is not an occurrence of the series starting {anchor_date}")


# ==================== Description ====================

def _format_day(value: date) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def describe(rule: RecurrenceRule) -> str:
    """Human-readable summary, e.g. "Every 2 weeks on Mon, Wed, 4 times"."""
    if not is_recurring(rule):
        return 'Does not repeat'

    if isinstance(rule, Weekdays):
        text = 'Every weekday (Monday to Friday)'
    elif isinstance(rule, (Weekly, Custom)) and (isinstance(rule, Weekly) or rule.unit is RepeatUnit.WEEK):
        interval = rule.interval if isinstance(rule, Custom) else 1
        text = 'Weekly' if interval == 1 else f"Every {interval} weeks"
        if rule.days_of_week:
            ordered = sorted(rule.days_of_week, key=lambda d: d.value)
            text += ' on ' + ', '.join(d.short_name for d in ordered)
    else:
        interval, unit = _step_of(rule)
        single, plural = UNIT_NAMES[unit]
        text = single if interval == 1 else f"Every {interval} {plural}"

    terminator = rule.terminator
    if isinstance(terminator, On):
        text += f" until {_format_day(terminator.until)}"
    elif isinstance(terminator, After):
        text += f", {terminator.occurrences} times"
    return text
