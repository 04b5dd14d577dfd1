# File: cadence/models/recurrence.py
"""
Recurrence rule grammar.

A rule is exactly one of the variant classes below; the class is the tag,
so a rule can never carry a payload that contradicts its type.
"""

from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Dict, FrozenSet, Union

from .api import ValidationError
from .common import parse_iso_date
from .enums import RepeatUnit, Weekday
from .errors import InvalidRecurrenceRule


# ==================== Terminators ====================

@dataclass(frozen=True)
class Never:
    """The series repeats until the caller's bound is reached."""


@dataclass(frozen=True)
class After:
    """The series stops after a fixed number of occurrences."""
    occurrences: int


@dataclass(frozen=True)
class On:
    """The series stops after the given date (inclusive)."""
    until: date


Terminator = Union[Never, After, On]

NEVER = Never()


def _freeze_days(days) -> FrozenSet[Weekday]:
    return frozenset(Weekday.parse(d) for d in (days or ()))


# ==================== Rule variants ====================

@dataclass(frozen=True)
class NoRecurrence:
    """A single, non-repeating event."""


@dataclass(frozen=True)
class Daily:
    terminator: Terminator = NEVER


@dataclass(frozen=True)
class Weekly:
    """Every week; on the anchor's weekday unless days are given."""
    days_of_week: FrozenSet[Weekday] = frozenset()
    terminator: Terminator = NEVER

    def __post_init__(self):
        object.__setattr__(self, 'days_of_week', _freeze_days(self.days_of_week))


@dataclass(frozen=True)
class Monthly:
    terminator: Terminator = NEVER


@dataclass(frozen=True)
class Annually:
    terminator: Terminator = NEVER


@dataclass(frozen=True)
class Weekdays:
    """Every Monday to Friday."""
    terminator: Terminator = NEVER


@dataclass(frozen=True)
class Custom:
    """Every `interval` units; week rules also name their days."""
    interval: int
    unit: RepeatUnit
    days_of_week: FrozenSet[Weekday] = frozenset()
    terminator: Terminator = NEVER

    def __post_init__(self):
        if isinstance(self.unit, str):
            object.__setattr__(self, 'unit', RepeatUnit(self.unit))
        object.__setattr__(self, 'days_of_week', _freeze_days(self.days_of_week))


RecurrenceRule = Union[NoRecurrence, Daily, Weekly, Monthly, Annually, Weekdays, Custom]

NO_RECURRENCE = NoRecurrence()

PRESETS = {
    'daily': Daily,
    'weekly': Weekly,
    'monthly': Monthly,
    'annually': Annually,
    'weekdays': Weekdays,
}

# Presets sent with interval > 1 are the matching custom rule
PRESET_UNITS = {
    'daily': RepeatUnit.DAY,
    'weekly': RepeatUnit.WEEK,
    'monthly': RepeatUnit.MONTH,
    'annually': RepeatUnit.YEAR,
}


def is_recurring(rule: RecurrenceRule) -> bool:
    return not isinstance(rule, NoRecurrence)


def rule_type(rule: RecurrenceRule) -> str:
    """Wire name of the rule's variant ("none", "daily", ..., "custom")."""
    if isinstance(rule, NoRecurrence):
        return 'none'
    if isinstance(rule, Custom):
        return 'custom'
    for name, cls in PRESETS.items():
        if isinstance(rule, cls):
            return name
    raise TypeError(f"Not a recurrence rule: {rule!r}")


def with_terminator(rule: RecurrenceRule, terminator: Terminator) -> RecurrenceRule:
    """Return a copy of a recurring rule with a different terminator."""
    if not is_recurring(rule):
        raise ValueError("A non-recurring rule has no terminator")
    return replace(rule, terminator=terminator)


# ==================== Parsing ====================

def _terminator_from_dict(data: Dict[str, Any]) -> Terminator:
    legacy_end = data.get('end') if isinstance(data.get('end'), dict) else {}
    end_type = str(data.get('endType') or legacy_end.get('type') or 'never').lower()

    if end_type == 'never':
        return NEVER

    if end_type == 'after':
        raw = data.get('occurrences', legacy_end.get('occurrences'))
        try:
            return After(int(raw))
        except (TypeError, ValueError):
            raise InvalidRecurrenceRule([
                ValidationError('terminator', f"'after' needs a whole number of occurrences, got {raw!r}")
            ])

    if end_type == 'on':
        raw = data.get('endDate', legacy_end.get('date'))
        until = parse_iso_date(raw)
        if until is None:
            raise InvalidRecurrenceRule([
                ValidationError('terminator', f"'on' needs an end date, got {raw!r}")
            ])
        return On(until)

    raise InvalidRecurrenceRule([ValidationError('terminator', f"Unknown end type: {end_type!r}")])


def rule_from_dict(data: Union[str, Dict[str, Any], None]) -> RecurrenceRule:
    """
    Normalize any recurrence payload into a single rule variant.

    Accepts a bare tag ("weekly"), {"type": ..., "config": {...}} and the
    legacy custom-modal shape ({"repeatEvery", "repeatOn", "end"}).
    Weekday integers are numbered from Sunday (0) to Saturday (6).

    Raises:
        InvalidRecurrenceRule: when the payload cannot describe any rule.
            Out-of-range values (interval 0, After(0)) are kept so that
            validate() can report them.
    """
    if data is None:
        return NO_RECURRENCE
    if isinstance(data, str):
        data = {'type': data}

    kind = str(data.get('type') or 'none').strip().lower()
    nested = data.get('config')
    payload = {**data, **nested} if isinstance(nested, dict) else data

    if kind == 'none':
        return NO_RECURRENCE

    try:
        raw_interval = payload.get('interval', payload.get('repeatEvery'))
        interval = 1 if raw_interval in (None, '') else int(raw_interval)
        days = _freeze_days(payload.get('daysOfWeek', payload.get('repeatOn')))
    except (TypeError, ValueError) as e:
        raise InvalidRecurrenceRule([ValidationError('recurrence', str(e))])

    terminator = _terminator_from_dict(payload)

    if kind == 'custom':
        raw_unit = payload.get('repeatUnit')
        if raw_unit is None:
            raise InvalidRecurrenceRule([ValidationError('unit', "Custom recurrence needs a repeat unit")])
        try:
            unit = RepeatUnit(str(raw_unit).lower())
        except ValueError:
            raise InvalidRecurrenceRule([ValidationError('unit', f"Unknown repeat unit: {raw_unit!r}")])
        return Custom(interval=interval, unit=unit, days_of_week=days, terminator=terminator)

    if kind not in PRESETS:
        raise InvalidRecurrenceRule([ValidationError('type', f"Unknown recurrence type: {kind!r}")])

    if kind == 'weekdays':
        if interval != 1 or days:
            raise InvalidRecurrenceRule([
                ValidationError('recurrence', "'weekdays' takes neither an interval nor days of week")
            ])
        return Weekdays(terminator=terminator)

    # Anything a preset cannot hold is kept as the equivalent custom rule
    if interval != 1 or (days and kind != 'weekly'):
        return Custom(interval=interval, unit=PRESET_UNITS[kind], days_of_week=days, terminator=terminator)

    if kind == 'weekly':
        return Weekly(days_of_week=days, terminator=terminator)
    return PRESETS[kind](terminator=terminator)


def rule_to_dict(rule: RecurrenceRule) -> Dict[str, Any]:
    """Serialize a rule into the normalized persistence shape."""
    data: Dict[str, Any] = {'type': rule_type(rule)}
    if not is_recurring(rule):
        return data

    if isinstance(rule, Custom):
        data['interval'] = rule.interval
        data['repeatUnit'] = rule.unit.value
    else:
        data['interval'] = 1

    days = getattr(rule, 'days_of_week', frozenset())
    data['daysOfWeek'] = sorted(d.wire_value for d in days)

    terminator = rule.terminator
    if isinstance(terminator, After):
        data['endType'] = 'after'
        data['occurrences'] = terminator.occurrences
    elif isinstance(terminator, On):
        data['endType'] = 'on'
        data['endDate'] = terminator.until.isoformat()
    else:
        data['endType'] = 'never'
    return data
