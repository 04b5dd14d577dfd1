from .enums import Weekday, WORKING_DAYS, RepeatUnit, EventLabel, NotificationChannel, EditScope
from .common import parse_iso_datetime, parse_iso_date, parse_hhmm, format_hhmm, get_timezone, localize
from .errors import InvalidRecurrenceRule, ConfigurationError, ScopeRequiredError
from .api import ValidationError, AvailabilityResult, NoAvailability
from .recurrence import (
    Never, After, On, Terminator, NEVER,
    NoRecurrence, Daily, Weekly, Monthly, Annually, Weekdays, Custom,
    RecurrenceRule, NO_RECURRENCE, is_recurring, with_terminator, rule_from_dict, rule_to_dict,
)
from .availability import DayHours, AvailabilityConfig, availability_config_from_payload
from .events import (
    Guest, NotificationPolicy,
    Draft, Standalone, RecurringParent, DetachedInstance, EventKind, DRAFT,
    EventRecord, OccurrenceInstance, EditResult, event_from_dict,
)

__all__ = [
    "Weekday",
    "WORKING_DAYS",
    "RepeatUnit",
    "EventLabel",
    "NotificationChannel",
    "EditScope",
    "parse_iso_datetime",
    "parse_iso_date",
    "parse_hhmm",
    "format_hhmm",
    "get_timezone",
    "localize",
    "InvalidRecurrenceRule",
    "ConfigurationError",
    "ScopeRequiredError",
    "ValidationError",
    "AvailabilityResult",
    "NoAvailability",
    "Never",
    "After",
    "On",
    "Terminator",
    "NEVER",
    "NoRecurrence",
    "Daily",
    "Weekly",
    "Monthly",
    "Annually",
    "Weekdays",
    "Custom",
    "RecurrenceRule",
    "NO_RECURRENCE",
    "is_recurring",
    "with_terminator",
    "rule_from_dict",
    "rule_to_dict",
    "DayHours",
    "AvailabilityConfig",
    "availability_config_from_payload",
    "Guest",
    "NotificationPolicy",
    "Draft",
    "Standalone",
    "RecurringParent",
    "DetachedInstance",
    "EventKind",
    "DRAFT",
    "EventRecord",
    "OccurrenceInstance",
    "EditResult",
    "event_from_dict",
]
