# File: cadence/models/enums.py

from enum import Enum


class Weekday(Enum):
    """
    Days of the week, numbered like date.weekday() (0 = Monday).

    Payloads number days like JavaScript's Date.getDay() (0 = Sunday);
    use parse() and wire_value to cross that boundary.
    """
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def short_name(self) -> str:
        return self.name[:3].title()

    @property
    def wire_value(self) -> int:
        """Payload number of the day (0 = Sunday, 6 = Saturday)."""
        return (self.value + 1) % 7

    @classmethod
    def from_wire(cls, number: int) -> 'Weekday':
        if not 0 <= number <= 6:
            raise ValueError(f"Invalid weekday: {number!r}")
        return cls((number - 1) % 7)

    @classmethod
    def parse(cls, raw) -> 'Weekday':
        """Accept a Weekday, a payload int (0=Sunday) or a day name ("monday", "Mon")."""
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, bool):
            raise ValueError(f"Invalid weekday: {raw!r}")
        if isinstance(raw, int):
            return cls.from_wire(raw)
        name = str(raw).strip().upper()
        if name.isdigit():
            return cls.from_wire(int(name))
        for day in cls:
            if day.name == name or day.name[:3] == name:
                return day
        raise ValueError(f"Invalid weekday: {raw!r}")


WORKING_DAYS = frozenset({
    Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY,
    Weekday.THURSDAY, Weekday.FRIDAY,
})


class RepeatUnit(Enum):
    """Step unit of a custom recurrence."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class EventLabel(Enum):
    """Color tag shown on calendar events."""
    INDIGO = "indigo"
    GREY = "grey"
    GREEN = "green"
    BLUE = "blue"
    RED = "red"
    PURPLE = "purple"


class NotificationChannel(Enum):
    """How an event reminder is delivered."""
    EMAIL = "Email"
    NUMBER = "Number"  # SMS to the stored phone number
    SNOOZE = "Snooze"  # no reminder


class EditScope(Enum):
    """Which part of a recurring series an edit or delete applies to."""
    THIS_OCCURRENCE = "single"
    THIS_AND_FOLLOWING = "thisAndFuture"
