# File: cadence/models/events.py
"""
Data models for calendar events and their rendered occurrences.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Any, Dict, FrozenSet, Optional, Tuple, Union

from .common import get_timezone, localize, parse_iso_datetime
from .enums import EventLabel, NotificationChannel
from .recurrence import NO_RECURRENCE, RecurrenceRule, is_recurring, rule_from_dict, rule_to_dict

TIME_UNIT_MINUTES = {'minute': 1, 'hour': 60, 'day': 24 * 60}


# ==================== Guests & Notifications ====================

@dataclass(frozen=True)
class Guest:
    """Invited guest; the email is the unique key."""
    email: str
    display_name: str = ""

    def __post_init__(self):
        email = (self.email or "").strip()
        if '@' not in email:
            raise ValueError(f"Invalid guest email: {self.email!r}")
        object.__setattr__(self, 'email', email)

    @property
    def key(self) -> str:
        return self.email.lower()

    def to_dict(self) -> dict:
        return {'email': self.email, 'name': self.display_name}


@dataclass(frozen=True)
class NotificationPolicy:
    """Reminder channel and how long before the start it fires."""
    channel: NotificationChannel = NotificationChannel.EMAIL
    lead_minutes: Optional[int] = None

    def __post_init__(self):
        if isinstance(self.channel, str):
            object.__setattr__(self, 'channel', NotificationChannel(self.channel))
        if self.lead_minutes is not None and self.lead_minutes < 0:
            raise ValueError(f"Reminder lead time cannot be negative: {self.lead_minutes}")

    def reminder_at(self, start: datetime) -> Optional[datetime]:
        """When the reminder for an occurrence starting at `start` is due, if any."""
        if self.channel is NotificationChannel.SNOOZE or not self.lead_minutes:
            return None
        return start - timedelta(minutes=self.lead_minutes)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'NotificationPolicy':
        """Create from {"type": "Email", "interval": 2, "timeUnit": "Hour"}."""
        if not data:
            return cls()
        channel = NotificationChannel(data.get('type', NotificationChannel.EMAIL.value))
        interval = data.get('interval')
        if interval in (None, ''):
            return cls(channel=channel)
        unit = str(data.get('timeUnit') or 'Minute').lower()
        if unit not in TIME_UNIT_MINUTES:
            raise ValueError(f"Unknown reminder time unit: {data.get('timeUnit')!r}")
        return cls(channel=channel, lead_minutes=int(interval) * TIME_UNIT_MINUTES[unit])

    def to_dict(self) -> dict:
        return {
            'type': self.channel.value,
            'interval': self.lead_minutes,
            'timeUnit': 'Minute' if self.lead_minutes is not None else None,
        }


# ==================== Event kinds ====================

@dataclass(frozen=True)
class Draft:
    """Not saved yet."""


@dataclass(frozen=True)
class Standalone:
    """A saved single event."""


@dataclass(frozen=True)
class RecurringParent:
    """A saved series, shown as virtual occurrences."""


@dataclass(frozen=True)
class DetachedInstance:
    """One occurrence split off a series by a this-occurrence-only edit."""
    parent_id: str
    original_date: date


EventKind = Union[Draft, Standalone, RecurringParent, DetachedInstance]

DRAFT = Draft()


# ==================== Event record ====================

@dataclass(frozen=True)
class EventRecord:
    """
    A calendar event.

    start_time/end_time are naive wall-clock times in `timezone`; for
    all-day events only their dates are used.
    """
    title: str
    start_time: datetime
    end_time: datetime
    timezone: str
    id: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    all_day: bool = False
    recurrence: RecurrenceRule = NO_RECURRENCE
    guests: Tuple[Guest, ...] = ()
    label: EventLabel = EventLabel.INDIGO
    notification: NotificationPolicy = field(default_factory=NotificationPolicy)
    kind: EventKind = DRAFT
    excluded_dates: FrozenSet[date] = frozenset()
    series_anchor: Optional[date] = None

    def __post_init__(self):
        """Validate event data and auto-convert types."""
        if not (self.title or "").strip():
            raise ValueError("Event title is required")

        get_timezone(self.timezone)
        for name in ('start_time', 'end_time'):
            value = getattr(self, name)
            if value.tzinfo is not None:
                # Keep wall-clock time in the event's own zone
                object.__setattr__(self, name, localize(self.timezone, value).replace(tzinfo=None))

        if self.all_day:
            if self.end_time.date() < self.start_time.date():
                raise ValueError(f"All-day event cannot end before it starts: {self.title}")
        elif self.end_time <= self.start_time:
            raise ValueError(f"Event end time must be after start time: {self.title}")

        if isinstance(self.label, str):
            object.__setattr__(self, 'label', EventLabel(self.label.lower()))

        guests = tuple(Guest(g.get('email'), g.get('name', g.get('display_name', '')))
                       if isinstance(g, dict) else g for g in self.guests)
        seen = set()
        for guest in guests:
            if guest.key in seen:
                raise ValueError(f"Duplicate guest: {guest.email}")
            seen.add(guest.key)
        object.__setattr__(self, 'guests', guests)
        object.__setattr__(self, 'excluded_dates', frozenset(self.excluded_dates))

        recurring = is_recurring(self.recurrence)
        if isinstance(self.kind, RecurringParent) and not recurring:
            raise ValueError(f"A recurring parent needs a recurrence rule: {self.title}")
        if isinstance(self.kind, (Standalone, DetachedInstance)) and recurring:
            raise ValueError(f"A {type(self.kind).__name__.lower()} event cannot recur: {self.title}")

        if isinstance(self.series_anchor, str):
            object.__setattr__(self, 'series_anchor', date.fromisoformat(self.series_anchor))
        if self.series_anchor is not None:
            if not isinstance(self.kind, RecurringParent):
                raise ValueError(f"Only a recurring parent has a series anchor: {self.title}")
            if self.series_anchor > self.anchor_date:
                raise ValueError(
                    f"Series anchor {self.series_anchor} is after the first occurrence {self.anchor_date}: {self.title}"
                )

    @property
    def anchor_date(self) -> date:
        """First date of the event (or of the series)."""
        return self.start_time.date()

    @property
    def rule_anchor(self) -> date:
        """
        Date the recurrence rule is measured from.

        Differs from anchor_date only for a series split off another one,
        which keeps stepping from the original series start.
        """
        return self.series_anchor or self.anchor_date

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    def is_saved(self) -> bool:
        return not isinstance(self.kind, Draft)

    def is_recurring(self) -> bool:
        return is_recurring(self.recurrence)

    def has_guest(self, email: str) -> bool:
        return any(g.key == email.strip().lower() for g in self.guests)

    def with_guest(self, guest: Guest) -> 'EventRecord':
        """Copy with the guest appended, or its display name updated if already invited."""
        if self.has_guest(guest.email):
            guests = tuple(guest if g.key == guest.key else g for g in self.guests)
        else:
            guests = self.guests + (guest,)
        return replace(self, guests=guests)

    def without_guest(self, email: str) -> 'EventRecord':
        key = email.strip().lower()
        return replace(self, guests=tuple(g for g in self.guests if g.key != key))

    def to_dict(self) -> dict:
        """Convert to dictionary for persistence."""
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'location': self.location,
            'startTime': self.start_time.isoformat(),
            'endTime': self.end_time.isoformat(),
            'allDay': self.all_day,
            'timezone': self.timezone,
            'recurrence': rule_to_dict(self.recurrence),
            'guests': [g.to_dict() for g in self.guests],
            'label': self.label.value,
            'notificationSettings': self.notification.to_dict(),
            'kind': type(self.kind).__name__,
            'excludedDates': sorted(d.isoformat() for d in self.excluded_dates),
        }
        if isinstance(self.kind, DetachedInstance):
            data['parentEventId'] = self.kind.parent_id
            data['originalDate'] = self.kind.original_date.isoformat()
        if self.series_anchor is not None:
            data['seriesAnchor'] = self.series_anchor.isoformat()
        return data


@dataclass(frozen=True)
class OccurrenceInstance:
    """One rendered occurrence of an event; derived, never persisted."""
    id: str
    parent_id: str
    index: int
    occurrence_date: date
    start: datetime
    end: datetime
    title: str
    all_day: bool = False

    def in_timezone(self, tz_name: str) -> 'OccurrenceInstance':
        """Same instant, expressed in the viewer's timezone."""
        tz = get_timezone(tz_name)
        return replace(self, start=self.start.astimezone(tz), end=self.end.astimezone(tz))

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'parentEventId': self.parent_id,
            'instanceIndex': self.index,
            'instanceDate': self.occurrence_date.isoformat(),
            'startTime': self.start.isoformat(),
            'endTime': self.end.isoformat(),
            'title': self.title,
            'allDay': self.all_day,
        }


@dataclass(frozen=True)
class EditResult:
    """Outcome of a scoped edit: the updated series and the record split off it."""
    parent: EventRecord
    created: Optional[EventRecord] = None


def _parse_event_time(raw: Any, field_name: str) -> datetime:
    if isinstance(raw, datetime):
        return raw
    parsed = parse_iso_datetime(raw) if isinstance(raw, str) else None
    if parsed is None:
        raise ValueError(f"Invalid or missing {field_name}: {raw!r}")
    return parsed


def event_from_dict(data: Dict[str, Any], default_timezone: str = "UTC") -> EventRecord:
    """
    Create a draft EventRecord from a create-event payload.

    Aware start/end times (e.g. UTC ISO strings) are converted to wall-clock
    time in the event's timezone.
    """
    return EventRecord(
        title=str(data.get('title', '')),
        description=data.get('description'),
        location=data.get('location'),
        start_time=_parse_event_time(data.get('startTime'), 'startTime'),
        end_time=_parse_event_time(data.get('endTime'), 'endTime'),
        all_day=bool(data.get('allDay', False)),
        timezone=data.get('timezone') or default_timezone,
        recurrence=rule_from_dict(data.get('recurrence')),
        guests=tuple(data.get('guests') or ()),
        label=data.get('label') or EventLabel.INDIGO,
        notification=NotificationPolicy.from_dict(data.get('notificationSettings')),
    )
