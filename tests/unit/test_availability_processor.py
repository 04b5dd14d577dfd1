# File: tests/unit/test_availability_processor.py
"""
Unit tests for candidate-date selection and slot generation.
"""

import pytest
from datetime import date, datetime, time, timedelta

import pytz

from cadence.models import (
    AvailabilityConfig, AvailabilityResult, ConfigurationError, DayHours, NoAvailability, Weekday,
)
from cadence.processors.availability_processor import (
    DEFAULT_TIME_SLOTS,
    availability_calendar,
    candidate_dates,
    format_slots,
    load_availability_config,
    search_availability,
    slot_datetime,
    slots_for_viewer,
    time_slots,
)


def make_config(hours=None, **kwargs):
    """Config open on the given weekdays (default Monday 09:00-10:30)."""
    return AvailabilityConfig(
        owner_id=kwargs.pop('owner_id', 'owner_1'),
        per_weekday_hours=hours or {Weekday.MONDAY: DayHours("09:00", "10:30")},
        **kwargs
    )


# ==================== Candidate Date Tests ====================

class TestCandidateDates:
    """Tests for candidate_dates()."""

    def test_weekdays_in_window(self, office_hours, reference_now):
        """Test that a week-long scan from Sunday yields Monday to Friday."""
        dates = candidate_dates(office_hours, reference_now, 7)

        assert dates == [date(2025, 1, 6) + timedelta(days=i) for i in range(5)]

    def test_scan_starts_tomorrow(self, office_hours):
        """Test that today is never offered."""
        monday_morning = pytz.utc.localize(datetime(2025, 1, 6, 0, 1))

        assert candidate_dates(office_hours, monday_morning, 1) == [date(2025, 1, 7)]

    def test_buffer_excludes_near_dates(self, reference_now):
        """Test that a day starting inside the buffer is skipped."""
        config = make_config(
            {day: ("09:00", "17:00") for day in range(1, 6)}, buffer_hours=24
        )

        dates = candidate_dates(config, reference_now, 7)

        assert date(2025, 1, 6) not in dates
        assert dates == [date(2025, 1, 7), date(2025, 1, 8), date(2025, 1, 9), date(2025, 1, 10)]

    def test_buffer_boundary_is_inclusive(self):
        """Test that a day starting exactly buffer_hours away is kept."""
        config = make_config(buffer_hours=12)
        now = pytz.utc.localize(datetime(2025, 1, 5, 12, 0))

        assert candidate_dates(config, now, 1) == [date(2025, 1, 6)]

    def test_default_window_is_look_ahead(self, reference_now):
        """Test that window_days defaults to look_ahead_days."""
        config = make_config(look_ahead_days=14)

        assert candidate_dates(config, reference_now) == [date(2025, 1, 6), date(2025, 1, 13)]

    def test_window_zero(self, office_hours, reference_now):
        """Test that an empty window finds nothing."""
        assert candidate_dates(office_hours, reference_now, 0) == []

    def test_negative_window_raises(self, office_hours, reference_now):
        """Test that a negative window is rejected."""
        with pytest.raises(ValueError, match="cannot be negative"):
            candidate_dates(office_hours, reference_now, -1)

    def test_no_hours_raises_configuration_error(self, office_hours, reference_now):
        """Test that a config stripped of hours is a configuration error."""
        office_hours.per_weekday_hours = {}

        with pytest.raises(ConfigurationError):
            candidate_dates(office_hours, reference_now, 7)

    def test_uses_owner_timezone(self):
        """Test that "tomorrow" is computed in the owner's zone."""
        config = make_config({day: ("09:00", "17:00") for day in range(1, 6)}, timezone="Pacific/Auckland")
        # Already Monday 01:00 in Auckland
        now = pytz.utc.localize(datetime(2025, 1, 5, 12, 0))

        assert candidate_dates(config, now, 1) == [date(2025, 1, 7)]

    def test_naive_now_is_owner_local(self):
        """Test that a naive reference time is read in the owner's zone."""
        config = make_config({day: ("09:00", "17:00") for day in range(1, 6)}, timezone="Pacific/Auckland")

        assert candidate_dates(config, datetime(2025, 1, 5, 12, 0), 1) == [date(2025, 1, 6)]

    def test_idempotent(self, office_hours, reference_now):
        """Test that repeated calls agree."""
        assert candidate_dates(office_hours, reference_now, 30) == candidate_dates(office_hours, reference_now, 30)

    @pytest.mark.parametrize("window", [1, 5, 30, 90])
    def test_results_are_ordered_and_in_window(self, office_hours, reference_now, window):
        """Test ordering, uniqueness and window bounds."""
        dates = candidate_dates(office_hours, reference_now, window)
        first = date(2025, 1, 6)

        assert dates == sorted(set(dates))
        assert all(first <= d < first + timedelta(days=window) for d in dates)
        assert all(d.weekday() < 5 for d in dates)


class TestSearchAvailability:
    """Tests for search_availability()."""

    def test_found(self, office_hours, reference_now):
        """Test that found dates are wrapped in an AvailabilityResult."""
        result = search_availability(office_hours, reference_now, 7)

        assert isinstance(result, AvailabilityResult)
        assert result.is_available() is True
        assert len(result.dates) == 5

    def test_exhausted_window(self, reference_now):
        """Test that a window with no open day reports NoAvailability."""
        config = make_config({Weekday.SATURDAY: ("09:00", "12:00")})

        result = search_availability(config, reference_now, 5)

        assert isinstance(result, NoAvailability)
        assert result.is_available() is False
        assert result.window_start == date(2025, 1, 6)
        assert result.window_end == date(2025, 1, 10)
        assert "2025-01-06" in str(result)

    def test_buffer_can_exhaust_window(self, reference_now):
        """Test that a large buffer yields NoAvailability, not an error."""
        config = make_config(buffer_hours=24 * 30)

        assert isinstance(search_availability(config, reference_now, 14), NoAvailability)


# ==================== Slot Tests ====================

class TestTimeSlots:
    """Tests for time_slots() and helpers."""

    def test_thirty_minute_slots(self, monday):
        """Test that close time is exclusive."""
        assert time_slots(make_config(), monday) == [time(9, 0), time(9, 30), time(10, 0)]

    def test_granularity(self, monday):
        """Test a 45-minute step."""
        config = make_config({Weekday.MONDAY: ("09:00", "11:00")}, slot_granularity_minutes=45)

        assert format_slots(time_slots(config, monday)) == ['09:00', '09:45', '10:30']

    def test_closed_day_uses_default_slots(self):
        """Test the fallback list for a weekday without hours."""
        saturday = date(2025, 1, 11)

        slots = format_slots(time_slots(make_config(), saturday))

        assert slots == format_slots(DEFAULT_TIME_SLOTS)
        assert slots[0] == '09:00'
        assert slots[-1] == '16:00'
        assert '12:00' not in slots and '12:30' not in slots
        assert len(slots) == 13

    def test_default_slots_are_copied(self):
        """Test that callers cannot mutate the shared fallback."""
        slots = time_slots(make_config(), date(2025, 1, 11))
        slots.clear()

        assert len(DEFAULT_TIME_SLOTS) == 13

    def test_idempotent(self, monday):
        """Test that repeated calls agree."""
        config = make_config()

        assert time_slots(config, monday) == time_slots(config, monday)

    def test_slot_datetime_is_dst_aware(self):
        """Test that slots carry the owner's offset for the date."""
        config = make_config({Weekday.TUESDAY: ("09:00", "10:00")}, timezone="Europe/London")

        summer = slot_datetime(config, date(2025, 7, 1), time(9, 0))
        winter = slot_datetime(config, date(2025, 1, 7), time(9, 0))

        assert summer.utcoffset() == timedelta(hours=1)
        assert winter.utcoffset() == timedelta(0)

    def test_slots_for_viewer(self, monday):
        """Test that slots are re-expressed in the viewer's zone."""
        config = make_config(timezone="Europe/London")

        viewed = slots_for_viewer(config, monday, "America/New_York")

        assert [dt.strftime('%H:%M') for dt in viewed] == ['04:00', '04:30', '05:00']
        assert viewed[0] == slot_datetime(config, monday, time(9, 0))

    def test_slots_for_unknown_viewer_zone(self, monday):
        """Test that an unknown viewer timezone raises."""
        with pytest.raises(ValueError, match="Unknown timezone"):
            slots_for_viewer(make_config(), monday, "Nowhere/Special")

    def test_availability_calendar(self, office_hours, reference_now):
        """Test that every candidate date maps to its slots."""
        calendar = availability_calendar(office_hours, reference_now, 7)

        assert list(calendar) == candidate_dates(office_hours, reference_now, 7)
        assert all(len(slots) == 16 for slots in calendar.values())


# ==================== Loading Tests ====================

class TestLoadAvailabilityConfig:
    """Tests for load_availability_config()."""

    def test_loads_from_file(self, temp_config_dir):
        """Test reading a payload from disk."""
        config = load_availability_config("owner_9", temp_config_dir / "availability.json")

        assert config.owner_id == "owner_9"
        assert config.open_weekdays == frozenset({Weekday.TUESDAY})
        assert config.buffer_hours == 2.0
        assert format_slots(time_slots(config, date(2025, 1, 7))) == ['10:00', '10:30', '11:00', '11:30']

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_availability_config("owner_9", tmp_path / "absent.json")
