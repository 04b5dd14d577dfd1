# File: tests/conftest.py
"""
Pytest configuration and shared fixtures.
Provides reusable rules, availability configs and events for all tests.
"""

import os
import sys
from datetime import date, datetime, time, timedelta
from pathlib import Path

import pytest
import pytz

# Keep test runs from writing daily log files
os.environ.setdefault("CADENCE_LOG_TO_FILE", "0")

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from cadence.models import (
    AvailabilityConfig, After, Custom, DayHours, EventRecord,
    RepeatUnit, Weekday, Weekly,
)
from cadence.processors.event_processor import EventLifecycle


# ==================== Date Fixtures ====================

@pytest.fixture
def monday():
    """A Monday anchor (2025-01-06)."""
    return date(2025, 1, 6)


@pytest.fixture
def reference_now():
    """Injected "now": Sunday 2025-01-05 08:00 UTC."""
    return pytz.utc.localize(datetime(2025, 1, 5, 8, 0))


# ==================== Recurrence Fixtures ====================

@pytest.fixture
def mon_wed_four_times():
    """Weekly on Monday and Wednesday, four occurrences."""
    return Weekly(days_of_week={Weekday.MONDAY, Weekday.WEDNESDAY}, terminator=After(4))


@pytest.fixture
def every_other_day():
    """Every 2 days, no end."""
    return Custom(interval=2, unit=RepeatUnit.DAY)


# ==================== Availability Fixtures ====================

@pytest.fixture
def office_hours():
    """Monday to Friday, 09:00-17:00 UTC, no buffer."""
    return AvailabilityConfig(
        owner_id="owner_1",
        per_weekday_hours={day: DayHours(time(9, 0), time(17, 0)) for day in range(1, 6)},
    )


@pytest.fixture
def schedule_payload():
    """Raw payload in the per-day schedule shape."""
    return {
        'schedule': {
            'monday': {'enabled': True, 'openTime': '09:00', 'closeTime': '10:30'},
            'tuesday': {'enabled': False, 'openTime': '09:00', 'closeTime': '17:00'},
            'wednesday': {'enabled': True, 'openTime': '13:00', 'closeTime': '15:00'},
        },
        'bufferHours': 24,
    }


@pytest.fixture
def allow_list_payload():
    """Raw payload in the availableDays/availableTimes shape."""
    return {
        'availableDays': ['monday', 'friday'],
        'availableTimes': {'monday': {'openTime': '08:00', 'closeTime': '12:00'}},
        'timezone': 'America/New_York',
    }


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create temporary config directory with an availability file."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "availability.json").write_text(
        '{"availableDays": ["tuesday"], "availableTimes": '
        '{"tuesday": {"openTime": "10:00", "closeTime": "12:00"}}, "bufferHours": 2}'
    )
    return config_dir


# ==================== Event Fixtures ====================

@pytest.fixture
def lifecycle():
    """Lifecycle with a small occurrence bound."""
    return EventLifecycle(max_occurrences=100)


@pytest.fixture
def create_test_event(monday):
    """Factory fixture for creating draft events."""
    def _create(
        title: str = "Standup",
        recurrence=None,
        start: datetime = None,
        minutes: int = 30,
        timezone: str = "Europe/London",
        **extra
    ) -> EventRecord:
        """Create a draft event starting at 09:00 on the Monday fixture."""
        start = start or datetime.combine(monday, time(9, 0))
        kwargs = dict(
            title=title,
            start_time=start,
            end_time=start + timedelta(minutes=minutes),
            timezone=timezone,
        )
        if recurrence is not None:
            kwargs['recurrence'] = recurrence
        kwargs.update(extra)
        return EventRecord(**kwargs)

    return _create


# ==================== Pytest Markers ====================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
