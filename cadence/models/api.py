# File: cadence/models/api.py
"""
Result models returned across the engine boundary.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List


@dataclass
class ValidationError:
    """Represents a validation error."""
    field: str
    message: str

    def __str__(self) -> str:
        """String representation of error."""
        return f"{self.field}: {self.message}"


@dataclass
class AvailabilityResult:
    """Candidate dates found inside a search window."""
    dates: List[date] = field(default_factory=list)

    def is_available(self) -> bool:
        return bool(self.dates)


@dataclass
class NoAvailability:
    """
    The search window was scanned completely and nothing qualified.
    A legitimate outcome for restrictive configs, not an error.
    """
    window_start: date
    window_end: date
    reason: str = "no qualifying dates in window"

    def is_available(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"No availability between {self.window_start} and {self.window_end}: {self.reason}"
