# File: cadence/models/errors.py
"""
Exceptions raised by the scheduling engine.
All of them are ValueErrors: they signal bad input, never a transient failure.
"""

from typing import List


class InvalidRecurrenceRule(ValueError):
    """A recurrence rule was rejected before expansion."""

    def __init__(self, errors: List):
        self.errors = list(errors)
        details = "; ".join(str(e) for e in self.errors) or "invalid recurrence rule"
        super().__init__(details)


class ConfigurationError(ValueError):
    """Availability configuration is malformed or has no open weekday."""


class ScopeRequiredError(ValueError):
    """An edit or delete on a recurring series was attempted without an explicit scope."""
