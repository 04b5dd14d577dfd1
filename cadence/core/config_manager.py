# File: cadence/core/config_manager.py
"""
Centralized configuration management for Cadence.
Loads settings from environment variables and config files.
"""

import os
import json
from pathlib import Path
from typing import Any, Dict, List, Optional
from dotenv import load_dotenv

from cadence.models.availability import DEFAULT_LOOK_AHEAD_DAYS, DEFAULT_SLOT_GRANULARITY_MINUTES
from cadence.models.common import get_timezone

# Load environment variables
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


class Config:
    """Application configuration singleton."""

    # Base directories
    BASE_DIR = Path(__file__).parent.parent.parent  # Go up 3 levels from cadence/core/
    CONFIG_DIR = BASE_DIR / "config"

    # Files
    AVAILABILITY_FILE = CONFIG_DIR / "availability.json"

    # Calendar defaults
    DEFAULT_TIMEZONE = os.getenv("CADENCE_TIMEZONE", "UTC")
    MAX_OCCURRENCES = _env_int("CADENCE_MAX_OCCURRENCES", 500)

    # Booking defaults
    SLOT_GRANULARITY_MINUTES = _env_int("CADENCE_SLOT_MINUTES", DEFAULT_SLOT_GRANULARITY_MINUTES)
    LOOK_AHEAD_DAYS = _env_int("CADENCE_LOOK_AHEAD_DAYS", DEFAULT_LOOK_AHEAD_DAYS)

    @classmethod
    def load_availability_payload(cls, path: Optional[Path] = None) -> Dict[str, Any]:
        """Load a raw availability payload from JSON file."""
        path = Path(path) if path else cls.AVAILABILITY_FILE
        if not path.exists():
            raise FileNotFoundError(f"Availability file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    @classmethod
    def validate(cls) -> List[str]:
        """Return a list of configuration problems (empty when valid)."""
        errors = []

        try:
            get_timezone(cls.DEFAULT_TIMEZONE)
        except ValueError as e:
            errors.append(str(e))

        if cls.MAX_OCCURRENCES < 1:
            errors.append(f"MAX_OCCURRENCES must be at least 1, got {cls.MAX_OCCURRENCES}")
        if cls.SLOT_GRANULARITY_MINUTES < 1:
            errors.append(f"SLOT_GRANULARITY_MINUTES must be at least 1, got {cls.SLOT_GRANULARITY_MINUTES}")
        if cls.LOOK_AHEAD_DAYS < 1:
            errors.append(f"LOOK_AHEAD_DAYS must be at least 1, got {cls.LOOK_AHEAD_DAYS}")

        return errors
