"""
Domain value objects.

Contains the leap-second-aware Timestamp built on Fixed.
"""

from src.core.domain.timestamp import (
    SECONDS_PER_DAY,
    TIMESTAMP_EPOCH,
    TIMESTAMP_SHOW_PRECISION,
    CalendarSeconds,
    DaySeconds,
    Timestamp,
    parse_timestamp,
)

__all__ = [
    # Timestamp — Constants
    "SECONDS_PER_DAY",
    "TIMESTAMP_EPOCH",
    "TIMESTAMP_SHOW_PRECISION",
    # Timestamp — Types
    "Timestamp",
    "CalendarSeconds",
    "DaySeconds",
    # Timestamp — Functions
    "parse_timestamp",
]
