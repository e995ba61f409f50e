"""Helpers for the "HH:MM" wall-clock strings stored on slots and appointments."""

import re
from datetime import date, datetime, time

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")


def now() -> datetime:
    return datetime.now()


def today() -> date:
    return now().date()


def is_valid_hhmm(value) -> bool:
    return isinstance(value, str) and TIME_PATTERN.match(value) is not None


def _split(value: str) -> tuple[int, int]:
    hours, minutes = value.split(":")
    return int(hours), int(minutes)


def normalize_hhmm(value: str) -> str:
    """Zero-pad an "H:MM" string so that string order matches time order."""
    hours, minutes = _split(value)
    return f"{hours:02d}:{minutes:02d}"


def minutes_of_day(value: str) -> int:
    hours, minutes = _split(value)
    return hours * 60 + minutes


def combine_date_and_time(day: date, value: str) -> datetime:
    """Merge a calendar date with an "HH:MM" string (seconds and micros zeroed)."""
    hours, minutes = _split(value)
    return datetime.combine(day, time(hours, minutes))
