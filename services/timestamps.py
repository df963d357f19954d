"""Timestamp parsing shared by dataset rows, attack windows and user queries.

The SWaT exports mix ``DD/MM/YYYY HH:MM:SS`` and ``DD/MM/YYYY HH:MM:SS AM``
forms. Everything is read as UTC so that readings and attack windows compare
the same way whatever the host timezone is.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from services.errors import MalformedTimestamp

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MERIDIEMS = {"AM", "PM"}
_DIGITS = re.compile(r"[0-9]+")


def _to_int(raw: str, field_name: str, value: str) -> int:
    if not _DIGITS.fullmatch(raw):
        raise MalformedTimestamp(f"Invalid {field_name} in timestamp {value!r}.")
    return int(raw)


def _apply_meridiem(hour: int, meridiem: Optional[str], value: str) -> int:
    if meridiem is None:
        return hour
    marker = meridiem.upper()
    if marker not in _MERIDIEMS:
        raise MalformedTimestamp(f"Unknown AM/PM marker in timestamp {value!r}.")
    if marker == "AM" and hour == 12:
        return 0
    if marker == "PM" and hour != 12:
        return hour + 12
    return hour


def _split_clock(token: str, value: str) -> Tuple[int, int, int]:
    parts = token.split(":")
    if len(parts) not in (2, 3):
        raise MalformedTimestamp(f"Invalid time of day in timestamp {value!r}.")
    hour = _to_int(parts[0], "hour", value)
    minute = _to_int(parts[1], "minute", value)
    second = _to_int(parts[2], "second", value) if len(parts) == 3 else 0
    return hour, minute, second


def normalize_timestamp(value: str) -> datetime:
    """Parse ``DD/MM/YYYY HH:MM[:SS] [AM|PM]`` into an aware UTC datetime."""
    if not isinstance(value, str):
        raise MalformedTimestamp("Timestamp must be a string.")

    tokens = value.split()
    if len(tokens) < 2:
        raise MalformedTimestamp(f"Timestamp {value!r} needs a date and a time.")
    if len(tokens) > 3:
        raise MalformedTimestamp(f"Unexpected trailing data in timestamp {value!r}.")

    date_parts = tokens[0].split("/")
    if len(date_parts) != 3:
        raise MalformedTimestamp(f"Invalid date in timestamp {value!r}.")
    day = _to_int(date_parts[0], "day", value)
    month = _to_int(date_parts[1], "month", value)
    year = _to_int(date_parts[2], "year", value)

    hour, minute, second = _split_clock(tokens[1], value)
    meridiem = tokens[2] if len(tokens) == 3 else None
    hour = _apply_meridiem(hour, meridiem, value)

    try:
        return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
    except ValueError as exc:
        raise MalformedTimestamp(f"Timestamp {value!r} is not a valid date.") from exc


def parse_time_of_day(value: str) -> Tuple[int, int, int]:
    """Parse ``HH:MM[:SS] [AM|PM]`` into 24-hour clock fields.

    A leading date token is accepted and ignored; attack end times are always
    applied to the attack's start date.
    """
    if not isinstance(value, str):
        raise MalformedTimestamp("Time of day must be a string.")

    tokens = value.split()
    if tokens and "/" in tokens[0]:
        tokens = tokens[1:]
    if not tokens or len(tokens) > 2:
        raise MalformedTimestamp(f"Invalid time of day {value!r}.")

    hour, minute, second = _split_clock(tokens[0], value)
    meridiem = tokens[1] if len(tokens) == 2 else None
    hour = _apply_meridiem(hour, meridiem, value)

    if not (0 <= hour <= 23 and 0 <= minute <= 59 and 0 <= second <= 59):
        raise MalformedTimestamp(f"Time of day {value!r} is out of range.")
    return hour, minute, second


def epoch_millis(instant: datetime) -> int:
    return (instant - _EPOCH) // timedelta(milliseconds=1)


def format_timestamp(instant: datetime) -> str:
    """Render an instant in the 24-hour form accepted by ``normalize_timestamp``."""
    return instant.astimezone(timezone.utc).strftime("%d/%m/%Y %H:%M:%S")
