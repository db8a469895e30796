"""
Wall-clock time arithmetic.

Sessions and competition blocks store start and end as "HH:MM" strings
(the database may hand back "HH:MM:SS"). Everything here works on
same-day intervals only: there is no overnight wraparound.
"""

import re

from .exceptions import InvalidTimeRange

_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def parse_clock_time(value: str) -> float:
    """
    Convert a wall-clock string to minutes past midnight.

    "09:30" -> 570.0, "09:30:30" -> 570.5
    """
    match = _CLOCK_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidTimeRange(f"Unparseable time: {value!r}")

    hour = int(match.group(1))
    minute = int(match.group(2))
    second = int(match.group(3) or 0)

    if hour > 23 or minute > 59 or second > 59:
        raise InvalidTimeRange(f"Time out of range: {value!r}")

    return hour * 60 + minute + second / 60


def duration_hours(start: str, end: str) -> float:
    """
    Hours between start and end on the same calendar day.

    Raises InvalidTimeRange when end is not strictly after start.
    """
    start_minutes = parse_clock_time(start)
    end_minutes = parse_clock_time(end)

    if end_minutes <= start_minutes:
        raise InvalidTimeRange(
            f"End time {end} must be after start time {start}"
        )

    return (end_minutes - start_minutes) / 60
