"""
12-hour wall-clock parsing and shift duration math.

Times are the strings people type into the schedule sheet ("3:00 PM",
"12:00 AM", "9 am"). A shift whose end is not after its start runs past
midnight, so "3:00 PM" to "12:00 AM" is nine hours and identical endpoints
mean a full 24-hour shift.
"""
import logging
import math
import re
from typing import Iterable

from errors import ParseError

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

TIME_PATTERN = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*(AM|PM)$", re.IGNORECASE)


def parse_time(text: str) -> int:
    """Return minutes since midnight for ``H[:MM] AM|PM``.

    Raises ParseError for anything else, including hours outside 1-12 and
    minutes outside 0-59.
    """
    match = TIME_PATTERN.match(str(text).strip()) if text is not None else None
    if not match:
        raise ParseError(f"Unrecognised time '{text}'")
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    if not 1 <= hour <= 12 or minute > 59:
        raise ParseError(f"Time out of range '{text}'")
    hour %= 12
    if match.group(3).upper() == "PM":
        hour += 12
    return hour * 60 + minute


def format_time(hour: int, minute: int) -> str:
    """Render a 24-hour clock value in the canonical ``H:MM AM`` form."""
    meridiem = "PM" if hour >= 12 else "AM"
    display = hour % 12 or 12
    return f"{display}:{minute:02d} {meridiem}"


def _minutes_or_zero(text) -> int:
    try:
        return parse_time(text)
    except ParseError:
        # Lenient sheets: a bad cell counts as midnight instead of failing the view
        logger.debug("Treating unparsable time %r as 12:00 AM", text)
        return 0


def duration_hours(start: str, end: str) -> float:
    start_min = _minutes_or_zero(start)
    end_min = _minutes_or_zero(end)
    if end_min <= start_min:
        end_min += MINUTES_PER_DAY
    return (end_min - start_min) / 60


def format_duration(hours: float) -> str:
    # floor(x + .5) rounds halves up, round() would round them to even
    rounded = math.floor(hours * 4 + 0.5) / 4
    if abs(rounded - round(rounded)) < 1e-9:
        label = str(int(round(rounded)))
    else:
        label = str(rounded)
    unit = "Hour" if rounded == 1 else "Hours"
    return f"{label} {unit}"


def shift_hours(shift) -> float:
    return duration_hours(shift.start_time, shift.end_time)


def total_hours(shifts: Iterable) -> float:
    return sum(shift_hours(shift) for shift in shifts)
