# blueprints/enrollments/timeparse.py
"""Free-text time ranges from the enrollment form.

Accepted sides: 24-hour ``H:MM`` / ``HH:MM`` and 12-hour ``h[:mm]am|pm``,
spaces and case ignored. The two sides are separated by ``-`` or an en dash:

    >>> parse_time_range("11:30am - 2:30pm").label
    '11:30-14:30'
    >>> parse_time_range("18:00-21:00").label
    '18:00-21:00'
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from datetime import time

from errors import AppError

_SEPARATORS = re.compile(r"[-–]")
_H24 = re.compile(r"^(\d{1,2}):(\d{2})$")
_H12 = re.compile(r"^(\d{1,2})(?::(\d{2}))?(am|pm)$")


class TimeRangeError(AppError):
    status_code = 400


@dataclass(frozen=True)
class TimeRange:
    start: time
    end: time

    @property
    def label(self) -> str:
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


def parse_clock(text: str) -> time | None:
    """One side of a range as a ``time``, or None if it is not a valid clock time."""
    s = re.sub(r"\s+", "", text or "").lower()

    m = _H12.match(s)
    if m:
        hours, minutes = int(m.group(1)), int(m.group(2) or 0)
        if not 1 <= hours <= 12 or minutes > 59:
            return None
        if m.group(3) == "pm" and hours != 12:
            hours += 12
        elif m.group(3) == "am" and hours == 12:
            hours = 0
        return time(hours, minutes)

    m = _H24.match(s)
    if m:
        hours, minutes = int(m.group(1)), int(m.group(2))
        if hours > 23 or minutes > 59:
            return None
        return time(hours, minutes)
    return None


def parse_time_range(text: str) -> TimeRange:
    parts = _SEPARATORS.split(text or "")
    if len(parts) != 2:
        raise TimeRangeError(f"Invalid time slot format: {text}")

    start, end = parse_clock(parts[0]), parse_clock(parts[1])
    if start is None or end is None:
        raise TimeRangeError(f"Invalid time slot format: {text}")
    if end <= start:
        raise TimeRangeError(f"Time slot '{text}' must end after it starts")
    return TimeRange(start, end)
