"""
Time parsing and formatting for reminder times.

All reminder times are stored as zero-padded 24-hour "HH:MM" strings in UTC.
"""
import re
from typing import Optional

from .errors import ValidationError

_CANONICAL = re.compile(r"^(\d{2}):(\d{2})$")

_PATTERNS = [
    re.compile(r"^(\d{1,2}):(\d{2})$"),          # "18:00" or "6:30"
    re.compile(r"^(\d{1,2})(am|pm)$"),           # "6pm"
    re.compile(r"^(\d{1,2}):(\d{2})(am|pm)$"),   # "6:30pm"
    re.compile(r"^(\d{1,2})$"),                  # "18" or "6"
]


def parse_time(text: str) -> Optional[str]:
    """
    Parse user time input into canonical "HH:MM" (UTC).

    Accepts 24-hour ("6:30", "18:00"), 12-hour ("6pm", "9:30am") and bare
    hours ("18"). A trailing "utc" is ignored so display strings parse back.
    Returns None when nothing matches or the value is out of range.
    """
    if text is None:
        return None
    cleaned = re.sub(r"\s+", "", text).lower()
    if cleaned.endswith("utc"):
        cleaned = cleaned[:-3]

    for pattern in _PATTERNS:
        match = pattern.match(cleaned)
        if not match:
            continue

        groups = match.groups()
        hour = int(groups[0])
        minute = 0
        suffix = None
        for group in groups[1:]:
            if group in ("am", "pm"):
                suffix = group
            elif group is not None:
                minute = int(group)

        if suffix is not None:
            if suffix == "pm" and hour != 12:
                hour += 12
            elif suffix == "am" and hour == 12:
                hour = 0

        if 0 <= hour <= 23 and 0 <= minute <= 59:
            return f"{hour:02d}:{minute:02d}"
        return None

    return None


def require_time(text: str) -> str:
    """Like parse_time but raises ValidationError on bad input."""
    parsed = parse_time(text)
    if parsed is None:
        raise ValidationError(text)
    return parsed


def is_valid_time(time24: str) -> bool:
    match = _CANONICAL.match(time24 or "")
    if not match:
        return False
    hour, minute = int(match.group(1)), int(match.group(2))
    return 0 <= hour <= 23 and 0 <= minute <= 59


def hour_of(time24: str) -> int:
    return int(time24.split(":")[0])


def format_time_for_display(time24: str) -> str:
    """Format "HH:MM" as "h:MM AM/PM UTC"."""
    hour, minute = (int(part) for part in time24.split(":"))
    period = "PM" if hour >= 12 else "AM"
    display_hour = 12 if hour == 0 else hour - 12 if hour > 12 else hour
    return f"{display_hour}:{minute:02d} {period} UTC"
