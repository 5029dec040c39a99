"""Clock-time helpers.  Day schedules are kept in minutes since midnight."""

from __future__ import annotations

import datetime
import math


def time_to_minutes(t: datetime.time) -> int:
    """Convert a time object to minutes since midnight."""
    return t.hour * 60 + t.minute


def parse_hhmm(value: str | None, default: datetime.time = datetime.time(8, 0)) -> datetime.time:
    """Parse an ``"HH:MM"`` string.

    An empty or unparsable hour yields *default*; an unparsable minute
    part counts as zero.  Out-of-range values raise ``ValueError``.
    """
    parts = str(value or "").split(":")
    try:
        hour = int(parts[0])
    except ValueError:
        return default
    minute = 0
    if len(parts) > 1 and parts[1].strip().isdigit():
        minute = int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid clock time: '{value}'. Use HH:MM.")
    return datetime.time(hour, minute)


def minutes_to_hhmm(minutes: float) -> str:
    """Format minutes since midnight as ``HH:MM`` (hours may exceed 23)."""
    mm = max(0, round(minutes))
    return f"{mm // 60:02d}:{mm % 60:02d}"


def hours_to_label(decimal_hours: float) -> str:
    """Readable duration, e.g. ``2.25 -> "2h 15m"``."""
    total = round(decimal_hours * 60)
    h, m = divmod(total, 60)
    if h == 0:
        return f"{m}m"
    return f"{h}h" if m == 0 else f"{h}h {m}m"


def fmt(n: float | None, digits: int = 1) -> str:
    """Fixed-point number for messages; an em dash for missing values."""
    if n is None or not math.isfinite(n):
        return "—"
    return f"{n:.{digits}f}"
