"""Seasonal road-access closures for national parks.

The default lookup reads :data:`roadtrip.config.PARK_CLOSED_MONTHS`.
Callers with their own data can pass any ``(identity, month) -> bool``
callable wherever a closure lookup is accepted.
"""

from __future__ import annotations

import calendar
from typing import Callable, Optional

from roadtrip.config import PARK_CLOSED_MONTHS

ClosureLookup = Callable[[str, int], bool]


def is_closed(identity: Optional[str], month: Optional[int]) -> bool:
    """Return True if the park is typically closed or limited in *month*."""
    if not identity or not month:
        return False
    return month in PARK_CLOSED_MONTHS.get(identity.lower(), [])


def closed_in_month(month: int) -> list[str]:
    """Park codes closed in *month*, sorted."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return sorted(code for code, months in PARK_CLOSED_MONTHS.items() if month in months)


def month_name(month: int) -> str:
    return calendar.month_name[month]
