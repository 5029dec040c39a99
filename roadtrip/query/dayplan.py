"""Day-plan packing: split the ordered legs into driving days.

Days are contiguous slices of the route: legs are never reordered or
split.  A day closes when the next leg would exceed the drive budget,
unless that leg leads to an optional stop, in which case the leg is
skipped and the day stays open.
"""

from __future__ import annotations

import logging

from roadtrip.clock import time_to_minutes
from roadtrip.models import DayPlanEntry, DayPlanResult, Leg, ScheduledLeg, TripRules

logger = logging.getLogger(__name__)


def drive_budget_minutes(rules: TripRules) -> float:
    """Daily driving minutes: the hour cap clamped to the wake/sleep window minus breaks."""
    window = time_to_minutes(rules.sleep_time) - time_to_minutes(rules.wake_time)
    available = max(0, window - rules.break_minutes_per_day)
    return min(available, rules.max_drive_hours_per_day * 60)


def visit_minutes(rules: TripRules) -> int:
    return round(rules.visit_hours_per_park * 60)


def pack(legs: list[Leg], rules: TripRules, must_see_by_id: dict[str, bool]) -> DayPlanResult:
    """Greedy first-fit packing of *legs* into days.

    Parameters
    ----------
    legs : list[Leg]
        Realized route, in driving order.
    rules : TripRules
        Wake/sleep, break, daily cap and visit time.
    must_see_by_id : dict
        Stop id -> must-see flag.  Missing ids count as must-see.

    Returns
    -------
    DayPlanResult
        Days in order, plus names of optional stops dropped to fit.
    """
    result = DayPlanResult()
    if not legs:
        return result

    wake = time_to_minutes(rules.wake_time)
    budget = drive_budget_minutes(rules)
    visit = visit_minutes(rules)
    break_mins = rules.break_minutes_per_day

    day_legs: list[int] = []
    day_drive = 0.0
    day_miles = 0.0

    def close_day() -> None:
        nonlocal day_legs, day_drive, day_miles
        if not day_legs:
            return
        # visits happen at intermediate stops only
        visits = max(0, len(day_legs) - 1)
        result.days.append(
            DayPlanEntry(
                day=len(result.days) + 1,
                legs=day_legs,
                miles=day_miles,
                drive_hours=day_drive / 60,
                visit_minutes=visit,
                start_minutes=wake,
                end_minutes=wake + day_drive + visits * visit + break_mins,
            )
        )
        day_legs, day_drive, day_miles = [], 0.0, 0.0

    for i, leg in enumerate(legs):
        leg_mins = leg.hours * 60
        if day_legs and day_drive + leg_mins > budget:
            if must_see_by_id.get(leg.to_id, True) is False:
                logger.info("Dropping optional stop %s to fit day %d", leg.to_name, len(result.days) + 1)
                result.dropped_optional.append(leg.to_name)
                continue
            close_day()

        day_legs.append(i)
        day_drive += leg_mins
        day_miles += leg.miles

    close_day()
    logger.info(
        "Packed %d legs into %d days (%d optional dropped)",
        len(legs), len(result.days), len(result.dropped_optional),
    )
    return result


def schedule_day(entry: DayPlanEntry, legs: list[Leg]) -> list[ScheduledLeg]:
    """Walk a clock through one day: drive each leg, then visit unless it is the last."""
    rows: list[ScheduledLeg] = []
    clock = entry.start_minutes
    last = len(entry.legs) - 1
    for pos, idx in enumerate(entry.legs):
        depart = clock
        arrive = depart + round(legs[idx].hours * 60)
        visit_after = entry.visit_minutes if pos < last else 0
        rows.append(
            ScheduledLeg(
                leg_index=idx,
                depart_minutes=depart,
                arrive_minutes=arrive,
                visit_minutes_after=visit_after,
            )
        )
        clock = arrive + visit_after
    return rows
