"""Rule checks over a realized route.

Every check runs on every call and contributes independently.  The result
is advisory: planning never stops because of a violation.
"""

from __future__ import annotations

import math

from roadtrip.clock import fmt
from roadtrip.config import MIN_WINDOW_HOURS, TRIP_LENGTH_ADVISORY_DAYS
from roadtrip.geo import bearing_between, bearing_diff
from roadtrip.ingest.closures import ClosureLookup, is_closed, month_name
from roadtrip.models import Leg, Stop, TripRules, Violation, ViolationType
from roadtrip.query.dayplan import drive_budget_minutes


def detect(
    legs: list[Leg],
    rules: TripRules,
    stops: list[Stop],
    *,
    optimize: bool = False,
    round_trip: bool = False,
    closure_lookup: ClosureLookup = is_closed,
) -> list[Violation]:
    """Return every rule the route breaks, in a fixed check order."""
    issues: list[Violation] = []
    if not legs:
        return issues

    window_hours = drive_budget_minutes(rules) / 60
    wake = rules.wake_time.strftime("%H:%M")
    sleep = rules.sleep_time.strftime("%H:%M")

    # ── Longest single leg ────────────────────────────────────────────
    longest = max(leg.hours for leg in legs)
    if longest > rules.max_single_leg_hours:
        issues.append(Violation(
            ViolationType.LEG,
            f"Longest leg is {fmt(longest)} hrs, exceeds your "
            f"{fmt(rules.max_single_leg_hours)} hr single-leg limit.",
        ))

    if longest > window_hours:
        issues.append(Violation(
            ViolationType.WINDOW,
            f"A leg ({fmt(longest)} hrs) exceeds your {wake}–{sleep} "
            f"driving window of {fmt(window_hours)} hrs.",
        ))

    # ── Trip length ───────────────────────────────────────────────────
    total_hours = sum(leg.hours for leg in legs)
    required_days = max(1, math.ceil(total_hours / max(MIN_WINDOW_HOURS, window_hours)))
    if required_days >= TRIP_LENGTH_ADVISORY_DAYS:
        issues.append(Violation(
            ViolationType.DAYS,
            f"Trip requires ~{required_days} days. Consider raising max drive "
            f"hours/day or reducing stops.",
        ))

    # ── Backtracking ──────────────────────────────────────────────────
    reversals = count_reversals(legs, rules.backtrack_threshold_deg)
    if reversals:
        plural = "s" if reversals > 1 else ""
        hint = (
            " No-backtracking is ON and may help."
            if rules.no_backtracking
            else " Enable no-backtracking to reduce this."
        )
        issues.append(Violation(
            ViolationType.BACKTRACK,
            f"{reversals} leg{plural} reverse direction significantly.{hint}",
        ))

    # ── Seasonal closures ─────────────────────────────────────────────
    if rules.travel_month:
        month = month_name(rules.travel_month)
        for stop in stops:
            if closure_lookup(stop.identity, rules.travel_month):
                issues.append(Violation(
                    ViolationType.CLOSED,
                    f"{stop.name} may be closed or have limited access in {month}.",
                ))

    # ── Over-constrained optimizer ────────────────────────────────────
    if optimize and round_trip and any(s.locked for s in stops):
        issues.append(Violation(
            ViolationType.LOCK,
            "Optimization with locked stops + round trip is constrained. "
            "Try one-way or unlock stops.",
        ))

    return issues


def count_reversals(legs: list[Leg], threshold_deg: float) -> int:
    """Consecutive leg pairs whose headings differ by more than *threshold_deg*."""
    bearings = [bearing_between(leg.from_coords, leg.to_coords) for leg in legs]
    return sum(1 for b1, b2 in zip(bearings, bearings[1:]) if bearing_diff(b1, b2) > threshold_deg)
