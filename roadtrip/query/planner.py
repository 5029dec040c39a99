"""Main planning logic — runs the optimize → legs → violations pipeline.

All trip state lives in a :class:`PlanningSession`.  Every function here
takes a session and returns a new one, so independent sessions (tests,
concurrent users) never see each other's state.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from typing import Callable, Optional

from shapely.geometry import LineString

from roadtrip.config import OPTIMIZE_SUMMARY_MAX_NAMES
from roadtrip.geo import great_circle_miles
from roadtrip.ingest.closures import ClosureLookup, is_closed
from roadtrip.models import (
    Coords,
    Leg,
    OptimizeSummary,
    PlanningSession,
    RouteResult,
    Stop,
    TripRules,
    TripSummary,
)
from roadtrip.query.dayplan import pack
from roadtrip.query.legs import attach_route, build_legs, stops_for_routing, waypoints
from roadtrip.query.optimizer import optimize
from roadtrip.query.violations import detect

logger = logging.getLogger(__name__)

DistanceFn = Callable[[Coords, Coords], float]
RouteProvider = Callable[[list[Coords]], Optional[RouteResult]]


# ── Input validation ──────────────────────────────────────────────────

def validate_stops(stops: list[Stop]) -> None:
    """Reject stops the engine cannot plan with.

    Raises
    ------
    ValueError
        On duplicate ids or non-finite / out-of-range coordinates.
    """
    seen: set[str] = set()
    for stop in stops:
        if stop.id in seen:
            raise ValueError(f"Duplicate stop id '{stop.id}'")
        seen.add(stop.id)
        lon, lat = stop.coords
        if not (math.isfinite(lon) and math.isfinite(lat)):
            raise ValueError(f"Stop '{stop.name}' has non-finite coordinates")
        if not (-180 <= lon <= 180 and -90 <= lat <= 90):
            raise ValueError(
                f"Stop '{stop.name}' has out-of-range coordinates ({lon}, {lat})"
            )


def validate_rules(rules: TripRules) -> list[str]:
    """Soft warnings about rule combinations that are legal but odd."""
    warnings: list[str] = []
    if rules.max_single_leg_hours > rules.max_drive_hours_per_day:
        warnings.append("Max single-leg hours should not exceed max hours per day")
    return warnings


# ── Summaries ─────────────────────────────────────────────────────────

def _total_miles(legs: list[Leg]) -> float:
    return sum(leg.miles for leg in legs)


def _longest_hours(legs: list[Leg]) -> float:
    return max((leg.hours for leg in legs), default=0.0)


def trip_summary(legs: list[Leg], rules: TripRules) -> TripSummary:
    """Totals for the itinerary header."""
    total_hours = sum(leg.hours for leg in legs)
    longest = _longest_hours(legs)
    if legs and rules.max_drive_hours_per_day > 0:
        days = max(1, math.ceil(total_hours / rules.max_drive_hours_per_day))
    elif legs:
        days = 1
    else:
        days = 0
    return TripSummary(
        total_miles=_total_miles(legs),
        total_hours=total_hours,
        required_days=days,
        longest_leg_hours=longest,
        longest_exceeds_limit=longest > rules.max_single_leg_hours,
    )


# ── Session edits ─────────────────────────────────────────────────────

def _replace_stop(session: PlanningSession, stop_id: str, **changes) -> PlanningSession:
    if not any(s.id == stop_id for s in session.stops):
        raise ValueError(f"Unknown stop id '{stop_id}'")
    stops = [dataclasses.replace(s, **changes) if s.id == stop_id else s for s in session.stops]
    return dataclasses.replace(session, stops=stops)


def set_must_see(session: PlanningSession, stop_id: str, must_see: bool) -> PlanningSession:
    return _replace_stop(session, stop_id, must_see=must_see)


def set_locked(session: PlanningSession, stop_id: str, locked: bool) -> PlanningSession:
    return _replace_stop(session, stop_id, locked=locked)


def reverse_stops(session: PlanningSession) -> PlanningSession:
    return dataclasses.replace(session, stops=list(reversed(session.stops)))


def clear(session: PlanningSession) -> PlanningSession:
    """Drop stops and every derived value; keep rules and toggles.

    Any route request still in flight becomes stale.
    """
    session, _ = begin_route_request(dataclasses.replace(_clear_derived(session), stops=[]))
    return session


def _clear_derived(session: PlanningSession) -> PlanningSession:
    return dataclasses.replace(
        session,
        legs=[],
        day_plan=[],
        dropped_optional=[],
        violations=[],
        route_geometry=None,
        optimize_summary=None,
    )


# ── Pipeline ──────────────────────────────────────────────────────────

def _waypoint_stops(session: PlanningSession) -> list[Stop]:
    return waypoints(stops_for_routing(session.stops, session.origin), session.round_trip)


def _evaluate(session: PlanningSession, closure_lookup: ClosureLookup) -> PlanningSession:
    """Recompute violations, and the day plan if one was already generated."""
    violations = detect(
        session.legs,
        session.rules,
        session.stops,
        optimize=session.optimize,
        round_trip=session.round_trip,
        closure_lookup=closure_lookup,
    )
    session = dataclasses.replace(session, violations=violations)
    if session.day_plan:
        session = generate_day_plan(session)
    return session


def update_route(
    session: PlanningSession,
    *,
    distance_fn: DistanceFn = great_circle_miles,
    route_provider: Optional[RouteProvider] = None,
    closure_lookup: ClosureLookup = is_closed,
) -> PlanningSession:
    """Re-plan the trip from the session's stops, rules and toggles.

    Parameters
    ----------
    session : PlanningSession
        Current trip.  Not mutated.
    distance_fn : callable
        Miles between two (lon, lat) points.
    route_provider : callable, optional
        Returns a road route for the waypoint list, or None.  Without one
        (or when it returns None) legs keep straight-line geometry.
    closure_lookup : callable
        Seasonal-closure lookup for violation checks.
    """
    validate_stops(session.stops)

    min_stops = 1 if session.origin is not None else 2
    if len(session.stops) < min_stops:
        logger.info("Only %d stops; nothing to route", len(session.stops))
        session, _ = begin_route_request(_clear_derived(session))
        return session

    before_miles = _total_miles(session.legs)
    before_longest = _longest_hours(session.legs)
    before_order = [s.name for s in session.stops]

    stops = session.stops
    optimized = False
    if session.optimize:
        origin_coords = session.origin.coords if session.origin else None
        result = optimize(stops, session.rules, origin_coords, distance_fn)
        stops, optimized = result.ordered_stops, result.optimized

    session = dataclasses.replace(session, stops=stops)
    path = stops_for_routing(stops, session.origin)
    legs = build_legs(path, session.round_trip, session.rules, distance_fn)
    session = dataclasses.replace(
        session,
        legs=legs,
        route_geometry=LineString([s.coords for s in waypoints(path, session.round_trip)]),
    )

    session, _ = begin_route_request(session)
    if route_provider is not None:
        route = route_provider([s.coords for s in _waypoint_stops(session)])
        if route is not None:
            session = _with_route(session, route)

    summary = None
    if optimized:
        summary = OptimizeSummary(
            before_miles=before_miles,
            after_miles=_total_miles(session.legs),
            before_longest_hours=before_longest,
            after_longest_hours=_longest_hours(session.legs),
            before_order=before_order[:OPTIMIZE_SUMMARY_MAX_NAMES],
            after_order=[s.name for s in stops][:OPTIMIZE_SUMMARY_MAX_NAMES],
        )
    session = dataclasses.replace(session, optimize_summary=summary)

    session = _evaluate(session, closure_lookup)
    logger.info(
        "Planned %d legs, %.1f mi, %d violations",
        len(session.legs), _total_miles(session.legs), len(session.violations),
    )
    return session


def begin_route_request(session: PlanningSession) -> tuple[PlanningSession, int]:
    """Tag a new route request; older in-flight requests become stale."""
    generation = session.generation + 1
    return dataclasses.replace(session, generation=generation), generation


def apply_route_result(
    session: PlanningSession,
    generation: int,
    route: RouteResult,
    *,
    closure_lookup: ClosureLookup = is_closed,
) -> tuple[PlanningSession, bool]:
    """Attach a fetched route to the session's legs.

    Returns the (possibly unchanged) session and whether the route was
    applied.  A route from a superseded request is ignored.
    """
    if generation != session.generation:
        logger.debug(
            "Ignoring route for generation %d (current %d)", generation, session.generation,
        )
        return session, False

    return _evaluate(_with_route(session, route), closure_lookup), True


def _with_route(session: PlanningSession, route: RouteResult) -> PlanningSession:
    legs = [dataclasses.replace(leg) for leg in session.legs]
    attach_route(legs, route, _waypoint_stops(session))
    return dataclasses.replace(session, legs=legs, route_geometry=route.geometry)


def generate_day_plan(session: PlanningSession) -> PlanningSession:
    """Pack the session's legs into days using each stop's must-see flag."""
    must_see_by_id = {s.id: s.must_see for s in session.stops}
    result = pack(session.legs, session.rules, must_see_by_id)
    return dataclasses.replace(
        session,
        day_plan=result.days,
        dropped_optional=result.dropped_optional,
    )
