"""Leg construction — ordered stops to legs with distance and duration."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from roadtrip.config import MIN_SPEED_MPH, ORIGIN_STOP_ID
from roadtrip.geo import great_circle_miles
from roadtrip.index.route_slicing import is_usable_route, slice_route, straight_line
from roadtrip.models import Coords, Leg, Origin, RouteResult, Stop, TripRules

logger = logging.getLogger(__name__)

DistanceFn = Callable[[Coords, Coords], float]


def stops_for_routing(stops: list[Stop], origin: Optional[Origin]) -> list[Stop]:
    """Prepend the origin as a virtual, locked first stop."""
    if origin is None:
        return list(stops)
    virtual = Stop(id=ORIGIN_STOP_ID, name=origin.name, coords=origin.coords, locked=True)
    return [virtual, *stops]


def waypoints(stops: list[Stop], round_trip: bool) -> list[Stop]:
    """Stops in driving order, with the first repeated at the end for a round trip."""
    if round_trip and stops:
        return [*stops, stops[0]]
    return list(stops)


def build_legs(
    ordered_stops: list[Stop],
    round_trip: bool,
    rules: TripRules,
    distance_fn: DistanceFn = great_circle_miles,
) -> list[Leg]:
    """Pair consecutive stops into legs.

    Duration is ``miles / speed_mph``; geometry starts as a straight line
    and may later be replaced by :func:`attach_route`.
    """
    if len(ordered_stops) < 2:
        return []

    speed = max(MIN_SPEED_MPH, rules.speed_mph)
    path = waypoints(ordered_stops, round_trip)

    legs: list[Leg] = []
    for a, b in zip(path, path[1:]):
        miles = distance_fn(a.coords, b.coords)
        legs.append(
            Leg(
                from_id=a.id,
                to_id=b.id,
                from_name=a.name,
                to_name=b.name,
                miles=miles,
                hours=miles / speed,
                from_coords=a.coords,
                to_coords=b.coords,
                geometry=straight_line(a.coords, b.coords),
            )
        )
    return legs


def attach_route(legs: list[Leg], route: Optional[RouteResult], path: list[Stop]) -> list[Leg]:
    """Replace straight-line leg geometry with slices of the road route.

    *path* is the waypoint list the route was fetched for (round-trip
    closure included).  Router-reported per-leg durations replace the
    speed-based estimate when their count matches.  Any failure keeps the
    existing geometry; distances and durations are never lost.
    """
    if route is None or not legs:
        return legs
    if len(path) - 1 != len(legs):
        logger.warning(
            "Route has %d waypoints but there are %d legs; keeping straight lines",
            len(path), len(legs),
        )
        return legs

    if not route.fallback and is_usable_route(route.geometry):
        try:
            pieces = slice_route(route.geometry, [s.coords for s in path])
        except (ValueError, TypeError) as e:
            logger.warning("Slicing route geometry failed: %s", e)
            pieces = []
        for leg, piece in zip(legs, pieces):
            if piece is not None:
                leg.geometry = piece

    if route.leg_hours is not None:
        if len(route.leg_hours) == len(legs):
            for leg, hours in zip(legs, route.leg_hours):
                leg.hours = hours
        else:
            logger.warning(
                "Router returned %d leg durations for %d legs; keeping estimates",
                len(route.leg_hours), len(legs),
            )
    return legs
