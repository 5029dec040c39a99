"""Slice a full-route polyline into per-leg polylines.

Each waypoint is projected onto the road route and the line is cut between
consecutive projections, so leg highlighting follows the road rather than
a straight chord.  Projections are searched forward from the previous cut
so a round trip's closing waypoint lands at the end of the line, not back
at its start.
"""

from __future__ import annotations

import logging

from shapely.geometry import LineString, Point
from shapely.ops import substring

from roadtrip.models import Coords

logger = logging.getLogger(__name__)


def straight_line(a: Coords, b: Coords) -> LineString:
    """Fallback leg geometry: the chord between two endpoints."""
    return LineString([a, b])


def is_usable_route(geometry) -> bool:
    """True for a non-empty LineString with at least two points."""
    return (
        isinstance(geometry, LineString)
        and not geometry.is_empty
        and len(geometry.coords) >= 2
    )


def slice_route(route: LineString, waypoints: list[Coords]) -> list[LineString | None]:
    """Cut *route* at each waypoint's nearest point.

    Parameters
    ----------
    route : LineString
        Full road route in (lon, lat) order.
    waypoints : list of (lon, lat)
        Stops in visiting order, including the closing stop of a round
        trip.

    Returns
    -------
    list[LineString | None]
        One entry per consecutive waypoint pair.  ``None`` where the slice
        degenerated (e.g. two waypoints snapping to the same point).
    """
    if len(waypoints) < 2:
        return []

    total = route.length
    cuts: list[float] = []
    prev = 0.0
    for coords in waypoints:
        remaining = substring(route, prev, total)
        if isinstance(remaining, LineString) and not remaining.is_empty:
            offset = prev + remaining.project(Point(coords))
        else:
            offset = prev
        cuts.append(offset)
        prev = offset

    pieces: list[LineString | None] = []
    for start, end in zip(cuts, cuts[1:]):
        piece = substring(route, start, end)
        if is_usable_route(piece):
            pieces.append(piece)
        else:
            pieces.append(None)

    logger.debug(
        "Sliced route into %d legs (%d degenerate)",
        len(pieces),
        sum(1 for p in pieces if p is None),
    )
    return pieces
