"""Mapbox Directions client — full road-route geometry for an ordered trip.

Any failure (too many waypoints, HTTP error, timeout, malformed payload)
degrades to a straight-line polyline through the waypoints.  Distances and
durations never depend on this module succeeding.

Only the most recent request matters: each call to :meth:`RouteFetcher.fetch`
takes a new generation number, and a response that comes back after a
newer request was issued is dropped.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import requests
from shapely.geometry import LineString

from roadtrip.config import (
    MAPBOX_DIRECTIONS_URL,
    MAPBOX_MAX_WAYPOINTS,
    MAPBOX_TIMEOUT_SECONDS,
    MAPBOX_TOKEN,
)
from roadtrip.index.route_slicing import is_usable_route
from roadtrip.models import Coords, RouteResult

logger = logging.getLogger(__name__)


def straight_line_route(points: list[Coords]) -> RouteResult:
    """Fallback route: a polyline straight through every waypoint."""
    return RouteResult(geometry=LineString(points), fallback=True)


def _parse_directions(data: dict, n_legs: int) -> Optional[RouteResult]:
    """Extract geometry and per-leg durations from a Directions v5 payload."""
    routes = data.get("routes") or []
    if not routes:
        return None
    route = routes[0]

    geom = route.get("geometry") or {}
    if geom.get("type") != "LineString":
        return None
    coords = geom.get("coordinates")
    if not isinstance(coords, list) or len(coords) < 2:
        return None
    try:
        line = LineString([(float(c[0]), float(c[1])) for c in coords])
    except (TypeError, ValueError, IndexError):
        return None
    if not is_usable_route(line):
        return None

    leg_hours = None
    legs = route.get("legs")
    if isinstance(legs, list) and len(legs) == n_legs:
        try:
            leg_hours = [float(leg["duration"]) / 3600 for leg in legs]
        except (KeyError, TypeError, ValueError):
            leg_hours = None

    return RouteResult(geometry=line, leg_hours=leg_hours)


def fetch_route(
    points: list[Coords],
    token: str = MAPBOX_TOKEN,
    session: Optional[requests.Session] = None,
    timeout: float = MAPBOX_TIMEOUT_SECONDS,
) -> RouteResult:
    """Fetch the driving route through *points* (already ordered, origin first).

    Returns
    -------
    RouteResult
        The Mapbox route, or a straight-line fallback with ``fallback=True``.
    """
    if len(points) < 2:
        raise ValueError("A route needs at least two waypoints")

    if len(points) > MAPBOX_MAX_WAYPOINTS:
        logger.warning(
            "Too many waypoints for Mapbox Directions (%d > %d); using straight-line route",
            len(points), MAPBOX_MAX_WAYPOINTS,
        )
        return straight_line_route(points)

    if not token:
        logger.info("No Mapbox token configured; using straight-line route")
        return straight_line_route(points)

    path = ";".join(f"{lon},{lat}" for lon, lat in points)
    params = {"geometries": "geojson", "overview": "full", "access_token": token}
    http = session or requests

    try:
        response = http.get(f"{MAPBOX_DIRECTIONS_URL}/{path}", params=params, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except requests.RequestException as exc:
        logger.warning("Mapbox Directions request failed (%s); using straight-line route", exc)
        return straight_line_route(points)
    except ValueError as exc:
        logger.warning("Mapbox Directions returned invalid JSON (%s); using straight-line route", exc)
        return straight_line_route(points)

    result = _parse_directions(data, len(points) - 1)
    if result is None:
        logger.warning("Mapbox Directions returned no usable geometry; using straight-line route")
        return straight_line_route(points)

    logger.info("Fetched road route with %d points for %d waypoints", len(result.geometry.coords), len(points))
    return result


class RouteFetcher:
    """Issues route requests and drops responses that were superseded.

    Safe to share between threads; every :meth:`fetch` call invalidates
    the ones before it.
    """

    def __init__(self, token: str = MAPBOX_TOKEN, session: Optional[requests.Session] = None):
        self.token = token
        self.session = session or requests.Session()
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        """Reserve a new generation, invalidating any request still in flight."""
        with self._lock:
            self._generation += 1
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def fetch(self, points: list[Coords]) -> Optional[RouteResult]:
        """Fetch a route; returns None if a newer request was issued meanwhile."""
        generation = self.begin()
        result = fetch_route(points, token=self.token, session=self.session)
        if not self.is_current(generation):
            logger.debug("Dropping superseded route response (generation %d)", generation)
            return None
        return result

    def __call__(self, points: list[Coords]) -> Optional[RouteResult]:
        return self.fetch(points)
