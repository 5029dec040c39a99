"""Stop-order optimization — greedy nearest-neighbour with locked stops.

Locked stops keep their absolute index in the sequence.  The search runs
over the unlocked stops only; locked stops are spliced back afterwards.
With ``no_backtracking`` enabled each candidate's distance is inflated in
proportion to how sharply it turns away from the current heading.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from roadtrip.config import MIN_STOPS_TO_OPTIMIZE, MIN_STOPS_TO_OPTIMIZE_WITH_ORIGIN
from roadtrip.geo import bearing_between, bearing_diff, great_circle_miles
from roadtrip.models import Coords, OptimizeResult, Stop, TripRules

logger = logging.getLogger(__name__)

DistanceFn = Callable[[Coords, Coords], float]


def min_stops_to_optimize(has_origin: bool) -> int:
    """An origin anchors the first hop, so one fewer stop is worth ordering."""
    return MIN_STOPS_TO_OPTIMIZE_WITH_ORIGIN if has_origin else MIN_STOPS_TO_OPTIMIZE


def optimize(
    stops: list[Stop],
    rules: TripRules,
    origin_coords: Optional[Coords] = None,
    distance_fn: DistanceFn = great_circle_miles,
) -> OptimizeResult:
    """Order *stops* by nearest neighbour, keeping locked stops in place.

    Parameters
    ----------
    stops : list[Stop]
        Current visiting order.  Not mutated.
    rules : TripRules
        ``no_backtracking`` and ``backtrack_penalty_weight`` are read.
    origin_coords : (lon, lat), optional
        Departure point.  When given, every unlocked stop competes for the
        first slot; otherwise the first unlocked stop stays first.
    distance_fn : callable
        Distance estimator in miles.

    Returns
    -------
    OptimizeResult
        ``optimized`` is False (and the order unchanged) when there are
        too few unlocked stops to be worth reordering.
    """
    threshold = min_stops_to_optimize(origin_coords is not None)
    unlocked = [s for s in stops if not s.locked]
    if len(stops) < threshold or len(unlocked) < threshold:
        logger.debug(
            "Skipping optimization: %d stops (%d unlocked), need %d",
            len(stops), len(unlocked), threshold,
        )
        return OptimizeResult(ordered_stops=list(stops), optimized=False)

    route = _nearest_neighbour(unlocked, rules, origin_coords, distance_fn)
    ordered = _reinsert_locked(stops, route)
    logger.info("Optimized %d stops (%d locked)", len(stops), len(stops) - len(unlocked))
    return OptimizeResult(ordered_stops=ordered, optimized=True)


def _nearest_neighbour(
    candidates: list[Stop],
    rules: TripRules,
    origin_coords: Optional[Coords],
    distance_fn: DistanceFn,
) -> list[Stop]:
    """Greedy tour over *candidates*.  Ties go to the earlier candidate."""
    pool = list(candidates)
    route: list[Stop] = []

    if origin_coords is not None:
        seed = origin_coords
    else:
        first = pool.pop(0)
        route.append(first)
        seed = first.coords

    while pool:
        last = route[-1].coords if route else seed
        prev_bearing = None
        if len(route) >= 2:
            prev_bearing = bearing_between(route[-2].coords, last)

        best_idx = 0
        best_score = float("inf")
        for idx, cand in enumerate(pool):
            score = distance_fn(last, cand.coords)
            if rules.no_backtracking and prev_bearing is not None and score > 0:
                diff = bearing_diff(prev_bearing, bearing_between(last, cand.coords))
                score += (diff / 180.0) * score * rules.backtrack_penalty_weight
            if score < best_score:
                best_score = score
                best_idx = idx

        route.append(pool.pop(best_idx))

    return route


def _reinsert_locked(original: list[Stop], route: list[Stop]) -> list[Stop]:
    """Put locked stops back at their original indices; fill gaps from *route*."""
    locked_by_index = {i: s for i, s in enumerate(original) if s.locked}
    fill = iter(route)
    return [locked_by_index[i] if i in locked_by_index else next(fill) for i in range(len(original))]
