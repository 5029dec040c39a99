"""Core data structures for the Road Trip Planner."""

from __future__ import annotations

import datetime
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from shapely.geometry import LineString

from roadtrip.config import (
    BACKTRACK_PENALTY_WEIGHT,
    BACKTRACK_THRESHOLD_DEG,
    DEFAULT_BREAK_MINUTES_PER_DAY,
    DEFAULT_MAX_DRIVE_HOURS_PER_DAY,
    DEFAULT_MAX_SINGLE_LEG_HOURS,
    DEFAULT_SLEEP_TIME,
    DEFAULT_SPEED_MPH,
    DEFAULT_VISIT_HOURS_PER_PARK,
    DEFAULT_WAKE_TIME,
)

# (lon, lat) in WGS84 degrees, the order shapely uses
Coords = tuple[float, float]


@dataclass(frozen=True)
class Stop:
    """A destination the traveller wants to visit."""
    id: str
    name: str
    coords: Coords
    locked: bool = False
    must_see: bool = True
    park_code: Optional[str] = None  # identity for seasonal-closure lookups

    @property
    def identity(self) -> str:
        return self.park_code or self.id


@dataclass(frozen=True)
class Origin:
    """Where the traveller departs from.  Never part of the stop list."""
    name: str
    coords: Coords


@dataclass
class Leg:
    """One directed drive between two consecutive stops."""
    from_id: str
    to_id: str
    from_name: str
    to_name: str
    miles: float
    hours: float
    from_coords: Coords
    to_coords: Coords
    geometry: LineString


@dataclass(frozen=True)
class TripRules:
    """User-configured driving rules.  Immutable for one planning call."""
    max_drive_hours_per_day: float = DEFAULT_MAX_DRIVE_HOURS_PER_DAY
    max_single_leg_hours: float = DEFAULT_MAX_SINGLE_LEG_HOURS
    break_minutes_per_day: int = DEFAULT_BREAK_MINUTES_PER_DAY
    wake_time: datetime.time = DEFAULT_WAKE_TIME
    sleep_time: datetime.time = DEFAULT_SLEEP_TIME
    speed_mph: float = DEFAULT_SPEED_MPH
    no_backtracking: bool = False
    visit_hours_per_park: float = DEFAULT_VISIT_HOURS_PER_PARK
    travel_month: Optional[int] = None  # None = any month
    # ── heuristic constants ──
    backtrack_threshold_deg: float = BACKTRACK_THRESHOLD_DEG
    backtrack_penalty_weight: float = BACKTRACK_PENALTY_WEIGHT

    def __post_init__(self) -> None:
        for name in (
            "max_drive_hours_per_day",
            "max_single_leg_hours",
            "break_minutes_per_day",
            "speed_mph",
            "visit_hours_per_park",
            "backtrack_penalty_weight",
        ):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be a non-negative number, got {value!r}")
        if self.travel_month is not None and not 1 <= self.travel_month <= 12:
            raise ValueError(f"travel_month must be between 1 and 12, got {self.travel_month}")
        if not 0 <= self.backtrack_threshold_deg <= 180:
            raise ValueError(
                f"backtrack_threshold_deg must be between 0 and 180, got {self.backtrack_threshold_deg}"
            )


@dataclass
class DayPlanEntry:
    """One scheduled driving day: a contiguous slice of the route."""
    day: int
    legs: list[int]  # indices into the leg list
    miles: float
    drive_hours: float
    visit_minutes: int
    start_minutes: int
    end_minutes: float


@dataclass
class ScheduledLeg:
    """A leg placed on a day's clock."""
    leg_index: int
    depart_minutes: int
    arrive_minutes: int
    visit_minutes_after: int


@dataclass
class DayPlanResult:
    days: list[DayPlanEntry] = field(default_factory=list)
    dropped_optional: list[str] = field(default_factory=list)


class ViolationType(str, Enum):
    LEG = "leg"
    WINDOW = "window"
    DAYS = "days"
    BACKTRACK = "backtrack"
    CLOSED = "closed"
    LOCK = "lock"


@dataclass(frozen=True)
class Violation:
    """An advisory about the realized route.  Never blocks planning."""
    type: ViolationType
    message: str


@dataclass
class OptimizeResult:
    ordered_stops: list[Stop]
    optimized: bool


@dataclass
class TripSummary:
    total_miles: float
    total_hours: float
    required_days: int
    longest_leg_hours: float
    longest_exceeds_limit: bool


@dataclass
class OptimizeSummary:
    before_miles: float
    after_miles: float
    before_longest_hours: float
    after_longest_hours: float
    before_order: list[str]
    after_order: list[str]


@dataclass
class RouteResult:
    """Full-route polyline from a routing provider (or its fallback)."""
    geometry: LineString
    leg_hours: Optional[list[float]] = None  # per-leg durations reported by the router
    fallback: bool = False


@dataclass
class PlanningSession:
    """Everything one planning session knows about the current trip.

    Pipeline calls take a session and return a new one; nothing here is
    shared between sessions.
    """
    stops: list[Stop] = field(default_factory=list)
    rules: TripRules = field(default_factory=TripRules)
    round_trip: bool = False
    optimize: bool = False
    origin: Optional[Origin] = None
    # ── derived state ──
    legs: list[Leg] = field(default_factory=list)
    day_plan: list[DayPlanEntry] = field(default_factory=list)
    dropped_optional: list[str] = field(default_factory=list)
    violations: list[Violation] = field(default_factory=list)
    route_geometry: Optional[LineString] = None
    optimize_summary: Optional[OptimizeSummary] = None
    generation: int = 0
