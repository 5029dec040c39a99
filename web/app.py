"""FastAPI web app for the Road Trip Planner."""

from __future__ import annotations

import dataclasses
import logging
from contextlib import asynccontextmanager
from typing import Optional

import requests
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from roadtrip.clock import minutes_to_hhmm, parse_hhmm
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
    ORIGIN_DEFAULT_NAME,
)
from roadtrip.ingest.closures import closed_in_month
from roadtrip.ingest.directions import RouteFetcher
from roadtrip.models import Leg, Origin, PlanningSession, Stop, TripRules
from roadtrip.query.dayplan import schedule_day
from roadtrip.query.planner import generate_day_plan, trip_summary, update_route, validate_rules

logger = logging.getLogger(__name__)

# Connection pool shared by all requests; supersession is tracked per request.
_http = requests.Session()


def _get_route_fetcher() -> RouteFetcher:
    """A fresh fetcher per planning request, so other users cannot supersede it."""
    return RouteFetcher(session=_http)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s: %(message)s")
    logger.info("Starting Road Trip Planner web app")
    yield


app = FastAPI(title="Road Trip Planner", version="0.1.0", lifespan=lifespan)


# ── Pydantic request/response models ────────────────────────────────


class StopIn(BaseModel):
    id: str
    name: str
    lon: float
    lat: float
    locked: bool = False
    must_see: bool = True
    park_code: Optional[str] = None


class OriginIn(BaseModel):
    name: str = ORIGIN_DEFAULT_NAME
    lon: float
    lat: float


class RulesIn(BaseModel):
    max_drive_hours_per_day: float = DEFAULT_MAX_DRIVE_HOURS_PER_DAY
    max_single_leg_hours: float = DEFAULT_MAX_SINGLE_LEG_HOURS
    break_minutes_per_day: int = DEFAULT_BREAK_MINUTES_PER_DAY
    wake_time: str = DEFAULT_WAKE_TIME.strftime("%H:%M")
    sleep_time: str = DEFAULT_SLEEP_TIME.strftime("%H:%M")
    speed_mph: float = DEFAULT_SPEED_MPH
    no_backtracking: bool = False
    visit_hours_per_park: float = DEFAULT_VISIT_HOURS_PER_PARK
    travel_month: Optional[int] = None
    backtrack_threshold_deg: float = BACKTRACK_THRESHOLD_DEG
    backtrack_penalty_weight: float = BACKTRACK_PENALTY_WEIGHT


class PlanRequest(BaseModel):
    stops: list[StopIn]
    rules: RulesIn = RulesIn()
    origin: Optional[OriginIn] = None
    round_trip: bool = False
    optimize: bool = True
    day_plan: bool = False
    fetch_route: bool = False


class LegOut(BaseModel):
    from_id: str
    to_id: str
    from_name: str
    to_name: str
    miles: float
    hours: float
    geometry: list[list[float]]  # [[lat, lon], ...]


class StopOut(BaseModel):
    id: str
    name: str
    lat: float
    lon: float
    locked: bool
    must_see: bool


class SummaryOut(BaseModel):
    total_miles: float
    total_hours: float
    required_days: int
    longest_leg_hours: float
    longest_exceeds_limit: bool


class OptimizeSummaryOut(BaseModel):
    before_miles: float
    after_miles: float
    before_longest_hours: float
    after_longest_hours: float
    before_order: list[str]
    after_order: list[str]


class ViolationOut(BaseModel):
    type: str
    message: str


class ScheduledLegOut(BaseModel):
    leg: int
    depart: str
    arrive: str
    visit_minutes_after: int


class DayOut(BaseModel):
    day: int
    legs: list[int]
    miles: float
    drive_hours: float
    start: str
    end: str
    schedule: list[ScheduledLegOut]


class PlanResponse(BaseModel):
    stops: list[StopOut]
    legs: list[LegOut]
    summary: SummaryOut
    optimize_summary: Optional[OptimizeSummaryOut] = None
    violations: list[ViolationOut]
    rule_warnings: list[str]
    days: list[DayOut]
    dropped_optional: list[str]


# ── Conversion helpers ───────────────────────────────────────────────


def _to_rules(req: RulesIn) -> TripRules:
    defaults = TripRules()
    return TripRules(
        max_drive_hours_per_day=req.max_drive_hours_per_day,
        max_single_leg_hours=req.max_single_leg_hours,
        break_minutes_per_day=req.break_minutes_per_day,
        wake_time=parse_hhmm(req.wake_time, defaults.wake_time),
        sleep_time=parse_hhmm(req.sleep_time, defaults.sleep_time),
        speed_mph=req.speed_mph,
        no_backtracking=req.no_backtracking,
        visit_hours_per_park=req.visit_hours_per_park,
        travel_month=req.travel_month or None,
        backtrack_threshold_deg=req.backtrack_threshold_deg,
        backtrack_penalty_weight=req.backtrack_penalty_weight,
    )


def _to_session(req: PlanRequest) -> PlanningSession:
    stops = [
        Stop(
            id=s.id,
            name=s.name,
            coords=(s.lon, s.lat),
            locked=s.locked,
            must_see=s.must_see,
            park_code=s.park_code,
        )
        for s in req.stops
    ]
    origin = None
    if req.origin is not None:
        origin = Origin(name=req.origin.name, coords=(req.origin.lon, req.origin.lat))
    return PlanningSession(
        stops=stops,
        rules=_to_rules(req.rules),
        round_trip=req.round_trip,
        optimize=req.optimize,
        origin=origin,
    )


def _serialize_leg(leg: Leg) -> LegOut:
    return LegOut(
        from_id=leg.from_id,
        to_id=leg.to_id,
        from_name=leg.from_name,
        to_name=leg.to_name,
        miles=round(leg.miles, 1),
        hours=round(leg.hours, 2),
        geometry=[[lat, lon] for lon, lat in leg.geometry.coords],
    )


def _serialize_session(session: PlanningSession) -> PlanResponse:
    summary = trip_summary(session.legs, session.rules)
    opt = session.optimize_summary

    days = []
    for d in session.day_plan:
        days.append(DayOut(
            day=d.day,
            legs=d.legs,
            miles=round(d.miles, 1),
            drive_hours=round(d.drive_hours, 2),
            start=minutes_to_hhmm(d.start_minutes),
            end=minutes_to_hhmm(d.end_minutes),
            schedule=[
                ScheduledLegOut(
                    leg=row.leg_index,
                    depart=minutes_to_hhmm(row.depart_minutes),
                    arrive=minutes_to_hhmm(row.arrive_minutes),
                    visit_minutes_after=row.visit_minutes_after,
                )
                for row in schedule_day(d, session.legs)
            ],
        ))

    return PlanResponse(
        stops=[
            StopOut(
                id=s.id, name=s.name, lat=s.coords[1], lon=s.coords[0],
                locked=s.locked, must_see=s.must_see,
            )
            for s in session.stops
        ],
        legs=[_serialize_leg(leg) for leg in session.legs],
        summary=SummaryOut(**dataclasses.asdict(summary)),
        optimize_summary=OptimizeSummaryOut(**dataclasses.asdict(opt)) if opt else None,
        violations=[ViolationOut(type=v.type.value, message=v.message) for v in session.violations],
        rule_warnings=validate_rules(session.rules),
        days=days,
        dropped_optional=session.dropped_optional,
    )


# ── API endpoints ────────────────────────────────────────────────────


@app.get("/api/rules/defaults")
async def get_default_rules():
    """Return the default trip rules."""
    rules = TripRules()
    return {
        "max_drive_hours_per_day": rules.max_drive_hours_per_day,
        "max_single_leg_hours": rules.max_single_leg_hours,
        "break_minutes_per_day": rules.break_minutes_per_day,
        "wake_time": rules.wake_time.strftime("%H:%M"),
        "sleep_time": rules.sleep_time.strftime("%H:%M"),
        "speed_mph": rules.speed_mph,
        "no_backtracking": rules.no_backtracking,
        "visit_hours_per_park": rules.visit_hours_per_park,
        "travel_month": rules.travel_month,
        "backtrack_threshold_deg": rules.backtrack_threshold_deg,
        "backtrack_penalty_weight": rules.backtrack_penalty_weight,
    }


@app.get("/api/closures")
async def get_closures(month: int):
    """Return park codes with seasonal closures in the given month."""
    try:
        codes = closed_in_month(month)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"month": month, "closed": codes}


@app.post("/api/plan", response_model=PlanResponse)
def plan(req: PlanRequest):
    """Order stops, build legs and check rules; optionally pack into days."""
    try:
        session = _to_session(req)
        provider = _get_route_fetcher() if req.fetch_route else None
        session = update_route(session, route_provider=provider)
        if req.day_plan:
            session = generate_day_plan(session)
    except ValueError as e:
        raise HTTPException(400, str(e))

    return _serialize_session(session)
