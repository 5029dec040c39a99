"""Constants and configuration for the Road Trip Planner."""

import datetime
import os

# ── Default trip rules ────────────────────────────────────────────────
DEFAULT_MAX_DRIVE_HOURS_PER_DAY = 6.0
DEFAULT_MAX_SINGLE_LEG_HOURS = 10.0
DEFAULT_BREAK_MINUTES_PER_DAY = 0
DEFAULT_WAKE_TIME = datetime.time(8, 0)    # earliest departure each day
DEFAULT_SLEEP_TIME = datetime.time(20, 0)  # latest arrival each day
DEFAULT_SPEED_MPH = 55.0
DEFAULT_VISIT_HOURS_PER_PARK = 1.5
MIN_SPEED_MPH = 1.0

# ── Optimizer heuristics ──────────────────────────────────────────────
MIN_STOPS_TO_OPTIMIZE = 3
MIN_STOPS_TO_OPTIMIZE_WITH_ORIGIN = 2
BACKTRACK_THRESHOLD_DEG = 120.0  # consecutive legs turning more than this are flagged
BACKTRACK_PENALTY_WEIGHT = 1.0   # 1.0 -> a full reversal doubles the leg score

# ── Advisories ────────────────────────────────────────────────────────
TRIP_LENGTH_ADVISORY_DAYS = 10
MIN_WINDOW_HOURS = 0.1
OPTIMIZE_SUMMARY_MAX_NAMES = 10

# ── Geo ───────────────────────────────────────────────────────────────
EARTH_RADIUS_MILES = 3958.8

# ── Origin ────────────────────────────────────────────────────────────
ORIGIN_STOP_ID = "__origin__"
ORIGIN_DEFAULT_NAME = "Origin"

# ── Mapbox Directions ─────────────────────────────────────────────────
MAPBOX_DIRECTIONS_URL = "https://api.mapbox.com/directions/v5/mapbox/driving"
MAPBOX_TOKEN = os.environ.get("MAPBOX_TOKEN", "")
MAPBOX_MAX_WAYPOINTS = 25
MAPBOX_TIMEOUT_SECONDS = 15

# ── Seasonal closures ─────────────────────────────────────────────────
# Months (1-12) each park is typically fully or partially closed to road
# access.  Parks not listed are accessible year-round.
PARK_CLOSED_MONTHS: dict[str, list[int]] = {
    "blca": [1, 2, 3, 11, 12],
    "crla": [11, 12, 1, 2],
    "dena": [10, 11, 12, 1, 2, 3, 4],
    "gaar": [10, 11, 12, 1, 2, 3],
    "glac": [11, 12, 1, 2, 3],
    "grte": [11, 12, 1, 2],
    "grba": [11, 12, 1, 2],
    "isro": [11, 12, 1, 2, 3, 4, 5],
    "katm": [10, 11, 12, 1, 2, 3, 4],
    "kefj": [11, 12, 1, 2, 3],
    "kova": [10, 11, 12, 1, 2, 3, 4, 5],
    "lacl": [10, 11, 12, 1, 2, 3, 4],
    "lavo": [11, 12, 1, 2],
    "mora": [11, 12, 1, 2],
    "noca": [11, 12, 1, 2],
    "romo": [11, 12, 1, 2],
    "seki": [11, 12, 1, 2],
    "voya": [4, 5],
    "wrst": [10, 11, 12, 1, 2, 3, 4],
    "yell": [11, 12, 1, 2, 3],
}
