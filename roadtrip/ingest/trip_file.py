"""Trip JSON files for the CLI.

Format::

    {
      "origin": {"name": "Denver", "lon": -104.99, "lat": 39.74},
      "stops": [
        {"id": "romo", "name": "Rocky Mountain", "lon": -105.68, "lat": 40.34,
         "locked": false, "must_see": true, "park_code": "romo"}
      ],
      "rules": {"max_drive_hours_per_day": 6, "wake_time": "08:00"}
    }

``origin`` and ``rules`` are optional.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from roadtrip.clock import parse_hhmm
from roadtrip.config import ORIGIN_DEFAULT_NAME
from roadtrip.models import Origin, Stop, TripRules

logger = logging.getLogger(__name__)

_TIME_FIELDS = ("wake_time", "sleep_time")
_INT_FIELDS = ("break_minutes_per_day", "travel_month")
_BOOL_FIELDS = ("no_backtracking",)


def parse_stop(entry: dict, index: int) -> Stop:
    try:
        lon = float(entry["lon"])
        lat = float(entry["lat"])
    except (KeyError, TypeError, ValueError):
        raise ValueError(f"Stop #{index + 1} needs numeric 'lon' and 'lat'")
    name = str(entry.get("name") or f"Stop {index + 1}")
    return Stop(
        id=str(entry.get("id", index)),
        name=name,
        coords=(lon, lat),
        locked=bool(entry.get("locked", False)),
        must_see=entry.get("must_see", True) is not False,
        park_code=entry.get("park_code"),
    )


def parse_rules(data: dict | None) -> TripRules:
    if not data:
        return TripRules()
    known = set(TripRules.__dataclass_fields__)
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown rule(s): {', '.join(sorted(unknown))}")
    defaults = TripRules()
    kwargs = {name: _coerce_rule(name, value, defaults) for name, value in data.items()}
    return TripRules(**kwargs)


def _coerce_rule(name: str, value, defaults: TripRules):
    """Convert one JSON rule value to the type TripRules expects."""
    if name in _TIME_FIELDS:
        return parse_hhmm(value, getattr(defaults, name))
    if name in _BOOL_FIELDS:
        if not isinstance(value, bool):
            raise ValueError(f"Rule '{name}' must be true or false, got {value!r}")
        return value
    if name == "travel_month" and value is None:
        return None
    message = f"Rule '{name}' must be a number, got {value!r}"
    if isinstance(value, bool):
        raise ValueError(message)
    try:
        return int(value) if name in _INT_FIELDS else float(value)
    except (TypeError, ValueError):
        raise ValueError(message)


def parse_trip(data: dict) -> tuple[list[Stop], TripRules, Origin | None]:
    """Turn a decoded trip document into stops, rules and an optional origin."""
    stops = [parse_stop(entry, i) for i, entry in enumerate(data.get("stops", []))]
    rules = parse_rules(data.get("rules"))

    origin = None
    raw_origin = data.get("origin")
    if raw_origin:
        try:
            coords = (float(raw_origin["lon"]), float(raw_origin["lat"]))
        except (KeyError, TypeError, ValueError):
            raise ValueError("Origin needs numeric 'lon' and 'lat'")
        origin = Origin(name=str(raw_origin.get("name") or ORIGIN_DEFAULT_NAME), coords=coords)

    return stops, rules, origin


def load_trip(path: Path) -> tuple[list[Stop], TripRules, Origin | None]:
    """Read and parse a trip JSON file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Trip file {path} is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise ValueError(f"Trip file {path} must contain a JSON object")
    stops, rules, origin = parse_trip(data)
    logger.info("Loaded %d stops from %s", len(stops), path)
    return stops, rules, origin
