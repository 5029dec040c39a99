"""Great-circle distance and compass bearings.

All points are ``(lon, lat)`` tuples in WGS84 degrees, matching the
coordinate order Shapely geometries use.
"""

from __future__ import annotations

import math

from roadtrip.config import EARTH_RADIUS_MILES
from roadtrip.models import Coords


def great_circle_miles(a: Coords, b: Coords) -> float:
    """Return the great-circle distance in **miles** between two points.

    Uses the Haversine formula with the math standard library only.
    """
    lon1, lat1 = a
    lon2, lat2 = b

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return EARTH_RADIUS_MILES * c


def bearing_between(a: Coords, b: Coords) -> float:
    """Initial compass bearing from *a* to *b*, in degrees [0, 360)."""
    d_lambda = math.radians(b[0] - a[0])
    phi1 = math.radians(a[1])
    phi2 = math.radians(b[1])

    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    return (math.degrees(math.atan2(y, x)) + 360) % 360


def bearing_diff(b1: float, b2: float) -> float:
    """Smallest angle between two bearings, in degrees [0, 180]."""
    d = abs(b1 - b2) % 360
    return 360 - d if d > 180 else d
