"""Tests for the FastAPI web app."""

from __future__ import annotations

import threading
import time
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient
from shapely.geometry import LineString

from roadtrip.models import RouteResult
from web.app import _get_route_fetcher, app


client = TestClient(app)

STOPS = [
    {"id": "c", "name": "C", "lon": 2.0, "lat": 0.0},
    {"id": "b", "name": "B", "lon": 1.0, "lat": 0.0},
    {"id": "a", "name": "A", "lon": 0.0, "lat": 0.0},
]


class TestRulesEndpoint:
    def test_defaults(self):
        res = client.get("/api/rules/defaults")
        assert res.status_code == 200
        data = res.json()
        assert data["max_drive_hours_per_day"] == 6
        assert data["max_single_leg_hours"] == 10
        assert data["wake_time"] == "08:00"
        assert data["sleep_time"] == "20:00"
        assert data["travel_month"] is None
        assert data["backtrack_threshold_deg"] == 120
        assert data["backtrack_penalty_weight"] == 1.0


class TestClosuresEndpoint:
    def test_january(self):
        res = client.get("/api/closures", params={"month": 1})
        assert res.status_code == 200
        data = res.json()
        assert data["month"] == 1
        assert "yell" in data["closed"]
        assert data["closed"] == sorted(data["closed"])

    def test_bad_month(self):
        res = client.get("/api/closures", params={"month": 13})
        assert res.status_code == 400


class TestPlanEndpoint:
    def test_origin_scenario(self):
        res = client.post("/api/plan", json={
            "stops": STOPS,
            "origin": {"name": "Home", "lon": -1.0, "lat": 0.0},
            "optimize": True,
        })
        assert res.status_code == 200
        data = res.json()
        assert [s["id"] for s in data["stops"]] == ["a", "b", "c"]
        assert [l["to_id"] for l in data["legs"]] == ["a", "b", "c"]
        assert data["legs"][0]["from_name"] == "Home"
        assert data["violations"] == []
        assert data["optimize_summary"]["after_order"] == ["A", "B", "C"]
        assert data["summary"]["required_days"] == 1
        assert data["days"] == []

    def test_geometry_is_lat_lon(self):
        res = client.post("/api/plan", json={"stops": STOPS[:2], "optimize": False})
        leg = res.json()["legs"][0]
        assert leg["geometry"] == [[0.0, 2.0], [0.0, 1.0]]

    def test_too_few_stops(self):
        res = client.post("/api/plan", json={"stops": STOPS[:1]})
        assert res.status_code == 200
        assert res.json()["legs"] == []

    def test_duplicate_ids(self):
        stops = [dict(STOPS[0]), dict(STOPS[1], id="c")]
        res = client.post("/api/plan", json={"stops": stops})
        assert res.status_code == 400
        assert "Duplicate" in res.json()["detail"]

    def test_out_of_range_coords(self):
        stops = [dict(STOPS[0], lat=95.0), STOPS[1]]
        res = client.post("/api/plan", json={"stops": stops})
        assert res.status_code == 400

    def test_bad_rules(self):
        res = client.post("/api/plan", json={"stops": STOPS, "rules": {"speed_mph": -5}})
        assert res.status_code == 400

    def test_violations_and_warnings(self):
        res = client.post("/api/plan", json={
            "stops": [
                {"id": "y", "name": "Yellowstone", "lon": -110.59, "lat": 44.43, "park_code": "yell"},
                {"id": "z", "name": "Zion", "lon": -113.03, "lat": 37.30},
            ],
            "rules": {"travel_month": 1},
        })
        data = res.json()
        types = [v["type"] for v in data["violations"]]
        assert "closed" in types
        assert data["rule_warnings"]  # default 10h leg cap exceeds the 6h day cap

    def test_day_plan(self):
        res = client.post("/api/plan", json={
            "stops": STOPS,
            "rules": {"wake_time": "07:00", "max_drive_hours_per_day": 2},
            "optimize": False,
            "day_plan": True,
        })
        assert res.status_code == 200
        days = res.json()["days"]
        assert [d["legs"] for d in days] == [[0], [1]]
        assert days[0]["start"] == "07:00"
        assert days[0]["schedule"][0]["depart"] == "07:00"
        assert days[0]["schedule"][0]["visit_minutes_after"] == 0

    @patch("web.app._get_route_fetcher")
    def test_fetch_route(self, mock_get_fetcher):
        fetcher = MagicMock(return_value=RouteResult(
            geometry=LineString([(2, 0), (1.5, 0.3), (1, 0), (0, 0)]),
            leg_hours=[2.0, 3.0],
        ))
        mock_get_fetcher.return_value = fetcher
        res = client.post("/api/plan", json={"stops": STOPS, "optimize": False, "fetch_route": True})

        assert res.status_code == 200
        fetcher.assert_called_once()
        legs = res.json()["legs"]
        assert [l["hours"] for l in legs] == [2.0, 3.0]
        assert [0.3, 1.5] in legs[0]["geometry"]

    @patch("web.app._get_route_fetcher")
    def test_no_fetch_by_default(self, mock_get_fetcher):
        client.post("/api/plan", json={"stops": STOPS})
        mock_get_fetcher.assert_not_called()

    def test_backtrack_threshold_from_request(self):
        stops = [
            {"id": "a", "name": "A", "lon": 0.0, "lat": 0.0},
            {"id": "b", "name": "B", "lon": 1.0, "lat": 0.0},
            {"id": "c", "name": "C", "lon": 1.0, "lat": 1.0},
        ]
        loose = client.post("/api/plan", json={"stops": stops, "optimize": False})
        assert loose.json()["violations"] == []

        strict = client.post("/api/plan", json={
            "stops": stops,
            "optimize": False,
            "rules": {"backtrack_threshold_deg": 60},
        })
        assert [v["type"] for v in strict.json()["violations"]] == ["backtrack"]


class TestRouteFetcherIsolation:
    def test_fresh_fetcher_per_request(self):
        assert _get_route_fetcher() is not _get_route_fetcher()

    @patch("roadtrip.ingest.directions.fetch_route")
    def test_concurrent_requests_do_not_supersede_each_other(self, mock_fetch):
        slow_points = [(0.0, 0.0), (1.0, 0.0)]
        fast_points = [(5.0, 0.0), (6.0, 0.0)]

        def fake_fetch(points, token=None, session=None):
            time.sleep(0.3 if points == slow_points else 0.05)
            return RouteResult(geometry=LineString(points))

        mock_fetch.side_effect = fake_fetch
        results = {}

        def plan(name, points):
            results[name] = _get_route_fetcher()(points)

        first = threading.Thread(target=plan, args=("first", slow_points))
        second = threading.Thread(target=plan, args=("second", fast_points))
        first.start()
        time.sleep(0.05)
        second.start()
        first.join()
        second.join()

        assert results["first"] is not None
        assert results["second"] is not None
        assert list(results["first"].geometry.coords) == slow_points
