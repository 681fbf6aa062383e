import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.routeplanner.main import create_app
from src.routeplanner.persistence.filesystem import RunStorage
from src.routeplanner.services.routing import service as routing_service

DEPOT = {"id": "DEPOT", "latitude": 52.15, "longitude": 4.75, "name": "Depot"}


def _stops() -> list[dict]:
    return [
        {"id": "S1", "latitude": 52.37, "longitude": 4.89, "demand": 2.5, "time_window": "7:00-11:30"},
        {"id": "S2", "latitude": 52.09, "longitude": 5.12, "demand": 1.25},
        {"id": "S3", "latitude": 51.92, "longitude": 4.48, "demand": 4.0, "locality": "Rotterdam"},
        {"id": "S4", "latitude": 52.07, "longitude": 4.30, "demand": 0.5},
    ]


@pytest.fixture
def client(monkeypatch) -> TestClient:
    monkeypatch.setattr(routing_service, "_build_lookup", lambda road_metrics: None)
    return TestClient(create_app())


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_vehicle_types(client):
    response = client.get("/api/vehicles/types")
    assert response.status_code == 200
    types = {item["type_id"]: item["capacity"] for item in response.json()}
    assert types["trailer"] == 13.2
    assert types["busje"] == 2.4


def test_single_route(client):
    response = client.post("/api/routes/single", json={"stops": _stops(), "depot": DEPOT, "seed": 1})

    assert response.status_code == 200
    body = response.json()
    ids = [stop["id"] for stop in body["route"]["stops"]]
    assert ids[0] == "DEPOT"
    assert sorted(ids[1:]) == ["S1", "S2", "S3", "S4"]
    assert len(body["route"]["segments"]) == 5
    assert body["route"]["total_distance_km"] > 0
    assert body["metadata"]["fallback_segments"] == 5


def test_single_route_without_stops_is_bad_request(client, monkeypatch):
    monkeypatch.setattr(routing_service.settings, "default_depot_latitude", None)
    response = client.post("/api/routes/single", json={"stops": []})
    assert response.status_code == 400


def test_fleet_from_catalogue_reports_overload(client):
    response = client.post(
        "/api/routes/fleet",
        json={"stops": _stops(), "depot": DEPOT, "vehicle_types": {"busje": 2}, "seed": 3},
    )

    assert response.status_code == 200
    body = response.json()
    assert len(body["routes"]) == 2
    assert body["overloaded"] is True
    assert body["overloaded_vehicles"]
    assert sum(body["vehicle_loads"]) == pytest.approx(8.25)
    assert body["routes"][0]["vehicle"] == "Busje 1"


def test_fleet_by_count(client):
    response = client.post("/api/routes/fleet", json={"stops": _stops(), "depot": DEPOT, "vehicle_count": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["overloaded"] is False
    visited = [stop["id"] for route in body["routes"] for stop in route["stops"] if stop["id"] != "DEPOT"]
    assert sorted(visited) == ["S1", "S2", "S3", "S4"]


def test_fleet_empty_stops(client):
    response = client.post("/api/routes/fleet", json={"stops": [], "vehicles": [{"capacity": 5.0}]})

    assert response.status_code == 200
    body = response.json()
    assert body["routes"] == []
    assert body["total_distance_km"] == 0.0


def test_fleet_requires_single_vehicle_source(client):
    response = client.post(
        "/api/routes/fleet",
        json={"stops": _stops(), "vehicle_count": 2, "vehicles": [{"capacity": 5.0}]},
    )
    assert response.status_code == 422


def test_fleet_unknown_vehicle_type_is_bad_request(client):
    response = client.post("/api/routes/fleet", json={"stops": _stops(), "vehicle_types": {"zeppelin": 1}})
    assert response.status_code == 400


def test_fleet_persists_outputs(client, monkeypatch, tmp_path: Path):
    monkeypatch.setattr(routing_service, "RunStorage", lambda: RunStorage(root=tmp_path))

    response = client.post(
        "/api/routes/fleet",
        json={"stops": _stops(), "depot": DEPOT, "vehicles": [{"capacity": 7.2}, {"capacity": 7.2}], "persist": True},
    )

    assert response.status_code == 200
    run_dirs = list((tmp_path / "runs").iterdir())
    assert len(run_dirs) == 1
    summary = json.loads((run_dirs[0] / "summary.json").read_text(encoding="utf-8"))
    assert len(summary["vehicles"]) == 2
    sheet = (run_dirs[0] / "route_sheet.csv").read_text(encoding="utf-8")
    assert sheet.splitlines()[0].startswith("vehicle,sequence,stop_id")
    for stop_id in ("S1", "S2", "S3", "S4"):
        assert f",{stop_id}," in sheet
