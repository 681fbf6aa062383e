import asyncio

import pytest

from src.routeplanner.models.domain import Stop
from src.routeplanner.services.geospatial import haversine_km
from src.routeplanner.services.routing.enrichment import closed_legs, enrich_fleet, enrich_route
from src.routeplanner.services.routing.models import EdgeMetrics, FleetPlan, OrderedRoute

DEPOT = Stop("DEPOT", 52.15, 4.75)
A = Stop("A", 52.37, 4.89)
B = Stop("B", 52.09, 5.12)


class FakeLookup:
    """Road distance = 1.5x straight line; configured edges fail or hang."""

    def __init__(self, failing: set[tuple[str, str]] | None = None, slow: set[tuple[str, str]] | None = None):
        self.failing = failing or set()
        self.slow = slow or set()
        self.calls: list[tuple[tuple[float, float], tuple[float, float]]] = []
        self._ids = {stop.coordinate: stop.stop_id for stop in (DEPOT, A, B)}

    async def lookup(self, origin, destination):
        self.calls.append((origin, destination))
        key = (self._ids[origin], self._ids[destination])
        if key in self.failing:
            raise ConnectionError("routing service unavailable")
        if key in self.slow:
            await asyncio.sleep(5)
        distance = haversine_km(*origin, *destination) * 1.5
        return EdgeMetrics(distance_km=distance, duration_sec=distance * 60, coordinates=[origin, destination])


def _route() -> OrderedRoute:
    return OrderedRoute(stops=[DEPOT, A, B], total_distance_km=0.0)


def test_closed_legs_return_to_start():
    legs = closed_legs([DEPOT, A, B])
    assert [(o.stop_id, d.stop_id) for o, d in legs] == [("DEPOT", "A"), ("A", "B"), ("B", "DEPOT")]
    assert closed_legs([DEPOT]) == []


def test_enrich_route_uses_road_metrics():
    lookup = FakeLookup()
    enriched = asyncio.run(enrich_route(_route(), lookup))

    assert len(lookup.calls) == 3
    assert enriched.fallback_segments == 0
    straight = sum(haversine_km(*o.coordinate, *d.coordinate) for o, d in closed_legs(_route().stops))
    assert enriched.total_distance_km == pytest.approx(straight * 1.5)
    assert len(enriched.geometry) == 3


def test_failed_lookup_falls_back_per_edge():
    lookup = FakeLookup(failing={("A", "B")})
    enriched = asyncio.run(enrich_route(_route(), lookup))

    assert enriched.fallback_segments == 1
    fallback = enriched.segments[1]
    assert fallback.fallback is True
    assert fallback.distance_km == pytest.approx(haversine_km(*A.coordinate, *B.coordinate))
    assert fallback.coordinates == [A.coordinate, B.coordinate]
    assert enriched.segments[0].fallback is False
    assert enriched.segments[2].fallback is False


def test_slow_lookup_times_out_to_fallback():
    lookup = FakeLookup(slow={("B", "DEPOT")})
    enriched = asyncio.run(enrich_route(_route(), lookup, timeout=0.05))

    assert [segment.fallback for segment in enriched.segments] == [False, False, True]


def test_enrich_without_lookup_is_straight_line():
    enriched = asyncio.run(enrich_route(_route(), None))
    assert enriched.fallback_segments == 3
    assert enriched.total_duration_sec > 0


def test_enrich_fleet_mean_excludes_empty_vehicles():
    plan = FleetPlan(
        routes=[_route(), OrderedRoute(stops=[], total_distance_km=0.0)],
        vehicle_loads=[3.0, 0.0],
        vehicle_capacities=[6.0, 6.0],
        total_distance_km=0.0,
        total_duration_sec=0.0,
        mean_duration_sec=0.0,
    )
    fleet = asyncio.run(enrich_fleet(plan, FakeLookup()))

    assert fleet.routes[1].segments == []
    assert fleet.total_duration_sec == pytest.approx(fleet.routes[0].total_duration_sec)
    assert fleet.mean_duration_sec == pytest.approx(fleet.routes[0].total_duration_sec)
    assert fleet.vehicle_loads == [3.0, 0.0]
