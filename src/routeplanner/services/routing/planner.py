"""Single-vehicle and fleet route planning pipelines.

Ordering always uses straight-line (haversine) distances: an ant colony builds
a tour over ``[depot, *stops]`` and tabu search polishes it. Fleet planning
first splits the stops over the vehicles, then orders each vehicle's share.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional, Sequence

import numpy as np

from ...config import settings
from ...errors import InsufficientInputError, PlanningCancelledError
from ...models.domain import Stop, VehicleSpec
from ..geospatial import estimate_duration_sec, validate_stops
from ..zoning.clustering import CapacityClusterer, ClusterAssignment, cluster_by_count
from .aco import ACOConfig, AntColonyOptimizer
from .matrix import build_distance_matrix, tour_distance
from .models import FleetPlan, OrderedRoute
from .tabu import TabuConfig, TabuRefiner

logger = logging.getLogger(__name__)


def _resolve_rng(rng: np.random.Generator | None) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng(settings.random_seed)


def _working_set(stops: Sequence[Stop], depot: Stop | None) -> list[Stop]:
    """Put the depot at index 0 and drop any stop that duplicates it."""
    if depot is None:
        return list(stops)
    return [depot, *(stop for stop in stops if stop.stop_id != depot.stop_id)]


def _without_depot(stops: Sequence[Stop], depot: Stop | None) -> list[Stop]:
    if depot is None:
        return list(stops)
    return [stop for stop in stops if stop.stop_id != depot.stop_id]


def plan_single_route(
    stops: Sequence[Stop],
    depot: Stop | None = None,
    *,
    rng: np.random.Generator | None = None,
    aco_config: ACOConfig | None = None,
    tabu_config: TabuConfig | None = None,
) -> OrderedRoute:
    """Order ``stops`` into a closed tour starting (and ending) at ``depot``.

    Without a depot the first stop acts as the start/end point. The returned
    order omits the closing return; its distance is included in the total.

    Raises:
        InsufficientInputError: no stops and no depot.
        InvalidCoordinateError: a stop has non-finite coordinates.
        InvalidDemandError: a stop has a negative demand.
    """
    working = _working_set(stops, depot)
    if not working:
        raise InsufficientInputError("At least one stop is required to plan a route.")
    validate_stops(working)

    if len(working) == 1:
        return OrderedRoute(stops=working, total_distance_km=0.0, total_duration_sec=0.0)

    start_time = time.perf_counter()
    matrix = build_distance_matrix(working)

    aco = AntColonyOptimizer(matrix, config=aco_config, rng=_resolve_rng(rng))
    initial_tour = aco.optimize()

    refiner = TabuRefiner(matrix, config=tabu_config)
    final_tour = refiner.optimize(initial_tour)

    distance = tour_distance(matrix, final_tour)
    logger.info(
        f"Planned route over {len(working)} stops: ACO {aco.best_distance:.2f}km -> "
        f"tabu {distance:.2f}km in {(time.perf_counter() - start_time) * 1000:.0f}ms"
    )
    return OrderedRoute(
        stops=[working[index] for index in final_tour[:-1]],
        total_distance_km=distance,
        total_duration_sec=estimate_duration_sec(distance, settings.fallback_speed_kmh),
    )


def _cluster(stops: Sequence[Stop], vehicles: Sequence[VehicleSpec]) -> ClusterAssignment:
    capacities = [vehicle.capacity for vehicle in vehicles]
    if any(capacity is not None for capacity in capacities):
        return CapacityClusterer().fit(stops, capacities)
    return cluster_by_count(stops, len(vehicles))


def _mean_duration(routes: Sequence[OrderedRoute]) -> float:
    used = [route for route in routes if not route.is_empty]
    if not used:
        return 0.0
    return sum(route.total_duration_sec for route in used) / len(used)


def plan_fleet_routes(
    stops: Sequence[Stop],
    vehicles: Sequence[VehicleSpec],
    depot: Stop | None = None,
    *,
    rng: np.random.Generator | None = None,
    aco_config: ACOConfig | None = None,
    tabu_config: TabuConfig | None = None,
    cancel_event: Optional[threading.Event] = None,
) -> FleetPlan:
    """Split ``stops`` over ``vehicles`` and order every vehicle's share.

    Vehicles that receive no stops appear as empty zero-valued routes and are
    left out of the mean duration. Capacity overflow is reported through
    ``FleetPlan.overloaded_vehicles``, never raised.
    """
    customers = _without_depot(stops, depot)
    if not customers:
        return FleetPlan(
            routes=[],
            vehicle_loads=[],
            vehicle_capacities=[],
            total_distance_km=0.0,
            total_duration_sec=0.0,
            mean_duration_sec=0.0,
        )
    if not vehicles:
        raise InsufficientInputError("At least one vehicle is required to plan fleet routes.")
    validate_stops(customers if depot is None else [depot, *customers])

    rng = _resolve_rng(rng)
    capacities = [vehicle.capacity for vehicle in vehicles]

    if len(vehicles) == 1:
        route = plan_single_route(customers, depot, rng=rng, aco_config=aco_config, tabu_config=tabu_config)
        return FleetPlan(
            routes=[route],
            vehicle_loads=[sum(stop.demand for stop in customers)],
            vehicle_capacities=capacities,
            total_distance_km=route.total_distance_km,
            total_duration_sec=route.total_duration_sec,
            mean_duration_sec=route.total_duration_sec,
        )

    start_time = time.perf_counter()
    assignment = _cluster(customers, vehicles)

    routes: list[OrderedRoute] = []
    for vehicle_index in range(len(vehicles)):
        if cancel_event is not None and cancel_event.is_set():
            raise PlanningCancelledError(
                f"Fleet planning cancelled after {vehicle_index} of {len(vehicles)} vehicles."
            )
        members = assignment.stops_for_vehicle(vehicle_index, customers)
        if not members:
            routes.append(OrderedRoute(stops=[], total_distance_km=0.0, total_duration_sec=0.0))
            continue
        routes.append(
            plan_single_route(members, depot, rng=rng, aco_config=aco_config, tabu_config=tabu_config)
        )

    plan = FleetPlan(
        routes=routes,
        vehicle_loads=list(assignment.loads),
        vehicle_capacities=capacities,
        total_distance_km=sum(route.total_distance_km for route in routes),
        total_duration_sec=sum(route.total_duration_sec for route in routes),
        mean_duration_sec=_mean_duration(routes),
    )
    logger.info(
        f"Planned {len(customers)} stops over {len(vehicles)} vehicles "
        f"({sum(1 for route in routes if not route.is_empty)} used): {plan.total_distance_km:.2f}km "
        f"in {(time.perf_counter() - start_time) * 1000:.0f}ms"
    )
    return plan
