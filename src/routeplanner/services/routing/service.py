"""Routing orchestration service."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

import numpy as np

from ...config import settings
from ...models.domain import Stop, VehicleSpec
from ...models.vehicles import expand_vehicle_selection
from ...persistence.filesystem import RunStorage
from ...schemas.routing import (
    FleetRouteRequest,
    FleetRouteResponse,
    RouteModel,
    RouteSegmentModel,
    SingleRouteRequest,
    SingleRouteResponse,
    StopModel,
)
from ..outputs.routing_formatter import fleet_plan_to_csv, fleet_plan_to_json
from .enrichment import enrich_fleet, enrich_route
from .models import EnrichedFleet, EnrichedRoute, FleetPlan
from .osrm_client import EdgeDistanceLookup, OSRMClient
from .planner import plan_fleet_routes, plan_single_route

logger = logging.getLogger(__name__)


def _to_stop(model: StopModel) -> Stop:
    return Stop(
        stop_id=model.id,
        latitude=model.latitude,
        longitude=model.longitude,
        demand=model.demand,
        name=model.name,
        time_window=model.time_window,
        locality=model.locality,
    )


def _to_stop_model(stop: Stop) -> StopModel:
    return StopModel(
        id=stop.stop_id,
        latitude=stop.latitude,
        longitude=stop.longitude,
        demand=stop.demand,
        name=stop.name,
        time_window=stop.time_window,
        locality=stop.locality,
    )


def _resolve_depot(model: StopModel | None) -> Stop | None:
    if model is not None:
        return _to_stop(model)
    if settings.has_default_depot:
        return Stop(
            stop_id="depot",
            latitude=settings.default_depot_latitude,
            longitude=settings.default_depot_longitude,
            name=settings.default_depot_name,
        )
    return None


def _resolve_vehicles(payload: FleetRouteRequest) -> list[VehicleSpec]:
    if payload.vehicles is not None:
        return [VehicleSpec(capacity=vehicle.capacity, name=vehicle.name) for vehicle in payload.vehicles]
    if payload.vehicle_types is not None:
        return expand_vehicle_selection(payload.vehicle_types)
    return [VehicleSpec() for _ in range(payload.vehicle_count or 1)]


def _build_lookup(road_metrics: bool) -> EdgeDistanceLookup | None:
    if not road_metrics:
        return None
    try:
        return OSRMClient()
    except ValueError as exc:
        logger.warning(f"OSRM client unavailable ({exc}); using straight-line metrics.")
        return None


def _rng(seed: int | None) -> np.random.Generator:
    return np.random.default_rng(seed if seed is not None else settings.random_seed)


def _route_model(
    route: EnrichedRoute,
    *,
    vehicle: str | None = None,
    load: float | None = None,
    capacity: float | None = None,
) -> RouteModel:
    return RouteModel(
        vehicle=vehicle,
        stops=[_to_stop_model(stop) for stop in route.stops],
        total_distance_km=route.total_distance_km,
        total_duration_sec=route.total_duration_sec,
        load=load,
        capacity=capacity,
        segments=[
            RouteSegmentModel(
                origin_id=segment.origin_id,
                destination_id=segment.destination_id,
                distance_km=segment.distance_km,
                duration_sec=segment.duration_sec,
                coordinates=segment.coordinates,
                fallback=segment.fallback,
            )
            for segment in route.segments
        ],
    )


def _persist(fleet: EnrichedFleet, vehicle_names: Sequence[str | None], kind: str) -> str:
    run_dir = RunStorage().save_run(
        kind,
        fleet_plan_to_json(fleet, vehicle_names),
        fleet_plan_to_csv(fleet, vehicle_names),
    )
    return str(run_dir)


async def optimize_single_route(payload: SingleRouteRequest) -> SingleRouteResponse:
    stops = [_to_stop(model) for model in payload.stops]
    depot = _resolve_depot(payload.depot)

    ordered = await asyncio.to_thread(plan_single_route, stops, depot, rng=_rng(payload.seed))
    enriched = await enrich_route(ordered, _build_lookup(payload.road_metrics))

    metadata: dict = {
        "stop_count": len(ordered.stops),
        "straight_line_distance_km": ordered.total_distance_km,
        "fallback_segments": enriched.fallback_segments,
        "depot_id": depot.stop_id if depot else None,
    }
    if payload.persist:
        fleet = EnrichedFleet(
            routes=[enriched],
            vehicle_loads=[sum(stop.demand for stop in enriched.stops)],
            vehicle_capacities=[None],
            total_distance_km=enriched.total_distance_km,
            total_duration_sec=enriched.total_duration_sec,
            mean_duration_sec=enriched.total_duration_sec,
        )
        metadata["output_dir"] = _persist(fleet, [None], kind="route")

    return SingleRouteResponse(route=_route_model(enriched), metadata=metadata)


async def optimize_fleet_routes(payload: FleetRouteRequest) -> FleetRouteResponse:
    stops = [_to_stop(model) for model in payload.stops]
    depot = _resolve_depot(payload.depot)
    vehicles = _resolve_vehicles(payload)

    plan: FleetPlan = await asyncio.to_thread(plan_fleet_routes, stops, vehicles, depot, rng=_rng(payload.seed))
    enriched = await enrich_fleet(plan, _build_lookup(payload.road_metrics))

    overloaded = plan.overloaded_vehicles
    if overloaded:
        logger.warning(
            "Vehicles over capacity: "
            + ", ".join(
                f"#{index + 1} load={plan.vehicle_loads[index]:.2f}/{plan.vehicle_capacities[index]}"
                for index in overloaded
            )
        )

    vehicle_names = [vehicle.name for vehicle in vehicles]
    metadata: dict = {
        "vehicle_count": len(vehicles),
        "vehicles_used": sum(1 for route in plan.routes if not route.is_empty),
        "straight_line_distance_km": plan.total_distance_km,
        "fallback_segments": sum(route.fallback_segments for route in enriched.routes),
        "depot_id": depot.stop_id if depot else None,
    }
    if payload.persist and plan.routes:
        metadata["output_dir"] = _persist(enriched, vehicle_names, kind="fleet")

    return FleetRouteResponse(
        routes=[
            _route_model(
                route,
                vehicle=vehicle_names[index] if index < len(vehicle_names) else None,
                load=plan.vehicle_loads[index],
                capacity=plan.vehicle_capacities[index],
            )
            for index, route in enumerate(enriched.routes)
        ],
        vehicle_loads=plan.vehicle_loads,
        total_distance_km=enriched.total_distance_km,
        total_duration_sec=enriched.total_duration_sec,
        mean_duration_sec=enriched.mean_duration_sec,
        overloaded=bool(overloaded),
        overloaded_vehicles=overloaded,
        metadata=metadata,
    )
