"""Road-metric enrichment of routes whose order is already fixed.

Every edge is looked up independently. A failed or slow lookup is replaced by
the straight-line distance and an estimated duration; it never fails the
route.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from ...config import settings
from ...models.domain import Stop
from ..geospatial import estimate_duration_sec, stop_distance_km
from .models import EnrichedFleet, EnrichedRoute, FleetPlan, OrderedRoute, RouteSegment
from .osrm_client import EdgeDistanceLookup

logger = logging.getLogger(__name__)


def straight_line_segment(origin: Stop, destination: Stop, speed_kmh: float | None = None) -> RouteSegment:
    distance = stop_distance_km(origin, destination)
    return RouteSegment(
        origin_id=origin.stop_id,
        destination_id=destination.stop_id,
        distance_km=distance,
        duration_sec=estimate_duration_sec(distance, speed_kmh or settings.fallback_speed_kmh),
        coordinates=[origin.coordinate, destination.coordinate],
        fallback=True,
    )


async def _segment(
    lookup: EdgeDistanceLookup,
    origin: Stop,
    destination: Stop,
    semaphore: asyncio.Semaphore,
    timeout: float,
) -> RouteSegment:
    try:
        async with semaphore:
            metrics = await asyncio.wait_for(lookup.lookup(origin.coordinate, destination.coordinate), timeout)
    except Exception as exc:  # any lookup failure is substituted locally
        logger.warning(
            f"Road lookup {origin.stop_id} -> {destination.stop_id} failed, using straight line: {exc!r}"
        )
        return straight_line_segment(origin, destination)
    return RouteSegment(
        origin_id=origin.stop_id,
        destination_id=destination.stop_id,
        distance_km=metrics.distance_km,
        duration_sec=metrics.duration_sec,
        coordinates=metrics.coordinates or [origin.coordinate, destination.coordinate],
    )


def closed_legs(stops: Sequence[Stop]) -> list[tuple[Stop, Stop]]:
    """Consecutive legs of the route including the return to the first stop."""
    if len(stops) < 2:
        return []
    sequence = [*stops, stops[0]]
    return list(zip(sequence[:-1], sequence[1:]))


async def enrich_route(
    route: OrderedRoute,
    lookup: EdgeDistanceLookup | None,
    *,
    timeout: float | None = None,
    max_concurrency: int | None = None,
) -> EnrichedRoute:
    """Attach road distances, durations and geometry to every leg of ``route``.

    ``lookup=None`` produces a purely straight-line enrichment.
    """
    legs = closed_legs(route.stops)
    if lookup is None:
        segments = [straight_line_segment(origin, destination) for origin, destination in legs]
    else:
        semaphore = asyncio.Semaphore(max_concurrency or settings.osrm_max_concurrent_requests)
        per_edge_timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        segments = list(
            await asyncio.gather(
                *(_segment(lookup, origin, destination, semaphore, per_edge_timeout) for origin, destination in legs)
            )
        )

    enriched = EnrichedRoute(
        stops=list(route.stops),
        segments=segments,
        total_distance_km=sum(segment.distance_km for segment in segments),
        total_duration_sec=sum(segment.duration_sec for segment in segments),
    )
    if enriched.fallback_segments and lookup is not None:
        logger.info(f"Route enriched with {enriched.fallback_segments}/{len(segments)} straight-line segments")
    return enriched


async def enrich_fleet(
    plan: FleetPlan,
    lookup: EdgeDistanceLookup | None,
    *,
    timeout: float | None = None,
    max_concurrency: int | None = None,
) -> EnrichedFleet:
    routes = [
        await enrich_route(route, lookup, timeout=timeout, max_concurrency=max_concurrency) for route in plan.routes
    ]
    used = [route for route in routes if route.stops]
    total_duration = sum(route.total_duration_sec for route in routes)
    return EnrichedFleet(
        routes=routes,
        vehicle_loads=list(plan.vehicle_loads),
        vehicle_capacities=list(plan.vehicle_capacities),
        total_distance_km=sum(route.total_distance_km for route in routes),
        total_duration_sec=total_duration,
        mean_duration_sec=(sum(route.total_duration_sec for route in used) / len(used)) if used else 0.0,
    )
