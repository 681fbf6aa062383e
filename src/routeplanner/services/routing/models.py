"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ...models.domain import Stop


@dataclass(slots=True)
class OrderedRoute:
    """Visiting order for one vehicle.

    ``stops`` starts at the depot when one is used; the closing return to the
    depot is implied and counted in ``total_distance_km``.
    """

    stops: List[Stop]
    total_distance_km: float
    total_duration_sec: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.stops


@dataclass(slots=True)
class FleetPlan:
    routes: List[OrderedRoute]
    vehicle_loads: List[float]
    vehicle_capacities: List[Optional[float]]
    total_distance_km: float
    total_duration_sec: float
    mean_duration_sec: float

    @property
    def overloaded_vehicles(self) -> list[int]:
        return [
            index
            for index, (load, capacity) in enumerate(zip(self.vehicle_loads, self.vehicle_capacities))
            if capacity is not None and load > capacity
        ]


@dataclass(slots=True)
class EdgeMetrics:
    distance_km: float
    duration_sec: float
    coordinates: List[tuple[float, float]] = field(default_factory=list)


@dataclass(slots=True)
class RouteSegment:
    origin_id: str
    destination_id: str
    distance_km: float
    duration_sec: float
    coordinates: List[tuple[float, float]]
    fallback: bool = False


@dataclass(slots=True)
class EnrichedRoute:
    stops: List[Stop]
    segments: List[RouteSegment]
    total_distance_km: float
    total_duration_sec: float

    @property
    def geometry(self) -> list[list[tuple[float, float]]]:
        return [segment.coordinates for segment in self.segments]

    @property
    def fallback_segments(self) -> int:
        return sum(1 for segment in self.segments if segment.fallback)


@dataclass(slots=True)
class EnrichedFleet:
    routes: List[EnrichedRoute]
    vehicle_loads: List[float]
    vehicle_capacities: List[Optional[float]]
    total_distance_km: float
    total_duration_sec: float
    mean_duration_sec: float
