"""Routing request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class StopModel(BaseModel):
    id: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    demand: float = Field(default=0.0, ge=0, description="Load units (loading metres) for this stop.")
    name: Optional[str] = None
    time_window: Optional[str] = Field(default=None, description="Delivery window, e.g. '7:00-11:30'.")
    locality: Optional[str] = None


class VehicleModel(BaseModel):
    capacity: Optional[float] = Field(default=None, gt=0, description="Omit for an unconstrained vehicle.")
    name: Optional[str] = None


class SingleRouteRequest(BaseModel):
    stops: List[StopModel]
    depot: Optional[StopModel] = Field(
        default=None,
        description="Fixed start/end location. Falls back to the configured default depot when omitted.",
    )
    road_metrics: bool = Field(default=True, description="Enrich the final order with OSRM road distances.")
    seed: Optional[int] = None
    persist: bool = False


class FleetRouteRequest(BaseModel):
    stops: List[StopModel]
    depot: Optional[StopModel] = None
    vehicles: Optional[List[VehicleModel]] = None
    vehicle_types: Optional[Dict[str, int]] = Field(
        default=None,
        description="Catalogue selection, e.g. {'trailer': 1, 'busje': 2}.",
    )
    vehicle_count: Optional[int] = Field(default=None, ge=1, description="Cluster by count only, no capacities.")
    road_metrics: bool = True
    seed: Optional[int] = None
    persist: bool = False

    @model_validator(mode="after")
    def _one_vehicle_source(self) -> "FleetRouteRequest":
        sources = [self.vehicles is not None, self.vehicle_types is not None, self.vehicle_count is not None]
        if sum(sources) != 1:
            raise ValueError("Provide exactly one of 'vehicles', 'vehicle_types' or 'vehicle_count'.")
        return self


class RouteSegmentModel(BaseModel):
    origin_id: str
    destination_id: str
    distance_km: float
    duration_sec: float
    coordinates: List[tuple[float, float]]
    fallback: bool


class RouteModel(BaseModel):
    vehicle: Optional[str] = None
    stops: List[StopModel]
    total_distance_km: float
    total_duration_sec: float
    load: Optional[float] = None
    capacity: Optional[float] = None
    segments: List[RouteSegmentModel] = Field(default_factory=list)


class SingleRouteResponse(BaseModel):
    route: RouteModel
    metadata: dict


class FleetRouteResponse(BaseModel):
    routes: List[RouteModel]
    vehicle_loads: List[float]
    total_distance_km: float
    total_duration_sec: float
    mean_duration_sec: float
    overloaded: bool
    overloaded_vehicles: List[int]
    metadata: dict


class VehicleTypeModel(BaseModel):
    type_id: str
    name: str
    capacity: float
    color: str
