"""Catalogue of vehicle types offered to planners."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .domain import VehicleSpec


@dataclass(frozen=True, slots=True)
class VehicleType:
    type_id: str
    name: str
    capacity: float  # loading metres
    color: str


VEHICLE_TYPES: tuple[VehicleType, ...] = (
    VehicleType(type_id="trailer", name="Trailer", capacity=13.2, color="#ef4444"),
    VehicleType(type_id="bakwagen", name="Bakwagen", capacity=7.2, color="#3b82f6"),
    VehicleType(type_id="kleine-bakwagen", name="Kleine Bakwagen", capacity=6.0, color="#10b981"),
    VehicleType(type_id="busje", name="Busje", capacity=2.4, color="#f59e0b"),
)


def get_vehicle_type(type_id: str) -> VehicleType:
    for vehicle_type in VEHICLE_TYPES:
        if vehicle_type.type_id == type_id:
            return vehicle_type
    raise ValueError(f"Unknown vehicle type '{type_id}'.")


def expand_vehicle_selection(selection: Mapping[str, int]) -> list[VehicleSpec]:
    """Turn ``{type_id: count}`` into one :class:`VehicleSpec` per physical vehicle.

    Vehicles are emitted in selection order; counts of zero are skipped.
    """
    vehicles: list[VehicleSpec] = []
    for type_id, count in selection.items():
        if count < 0:
            raise ValueError(f"Vehicle count for '{type_id}' must be >= 0")
        vehicle_type = get_vehicle_type(type_id)
        for index in range(count):
            vehicles.append(
                VehicleSpec(capacity=vehicle_type.capacity, name=f"{vehicle_type.name} {index + 1}")
            )
    return vehicles
