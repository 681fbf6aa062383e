"""Serializers for routing outputs."""

from __future__ import annotations

import csv
import io
from typing import Sequence

from ..routing.models import EnrichedFleet, EnrichedRoute


def _vehicle_label(names: Sequence[str | None] | None, index: int) -> str:
    if names and index < len(names) and names[index]:
        return str(names[index])
    return f"Vehicle {index + 1}"


def route_to_json(route: EnrichedRoute) -> dict:
    return {
        "total_distance_km": route.total_distance_km,
        "total_duration_sec": route.total_duration_sec,
        "stops": [
            {
                "sequence": sequence,
                "stop_id": stop.stop_id,
                "name": stop.name,
                "locality": stop.locality,
                "latitude": stop.latitude,
                "longitude": stop.longitude,
                "demand": stop.demand,
                "time_window": stop.time_window,
            }
            for sequence, stop in enumerate(route.stops, start=1)
        ],
        "segments": [
            {
                "from": segment.origin_id,
                "to": segment.destination_id,
                "distance_km": segment.distance_km,
                "duration_sec": segment.duration_sec,
                "fallback": segment.fallback,
            }
            for segment in route.segments
        ],
    }


def fleet_plan_to_json(fleet: EnrichedFleet, vehicle_names: Sequence[str | None] | None = None) -> dict:
    return {
        "total_distance_km": fleet.total_distance_km,
        "total_duration_sec": fleet.total_duration_sec,
        "mean_duration_sec": fleet.mean_duration_sec,
        "vehicles": [
            {
                "vehicle": _vehicle_label(vehicle_names, index),
                "load": fleet.vehicle_loads[index] if index < len(fleet.vehicle_loads) else None,
                "capacity": fleet.vehicle_capacities[index] if index < len(fleet.vehicle_capacities) else None,
                **route_to_json(route),
            }
            for index, route in enumerate(fleet.routes)
        ],
    }


def fleet_plan_to_csv(fleet: EnrichedFleet, vehicle_names: Sequence[str | None] | None = None) -> str:
    """Route sheet: one row per stop visit, in driving order per vehicle."""
    buffer = io.StringIO()
    fieldnames = [
        "vehicle",
        "sequence",
        "stop_id",
        "name",
        "locality",
        "time_window",
        "demand",
        "distance_from_prev_km",
        "route_distance_km",
        "route_duration_min",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for index, route in enumerate(fleet.routes):
        for sequence, stop in enumerate(route.stops, start=1):
            writer.writerow(
                {
                    "vehicle": _vehicle_label(vehicle_names, index),
                    "sequence": sequence,
                    "stop_id": stop.stop_id,
                    "name": stop.name or "",
                    "locality": stop.locality or "",
                    "time_window": stop.time_window or "",
                    "demand": stop.demand,
                    "distance_from_prev_km": round(route.segments[sequence - 2].distance_km, 3) if sequence > 1 else 0.0,
                    "route_distance_km": round(route.total_distance_km, 3),
                    "route_duration_min": round(route.total_duration_sec / 60.0, 1),
                }
            )
    return buffer.getvalue()
