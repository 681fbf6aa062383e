"""Vehicle catalogue endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter

from ...models.vehicles import VEHICLE_TYPES
from ...schemas.routing import VehicleTypeModel

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.get("/types", response_model=List[VehicleTypeModel])
def list_vehicle_types() -> List[VehicleTypeModel]:
    return [
        VehicleTypeModel(
            type_id=vehicle_type.type_id,
            name=vehicle_type.name,
            capacity=vehicle_type.capacity,
            color=vehicle_type.color,
        )
        for vehicle_type in VEHICLE_TYPES
    ]
