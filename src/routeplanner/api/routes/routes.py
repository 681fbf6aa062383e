"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.routing import FleetRouteRequest, FleetRouteResponse, SingleRouteRequest, SingleRouteResponse
from ...services.routing.service import optimize_fleet_routes, optimize_single_route

router = APIRouter(prefix="/routes", tags=["routes"])
logger = logging.getLogger(__name__)


@router.post("/single", response_model=SingleRouteResponse, status_code=status.HTTP_200_OK)
async def single(payload: SingleRouteRequest) -> SingleRouteResponse:
    try:
        return await optimize_single_route(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error planning route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to plan route: {str(exc)}",
        ) from exc


@router.post("/fleet", response_model=FleetRouteResponse, status_code=status.HTTP_200_OK)
async def fleet(payload: FleetRouteRequest) -> FleetRouteResponse:
    try:
        return await optimize_fleet_routes(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error planning fleet routes: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to plan fleet routes: {str(exc)}",
        ) from exc
