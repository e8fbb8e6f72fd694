"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...models.domain import TRANSPORT_MODES
from ...schemas.routing import (
    LegEstimateRequest,
    LegEstimateResponse,
    OptimizationRequest,
    OptimizationResponse,
    TransportModeModel,
)
from ...services.geospatial import haversine_km, validate_coordinates
from ...services.routing.costs import FARES, RELIABILITY, SPEED_KMH, estimate_leg
from ...services.routing.service import optimize_routes

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("/optimize", response_model=OptimizationResponse, status_code=status.HTTP_200_OK)
def optimize(payload: OptimizationRequest) -> OptimizationResponse:
    try:
        return optimize_routes(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing routes: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize routes: {str(exc)}"
        ) from exc


@router.get("/modes", response_model=list[TransportModeModel], status_code=status.HTTP_200_OK)
def list_modes() -> list[TransportModeModel]:
    """Speed, fare and reliability assumptions for each transport mode."""
    return [
        TransportModeModel(
            mode=mode,
            speed_kmh=SPEED_KMH[mode],
            base_fare=FARES[mode][0],
            fare_per_km=FARES[mode][1],
            reliability_score=RELIABILITY[mode],
        )
        for mode in TRANSPORT_MODES
    ]


@router.post("/estimate", response_model=LegEstimateResponse, status_code=status.HTTP_200_OK)
def estimate(payload: LegEstimateRequest) -> LegEstimateResponse:
    """Estimate a single leg between two coordinates."""
    for point in (payload.start, payload.finish):
        if not validate_coordinates(point.latitude, point.longitude):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid coordinates: lat={point.latitude}, lon={point.longitude}",
            )
    distance = haversine_km(
        payload.start.latitude,
        payload.start.longitude,
        payload.finish.latitude,
        payload.finish.longitude,
    )
    leg = estimate_leg(distance, payload.mode)
    return LegEstimateResponse(
        mode=payload.mode,
        distance_km=leg.distance_km,
        duration_min=leg.duration_min,
        cost=leg.cost,
        reliability_score=leg.reliability_score,
    )
