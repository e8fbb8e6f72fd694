"""Routing request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ..models.domain import TransportMode

AlgorithmName = Literal["greedy", "nearest-neighbor", "tsp-genetic", "road-network"]


class WaypointModel(BaseModel):
    # Unbounded: out-of-range values are penalized by the matrix builder.
    latitude: float
    longitude: float
    label: Optional[str] = Field(default=None, description="Display label; defaults to 'Stop N'.")
    waypoint_id: Optional[str] = None


class GeneticOverrides(BaseModel):
    population_size: Optional[int] = Field(None, ge=2, le=5000)
    generations: Optional[int] = Field(None, ge=0, le=20000)
    mutation_rate: Optional[float] = Field(None, ge=0.0, le=1.0)
    elite_size: Optional[int] = Field(None, ge=0)
    seed: Optional[int] = None


class OptimizationRequest(BaseModel):
    waypoints: List[WaypointModel] = Field(
        ..., min_length=1, description="Journey origin first, followed by the stops to visit."
    )
    mode: Optional[TransportMode] = Field(
        default=None, description="Transport mode applied to every candidate route."
    )
    candidate_modes: Optional[Dict[AlgorithmName, TransportMode]] = Field(
        default=None, description="Per-algorithm transport mode, overriding `mode`."
    )
    genetic: Optional[GeneticOverrides] = None
    include_road_network: Optional[bool] = Field(
        default=None, description="Consult the external trip service; defaults to the server setting."
    )


class RouteSegmentModel(BaseModel):
    mode: TransportMode
    from_label: str
    to_label: str
    distance_km: float
    duration_min: int
    cost: int
    reliability_score: int


class CandidateRouteModel(BaseModel):
    algorithm: AlgorithmName
    mode: TransportMode
    source: Literal["geodesic", "road-network"]
    tour: List[int]
    ordered_stops: List[WaypointModel]
    segments: List[RouteSegmentModel]
    total_distance_km: float
    total_duration_min: float
    total_cost: int
    formatted_distance: str
    formatted_duration: str


class OptimizationResponse(BaseModel):
    default_index: int
    default_algorithm: AlgorithmName
    candidates: List[CandidateRouteModel]
    metadata: dict


class LegEstimateRequest(BaseModel):
    start: WaypointModel
    finish: WaypointModel
    mode: TransportMode = "auto"


class LegEstimateResponse(BaseModel):
    mode: TransportMode
    distance_km: float
    duration_min: int
    cost: int
    reliability_score: int


class TransportModeModel(BaseModel):
    mode: TransportMode
    speed_kmh: float
    base_fare: float
    fare_per_km: float
    reliability_score: int
