"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from ...models.domain import Waypoint

ALGORITHM_GREEDY = "greedy"
ALGORITHM_NEAREST_NEIGHBOR = "nearest-neighbor"
ALGORITHM_GENETIC = "tsp-genetic"
ALGORITHM_ROAD_NETWORK = "road-network"

SOURCE_GEODESIC = "geodesic"
SOURCE_ROAD_NETWORK = "road-network"


@dataclass(slots=True, frozen=True)
class TSPSolution:
    tour: tuple[int, ...]
    total_distance: float
    fitness: float


@dataclass(slots=True, frozen=True)
class TripResult:
    """Visiting order and road figures returned by the external trip service."""

    order: tuple[int, ...]
    distance_km: float
    duration_min: float


@dataclass(slots=True, frozen=True)
class RouteSegment:
    mode: str
    from_label: str
    to_label: str
    distance_km: float
    duration_min: int
    cost: int
    reliability_score: int


@dataclass(slots=True, frozen=True)
class CandidateRoute:
    algorithm: str
    mode: str
    tour: tuple[int, ...]
    ordered_stops: tuple[Waypoint, ...]
    segments: tuple[RouteSegment, ...]
    total_distance_km: float
    total_duration_min: float
    total_cost: int
    source: str = SOURCE_GEODESIC


@dataclass(slots=True)
class OptimizationResult:
    candidates: List[CandidateRoute]
    default_index: int
    metadata: dict = field(default_factory=dict)

    @property
    def default_route(self) -> CandidateRoute:
        return self.candidates[self.default_index]

    def ranked(self) -> list[CandidateRoute]:
        return sorted(self.candidates, key=lambda route: route.total_cost)
