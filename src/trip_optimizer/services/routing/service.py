"""Routing orchestration service.

Runs every tour solver against one shared distance matrix, turns each winning
order into a candidate route and marks the cheapest candidate as the default.
A failing solver only loses its own candidate; the input-order route is always
available as a fallback.
"""

from __future__ import annotations

import logging
import random
from dataclasses import asdict
from typing import Callable, Mapping, Sequence

from ...config import settings
from ...models.domain import Waypoint
from ...schemas.routing import (
    CandidateRouteModel,
    OptimizationRequest,
    OptimizationResponse,
    RouteSegmentModel,
    WaypointModel,
)
from ..geospatial import validate_coordinates
from ..outputs.routing_formatter import format_distance_km, format_duration
from .assembler import assemble_route
from .genetic import GeneticParameters, RandomSource, solve_tsp
from .heuristics import greedy_tour, nearest_neighbor_tour
from .matrix import DistanceMatrix, build_distance_matrix, validate_distance_matrix
from .models import (
    ALGORITHM_GENETIC,
    ALGORITHM_GREEDY,
    ALGORITHM_NEAREST_NEIGHBOR,
    ALGORITHM_ROAD_NETWORK,
    SOURCE_ROAD_NETWORK,
    CandidateRoute,
    OptimizationResult,
    TSPSolution,
)
from .osrm_client import OSRMClient, TripProvider

logger = logging.getLogger(__name__)

# With a single stop every solver yields the same order, so the candidates
# differ by transport mode instead.
SINGLE_STOP_MODES: dict[str, str] = {
    ALGORITHM_GREEDY: "auto",
    ALGORITHM_NEAREST_NEIGHBOR: "bus",
    ALGORITHM_GENETIC: "bike",
}

# The trip service is only consulted once the journey has two or more stops.
MIN_WAYPOINTS_FOR_ROAD_NETWORK = 3

Solver = Callable[[DistanceMatrix], TSPSolution]


def build_solver_registry(
    genetic_parameters: GeneticParameters | None = None,
    rng: RandomSource | None = None,
) -> dict[str, Solver]:
    """Tour solvers keyed by algorithm tag, in candidate order."""
    return {
        ALGORITHM_GREEDY: greedy_tour,
        ALGORITHM_NEAREST_NEIGHBOR: nearest_neighbor_tour,
        ALGORITHM_GENETIC: lambda matrix: solve_tsp(matrix, genetic_parameters, rng=rng),
    }


def solve_with(
    algorithm: str,
    distance_matrix: DistanceMatrix,
    *,
    genetic_parameters: GeneticParameters | None = None,
    rng: RandomSource | None = None,
) -> TSPSolution:
    solvers = build_solver_registry(genetic_parameters, rng)
    if algorithm not in solvers:
        raise ValueError(f"Unknown solver '{algorithm}'. Expected one of: {', '.join(solvers)}.")
    return solvers[algorithm](distance_matrix)


def _resolve_mode(
    algorithm: str,
    waypoint_count: int,
    mode: str | None,
    candidate_modes: Mapping[str, str] | None,
) -> str:
    if candidate_modes and algorithm in candidate_modes:
        return candidate_modes[algorithm]
    if mode:
        return mode
    if waypoint_count == 2 and algorithm in SINGLE_STOP_MODES:
        return SINGLE_STOP_MODES[algorithm]
    return settings.default_transport_mode


def select_default_index(candidates: Sequence[CandidateRoute]) -> int:
    """Index of the cheapest candidate; the earliest wins a tie."""
    if not candidates:
        raise ValueError("No candidate routes to rank.")
    best_index = 0
    for index, route in enumerate(candidates):
        if route.total_cost < candidates[best_index].total_cost:
            best_index = index
    return best_index


def _road_network_candidate(
    waypoints: Sequence[Waypoint], provider: TripProvider, mode: str
) -> CandidateRoute:
    trip = provider.trip([point.coordinates for point in waypoints])
    return assemble_route(
        trip.order,
        waypoints,
        mode=mode,
        algorithm=ALGORITHM_ROAD_NETWORK,
        source=SOURCE_ROAD_NETWORK,
        total_distance_km=trip.distance_km,
        total_duration_min=trip.duration_min,
    )


def generate_candidate_routes(
    waypoints: Sequence[Waypoint],
    *,
    mode: str | None = None,
    candidate_modes: Mapping[str, str] | None = None,
    genetic_parameters: GeneticParameters | None = None,
    distance_matrix: DistanceMatrix | None = None,
    trip_provider: TripProvider | None = None,
    include_road_network: bool | None = None,
    rng: RandomSource | None = None,
) -> OptimizationResult:
    if not waypoints:
        raise ValueError("At least one waypoint (the origin) is required.")

    matrix = distance_matrix if distance_matrix is not None else build_distance_matrix(waypoints)
    size = validate_distance_matrix(matrix, expected_size=len(waypoints))
    params = genetic_parameters or GeneticParameters.for_profile(settings.ga_parameter_profile, size)

    candidates: list[CandidateRoute] = []
    omitted: list[str] = []
    for algorithm, solver in build_solver_registry(params, rng).items():
        try:
            solution = solver(matrix)
            candidates.append(
                assemble_route(
                    solution.tour,
                    waypoints,
                    mode=_resolve_mode(algorithm, size, mode, candidate_modes),
                    algorithm=algorithm,
                )
            )
        except Exception as exc:
            logger.warning(f"Solver '{algorithm}' failed and was omitted: {exc}")
            omitted.append(algorithm)

    road_error: str | None = None
    use_road_network = (
        include_road_network if include_road_network is not None else settings.include_road_network_candidate
    )
    if not use_road_network:
        road_status = "disabled"
    elif size < MIN_WAYPOINTS_FOR_ROAD_NETWORK:
        road_status = "not-applicable"
    elif trip_provider is None:
        logger.warning("Road-network trip service is not configured; candidate skipped.")
        road_status = "unavailable"
    else:
        try:
            candidates.append(
                _road_network_candidate(
                    waypoints,
                    trip_provider,
                    _resolve_mode(ALGORITHM_ROAD_NETWORK, size, mode, candidate_modes),
                )
            )
            road_status = "included"
        except Exception as exc:
            logger.warning(f"Road-network trip optimization failed and was omitted: {exc}")
            omitted.append(ALGORITHM_ROAD_NETWORK)
            road_status = "failed"
            road_error = str(exc)

    if not candidates:
        logger.warning("No solver produced a route; falling back to the input order.")
        candidates.append(
            assemble_route(
                list(range(size)),
                waypoints,
                mode=_resolve_mode(ALGORITHM_GREEDY, size, mode, candidate_modes),
                algorithm=ALGORITHM_GREEDY,
            )
        )

    default_index = select_default_index(candidates)
    invalid = [
        index
        for index, point in enumerate(waypoints)
        if not validate_coordinates(point.latitude, point.longitude)
    ]
    metadata = {
        "waypoint_count": len(waypoints),
        "matrix_size": size,
        "invalid_waypoints": invalid,
        "omitted_solvers": omitted,
        "road_network": road_status,
        "road_network_error": road_error,
        "ga_parameters": asdict(params),
        "default_algorithm": candidates[default_index].algorithm,
    }
    logger.info(
        f"Generated {len(candidates)} candidate route(s) for {len(waypoints)} waypoint(s); "
        f"default={candidates[default_index].algorithm}, omitted={omitted or 'none'}"
    )
    return OptimizationResult(candidates=candidates, default_index=default_index, metadata=metadata)


def _to_waypoints(models: Sequence[WaypointModel]) -> list[Waypoint]:
    waypoints: list[Waypoint] = []
    for index, model in enumerate(models):
        default_label = "Origin" if index == 0 else f"Stop {index}"
        waypoints.append(
            Waypoint(
                waypoint_id=model.waypoint_id or str(index),
                label=model.label or default_label,
                latitude=model.latitude,
                longitude=model.longitude,
            )
        )
    return waypoints


def _build_genetic_parameters(payload: OptimizationRequest, stop_count: int) -> GeneticParameters:
    base = GeneticParameters.for_profile(settings.ga_parameter_profile, stop_count)
    overrides = payload.genetic
    if overrides is None:
        return base
    return base.with_overrides(
        population_size=overrides.population_size,
        generations=overrides.generations,
        mutation_rate=overrides.mutation_rate,
        elite_size=overrides.elite_size,
    )


def _build_trip_provider() -> TripProvider | None:
    if not settings.osrm_base_url:
        return None
    try:
        return OSRMClient()
    except ValueError as e:
        logger.warning(f"OSRM client initialization failed: {e}")
        return None


def _candidate_to_model(route: CandidateRoute) -> CandidateRouteModel:
    return CandidateRouteModel(
        algorithm=route.algorithm,
        mode=route.mode,
        source=route.source,
        tour=list(route.tour),
        ordered_stops=[
            WaypointModel(
                latitude=stop.latitude,
                longitude=stop.longitude,
                label=stop.label,
                waypoint_id=stop.waypoint_id,
            )
            for stop in route.ordered_stops
        ],
        segments=[RouteSegmentModel(**asdict(segment)) for segment in route.segments],
        total_distance_km=route.total_distance_km,
        total_duration_min=route.total_duration_min,
        total_cost=route.total_cost,
        formatted_distance=format_distance_km(route.total_distance_km),
        formatted_duration=format_duration(route.total_duration_min),
    )


def optimize_routes(payload: OptimizationRequest) -> OptimizationResponse:
    waypoints = _to_waypoints(payload.waypoints)
    params = _build_genetic_parameters(payload, len(waypoints))
    seed = payload.genetic.seed if payload.genetic and payload.genetic.seed is not None else settings.ga_seed
    include_road_network = (
        payload.include_road_network
        if payload.include_road_network is not None
        else settings.include_road_network_candidate
    )

    result = generate_candidate_routes(
        waypoints,
        mode=payload.mode,
        candidate_modes=payload.candidate_modes,
        genetic_parameters=params,
        trip_provider=_build_trip_provider() if include_road_network else None,
        include_road_network=include_road_network,
        rng=random.Random(seed),
    )

    return OptimizationResponse(
        default_index=result.default_index,
        default_algorithm=result.default_route.algorithm,
        candidates=[_candidate_to_model(route) for route in result.candidates],
        metadata=result.metadata,
    )
