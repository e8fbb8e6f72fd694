import random

import pytest

from trip_optimizer.models.domain import Waypoint
from trip_optimizer.schemas.routing import GeneticOverrides, OptimizationRequest, WaypointModel
from trip_optimizer.services.routing import service
from trip_optimizer.services.routing.genetic import GeneticParameters
from trip_optimizer.services.routing.matrix import MatrixValidationError
from trip_optimizer.services.routing.models import TripResult
from trip_optimizer.services.routing.service import generate_candidate_routes, optimize_routes, solve_with

SMALL_GA = GeneticParameters(population_size=20, generations=10, mutation_rate=0.05, elite_size=3)


def _waypoint(index: int, lat: float, lon: float, label: str | None = None) -> Waypoint:
    return Waypoint(
        waypoint_id=str(index),
        label=label or ("Origin" if index == 0 else f"Stop {index}"),
        latitude=lat,
        longitude=lon,
    )


def _equator_trip() -> list[Waypoint]:
    # B is entered before A although A is on the way to B.
    return [
        _waypoint(0, 0.0, 0.0, "O"),
        _waypoint(1, 0.0, 0.117, "B"),
        _waypoint(2, 0.0, 0.045, "A"),
    ]


def _generate(waypoints, **kwargs):
    kwargs.setdefault("genetic_parameters", SMALL_GA)
    kwargs.setdefault("include_road_network", False)
    kwargs.setdefault("rng", random.Random(11))
    return generate_candidate_routes(waypoints, **kwargs)


class StaticTripProvider:
    def __init__(self, result: TripResult):
        self.result = result
        self.calls = []

    def trip(self, coordinates):
        self.calls.append(list(coordinates))
        return self.result


class FailingTripProvider:
    def trip(self, coordinates):
        raise ConnectionError("trip service unreachable")


def test_nearest_neighbor_visits_closer_stop_first():
    result = _generate(_equator_trip(), mode="auto")

    algorithms = [route.algorithm for route in result.candidates]
    assert algorithms == ["greedy", "nearest-neighbor", "tsp-genetic"]

    greedy, nearest, _ = result.candidates
    assert [stop.label for stop in greedy.ordered_stops] == ["B", "A"]
    assert [stop.label for stop in nearest.ordered_stops] == ["A", "B"]
    assert nearest.total_distance_km == pytest.approx(13.01, abs=1e-2)
    assert greedy.total_cost == 208
    assert nearest.total_cost == 144

    assert result.default_index == 1
    assert result.default_route.algorithm == "nearest-neighbor"
    assert result.metadata["default_algorithm"] == "nearest-neighbor"


def test_every_candidate_is_internally_consistent():
    result = _generate(_equator_trip(), mode="bus")

    for route in result.candidates:
        assert route.tour[0] == 0
        assert sorted(route.tour) == [0, 1, 2]
        assert len(route.segments) == len(route.ordered_stops) == 2
        assert route.total_distance_km == pytest.approx(sum(s.distance_km for s in route.segments))
        assert route.total_duration_min == sum(s.duration_min for s in route.segments)
        assert route.total_cost == sum(s.cost for s in route.segments)
        assert route.segments[0].from_label == "O"
        assert all(segment.mode == "bus" for segment in route.segments)


def test_default_is_cheapest_and_earliest_on_ties():
    result = _generate(_equator_trip(), mode="walk")

    assert all(route.total_cost == 0 for route in result.candidates)
    assert result.default_index == 0


def test_failing_trip_provider_keeps_geodesic_candidates():
    result = _generate(
        _equator_trip(),
        trip_provider=FailingTripProvider(),
        include_road_network=True,
    )

    assert [route.algorithm for route in result.candidates] == ["greedy", "nearest-neighbor", "tsp-genetic"]
    assert result.metadata["road_network"] == "failed"
    assert result.metadata["omitted_solvers"] == ["road-network"]
    assert result.metadata["road_network_error"] == "trip service unreachable"


def test_road_network_candidate_uses_provider_figures():
    provider = StaticTripProvider(TripResult(order=(0, 2, 1), distance_km=15.5, duration_min=22.0))

    result = _generate(_equator_trip(), mode="auto", trip_provider=provider, include_road_network=True)

    road = result.candidates[-1]
    assert road.algorithm == "road-network"
    assert road.source == "road-network"
    assert road.tour == (0, 2, 1)
    assert road.total_distance_km == 15.5
    assert road.total_duration_min == 22.0
    assert road.total_cost == 144
    assert provider.calls == [[(0.0, 0.0), (0.0, 0.117), (0.0, 0.045)]]
    assert result.metadata["road_network"] == "included"
    assert result.metadata["road_network_error"] is None
    assert result.default_index == 1


def test_road_network_needs_at_least_two_stops():
    provider = StaticTripProvider(TripResult(order=(0, 1), distance_km=1.0, duration_min=1.0))

    result = _generate(_equator_trip()[:2], trip_provider=provider, include_road_network=True)

    assert provider.calls == []
    assert result.metadata["road_network"] == "not-applicable"


def test_missing_trip_provider_is_reported():
    result = _generate(_equator_trip(), include_road_network=True)
    assert result.metadata["road_network"] == "unavailable"


def test_all_solvers_failing_falls_back_to_input_order(monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("solver crashed")

    monkeypatch.setattr(service, "greedy_tour", _boom)
    monkeypatch.setattr(service, "nearest_neighbor_tour", _boom)
    monkeypatch.setattr(service, "solve_tsp", _boom)

    result = _generate(_equator_trip(), mode="auto")

    assert len(result.candidates) == 1
    assert result.candidates[0].algorithm == "greedy"
    assert result.candidates[0].tour == (0, 1, 2)
    assert result.metadata["omitted_solvers"] == ["greedy", "nearest-neighbor", "tsp-genetic"]


def test_single_failing_solver_is_omitted(monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("solver crashed")

    monkeypatch.setattr(service, "solve_tsp", _boom)

    result = _generate(_equator_trip())

    assert [route.algorithm for route in result.candidates] == ["greedy", "nearest-neighbor"]
    assert result.metadata["omitted_solvers"] == ["tsp-genetic"]


def test_malformed_matrix_is_rejected():
    with pytest.raises(MatrixValidationError):
        _generate(_equator_trip(), distance_matrix=[[0.0, 1.0], [1.0, 0.0]])


def test_empty_waypoints_are_rejected():
    with pytest.raises(ValueError):
        _generate([])


def test_single_stop_candidates_differ_by_mode():
    waypoints = [_waypoint(0, 0.0, 0.0), _waypoint(1, 0.0, 0.045)]

    result = _generate(waypoints)

    assert [route.mode for route in result.candidates] == ["auto", "bus", "bike"]
    assert [route.total_cost for route in result.candidates] == [60, 30, 35]
    assert result.default_index == 1


def test_candidate_modes_override_request_mode():
    result = _generate(
        _equator_trip(),
        mode="auto",
        candidate_modes={"greedy": "walk", "tsp-genetic": "bike"},
    )

    assert [route.mode for route in result.candidates] == ["walk", "auto", "bike"]
    assert result.default_index == 0


def test_origin_only_produces_empty_routes():
    result = _generate([_waypoint(0, 21.5, 39.2)])

    assert len(result.candidates) == 3
    for route in result.candidates:
        assert route.tour == (0,)
        assert route.segments == ()
        assert route.ordered_stops == ()
        assert route.total_cost == 0


def test_invalid_waypoint_is_penalized_not_fatal():
    waypoints = _equator_trip() + [_waypoint(3, 999.0, 0.2, "Nowhere")]

    result = _generate(waypoints, mode="auto")

    assert result.metadata["invalid_waypoints"] == [3]
    for route in result.candidates:
        assert sorted(route.tour) == [0, 1, 2, 3]
        assert all("Nowhere" not in (s.from_label, s.to_label) for s in route.segments)


def test_optimize_routes_builds_response(monkeypatch):
    provider = StaticTripProvider(TripResult(order=(0, 2, 1), distance_km=14.0, duration_min=20.0))
    monkeypatch.setattr(service.settings, "osrm_base_url", "http://osrm.test")
    monkeypatch.setattr(service, "OSRMClient", lambda: provider)

    payload = OptimizationRequest(
        waypoints=[
            WaypointModel(latitude=0.0, longitude=0.0),
            WaypointModel(latitude=0.0, longitude=0.117, label="B"),
            WaypointModel(latitude=0.0, longitude=0.045, label="A"),
        ],
        mode="auto",
        genetic=GeneticOverrides(population_size=20, generations=5, seed=3),
    )

    response = optimize_routes(payload)

    assert [c.algorithm for c in response.candidates] == [
        "greedy",
        "nearest-neighbor",
        "tsp-genetic",
        "road-network",
    ]
    assert response.default_algorithm == "nearest-neighbor"
    assert response.candidates[0].ordered_stops[0].label == "B"
    assert response.candidates[-1].formatted_distance == "14.00 km"
    assert response.metadata["ga_parameters"]["population_size"] == 20
    assert len(provider.calls) == 1


def test_optimize_routes_without_trip_service(monkeypatch):
    monkeypatch.setattr(service.settings, "osrm_base_url", None)
    payload = OptimizationRequest(
        waypoints=[WaypointModel(latitude=0.0, longitude=0.0), WaypointModel(latitude=0.0, longitude=0.045)],
        genetic=GeneticOverrides(population_size=10, generations=2, seed=1),
    )

    response = optimize_routes(payload)

    assert response.candidates[0].ordered_stops[0].label == "Stop 1"
    assert response.metadata["road_network"] == "not-applicable"


def test_solve_with_runs_registered_solver():
    matrix = [[0.0, 13.0, 5.0], [13.0, 0.0, 8.0], [5.0, 8.0, 0.0]]

    assert solve_with("greedy", matrix).tour == (0, 1, 2)
    assert solve_with("nearest-neighbor", matrix).tour == (0, 2, 1)
    solution = solve_with("tsp-genetic", matrix, genetic_parameters=SMALL_GA, rng=random.Random(1))
    assert solution.total_distance == pytest.approx(26.0)


def test_solve_with_rejects_unknown_solver():
    with pytest.raises(ValueError, match="Unknown solver"):
        solve_with("simulated-annealing", [[0.0]])


def test_ranked_orders_by_cost_and_keeps_ties_in_candidate_order():
    result = _generate(_equator_trip(), candidate_modes={"greedy": "bus", "nearest-neighbor": "walk"}, mode="walk")

    ranked = result.ranked()

    assert [route.total_cost for route in ranked] == sorted(route.total_cost for route in result.candidates)
    assert [route.algorithm for route in ranked] == ["nearest-neighbor", "tsp-genetic", "greedy"]
    assert ranked[0] is result.default_route
