import csv
import io
import random

import pytest

from trip_optimizer.models.domain import Waypoint
from trip_optimizer.services.outputs.routing_formatter import (
    candidate_route_to_json,
    candidates_to_csv,
    format_distance_km,
    format_duration,
    optimization_result_to_json,
)
from trip_optimizer.services.routing.genetic import GeneticParameters
from trip_optimizer.services.routing.service import generate_candidate_routes


def _result():
    waypoints = [
        Waypoint(waypoint_id="0", label="Origin", latitude=0.0, longitude=0.0),
        Waypoint(waypoint_id="1", label="B", latitude=0.0, longitude=0.117),
        Waypoint(waypoint_id="2", label="A", latitude=0.0, longitude=0.045),
    ]
    return generate_candidate_routes(
        waypoints,
        mode="auto",
        genetic_parameters=GeneticParameters(population_size=10, generations=5, mutation_rate=0.05, elite_size=2),
        include_road_network=False,
        rng=random.Random(0),
    )


@pytest.mark.parametrize(
    ("minutes", "expected"),
    [
        (0, "0m"),
        (45, "45m"),
        (60, "1h"),
        (65, "1h 5m"),
        (119.6, "2h"),
        (150.2, "2h 30m"),
    ],
)
def test_format_duration(minutes, expected):
    assert format_duration(minutes) == expected


def test_format_distance():
    assert format_distance_km(13.0098) == "13.01 km"
    assert format_distance_km(0) == "0.00 km"


def test_candidate_json_is_plain_data():
    route = _result().candidates[1]

    payload = candidate_route_to_json(route)

    assert payload["algorithm"] == "nearest-neighbor"
    assert payload["tour"] == [0, 2, 1]
    assert [stop["label"] for stop in payload["ordered_stops"]] == ["A", "B"]
    assert payload["segments"][0]["from_label"] == "Origin"
    assert payload["formatted_duration"] == format_duration(route.total_duration_min)


def test_result_json_marks_default():
    payload = optimization_result_to_json(_result())

    assert payload["default_algorithm"] == "nearest-neighbor"
    assert len(payload["candidates"]) == 3


def test_csv_has_one_row_per_segment():
    result = _result()

    rows = list(csv.DictReader(io.StringIO(candidates_to_csv(result))))

    assert len(rows) == sum(len(route.segments) for route in result.candidates) == 6
    defaults = {row["algorithm"] for row in rows if row["is_default"] == "True"}
    assert defaults == {"nearest-neighbor"}
