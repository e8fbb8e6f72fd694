"""Tour length and fitness helpers shared by the solvers."""

from __future__ import annotations

import math
from typing import Sequence

from .matrix import DistanceMatrix
from .models import TSPSolution


def _edge(matrix: DistanceMatrix, from_index: int, to_index: int) -> float:
    size = len(matrix)
    if not (0 <= from_index < size and 0 <= to_index < size):
        return math.inf
    value = matrix[from_index][to_index]
    if value is None:
        return math.inf
    value = float(value)
    if math.isnan(value) or value < 0:
        return math.inf
    return value


def open_path_distance(tour: Sequence[int], matrix: DistanceMatrix) -> float:
    """Sum of consecutive edges; ``inf`` if any edge is missing or invalid."""
    return sum(_edge(matrix, tour[i], tour[i + 1]) for i in range(len(tour) - 1))


def closed_tour_distance(tour: Sequence[int], matrix: DistanceMatrix) -> float:
    """Open path length plus the edge returning to the origin."""
    if len(tour) < 2:
        return 0.0
    return open_path_distance(tour, matrix) + _edge(matrix, tour[-1], tour[0])


def fitness_for(distance: float) -> float:
    if distance <= 0 or not math.isfinite(distance):
        return 0.0
    return 1.0 / distance


def evaluate_tour(tour: Sequence[int], matrix: DistanceMatrix) -> TSPSolution:
    if len(tour) < 2:
        # A lone origin is a complete trip.
        return TSPSolution(tour=tuple(tour), total_distance=0.0, fitness=1.0)
    distance = closed_tour_distance(tour, matrix)
    return TSPSolution(tour=tuple(tour), total_distance=distance, fitness=fitness_for(distance))


def is_valid_tour(tour: Sequence[int], size: int) -> bool:
    """True if ``tour`` is a permutation of ``0..size-1`` starting at the origin."""
    return len(tour) == size and (size == 0 or tour[0] == 0) and sorted(tour) == list(range(size))
