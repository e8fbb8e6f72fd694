"""Constructive tour heuristics: input order and nearest neighbour."""

from __future__ import annotations

import math

from .matrix import DistanceMatrix, validate_distance_matrix
from .models import TSPSolution
from .tours import evaluate_tour


def greedy_tour(distance_matrix: DistanceMatrix) -> TSPSolution:
    """Visit the stops in the order the user entered them."""
    size = validate_distance_matrix(distance_matrix)
    return evaluate_tour(list(range(size)), distance_matrix)


def nearest_neighbor_tour(distance_matrix: DistanceMatrix) -> TSPSolution:
    """Start at the origin and always move to the closest unvisited stop.

    Ties go to the lower index. When no unvisited stop is reachable with a finite
    distance the remaining stops are appended in ascending index order.
    """
    size = validate_distance_matrix(distance_matrix)
    tour = [0]
    visited = {0}

    while len(tour) < size:
        current = tour[-1]
        nearest = -1
        nearest_distance = math.inf
        for candidate in range(size):
            if candidate in visited:
                continue
            value = distance_matrix[current][candidate]
            if value is None or not math.isfinite(value):
                continue
            if value < nearest_distance:
                nearest = candidate
                nearest_distance = value

        if nearest == -1:
            tour.extend(index for index in range(size) if index not in visited)
            break
        tour.append(nearest)
        visited.add(nearest)

    return evaluate_tour(tour, distance_matrix)
