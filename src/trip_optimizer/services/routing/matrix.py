"""Pairwise geodesic distance matrix construction and validation."""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import settings
from ...models.domain import Waypoint
from ..geospatial import haversine_km, validate_coordinates

logger = logging.getLogger(__name__)

DistanceMatrix = Sequence[Sequence[float]]


class MatrixValidationError(ValueError):
    """Raised when a distance matrix is empty, ragged or the wrong size."""


def build_distance_matrix(
    waypoints: Sequence[Waypoint],
    *,
    sentinel_km: float | None = None,
) -> tuple[tuple[float, ...], ...]:
    """Build the symmetric N x N haversine matrix for ``waypoints``.

    Pairs involving an out-of-bounds coordinate get ``sentinel_km`` instead of a
    distance so a single bad waypoint cannot abort the whole optimization.
    """
    if not waypoints:
        raise MatrixValidationError("At least one waypoint is required to build a distance matrix.")

    penalty = sentinel_km if sentinel_km is not None else settings.sentinel_distance_km
    valid = [validate_coordinates(point.latitude, point.longitude) for point in waypoints]
    for index, (point, is_valid) in enumerate(zip(waypoints, valid)):
        if not is_valid:
            logger.warning(
                f"Invalid coordinates for waypoint {index} ({point.label!r}): "
                f"lat={point.latitude}, lon={point.longitude}. Using {penalty} km penalty."
            )

    n = len(waypoints)
    rows: list[list[float]] = [[0.0] * n for _ in range(n)]
    for i in range(n):
        for j in range(i + 1, n):
            if valid[i] and valid[j]:
                distance = haversine_km(
                    waypoints[i].latitude,
                    waypoints[i].longitude,
                    waypoints[j].latitude,
                    waypoints[j].longitude,
                )
            else:
                distance = penalty
            rows[i][j] = distance
            rows[j][i] = distance

    return tuple(tuple(row) for row in rows)


def validate_distance_matrix(matrix: DistanceMatrix, expected_size: int | None = None) -> int:
    """Check that ``matrix`` is a non-empty square matrix and return its size."""
    try:
        size = len(matrix)
    except TypeError as exc:
        raise MatrixValidationError("Distance matrix is not a sequence of rows.") from exc
    if size == 0:
        raise MatrixValidationError("Distance matrix is empty.")
    for index, row in enumerate(matrix):
        try:
            row_size = len(row)
        except TypeError as exc:
            raise MatrixValidationError(f"Distance matrix row {index} is not a sequence.") from exc
        if row_size != size:
            raise MatrixValidationError(
                f"Distance matrix row {index} has {row_size} entries, expected {size}."
            )
    if expected_size is not None and size != expected_size:
        raise MatrixValidationError(
            f"Matrix size mismatch: matrix={size}, waypoints={expected_size}"
        )
    return size
