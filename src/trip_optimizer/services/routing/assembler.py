"""Turn a visiting order into a costed, segmented candidate route."""

from __future__ import annotations

import logging
from typing import Sequence

from ...models.domain import Waypoint
from ..geospatial import haversine_km, validate_coordinates
from .costs import estimate_leg
from .models import SOURCE_GEODESIC, CandidateRoute, RouteSegment

logger = logging.getLogger(__name__)


def build_segments(ordered_points: Sequence[Waypoint], mode: str) -> list[RouteSegment]:
    """One segment per consecutive pair of the one-way journey.

    Pairs with an invalid coordinate cannot be measured and are left out.
    """
    segments: list[RouteSegment] = []
    for start, finish in zip(ordered_points, ordered_points[1:]):
        if not (
            validate_coordinates(start.latitude, start.longitude)
            and validate_coordinates(finish.latitude, finish.longitude)
        ):
            logger.warning(f"Invalid coordinates detected: {start.label} -> {finish.label}; segment skipped")
            continue

        distance = haversine_km(start.latitude, start.longitude, finish.latitude, finish.longitude)
        leg = estimate_leg(distance, mode)
        segments.append(
            RouteSegment(
                mode=mode,
                from_label=start.label,
                to_label=finish.label,
                distance_km=distance,
                duration_min=leg.duration_min,
                cost=leg.cost,
                reliability_score=leg.reliability_score,
            )
        )
    return segments


def assemble_route(
    tour: Sequence[int],
    waypoints: Sequence[Waypoint],
    *,
    mode: str,
    algorithm: str,
    source: str = SOURCE_GEODESIC,
    total_distance_km: float | None = None,
    total_duration_min: float | None = None,
) -> CandidateRoute:
    """Build the candidate route for ``tour`` over ``waypoints``.

    Totals are sums over the segments unless the caller supplies measured figures
    (e.g. road distance and duration from the trip service).
    """
    if not tour or tour[0] != 0:
        raise ValueError(f"Tour must start at the origin, got {list(tour)!r}.")
    if sorted(tour) != list(range(len(waypoints))):
        raise ValueError(f"Tour {list(tour)!r} is not a permutation of {len(waypoints)} waypoints.")

    ordered_points = [waypoints[index] for index in tour]
    segments = build_segments(ordered_points, mode)

    distance = sum(segment.distance_km for segment in segments)
    duration = sum(segment.duration_min for segment in segments)
    cost = sum(segment.cost for segment in segments)

    return CandidateRoute(
        algorithm=algorithm,
        mode=mode,
        tour=tuple(tour),
        ordered_stops=tuple(ordered_points[1:]),
        segments=tuple(segments),
        total_distance_km=total_distance_km if total_distance_km is not None else distance,
        total_duration_min=total_duration_min if total_duration_min is not None else float(duration),
        total_cost=cost,
        source=source,
    )
