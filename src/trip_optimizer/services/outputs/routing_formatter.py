"""Serializers for routing outputs."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict

from ..routing.models import CandidateRoute, OptimizationResult


def format_duration(minutes: float) -> str:
    hours = int(minutes // 60)
    mins = int(round(minutes % 60))
    if mins == 60:
        hours, mins = hours + 1, 0
    if hours > 0 and mins > 0:
        return f"{hours}h {mins}m"
    if hours > 0:
        return f"{hours}h"
    if mins > 0:
        return f"{mins}m"
    return "0m"


def format_distance_km(distance_km: float) -> str:
    return f"{distance_km:.2f} km"


def candidate_route_to_json(route: CandidateRoute) -> dict:
    return {
        "algorithm": route.algorithm,
        "mode": route.mode,
        "source": route.source,
        "tour": list(route.tour),
        "ordered_stops": [asdict(stop) for stop in route.ordered_stops],
        "segments": [asdict(segment) for segment in route.segments],
        "total_distance_km": route.total_distance_km,
        "total_duration_min": route.total_duration_min,
        "total_cost": route.total_cost,
        "formatted_distance": format_distance_km(route.total_distance_km),
        "formatted_duration": format_duration(route.total_duration_min),
    }


def optimization_result_to_json(result: OptimizationResult) -> dict:
    return {
        "default_index": result.default_index,
        "default_algorithm": result.default_route.algorithm,
        "metadata": result.metadata,
        "candidates": [candidate_route_to_json(route) for route in result.candidates],
    }


def candidates_to_csv(result: OptimizationResult) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "algorithm",
        "is_default",
        "sequence",
        "mode",
        "from_label",
        "to_label",
        "distance_km",
        "duration_min",
        "cost",
        "reliability_score",
        "total_distance_km",
        "total_duration_min",
        "total_cost",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for index, route in enumerate(result.candidates):
        for sequence, segment in enumerate(route.segments, start=1):
            writer.writerow(
                {
                    "algorithm": route.algorithm,
                    "is_default": index == result.default_index,
                    "sequence": sequence,
                    "mode": segment.mode,
                    "from_label": segment.from_label,
                    "to_label": segment.to_label,
                    "distance_km": round(segment.distance_km, 3),
                    "duration_min": segment.duration_min,
                    "cost": segment.cost,
                    "reliability_score": segment.reliability_score,
                    "total_distance_km": round(route.total_distance_km, 3),
                    "total_duration_min": route.total_duration_min,
                    "total_cost": route.total_cost,
                }
            )
    return buffer.getvalue()
