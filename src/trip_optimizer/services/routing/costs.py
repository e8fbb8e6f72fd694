"""Travel time, fare and reliability estimates per transport mode."""

from __future__ import annotations

import math
from dataclasses import dataclass

# Average speeds in km/h.
SPEED_KMH: dict[str, float] = {
    "walk": 4.0,
    "bike": 15.0,
    "auto": 35.0,
    "bus": 30.0,
}
DEFAULT_SPEED_KMH = 20.0

# Boarding, parking and stop overhead added to every leg.
TRAVEL_BUFFER_MINUTES = 5

# (base fare, fare per km) in local currency units.
FARES: dict[str, tuple[float, float]] = {
    "walk": (0.0, 0.0),
    "bike": (10.0, 5.0),
    "auto": (20.0, 8.0),
    "bus": (15.0, 3.0),
}
DEFAULT_FARE_MODE = "auto"

RELIABILITY: dict[str, int] = {
    "walk": 95,
    "bike": 85,
    "auto": 75,
    "bus": 70,
}
DEFAULT_RELIABILITY = 75


@dataclass(slots=True, frozen=True)
class LegEstimate:
    mode: str
    distance_km: float
    duration_min: int
    cost: int
    reliability_score: int


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up, not to even."""
    return int(math.floor(value + 0.5))


def travel_time_minutes(distance_km: float, mode: str) -> int:
    speed = SPEED_KMH.get(mode, DEFAULT_SPEED_KMH)
    return round_half_up(distance_km / speed * 60) + TRAVEL_BUFFER_MINUTES


def fare(distance_km: float, mode: str) -> int:
    base, per_km = FARES.get(mode, FARES[DEFAULT_FARE_MODE])
    return round_half_up(base + per_km * distance_km)


def reliability_score(mode: str) -> int:
    return RELIABILITY.get(mode, DEFAULT_RELIABILITY)


def estimate_leg(distance_km: float, mode: str) -> LegEstimate:
    """Bundle the time, fare and reliability estimates for a single leg."""
    return LegEstimate(
        mode=mode,
        distance_km=distance_km,
        duration_min=travel_time_minutes(distance_km, mode),
        cost=fare(distance_km, mode),
        reliability_score=reliability_score(mode),
    )
