"""Domain models for trip waypoints and transport modes."""

from dataclasses import dataclass
from typing import Literal, get_args

TransportMode = Literal["walk", "bike", "auto", "bus"]

TRANSPORT_MODES: tuple[str, ...] = get_args(TransportMode)


@dataclass(slots=True, frozen=True)
class Waypoint:
    """A stop on the journey. The waypoint at index 0 of a trip is its origin."""

    waypoint_id: str
    label: str
    latitude: float
    longitude: float

    @property
    def coordinates(self) -> tuple[float, float]:
        return self.latitude, self.longitude
