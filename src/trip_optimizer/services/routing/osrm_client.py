"""HTTP client for the OSRM trip service."""

from __future__ import annotations

import logging
import time
from typing import Any, Protocol, Sequence

import httpx

from ...config import settings
from .models import TripResult

METERS_PER_KM = 1000.0
SECONDS_PER_MINUTE = 60.0

logger = logging.getLogger(__name__)


class TripProvider(Protocol):
    """Anything that can order ``(lat, lon)`` coordinates into a road-network trip."""

    def trip(self, coordinates: Sequence[tuple[float, float]]) -> TripResult: ...


class OSRMClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self.transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            transport=self.transport,
        )

    def trip(self, coordinates: Sequence[tuple[float, float]]) -> TripResult:
        """Ask OSRM for the best one-way trip from the first to the last coordinate.

        Coordinates are ``(lat, lon)`` tuples. OSRM only supports one-way trips with
        both ends fixed, so the returned order keeps the origin first and the last
        input coordinate last, reordering the stops in between.
        """
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for OSRM trip optimization.")

        coordinate_str = ";".join(f"{lon:.6f},{lat:.6f}" for lat, lon in coordinates)
        params = {
            "source": "first",
            "destination": "last",
            "roundtrip": "false",
            "overview": "false",
            "steps": "false",
        }
        url = f"{self.base_url}/trip/v1/{self.profile}/{coordinate_str}"

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    if response.is_client_error:
                        raise ValueError(f"OSRM trip request rejected: {_error_reason(response)}")
                    response.raise_for_status()
                    return parse_trip_response(response.json(), len(coordinates))
                except httpx.HTTPStatusError:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise
                    time.sleep(self.backoff_seconds * attempt)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"OSRM trip request timed out after {attempt} attempt(s): {e}")
                        raise ConnectionError(f"OSRM trip request timed out: {e}") from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM trip timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except (httpx.ConnectError, httpx.NetworkError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(
                            f"Failed to connect to OSRM service at {self.base_url}: {e}"
                        ) from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(wait_time)
        finally:
            client.close()


def _error_reason(response: httpx.Response) -> str:
    """``code: message`` from an OSRM error body, or the HTTP status if it has none."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("code"):
        message = body.get("message")
        return f"{body['code']}: {message}" if message else str(body["code"])
    return f"HTTP {response.status_code}"


def parse_trip_response(payload: Any, coordinate_count: int) -> TripResult:
    """Extract visiting order, distance and duration from an OSRM trip payload."""
    if not isinstance(payload, dict):
        raise ValueError("OSRM trip response is not a JSON object.")
    if payload.get("code") != "Ok":
        error_msg = payload.get("message", payload.get("code", "Unknown OSRM trip error"))
        raise ValueError(f"OSRM trip request failed: {error_msg}")

    trips = payload.get("trips") or []
    waypoints = payload.get("waypoints") or []
    if not trips:
        raise ValueError("OSRM trip response contains no trips.")
    if len(waypoints) != coordinate_count:
        raise ValueError(
            f"OSRM returned {len(waypoints)} waypoints for {coordinate_count} coordinates."
        )

    try:
        positions = [int(waypoint["waypoint_index"]) for waypoint in waypoints]
        distance_km = float(trips[0]["distance"]) / METERS_PER_KM
        duration_min = float(trips[0]["duration"]) / SECONDS_PER_MINUTE
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("Invalid OSRM trip response.") from exc

    if sorted(positions) != list(range(coordinate_count)):
        raise ValueError("OSRM trip waypoints do not form a single complete trip.")

    order = tuple(sorted(range(coordinate_count), key=lambda index: positions[index]))
    if order[0] != 0:
        raise ValueError("OSRM trip does not start at the origin.")
    if order[-1] != coordinate_count - 1:
        raise ValueError("OSRM trip does not end at the last waypoint.")

    return TripResult(order=order, distance_km=distance_km, duration_min=duration_min)


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health by making a simple table request.

    Public OSRM endpoints may not have a /health endpoint, so we test
    connectivity by making a minimal table request with two coordinates.
    """
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        test_coords = "13.388860,52.517037;13.385983,52.496891"
        url = f"{base.rstrip('/')}/table/v1/{settings.osrm_profile}/{test_coords}"
        response = httpx.get(url, params={"annotations": "duration"}, timeout=5.0)
        response.raise_for_status()
        data = response.json()
        return "durations" in data and isinstance(data.get("durations"), list)
    except (httpx.HTTPError, ValueError):
        return False
