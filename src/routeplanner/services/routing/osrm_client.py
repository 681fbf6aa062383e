"""HTTP client for road distances from an OSRM service."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import httpx

from ...config import settings
from .models import EdgeMetrics

logger = logging.getLogger(__name__)


class EdgeDistanceLookup(Protocol):
    """Road metrics between two (lat, lon) coordinates. Implementations may raise."""

    async def lookup(self, origin: tuple[float, float], destination: tuple[float, float]) -> EdgeMetrics:
        ...


class OSRMClient:
    """Async client for the OSRM ``/route/v1`` endpoint.

    Each call makes its own short-lived ``httpx.AsyncClient`` so one instance
    can serve concurrent lookups.
    """

    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 5.0)),
            transport=self._transport,
        )

    async def lookup(self, origin: tuple[float, float], destination: tuple[float, float]) -> EdgeMetrics:
        """Road distance (km), duration (s) and path geometry as (lat, lon) pairs."""
        # OSRM expects "lon,lat;lon,lat"
        coordinate_str = f"{origin[1]},{origin[0]};{destination[1]},{destination[0]}"
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"
        params = {"overview": "full", "geometries": "geojson", "steps": "false"}

        async with self._get_client() as client:
            attempt = 0
            while True:
                try:
                    response = await client.get(url, params=params)
                    response.raise_for_status()
                    return _parse_route(response.json())
                except httpx.HTTPStatusError as exc:
                    # Client errors will not improve on retry.
                    if exc.response.status_code < 500 and exc.response.status_code != 429:
                        raise
                    attempt += 1
                    if attempt > self.max_retries:
                        raise
                    await asyncio.sleep(self.backoff_seconds * attempt)
                except (httpx.TimeoutException, httpx.NetworkError) as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(
                            f"Failed to reach OSRM service at {self.base_url}: {exc}"
                        ) from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(
                        f"OSRM network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {exc}"
                    )
                    await asyncio.sleep(wait_time)


def _parse_route(data: dict) -> EdgeMetrics:
    if data.get("code") != "Ok" or not data.get("routes"):
        raise ValueError(f"OSRM route request failed: {data.get('message', data.get('code', 'no route found'))}")
    route = data["routes"][0]
    geometry = route.get("geometry") or {}
    coordinates = [(float(lat), float(lon)) for lon, lat in geometry.get("coordinates", [])]
    return EdgeMetrics(
        distance_km=float(route["distance"]) / 1000.0,
        duration_sec=float(route["duration"]),
        coordinates=coordinates,
    )


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM availability with a minimal two-point route request."""
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        # Amsterdam Centraal -> Dam square
        url = f"{base.rstrip('/')}/route/v1/{settings.osrm_profile}/4.900,52.379;4.893,52.373"
        response = httpx.get(url, params={"overview": "false"}, timeout=5.0)
        response.raise_for_status()
        return response.json().get("code") == "Ok"
    except (httpx.HTTPError, ValueError):
        return False
