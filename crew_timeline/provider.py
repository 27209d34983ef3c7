"""
Travel-time providers backed by the Google Distance Matrix API.
Handles rate limiting, retries, timeouts and an address-pair memo with TTL.
"""

import asyncio
import hashlib
import logging
import math
import time
from typing import Dict, Optional, Any, Protocol, Tuple

import httpx
from .schemas import AppConfig, Settings


logger = logging.getLogger(__name__)


class TravelTimeProvider(Protocol):
    """Anything that can estimate driving minutes between two addresses."""

    async def estimate_travel_minutes(self, origin: str, destination: str) -> Optional[int]:
        """Return whole minutes, or None when the leg cannot be resolved."""
        ...

    async def close(self) -> None:
        ...


def _address_pair_key(origin: str, destination: str) -> str:
    return f"{origin.lower().strip()}|{destination.lower().strip()}"


class GoogleDistanceMatrixProvider:
    """Google Distance Matrix client with rate limiting and retry logic."""

    def __init__(
        self,
        config: AppConfig,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
        clock=time.monotonic,
    ):
        """Initialize Google Maps client."""
        self.config = config
        self.api_key = (settings.google_maps_api_key or "").strip() or None
        self.base_url = "https://maps.googleapis.com/maps/api"

        # Rate limiting
        self.last_request_time = 0.0
        self.min_request_interval = 1.0 / config.google.rate_limit_requests_per_second
        self._rate_lock = asyncio.Lock()

        # HTTP client
        self.client = client or httpx.AsyncClient(timeout=config.travel.request_timeout_seconds)

        # Address-pair memo: key -> (minutes, stored_at)
        self._clock = clock
        self._ttl_seconds = config.google.address_cache_ttl_hours * 3600
        self._memo: Dict[str, Tuple[int, float]] = {}

        if not self.api_key:
            logger.warning("Google Maps API key not configured - travel legs will use the default duration")

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [k for k, (_, stored_at) in self._memo.items() if now - stored_at >= self._ttl_seconds]
        for key in expired:
            del self._memo[key]

    async def _throttle(self) -> None:
        """Wait out the minimum interval since the previous request."""
        # Concurrent lookups queue here so each one sees the previous send time
        async with self._rate_lock:
            time_since_last = time.monotonic() - self.last_request_time
            if time_since_last < self.min_request_interval:
                await asyncio.sleep(self.min_request_interval - time_since_last)
            self.last_request_time = time.monotonic()

    async def _rate_limited_request(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Make a rate-limited HTTP request with retries."""
        params["key"] = self.api_key

        for attempt in range(self.config.google.max_retries):
            try:
                await self._throttle()
                response = await self.client.get(url, params=params)
                response.raise_for_status()

                data = response.json()

                status = data.get("status")
                if status == "OK":
                    return data
                elif status in ["ZERO_RESULTS", "NOT_FOUND", "INVALID_REQUEST", "REQUEST_DENIED"]:
                    # Retrying will not change the answer
                    logger.warning(f"Distance Matrix returned {status}: {data.get('error_message', '')}")
                    return data
                else:
                    raise httpx.HTTPError(f"Distance Matrix error: {status} - {data.get('error_message', '')}")

            except httpx.HTTPError as e:
                logger.warning(f"Distance Matrix attempt {attempt + 1} failed: {e}")
                if attempt < self.config.google.max_retries - 1:
                    await asyncio.sleep(self.config.google.retry_delay_seconds * (2 ** attempt))
                else:
                    raise

    async def estimate_travel_minutes(self, origin: str, destination: str) -> Optional[int]:
        """Driving minutes between two addresses, rounded up, or None."""
        if not origin or not origin.strip() or not destination or not destination.strip():
            return None

        if not self.api_key:
            return None

        self._purge_expired()
        key = _address_pair_key(origin, destination)
        cached = self._memo.get(key)
        if cached is not None:
            logger.debug(f"Using cached travel time for '{key}'")
            return cached[0]

        url = f"{self.base_url}/distancematrix/json"
        params = {
            "origins": origin,
            "destinations": destination,
            "mode": self.config.google.mode,
            "traffic_model": self.config.google.traffic_model.lower(),
            "departure_time": "now",
        }

        try:
            data = await self._rate_limited_request(url, params)
        except httpx.HTTPError as e:
            logger.warning(f"Travel time request failed for '{origin}' -> '{destination}': {e}")
            return None

        minutes = self._parse_minutes(data)
        if minutes is not None:
            self._memo[key] = (minutes, self._clock())
        return minutes

    def _parse_minutes(self, data: Dict[str, Any]) -> Optional[int]:
        """Extract whole minutes (rounded up) from a Distance Matrix response."""
        if data.get("status") != "OK":
            return None

        rows = data.get("rows") or [{}]
        elements = rows[0].get("elements") or [{}]
        element = elements[0]
        if element.get("status") != "OK":
            logger.warning(f"No route found: {element.get('status', 'unknown')}")
            return None

        # Prefer traffic-aware duration when present
        duration = element.get("duration_in_traffic") or element.get("duration") or {}
        seconds = duration.get("value")
        if not isinstance(seconds, (int, float)):
            logger.warning("Distance Matrix response missing duration")
            return None

        return math.ceil(seconds / 60)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()


class MockTravelProvider:
    """Deterministic offline estimates for development and testing."""

    def __init__(self, min_minutes: int = 5, max_minutes: int = 55):
        self.min_minutes = min_minutes
        self.max_minutes = max_minutes

    async def estimate_travel_minutes(self, origin: str, destination: str) -> Optional[int]:
        if not origin or not origin.strip() or not destination or not destination.strip():
            return None
        if origin.lower().strip() == destination.lower().strip():
            return 0

        # Stable across processes, unlike hash()
        digest = hashlib.sha1(_address_pair_key(origin, destination).encode("utf-8")).hexdigest()
        span = self.max_minutes - self.min_minutes + 1
        minutes = self.min_minutes + int(digest[:8], 16) % span
        logger.debug(f"Mock travel time '{origin}' -> '{destination}' = {minutes} min")
        return minutes

    async def close(self):
        return None


def build_provider(config: AppConfig, settings: Settings) -> TravelTimeProvider:
    """Pick the live provider, or the mock one in dev mode."""
    if config.dev.mock_google_api:
        logger.info("Using mock travel time provider")
        return MockTravelProvider()
    return GoogleDistanceMatrixProvider(config, settings)
