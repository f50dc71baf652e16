"""Open-Meteo API client for geocoding and daily forecasts.

Provides:
- Async client wrapping httpx for the geocoding and forecast endpoints
- Module-level singleton shared by the pipeline stages

Usage:
    from forecastee.services.open_meteo import get_open_meteo_client

    client = get_open_meteo_client()
    results = await client.search_locations("Berlin")
    payload = await client.get_forecast(52.52, 13.405, daily=["weather_code"])
"""

import logging
from typing import Any, Optional, Sequence

import httpx

from forecastee.config import settings

logger = logging.getLogger(__name__)


class OpenMeteoClient:
    """Async client for the Open-Meteo geocoding and forecast APIs.

    Both calls return decoded JSON and leave non-2xx handling to the caller
    via ``httpx.Response.raise_for_status``.
    """

    def __init__(
        self,
        geocoding_url: Optional[str] = None,
        forecast_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.geocoding_url = geocoding_url or settings.weather.geocoding_url
        self.forecast_url = forecast_url or settings.weather.forecast_url
        self.timeout = timeout or settings.weather.request_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                timeout=httpx.Timeout(self.timeout, connect=10.0),
                transport=self._transport,
            )
        return self._client

    async def search_locations(
        self,
        name: str,
        count: int = 1,
        language: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Look up places by name.

        Returns the ``results`` array (empty when nothing matched).
        """
        params = {
            "name": name,
            "count": count,
            "language": language or settings.weather.language,
            "format": "json",
        }
        logger.debug("GET %s name=%r count=%d", self.geocoding_url, name, count)
        response = await self.client.get(self.geocoding_url, params=params)
        logger.debug("  geocoding response: HTTP %d", response.status_code)
        response.raise_for_status()
        return response.json().get("results") or []

    async def get_forecast(
        self,
        latitude: float,
        longitude: float,
        daily: Sequence[str],
        timezone: str = "auto",
    ) -> dict[str, Any]:
        """Fetch daily forecast variables for a point."""
        params = {
            "latitude": str(latitude),
            "longitude": str(longitude),
            "daily": ",".join(daily),
            "timezone": timezone,
        }
        logger.debug(
            "GET %s lat=%s lon=%s daily=%s",
            self.forecast_url, latitude, longitude, params["daily"],
        )
        response = await self.client.get(self.forecast_url, params=params)
        logger.debug("  forecast response: HTTP %d", response.status_code)
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None


_open_meteo_client: Optional[OpenMeteoClient] = None


def get_open_meteo_client() -> OpenMeteoClient:
    """Return the shared OpenMeteoClient, creating it on first call."""
    global _open_meteo_client
    if _open_meteo_client is None:
        _open_meteo_client = OpenMeteoClient()
    return _open_meteo_client


async def close_open_meteo_client() -> None:
    """Close the singleton OpenMeteoClient (for app shutdown)."""
    global _open_meteo_client
    if _open_meteo_client is not None:
        await _open_meteo_client.close()
        _open_meteo_client = None
