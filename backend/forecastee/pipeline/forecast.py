"""Forecast fetching: coordinates to a 7-day DailyForecast.

Requests a fixed set of eight daily variables localized to the queried
point (``timezone=auto``).
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from forecastee.errors import MalformedResultError, TransportError
from forecastee.schemas.weather import WeatherData
from forecastee.services.open_meteo import OpenMeteoClient, get_open_meteo_client

logger = logging.getLogger(__name__)

DAILY_VARIABLES = (
    "weather_code",
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_sum",
    "precipitation_probability_max",
    "wind_speed_10m_max",
    "wind_gusts_10m_max",
    "snowfall_sum",
)


async def fetch_forecast(
    latitude: float,
    longitude: float,
    *,
    client: Optional[OpenMeteoClient] = None,
) -> WeatherData:
    """Fetch the daily forecast for a point.

    Raises:
        TransportError: If the HTTP call failed or returned non-2xx,
            or the body was not JSON.
        MalformedResultError: If the daily series are missing or misaligned.
    """
    client = client or get_open_meteo_client()

    try:
        payload = await client.get_forecast(
            latitude, longitude, daily=DAILY_VARIABLES, timezone="auto",
        )
    except httpx.HTTPStatusError as e:
        raise TransportError(
            "Failed to fetch weather forecast",
            status_code=e.response.status_code,
            url=str(e.request.url),
        ) from e
    except (httpx.HTTPError, ValueError) as e:
        # ValueError: 2xx with a non-JSON body
        raise TransportError("Failed to fetch weather forecast") from e

    try:
        weather = WeatherData.model_validate(payload)
    except ValidationError as e:
        raise MalformedResultError(f"Unusable forecast data: {e.errors()[0]['msg']}") from e

    logger.info(
        f"Fetched {weather.daily.days}-day forecast for ({latitude}, {longitude}), "
        f"timezone {weather.timezone}"
    )
    return weather
