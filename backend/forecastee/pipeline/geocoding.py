"""Location resolution: free-text city name to a Place.

Asks Open-Meteo geocoding for exactly one best match. No retries; the
orchestrator decides what to do with a failure.
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from forecastee.errors import MalformedResultError, NotFoundError, TransportError
from forecastee.schemas.weather import Place
from forecastee.services.open_meteo import OpenMeteoClient, get_open_meteo_client

logger = logging.getLogger(__name__)


async def resolve_location(city: str, *, client: Optional[OpenMeteoClient] = None) -> Place:
    """Resolve a city name to its top geocoding match.

    Args:
        city: Non-empty city name as typed by the user.
        client: Open-Meteo client (defaults to the shared singleton).

    Returns:
        Place built from the first result.

    Raises:
        ValueError: If city is blank.
        NotFoundError: If the provider returned zero matches.
        MalformedResultError: If the top match lacks required fields.
        TransportError: If the HTTP call failed or returned non-2xx.
    """
    if not city or not city.strip():
        raise ValueError("City name must not be empty")

    client = client or get_open_meteo_client()

    try:
        results = await client.search_locations(city.strip(), count=1)
    except httpx.HTTPStatusError as e:
        raise TransportError(
            "Failed to fetch location data",
            status_code=e.response.status_code,
            url=str(e.request.url),
        ) from e
    except (httpx.HTTPError, ValueError) as e:
        # ValueError: 2xx with a non-JSON body (proxy or maintenance page)
        raise TransportError("Failed to fetch location data") from e

    if not results:
        raise NotFoundError(f'Location "{city}" not found.', query=city)

    try:
        place = Place.model_validate(results[0])
    except ValidationError as e:
        raise MalformedResultError(f"Unusable location data: {e.errors()[0]['msg']}") from e

    logger.info(
        f"Resolved {city!r} to {place.name}, {place.country} "
        f"({place.latitude}, {place.longitude})"
    )
    return place
