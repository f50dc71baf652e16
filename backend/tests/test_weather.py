"""Tests for location resolution, forecast fetching, and the weather schemas."""

import httpx
import pytest

from forecastee.errors import MalformedResultError, NotFoundError, TransportError
from forecastee.pipeline.forecast import DAILY_VARIABLES, fetch_forecast
from forecastee.pipeline.geocoding import resolve_location
from forecastee.schemas.weather import SERIES_FIELDS, DailyForecast


# ---------------------------------------------------------------------------
# Geocoding
# ---------------------------------------------------------------------------

async def test_resolve_location_returns_top_match(open_meteo_factory, geocoding_json):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json=geocoding_json)

    place = await resolve_location("Berlin", client=open_meteo_factory(handler))

    assert place.name == "Berlin"
    assert place.country == "Germany"
    assert place.latitude == pytest.approx(52.52437)
    assert place.longitude == pytest.approx(13.41053)
    assert seen["name"] == "Berlin"
    assert seen["count"] == "1"
    assert seen["format"] == "json"
    assert seen["language"] == "en"


async def test_resolve_location_not_found_names_the_city(open_meteo_factory):
    client = open_meteo_factory(lambda request: httpx.Response(200, json={"generationtime_ms": 0.1}))

    with pytest.raises(NotFoundError) as exc_info:
        await resolve_location("Xyzzyplex", client=client)

    assert "Xyzzyplex" in str(exc_info.value)
    assert exc_info.value.query == "Xyzzyplex"


async def test_resolve_location_empty_results_array(open_meteo_factory):
    client = open_meteo_factory(lambda request: httpx.Response(200, json={"results": []}))

    with pytest.raises(NotFoundError):
        await resolve_location("Nowhere", client=client)


async def test_resolve_location_http_error(open_meteo_factory):
    client = open_meteo_factory(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(TransportError) as exc_info:
        await resolve_location("Berlin", client=client)

    assert exc_info.value.message == "Failed to fetch location data"
    assert exc_info.value.status_code == 500


async def test_resolve_location_connection_error(open_meteo_factory):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(TransportError):
        await resolve_location("Berlin", client=open_meteo_factory(handler))


async def test_resolve_location_non_json_body(open_meteo_factory):
    client = open_meteo_factory(lambda request: httpx.Response(200, text="<html>maintenance</html>"))

    with pytest.raises(TransportError) as exc_info:
        await resolve_location("Berlin", client=client)

    assert exc_info.value.message == "Failed to fetch location data"


async def test_resolve_location_incomplete_match(open_meteo_factory):
    incomplete = {"results": [{"id": 1, "name": "Berlin", "country": "Germany"}]}
    client = open_meteo_factory(lambda request: httpx.Response(200, json=incomplete))

    with pytest.raises(MalformedResultError, match="Unusable location data"):
        await resolve_location("Berlin", client=client)


@pytest.mark.parametrize("city", ["", "   "])
async def test_resolve_location_rejects_blank_city(city, open_meteo_factory):
    client = open_meteo_factory(lambda request: pytest.fail("no request expected"))

    with pytest.raises(ValueError):
        await resolve_location(city, client=client)


# ---------------------------------------------------------------------------
# Forecast
# ---------------------------------------------------------------------------

async def test_fetch_forecast_requests_daily_variables(open_meteo_factory, forecast_json):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json=forecast_json)

    weather = await fetch_forecast(52.52437, 13.41053, client=open_meteo_factory(handler))

    assert seen["latitude"] == "52.52437"
    assert seen["longitude"] == "13.41053"
    assert seen["timezone"] == "auto"
    assert seen["daily"].split(",") == list(DAILY_VARIABLES)
    assert weather.timezone == "Europe/Berlin"
    assert weather.daily.days == 7


async def test_fetch_forecast_series_are_aligned(open_meteo_factory, forecast_json):
    client = open_meteo_factory(lambda request: httpx.Response(200, json=forecast_json))

    weather = await fetch_forecast(52.52, 13.41, client=client)

    for name in SERIES_FIELDS:
        assert len(getattr(weather.daily, name)) == len(weather.daily.time)


async def test_fetch_forecast_misaligned_series(open_meteo_factory, forecast_json):
    forecast_json["daily"]["temperature_2m_max"] = forecast_json["daily"]["temperature_2m_max"][:5]
    client = open_meteo_factory(lambda request: httpx.Response(200, json=forecast_json))

    with pytest.raises(MalformedResultError) as exc_info:
        await fetch_forecast(52.52, 13.41, client=client)

    assert "temperature_2m_max" in str(exc_info.value)


async def test_fetch_forecast_missing_daily(open_meteo_factory, forecast_json):
    del forecast_json["daily"]
    client = open_meteo_factory(lambda request: httpx.Response(200, json=forecast_json))

    with pytest.raises(MalformedResultError):
        await fetch_forecast(52.52, 13.41, client=client)


async def test_fetch_forecast_non_json_body(open_meteo_factory):
    client = open_meteo_factory(lambda request: httpx.Response(200, text="Service Unavailable"))

    with pytest.raises(TransportError) as exc_info:
        await fetch_forecast(52.52, 13.41, client=client)

    assert exc_info.value.message == "Failed to fetch weather forecast"


async def test_fetch_forecast_http_error(open_meteo_factory):
    client = open_meteo_factory(lambda request: httpx.Response(400, json={"error": True, "reason": "bad"}))

    with pytest.raises(TransportError) as exc_info:
        await fetch_forecast(52.52, 13.41, client=client)

    assert exc_info.value.message == "Failed to fetch weather forecast"
    assert exc_info.value.status_code == 400


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

def test_daily_forecast_accepts_nulls(forecast_json):
    forecast_json["daily"]["precipitation_probability_max"][6] = None

    daily = DailyForecast.model_validate(forecast_json["daily"])

    assert daily.day(6)["precipitation_probability_max"] is None
    assert daily.day(0)["time"] == "2026-10-18"


def test_daily_forecast_zero_days():
    daily = DailyForecast.model_validate({"time": [], **{name: [] for name in SERIES_FIELDS}})

    assert daily.days == 0
