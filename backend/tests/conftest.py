"""Pytest configuration and fixtures."""

import asyncio
from types import SimpleNamespace
from typing import Callable

import httpx
import pytest

from forecastee.schemas.weather import Place, WeatherData
from forecastee.services.artifacts import ArtifactStore
from forecastee.services.credentials import ApiKeyCredentials
from forecastee.services.open_meteo import OpenMeteoClient

GEOCODING_URL = "https://geocoding.test/v1/search"
FORECAST_URL = "https://forecast.test/v1/forecast"


def berlin_geocoding_result() -> dict:
    return {
        "id": 2950159,
        "name": "Berlin",
        "latitude": 52.52437,
        "longitude": 13.41053,
        "elevation": 74.0,
        "feature_code": "PPLC",
        "country_code": "DE",
        "timezone": "Europe/Berlin",
        "country": "Germany",
        "admin1": "Land Berlin",
    }


def forecast_payload(days: int = 7, latitude: float = 52.52, longitude: float = 13.419998) -> dict:
    """Open-Meteo style forecast response with `days` aligned daily entries."""
    return {
        "latitude": latitude,
        "longitude": longitude,
        "generationtime_ms": 0.12,
        "utc_offset_seconds": 7200,
        "timezone": "Europe/Berlin",
        "timezone_abbreviation": "CEST",
        "elevation": 38.0,
        "daily_units": {
            "time": "iso8601",
            "weather_code": "wmo code",
            "temperature_2m_max": "°C",
            "temperature_2m_min": "°C",
            "precipitation_sum": "mm",
            "precipitation_probability_max": "%",
            "wind_speed_10m_max": "km/h",
            "wind_gusts_10m_max": "km/h",
            "snowfall_sum": "cm",
        },
        "daily": {
            "time": [f"2026-10-{18 + i:02d}" for i in range(days)],
            "weather_code": [3, 61, 80, 2, 1, 45, 3][:days] + [0] * max(0, days - 7),
            "temperature_2m_max": [14.2 - i * 0.5 for i in range(days)],
            "temperature_2m_min": [6.1 - i * 0.3 for i in range(days)],
            "precipitation_sum": [0.0, 4.2, 1.1, 0.0, 0.0, 0.3, 0.0][:days] + [0.0] * max(0, days - 7),
            "precipitation_probability_max": [10, 80, 55, 5, 0, 20, 15][:days] + [0] * max(0, days - 7),
            "wind_speed_10m_max": [12.5 + i for i in range(days)],
            "wind_gusts_10m_max": [30.2 + i for i in range(days)],
            "snowfall_sum": [0.0] * days,
        },
    }


@pytest.fixture
def berlin() -> Place:
    return Place.model_validate(berlin_geocoding_result())


@pytest.fixture
def weather() -> WeatherData:
    return WeatherData.model_validate(forecast_payload())


@pytest.fixture
def credentials() -> ApiKeyCredentials:
    return ApiKeyCredentials(api_key="test-key")


@pytest.fixture
def artifact_store(tmp_path) -> ArtifactStore:
    return ArtifactStore(tmp_path / "artifacts")


@pytest.fixture
def open_meteo_factory() -> Callable[[Callable[[httpx.Request], httpx.Response]], OpenMeteoClient]:
    """Build an OpenMeteoClient backed by an httpx.MockTransport handler."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> OpenMeteoClient:
        return OpenMeteoClient(
            geocoding_url=GEOCODING_URL,
            forecast_url=FORECAST_URL,
            transport=httpx.MockTransport(handler),
        )

    return _make


def make_operation(done: bool, uri: str | None = None, videos: int = 1, error=None, name: str = "models/veo/operations/op-1"):
    """Stand-in for a google-genai GenerateVideosOperation."""
    if not done:
        return SimpleNamespace(name=name, done=False, error=None, response=None)
    generated = [
        SimpleNamespace(video=SimpleNamespace(uri=uri)) for _ in range(videos)
    ]
    return SimpleNamespace(
        name=name,
        done=True,
        error=error,
        response=SimpleNamespace(generated_videos=generated, rai_media_filtered_reasons=None),
    )


@pytest.fixture
def geocoding_json() -> dict:
    return {"results": [berlin_geocoding_result()], "generationtime_ms": 0.5}


@pytest.fixture
def forecast_json() -> dict:
    return forecast_payload()


@pytest.fixture
def operation_factory():
    return make_operation


SUMMARY = "Day 1: Sat Oct 18\n- Cool and cloudy, high 14°C."


class FakeStages:
    """Stand-ins for the four pipeline stages.

    Records calls and lets tests inject failures or block a stage on an
    asyncio.Event.
    """

    def __init__(self, weather: WeatherData, store: ArtifactStore):
        self.weather = weather
        self.store = store
        self.summary = SUMMARY
        self.calls = []
        self.fail = {}
        self.pause = {}
        self.cancelled = []

    async def _hook(self, stage, city):
        self.calls.append((stage, city))
        if (stage, city) in self.pause:
            try:
                await self.pause[(stage, city)].wait()
            except asyncio.CancelledError:
                self.cancelled.append((stage, city))
                raise
        if stage in self.fail:
            raise self.fail[stage]

    async def resolve_location(self, city, *, client=None):
        await self._hook("geocode", city)
        return Place(id=1, name=city, country="Testland", latitude=1.0, longitude=2.0)

    async def fetch_forecast(self, latitude, longitude, *, client=None):
        await self._hook("forecast", None)
        return self.weather

    async def generate_summary(self, place, weather, *, credentials, text_adapter=None):
        await self._hook("summary", place.name)
        return self.summary

    async def generate_report_video(self, place_name, summary, *, credentials, run_id, artifact_store, model):
        await self._hook("video", place_name)
        store = artifact_store or self.store
        return store.save_video(run_id, b"mp4:" + place_name.encode(), f"https://files.test/{run_id}")


@pytest.fixture
def stages(monkeypatch, weather, artifact_store):
    """Patch the orchestrator's stage functions with FakeStages."""
    from forecastee.orchestrator import pipeline as pipeline_module

    fake = FakeStages(weather, artifact_store)
    for name in ("resolve_location", "fetch_forecast", "generate_summary", "generate_report_video"):
        monkeypatch.setattr(pipeline_module, name, getattr(fake, name))
    return fake
