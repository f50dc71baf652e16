"""Narrative summary generation from a structured forecast.

Sends one fixed system instruction plus one user instruction embedding the
serialized daily data. Provider errors are not caught here; they propagate
to the orchestrator.
"""

import json
import logging
from typing import Optional

from forecastee.config import settings
from forecastee.schemas.weather import Place, WeatherData
from forecastee.services.credentials import CredentialProvider
from forecastee.services.llm import TextAdapter, get_adapter

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "No summary available."

ALLOWED_TEXT_MODELS = {
    "gemini-2.5-flash",
    "gemini-2.5-flash-lite",
    "gemini-2.5-pro",
}


def is_allowed_text_model(model_id: str) -> bool:
    """Gemini models from the allow-list, or any ollama/ model."""
    return model_id in ALLOWED_TEXT_MODELS or model_id.startswith("ollama/")

_SYSTEM_PROMPT_TEMPLATE = """You are a weather summarization assistant for the application "WeatherForecastee".
Your task is to interpret a 7-day weather forecast from the Open-Meteo API and produce a concise, human-readable text summary that highlights temperature trends, precipitation, wind, and other key weather indicators. The summary should resemble short daily notes with natural language and local context.

### Input
- Location: {city}, {country}
- Forecast source: Open-Meteo API (7-day data)
- Units: °C, mm, km/h
The data will include:
- Temperature (max, min)
- Precipitation (mm) and precipitation probability
- Snowfall (cm)
- Wind speed and gusts (km/h)
- Weather code (WMO)
- Time zone localized dates

### Output format
Generate natural language outputs following this structure for days 1-3:
Day 1: {{weekday}} {{month}} {{day}}
- {{Short summary: e.g., Cool day with scattered showers, light morning frost.}}
- {{Key details: high X°C, low Y°C, precip Z mm (rain or snow type), gusts W km/h, conditions summary}}.

Days 4-7 Summary:
- Summarize temperature range (e.g., highs 3-7°C)
- Mention precipitation trends (mm of rain/snow)
- Highlight important wind or visibility alerts
- End with an overall trend (e.g., colder midweek, improving by weekend)

### Style and tone
- Professional but friendly and readable.
- Write short, complete sentences.
- Emphasize weather impact (travel risk, frost, snow, visibility).
- Avoid unnecessary repetition or numeric overload.
- Always use local timezone wording (e.g., "evening frost", "midday snow")."""


def build_system_prompt(place: Place) -> str:
    """Fill the fixed instruction with the place's name and country."""
    return _SYSTEM_PROMPT_TEMPLATE.format(city=place.name, country=place.country)


def build_user_prompt(place: Place, weather: WeatherData) -> str:
    """Embed the daily forecast as indented JSON."""
    daily_json = json.dumps(weather.daily.model_dump(), indent=2)
    return (
        "Using the provided Open-Meteo forecast data JSON, generate the 7-day "
        f"forecast summary for {place.name}, {place.country}.\n\n"
        f"Forecast Data:\n{daily_json}"
    )


async def generate_summary(
    place: Place,
    weather: WeatherData,
    *,
    credentials: CredentialProvider,
    text_adapter: Optional[TextAdapter] = None,
) -> str:
    """Summarize a forecast into multi-day narrative text.

    Args:
        place: Resolved location (name and country are embedded in the prompts).
        weather: Forecast whose daily series are serialized into the request.
        credentials: Credential provider for the default Gemini adapter.
        text_adapter: Adapter override; defaults to settings.models.summary_llm.

    Returns:
        The generated summary, or FALLBACK_SUMMARY if the model returned no text.
    """
    adapter = text_adapter or get_adapter(settings.models.summary_llm, credentials)

    text = await adapter.generate_text(
        build_user_prompt(place, weather),
        system_prompt=build_system_prompt(place),
    )

    if not text or not text.strip():
        logger.warning(f"Empty summary returned for {place.name}; using fallback")
        return FALLBACK_SUMMARY

    logger.info(f"Summary for {place.name}: {len(text)} characters")
    return text
