"""Pydantic schemas for Open-Meteo geocoding and forecast payloads.

Field names follow the Open-Meteo wire format so responses validate
directly with ``model_validate``.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Place(BaseModel):
    """Resolved geographic identity of a searched city."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    name: str
    country: str = ""
    latitude: float
    longitude: float


# Daily series other than ``time``, in request order
SERIES_FIELDS = (
    "weather_code",
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_sum",
    "precipitation_probability_max",
    "wind_speed_10m_max",
    "wind_gusts_10m_max",
    "snowfall_sum",
)


class DailyForecast(BaseModel):
    """Index-aligned per-day weather variables.

    Open-Meteo emits ``null`` for values it cannot compute (e.g. precipitation
    probability beyond its model horizon), hence the Optional element types.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    time: list[str]
    weather_code: list[Optional[int]]
    temperature_2m_max: list[Optional[float]]
    temperature_2m_min: list[Optional[float]]
    precipitation_sum: list[Optional[float]]
    precipitation_probability_max: list[Optional[float]]
    wind_speed_10m_max: list[Optional[float]]
    wind_gusts_10m_max: list[Optional[float]]
    snowfall_sum: list[Optional[float]]

    @model_validator(mode="after")
    def check_aligned(self) -> "DailyForecast":
        """Every series must describe the same days as ``time``."""
        expected = len(self.time)
        for name in SERIES_FIELDS:
            actual = len(getattr(self, name))
            if actual != expected:
                raise ValueError(
                    f"daily.{name} has {actual} values, expected {expected}"
                )
        return self

    @property
    def days(self) -> int:
        return len(self.time)

    def day(self, index: int) -> dict[str, Any]:
        """Return all variables for one day as a flat dict."""
        row: dict[str, Any] = {"time": self.time[index]}
        for name in SERIES_FIELDS:
            row[name] = getattr(self, name)[index]
        return row


class WeatherData(BaseModel):
    """Forecast response: coordinates echo, daily series, opaque units."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    latitude: float
    longitude: float
    timezone: Optional[str] = None
    daily: DailyForecast
    daily_units: Optional[dict[str, Any]] = Field(
        default=None,
        description="Units description returned by Open-Meteo (passed through unused)",
    )
