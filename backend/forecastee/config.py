"""Configuration management with YAML and environment variable support."""

from pathlib import Path
from typing import ClassVar, Optional

import yaml
from pydantic import BaseModel, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads configuration from YAML file."""

    def get_field_value(self, field, field_name: str):
        # Not used with prepare method
        pass

    def prepare_field_value(self, field_name: str, field, value, value_is_complex: bool):
        return value

    def __call__(self):
        # Load from config.yaml in current directory
        yaml_path = Path("config.yaml")
        if not yaml_path.exists():
            return {}

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return data


class GoogleConfig(BaseModel):
    """Gemini API credential.

    api_key may be left unset; the process then asks for one before the
    first search (see forecastee.services.credentials).
    """

    api_key: Optional[str] = None


class ModelsConfig(BaseModel):
    """AI model identifiers."""

    summary_llm: str = "gemini-2.5-flash"
    video_gen: str = "veo-3.1-generate-preview"


class WeatherConfig(BaseModel):
    """Open-Meteo endpoints."""

    geocoding_url: str = "https://geocoding-api.open-meteo.com/v1/search"
    forecast_url: str = "https://api.open-meteo.com/v1/forecast"
    language: str = "en"
    request_timeout: float = 30.0


class OllamaConfig(BaseModel):
    """Ollama server used when summary_llm is an ollama/ model."""

    endpoint: str = "http://localhost:11434"
    api_key: Optional[str] = None


class PipelineConfig(BaseModel):
    """Pipeline execution parameters."""

    video_poll_interval: float = 10
    video_poll_max: int = 60
    video_resolution: str = "720p"
    video_aspect_ratio: str = "16:9"
    summary_prompt_chars: int = 200


class StorageConfig(BaseModel):
    """Local storage for downloaded video reports."""

    tmp_dir: Path = Path("tmp/forecastee")

    @field_validator("tmp_dir", mode="before")
    @classmethod
    def convert_tmp_dir_to_path(cls, v):
        """Convert string to Path object."""
        if isinstance(v, str):
            return Path(v)
        return v


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000


class Settings(BaseSettings):
    """Main application settings with YAML and environment variable support.

    Configuration sources (in priority order):
    1. Environment variables (prefix: FORECASTEE_, delimiter: __)
    2. .env file
    3. YAML file (config.yaml)
    4. Field defaults
    """

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_nested_delimiter="__",
        env_prefix="FORECASTEE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    google: GoogleConfig = GoogleConfig()
    models: ModelsConfig = ModelsConfig()
    weather: WeatherConfig = WeatherConfig()
    ollama: OllamaConfig = OllamaConfig()
    pipeline: PipelineConfig = PipelineConfig()
    storage: StorageConfig = StorageConfig()
    server: ServerConfig = ServerConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        """Customize settings sources to include YAML configuration.

        Priority order (highest to lowest):
        1. Environment variables
        2. .env file
        3. YAML file
        4. Init settings (programmatic defaults)
        """
        return (
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            init_settings,
        )


# Singleton instance
settings = Settings()
