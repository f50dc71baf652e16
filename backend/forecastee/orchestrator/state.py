"""State machine definitions and transition logic for the pipeline orchestrator.

PipelineState is a tagged union: each variant is a frozen dataclass carrying
exactly the data valid in that state, so combinations such as an Error that
still holds a video are unrepresentable.
"""

from dataclasses import dataclass
from typing import ClassVar, Union

from forecastee.schemas.weather import Place, WeatherData
from forecastee.services.artifacts import VideoArtifact

# Pipeline states in execution order
PIPELINE_STATES = {
    "idle": "Waiting for a city to be searched",
    "fetching_weather": "Geocoding the city and fetching the 7-day forecast",
    "generating_summary": "Summarizing the forecast with the text model",
    "generating_video": "Rendering the reporter video via Veo",
    "success": "Video report ready",
    "error": "Pipeline encountered an error",
}

# State transitions for active pipeline steps
STEP_TRANSITIONS = {
    "idle": "fetching_weather",
    "fetching_weather": "generating_summary",
    "generating_summary": "generating_video",
    "generating_video": "success",
}

ACTIVE_STATES = {"fetching_weather", "generating_summary", "generating_video"}

# States from which a new search may start
TERMINAL_STATES = {"idle", "success", "error"}

STATUS_TEXT = {
    "fetching_weather": "Fetching Forecast...",
    "generating_summary": "Analyzing Data...",
    "generating_video": "Producing Video Report...",
}


@dataclass(frozen=True)
class Idle:
    status: ClassVar[str] = "idle"


@dataclass(frozen=True)
class FetchingWeather:
    status: ClassVar[str] = "fetching_weather"
    city: str


@dataclass(frozen=True)
class GeneratingSummary:
    status: ClassVar[str] = "generating_summary"
    city: str
    place: Place
    weather: WeatherData


@dataclass(frozen=True)
class GeneratingVideo:
    status: ClassVar[str] = "generating_video"
    city: str
    place: Place
    weather: WeatherData
    summary: str


@dataclass(frozen=True)
class Success:
    status: ClassVar[str] = "success"
    city: str
    place: Place
    weather: WeatherData
    summary: str
    video: VideoArtifact


@dataclass(frozen=True)
class Error:
    status: ClassVar[str] = "error"
    city: str
    message: str


PipelineState = Union[Idle, FetchingWeather, GeneratingSummary, GeneratingVideo, Success, Error]


def can_transition(current: str, target: str) -> bool:
    """Check whether the orchestrator may move from one status to another.

    Args:
        current: Status of the active state
        target: Status of the proposed next state

    Returns:
        True for a linear forward step, a failure from an active state, a
        reset to idle from any state, or a new search from a terminal state.
        False otherwise.

    Examples:
        >>> can_transition("fetching_weather", "generating_summary")
        True
        >>> can_transition("fetching_weather", "success")
        False
    """
    if STEP_TRANSITIONS.get(current) == target:
        return True
    if target == "error":
        return current in ACTIVE_STATES
    if target == "idle":
        # Reset is allowed from anywhere; it cancels an in-flight run
        return True
    if target == "fetching_weather":
        return current in TERMINAL_STATES
    return False


def status_text(state: PipelineState) -> str:
    """Progress text shown while a state is active."""
    return STATUS_TEXT.get(state.status, "Loading...")
