"""Pipeline orchestrator: city name to video report.

Coordinates the four stages with:
- A single PipelineState value, mutated only by the orchestrator
- Strictly sequential stages, each feeding the next
- All-or-nothing runs: any failure lands in Error and discards progress
- Superseding searches cancel the in-flight run instead of ignoring it
- Per-step timing and logging
- Subscriber callbacks for CLI/API progress display
"""

import asyncio
import logging
import time
import uuid
from typing import Callable, Dict, Optional

from forecastee.config import settings
from forecastee.orchestrator.state import (
    Error,
    FetchingWeather,
    GeneratingSummary,
    GeneratingVideo,
    Idle,
    PipelineState,
    Success,
    can_transition,
)
from forecastee.pipeline.forecast import fetch_forecast
from forecastee.pipeline.geocoding import resolve_location
from forecastee.pipeline.summary import generate_summary
from forecastee.pipeline.video_gen import generate_report_video
from forecastee.services.artifacts import ArtifactStore, VideoArtifact
from forecastee.services.credentials import CredentialProvider
from forecastee.services.llm import get_adapter
from forecastee.services.open_meteo import OpenMeteoClient, close_open_meteo_client

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."

StateCallback = Callable[[PipelineState], None]


class PipelineOrchestrator:
    """Owns the pipeline state and the one VideoArtifact of a successful run.

    Every run gets a UUID token. Transitions carry the token and are dropped
    if the run is no longer current, so a superseded run can never write
    state even if it outlives its cancellation.
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        *,
        artifact_store: Optional[ArtifactStore] = None,
        weather_client: Optional[OpenMeteoClient] = None,
        text_model: Optional[str] = None,
        video_model: Optional[str] = None,
    ) -> None:
        self._credentials = credentials
        self._artifacts = artifact_store
        self._weather_client = weather_client
        self._text_model = text_model or settings.models.summary_llm
        self._video_model = video_model or settings.models.video_gen

        self._state: PipelineState = Idle()
        self._run_id: Optional[uuid.UUID] = None
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()
        self._listeners: list[StateCallback] = []

        self.credential_prompt = False
        self.step_log: Dict[str, float] = {}

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def run_id(self) -> Optional[uuid.UUID]:
        return self._run_id

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, callback: StateCallback) -> Callable[[], None]:
        """Register a callback invoked after every transition.

        Returns:
            Function that removes the callback again.
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    # ------------------------------------------------------------------
    # State mutation
    # ------------------------------------------------------------------

    def _set_state(self, new_state: PipelineState) -> None:
        current = self._state.status
        if not can_transition(current, new_state.status):
            raise RuntimeError(f"Invalid pipeline transition {current} -> {new_state.status}")
        self._state = new_state
        logger.info(f"Pipeline state: {current} -> {new_state.status}")
        for callback in list(self._listeners):
            callback(new_state)

    def _transition(self, run_id: uuid.UUID, new_state: PipelineState) -> bool:
        """Apply a run's transition if that run is still current."""
        if run_id != self._run_id:
            logger.debug(f"Dropping {new_state.status} from superseded run {run_id}")
            return False
        self._set_state(new_state)
        return True

    def _release_video(self) -> None:
        if isinstance(self._state, Success):
            self._state.video.release()

    async def _cancel_active(self) -> None:
        """Cancel the in-flight run (if any) and wait for it to unwind."""
        task = self._task
        self._task = None
        self._run_id = None
        if task is not None and not task.done():
            logger.info("Cancelling in-flight pipeline run")
            task.cancel()
            await asyncio.wait({task})

    # ------------------------------------------------------------------
    # Public actions
    # ------------------------------------------------------------------

    async def start(self, city: str) -> Optional[asyncio.Task]:
        """Start a run in the background and return its task.

        Returns None without advancing the pipeline when the city is blank
        or no credential has been selected (credential_prompt is set then).
        """
        city = (city or "").strip()
        if not city:
            return None

        if not self._credentials.has_selected_key():
            logger.info("No API key selected; prompting for credentials")
            self.credential_prompt = True
            return None

        async with self._lock:
            await self._cancel_active()
            if self._state.status != "idle":
                self._release_video()
                self._set_state(Idle())

            run_id = uuid.uuid4()
            self._run_id = run_id
            self.credential_prompt = False
            self.step_log = {}
            self._set_state(FetchingWeather(city))
            self._task = asyncio.create_task(self._run(run_id, city), name=f"forecast-{run_id}")
            return self._task

    async def search(self, city: str) -> PipelineState:
        """Run the full pipeline for a city and return the resulting state."""
        task = await self.start(city)
        if task is not None:
            # asyncio.wait does not raise if the run itself gets superseded
            await asyncio.wait({task})
        return self._state

    async def reset(self) -> PipelineState:
        """Cancel any run, release the video, and return to Idle."""
        async with self._lock:
            await self._cancel_active()
            self._release_video()
            self.step_log = {}
            self._set_state(Idle())
        return self._state

    async def select_credential(self) -> None:
        """Open the credential selection UI of the hosting environment."""
        self.credential_prompt = False
        await self._credentials.open_select_key()

    async def close(self) -> None:
        """Reset and shut down shared HTTP clients."""
        await self.reset()
        if self._weather_client is None:
            await close_open_meteo_client()
        else:
            await self._weather_client.close()

    # ------------------------------------------------------------------
    # Run body
    # ------------------------------------------------------------------

    def _record_step(self, name: str, step_start: float) -> None:
        step_duration = time.monotonic() - step_start
        self.step_log[name] = step_duration
        logger.info(f"{name} step completed in {step_duration:.2f}s")

    async def _run(self, run_id: uuid.UUID, city: str) -> None:
        video: Optional[VideoArtifact] = None
        pipeline_start = time.monotonic()
        logger.info(f"Starting pipeline run {run_id} for {city!r}")

        try:
            # Step 1: Geocoding + forecast (one visible state)
            step_start = time.monotonic()
            place = await resolve_location(city, client=self._weather_client)
            weather = await fetch_forecast(
                place.latitude, place.longitude, client=self._weather_client,
            )
            self._record_step("weather", step_start)
            if not self._transition(run_id, GeneratingSummary(city, place, weather)):
                return

            # Step 2: Narrative summary
            step_start = time.monotonic()
            summary = await generate_summary(
                place,
                weather,
                credentials=self._credentials,
                text_adapter=get_adapter(self._text_model, self._credentials),
            )
            self._record_step("summary", step_start)
            if not self._transition(run_id, GeneratingVideo(city, place, weather, summary)):
                return

            # Step 3: Reporter video
            step_start = time.monotonic()
            video = await generate_report_video(
                place.name,
                summary,
                credentials=self._credentials,
                run_id=run_id,
                artifact_store=self._artifacts,
                model=self._video_model,
            )
            self._record_step("video", step_start)

            if self._transition(run_id, Success(city, place, weather, summary, video)):
                video = None  # owned by the Success state now
                logger.info(
                    f"Pipeline run {run_id} completed in "
                    f"{time.monotonic() - pipeline_start:.2f}s"
                )

        except asyncio.CancelledError:
            logger.info(f"Pipeline run {run_id} cancelled")
            raise

        except Exception as e:
            logger.error(
                f"Pipeline run {run_id} failed at {self._state.status}: "
                f"{type(e).__name__}: {str(e)}"
            )
            self._transition(run_id, Error(city, str(e) or UNKNOWN_ERROR_MESSAGE))

        finally:
            if video is not None:
                video.release()
