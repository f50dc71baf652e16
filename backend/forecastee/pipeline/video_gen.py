"""Reporter video generation using Veo.

This module implements the video stage:
- Build the cinematic reporter prompt from place name + summary prefix
- Submit one Veo job (single video, fixed resolution and aspect ratio)
- Poll the long-running operation on a fixed interval, bounded by a
  maximum number of polls (VideoTimeoutError when exhausted)
- Fetch the generated video bytes with the API key appended
- Save them through the ArtifactStore and hand back a VideoArtifact

Usage:
    from forecastee.pipeline.video_gen import generate_report_video

    artifact = await generate_report_video("Berlin", summary, credentials=credentials)
    ...
    artifact.release()
"""

import logging
import uuid
from typing import Optional
from urllib.parse import unquote

import httpx
from google import genai
from google.genai import types
from tenacity import AsyncRetrying, RetryError, retry_if_result, stop_after_attempt, wait_fixed

from forecastee.config import settings
from forecastee.errors import (
    EmptyResultError,
    GenerationError,
    MalformedResultError,
    MissingCredentialError,
    TransportError,
    VideoTimeoutError,
)
from forecastee.services.artifacts import ArtifactStore, VideoArtifact
from forecastee.services.credentials import CredentialProvider
from forecastee.services.genai_client import get_genai_client

logger = logging.getLogger(__name__)

ALLOWED_VIDEO_MODELS = {
    "veo-3.1-generate-preview",
    "veo-3.1-fast-generate-preview",
}

_PROMPT_TEMPLATE = (
    "Professional TV reporter in modern studio delivers 7-day forecast for "
    "{place}: {summary}..., cinematic, clear audio narration, 8-second clip"
)


def build_video_prompt(place_name: str, summary: str, max_chars: Optional[int] = None) -> str:
    """Embed a bounded prefix of the summary into the reporter prompt."""
    limit = settings.pipeline.summary_prompt_chars if max_chars is None else max_chars
    return _PROMPT_TEMPLATE.format(place=place_name, summary=summary[:limit])


def _not_done(operation) -> bool:
    return not operation.done


async def _submit_video_job(client: genai.Client, model: str, prompt: str):
    """Submit a Veo video generation job and return the operation handle."""
    config = types.GenerateVideosConfig(
        number_of_videos=1,
        resolution=settings.pipeline.video_resolution,
        aspect_ratio=settings.pipeline.video_aspect_ratio,
    )
    return await client.aio.models.generate_videos(
        model=model,
        prompt=prompt,
        config=config,
    )


async def _poll_video_operation(
    client: genai.Client,
    operation,
    poll_interval: float,
    max_polls: int,
):
    """Poll a Veo operation until it reports done.

    Polls at most max_polls times, sleeping poll_interval seconds between
    polls. Provider errors raised by the status call propagate unchanged.

    Raises:
        VideoTimeoutError: If the operation is still running after max_polls.
    """
    if operation.done:
        return operation

    def _log_poll(retry_state) -> None:
        logger.info(
            f"...Generating... (poll {retry_state.attempt_number}/{max_polls}, "
            f"next in {poll_interval:g}s)"
        )

    poller = AsyncRetrying(
        stop=stop_after_attempt(max_polls),
        wait=wait_fixed(poll_interval),
        retry=retry_if_result(_not_done),
        before_sleep=_log_poll,
    )
    try:
        return await poller(client.aio.operations.get, operation=operation)
    except RetryError as e:
        # The first poll runs right after submit, so only max_polls - 1 sleeps happen
        raise VideoTimeoutError(max_polls, (max_polls - 1) * poll_interval) from e


def _first_video_uri(operation) -> str:
    """Extract the download location of the first generated video.

    Raises:
        GenerationError: If the operation finished with an error.
        EmptyResultError: If no video was generated.
        MalformedResultError: If the video has no URI.
    """
    error = getattr(operation, "error", None)
    if error:
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise GenerationError(f"Video generation failed: {message or error}")

    response = operation.response
    videos = response.generated_videos if response else None
    if not videos:
        reasons = getattr(response, "rai_media_filtered_reasons", None) if response else None
        if reasons:
            raise EmptyResultError(f"No videos were generated. {' '.join(reasons)}")
        raise EmptyResultError("No videos were generated.")

    first = videos[0]
    if not first.video or not first.video.uri:
        raise MalformedResultError("Generated video is missing a URI.")
    return unquote(first.video.uri)


async def _download_video(
    uri: str,
    api_key: str,
    http_client: Optional[httpx.AsyncClient] = None,
) -> tuple[bytes, str]:
    """Fetch video bytes, appending the API key to the URI's existing query string."""
    owns_client = http_client is None
    client = http_client or httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(120.0, connect=30.0),
    )
    try:
        response = await client.get(httpx.URL(uri).copy_merge_params({"key": api_key}))
    except httpx.HTTPError as e:
        raise TransportError(f"Failed to fetch video: {type(e).__name__}", url=uri) from e
    finally:
        if owns_client:
            await client.aclose()

    if not response.is_success:
        raise TransportError(
            f"Failed to fetch video: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
            url=uri,
        )
    mime_type = response.headers.get("content-type", "video/mp4").split(";")[0]
    return response.content, mime_type


async def generate_report_video(
    place_name: str,
    summary: str,
    *,
    credentials: CredentialProvider,
    run_id: Optional[uuid.UUID] = None,
    client: Optional[genai.Client] = None,
    artifact_store: Optional[ArtifactStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    model: Optional[str] = None,
    poll_interval: Optional[float] = None,
    max_polls: Optional[int] = None,
) -> VideoArtifact:
    """Render a reporter video for a place and return its local handle.

    Args:
        place_name: Display name of the place.
        summary: Narrative summary; only a bounded prefix enters the prompt.
        credentials: Provides the key for the Veo call and the video download.
        run_id: Pipeline run owning the artifact (new UUID if omitted).
        client: google-genai client override.
        artifact_store: Where the downloaded bytes are written.
        http_client: httpx client override for the download.
        model: Veo model ID (defaults to settings.models.video_gen).
        poll_interval: Seconds between status polls.
        max_polls: Maximum number of status polls.

    Returns:
        VideoArtifact the caller must release().
    """
    if not credentials.has_selected_key():
        raise MissingCredentialError("No API key selected")

    client = client or get_genai_client(credentials)
    model = model or settings.models.video_gen
    poll_interval = settings.pipeline.video_poll_interval if poll_interval is None else poll_interval
    max_polls = settings.pipeline.video_poll_max if max_polls is None else max_polls

    prompt = build_video_prompt(place_name, summary)
    logger.info(f"Generating video with prompt: {prompt}")

    operation = await _submit_video_job(client, model, prompt)
    logger.info(f"Submitted Veo job {getattr(operation, 'name', '?')} (model {model})")

    operation = await _poll_video_operation(client, operation, poll_interval, max_polls)
    uri = _first_video_uri(operation)

    video_bytes, mime_type = await _download_video(uri, credentials.api_key, http_client)

    store = artifact_store or ArtifactStore()
    return store.save_video(run_id or uuid.uuid4(), video_bytes, uri, mime_type=mime_type)
