"""API route handlers and Pydantic response schemas."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import FileResponse
from pydantic import BaseModel

from forecastee import __version__
from forecastee.orchestrator.pipeline import PipelineOrchestrator
from forecastee.orchestrator.state import (
    PIPELINE_STATES,
    Error,
    GeneratingVideo,
    PipelineState,
    Success,
    status_text,
)
from forecastee.schemas.weather import Place
from forecastee.services.credentials import ApiKeyCredentials

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# ============================================================================
# Pydantic Schemas
# ============================================================================

class SearchRequest(BaseModel):
    """Request schema for POST /api/search."""
    city: str


class CredentialRequest(BaseModel):
    """Request schema for POST /api/credentials."""
    api_key: str


class StateResponse(BaseModel):
    """Response schema for the pipeline state endpoints."""
    status: str
    status_text: str
    description: str
    city: Optional[str] = None
    place: Optional[Place] = None
    summary: Optional[str] = None
    video_url: Optional[str] = None
    error_message: Optional[str] = None
    credential_required: bool = False
    step_log: dict[str, float] = {}


# ============================================================================
# Dependencies
# ============================================================================

def get_orchestrator(request: Request) -> PipelineOrchestrator:
    return request.app.state.orchestrator


def get_credentials(request: Request) -> ApiKeyCredentials:
    return request.app.state.credentials


def _state_response(orchestrator: PipelineOrchestrator) -> StateResponse:
    """Flatten the tagged state into the response schema."""
    state: PipelineState = orchestrator.state
    response = StateResponse(
        status=state.status,
        status_text=status_text(state),
        description=PIPELINE_STATES[state.status],
        city=getattr(state, "city", None),
        place=getattr(state, "place", None),
        credential_required=orchestrator.credential_prompt,
        step_log=orchestrator.step_log,
    )
    # Summary preview is shown while the video renders
    if isinstance(state, (GeneratingVideo, Success)):
        response.summary = state.summary
    if isinstance(state, Success):
        response.video_url = "/api/video"
    if isinstance(state, Error):
        response.error_message = state.message
    return response


# ============================================================================
# Endpoint Handlers
# ============================================================================

@router.get("/state", response_model=StateResponse)
async def get_state(orchestrator: PipelineOrchestrator = Depends(get_orchestrator)):
    """Get the current pipeline state for polling."""
    return _state_response(orchestrator)


@router.post("/search", status_code=202, response_model=StateResponse)
async def search(
    request: SearchRequest,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """Start a forecast report run in the background.

    Supersedes (cancels) any run already in flight. Returns 428 without
    starting anything if no API key has been selected.
    """
    if not request.city.strip():
        raise HTTPException(status_code=422, detail="city must not be empty")

    task = await orchestrator.start(request.city)
    if task is None and orchestrator.credential_prompt:
        raise HTTPException(
            status_code=428,
            detail="An API key must be selected before searching (POST /api/credentials)",
        )
    return _state_response(orchestrator)


@router.post("/credentials", status_code=204)
async def select_credentials(
    request: CredentialRequest,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
    credentials: ApiKeyCredentials = Depends(get_credentials),
):
    """Select the API key used by every external call."""
    if not request.api_key.strip():
        raise HTTPException(status_code=422, detail="api_key must not be empty")
    credentials.select(request.api_key)
    orchestrator.credential_prompt = False
    return Response(status_code=204)


@router.post("/reset", response_model=StateResponse)
async def reset(orchestrator: PipelineOrchestrator = Depends(get_orchestrator)):
    """Cancel any run, release the video, and return to idle."""
    await orchestrator.reset()
    return _state_response(orchestrator)


@router.get("/video")
async def get_video(orchestrator: PipelineOrchestrator = Depends(get_orchestrator)):
    """Serve the video report of the successful run.

    Returns 409 unless the pipeline is in the success state.
    """
    state = orchestrator.state
    if not isinstance(state, Success):
        raise HTTPException(
            status_code=409,
            detail=f"No video report available (status: {state.status})",
        )
    if not state.video.path.exists():
        raise HTTPException(status_code=404, detail="Video file not found on disk")

    return FileResponse(
        path=str(state.video.path),
        media_type=state.video.mime_type,
    )


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": __version__,
    }
