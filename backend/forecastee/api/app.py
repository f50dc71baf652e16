"""FastAPI application setup with lifespan and exception handlers."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from forecastee import __version__
from forecastee.api.routes import router
from forecastee.errors import ForecasteeError
from forecastee.orchestrator.pipeline import PipelineOrchestrator
from forecastee.services.credentials import ApiKeyCredentials
from forecastee.services.genai_client import clear_genai_clients

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Startup:
        - Build the credential provider (config / env key, may be empty)
        - Create the single pipeline orchestrator

    Shutdown:
        - Cancel any in-flight run, release the video, close HTTP clients
    """
    logger.info("Starting Forecastee API...")
    # Request URLs logged by httpx would expose the API key
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    credentials = ApiKeyCredentials.from_settings()
    app.state.credentials = credentials
    app.state.orchestrator = PipelineOrchestrator(credentials)
    logger.info(f"API startup complete (API key selected: {credentials.has_selected_key()})")

    yield

    logger.info("Shutting down Forecastee API...")
    await app.state.orchestrator.close()
    clear_genai_clients()
    logger.info("API shutdown complete")


app = FastAPI(
    title="Forecastee API",
    version=__version__,
    lifespan=lifespan,
)

# CORS for Vite dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.exception_handler(ForecasteeError)
async def forecastee_exception_handler(request: Request, exc: ForecasteeError):
    """Pipeline errors raised outside a run (e.g. missing credential)."""
    logger.warning(f"{request.method} {request.url.path}: {type(exc).__name__}: {exc.message}")
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all exception handler to prevent stack traces in API responses."""
    logger.error(f"Unhandled exception in {request.method} {request.url.path}: {type(exc).__name__}: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc),
        }
    )
