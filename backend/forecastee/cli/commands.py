"""CLI commands for forecastee using Typer and Rich.

Implements the CLI commands:
- report: Run the full pipeline for a city and save the video report
- forecast: Show the raw 7-day forecast table (no AI calls)
- serve: Run the HTTP API
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from forecastee.config import settings
from forecastee.errors import ForecasteeError
from forecastee.orchestrator.pipeline import PipelineOrchestrator
from forecastee.orchestrator.state import PipelineState, Success, status_text
from forecastee.pipeline.forecast import fetch_forecast
from forecastee.pipeline.geocoding import resolve_location
from forecastee.pipeline.summary import ALLOWED_TEXT_MODELS, is_allowed_text_model
from forecastee.pipeline.video_gen import ALLOWED_VIDEO_MODELS
from forecastee.services.credentials import ApiKeyCredentials
from forecastee.services.open_meteo import close_open_meteo_client

app = typer.Typer(name="forecastee", help="Cinematic 7-day weather report videos")
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    # httpx logs full request URLs, and the video download carries the API key
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


async def _prompt_for_key() -> Optional[str]:
    """Credential selection UI for the terminal."""
    return await asyncio.to_thread(typer.prompt, "Gemini API key", hide_input=True)


def _default_output(city: str) -> Path:
    safe_city = re.sub(r"[^A-Za-z0-9_-]+", "_", city.strip()).strip("_") or "city"
    return Path(f"{safe_city.lower()}_forecast.mp4")


@app.command()
def report(
    city: str = typer.Argument(..., help="City to build the forecast report for"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Where to save the MP4"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Gemini API key (prompted if missing)"),
    text_model: str = typer.Option(settings.models.summary_llm, "--text-model", help="Summary model"),
    video_model: str = typer.Option(settings.models.video_gen, "--video-model", help="Veo model"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Generate a video weather report for a city.

    Geocodes the city, fetches the 7-day forecast, summarizes it, and renders
    a reporter video via Veo.
    """
    _configure_logging(verbose)

    if not city.strip():
        console.print("[red]Error:[/red] City name must not be empty")
        raise typer.Exit(code=1)

    # Validate model IDs
    if not is_allowed_text_model(text_model):
        console.print(f"[red]Error:[/red] Invalid text model: {text_model}")
        console.print(f"Allowed: {', '.join(sorted(ALLOWED_TEXT_MODELS))} or ollama/<model>")
        raise typer.Exit(code=1)
    if video_model not in ALLOWED_VIDEO_MODELS:
        console.print(f"[red]Error:[/red] Invalid video model: {video_model}")
        console.print(f"Allowed: {', '.join(sorted(ALLOWED_VIDEO_MODELS))}")
        raise typer.Exit(code=1)

    try:
        asyncio.run(_report_async(
            city, output or _default_output(city), api_key, text_model, video_model,
        ))
    except KeyboardInterrupt:
        console.print()
        console.print("[yellow]Report generation interrupted.[/yellow]")
        raise typer.Exit(code=130)


async def _run_with_status(orchestrator: PipelineOrchestrator, city: str) -> PipelineState:
    """Run one search while a Rich spinner mirrors the pipeline state."""
    with console.status("[bold green]Starting pipeline...") as status:
        def callback(state: PipelineState) -> None:
            status.update(f"[bold green]{status_text(state)}")
            if state.status == "generating_video":
                console.print("[green]✓[/green] Forecast script ready")

        unsubscribe = orchestrator.subscribe(callback)
        try:
            return await orchestrator.search(city)
        finally:
            unsubscribe()


async def _report_async(
    city: str, output: Path, api_key: Optional[str], text_model: str, video_model: str,
):
    """Async implementation of report command."""
    credentials = ApiKeyCredentials.from_settings(selector=_prompt_for_key)
    if api_key:
        credentials.select(api_key)

    orchestrator = PipelineOrchestrator(
        credentials, text_model=text_model, video_model=video_model,
    )
    try:
        state = await _run_with_status(orchestrator, city)

        if orchestrator.credential_prompt:
            console.print("[yellow]A Gemini API key is required to generate reports.[/yellow]")
            await orchestrator.select_credential()
            if not credentials.has_selected_key():
                console.print("[red]Error:[/red] No API key provided")
                raise typer.Exit(code=1)
            state = await _run_with_status(orchestrator, city)

        if not isinstance(state, Success):
            console.print()
            console.print(f"[red]✗ Forecast failed:[/red] {getattr(state, 'message', state.status)}")
            raise typer.Exit(code=1)

        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(state.video.content)

        console.print(Panel(
            state.summary,
            title=f"[bold]{state.place.name}[/bold], {state.place.country}",
            border_style="blue",
        ))
        console.print("[green]✓[/green] Video report complete!")
        console.print(f"[green]Output:[/green] {output}")
        timings = ", ".join(f"{name} {secs:.1f}s" for name, secs in orchestrator.step_log.items())
        if timings:
            console.print(f"[dim]Timings: {timings}[/dim]")
    finally:
        await orchestrator.close()


@app.command()
def forecast(
    city: str = typer.Argument(..., help="City to look up"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Show the 7-day forecast table for a city (no API key needed)."""
    _configure_logging(verbose)
    asyncio.run(_forecast_async(city))


async def _forecast_async(city: str):
    """Async implementation of forecast command."""
    try:
        place = await resolve_location(city)
        weather = await fetch_forecast(place.latitude, place.longitude)
    except (ForecasteeError, ValueError) as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise typer.Exit(code=1)
    finally:
        await close_open_meteo_client()

    units = weather.daily_units or {}

    def _unit(name: str) -> str:
        return f" ({units[name]})" if name in units else ""

    table = Table(title=f"{place.name}, {place.country} ({weather.timezone or 'local time'})")
    table.add_column("Date", style="cyan")
    table.add_column("Code", justify="right")
    table.add_column(f"High{_unit('temperature_2m_max')}", justify="right", style="red")
    table.add_column(f"Low{_unit('temperature_2m_min')}", justify="right", style="blue")
    table.add_column(f"Precip{_unit('precipitation_sum')}", justify="right")
    table.add_column("Prob %", justify="right")
    table.add_column(f"Wind{_unit('wind_speed_10m_max')}", justify="right")
    table.add_column(f"Gusts{_unit('wind_gusts_10m_max')}", justify="right")
    table.add_column(f"Snow{_unit('snowfall_sum')}", justify="right")

    for i in range(weather.daily.days):
        row = weather.daily.day(i)
        table.add_row(*[
            "-" if row[key] is None else str(row[key])
            for key in (
                "time", "weather_code", "temperature_2m_max", "temperature_2m_min",
                "precipitation_sum", "precipitation_probability_max",
                "wind_speed_10m_max", "wind_gusts_10m_max", "snowfall_sum",
            )
        ])

    console.print(table)


@app.command()
def serve(
    host: str = typer.Option(settings.server.host, "--host", help="Bind address"),
    port: int = typer.Option(settings.server.port, "--port", help="Bind port"),
):
    """Run the HTTP API server."""
    import uvicorn

    uvicorn.run("forecastee.api.app:app", host=host, port=port, reload=False)
