"""Forecastee - cinematic 7-day weather reports.

Turns a city name into a short reporter video: geocode the city, fetch the
forecast, summarize it with a text model, then render it with Veo.

Entry points:
    forecastee report Berlin          # CLI (forecastee.cli.commands)
    python -m forecastee.api          # HTTP API (forecastee.api.app)
"""

__version__ = "0.1.0"
