"""CLI entry point for python -m forecastee"""
from forecastee.cli.commands import app

if __name__ == "__main__":
    app()
