"""Exception hierarchy for the forecast pipeline.

Every stage raises a subclass of ForecasteeError. The orchestrator collapses
all of them into a single displayed message, so the classes exist for callers
and tests that want to tell failures apart.
"""

from typing import Any, Dict, Optional


class ForecasteeError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class TransportError(ForecasteeError):
    """HTTP call failed or returned a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ):
        details: Dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        if url:
            details["url"] = url
        super().__init__(message, details=details)
        self.status_code = status_code


class NotFoundError(ForecasteeError):
    """Geocoding returned zero matches."""

    def __init__(self, message: str, query: Optional[str] = None):
        super().__init__(message, details={"query": query} if query else None)
        self.query = query


class EmptyResultError(ForecasteeError):
    """Video job completed without producing any video."""


class MalformedResultError(ForecasteeError):
    """Provider returned data we cannot use (missing video URI, misaligned forecast)."""


class GenerationError(ForecasteeError):
    """Video job completed with a provider-side error."""


class VideoTimeoutError(ForecasteeError, TimeoutError):
    """Video job did not complete within the configured number of polls."""

    def __init__(self, attempts: int, waited_seconds: float):
        super().__init__(
            f"Video generation did not complete after {attempts} polls "
            f"({waited_seconds:.0f} seconds)",
            details={"attempts": attempts, "waited_seconds": waited_seconds},
        )
        self.attempts = attempts
        self.waited_seconds = waited_seconds


class MissingCredentialError(ForecasteeError):
    """A network call needs an API key but none has been selected."""
