"""API key state injected into every network-calling component.

The top-level process (CLI command or API lifespan) creates one provider and
hands it to the orchestrator, which threads it through each stage. Nothing
queries an ambient credential on its own.

Usage:
    from forecastee.services.credentials import ApiKeyCredentials

    credentials = ApiKeyCredentials.from_settings()
    if not credentials.has_selected_key():
        await credentials.open_select_key()
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from dotenv import load_dotenv

from forecastee.config import settings

logger = logging.getLogger(__name__)

KeySelector = Callable[[], Awaitable[Optional[str]]]


class CredentialProvider(ABC):
    """Source of the Gemini API key used by every external call."""

    @property
    @abstractmethod
    def api_key(self) -> Optional[str]:
        """Currently selected key, or None."""
        ...

    @abstractmethod
    def has_selected_key(self) -> bool:
        """Return True if a usable key has been selected."""
        ...

    @abstractmethod
    async def open_select_key(self) -> None:
        """Open the hosting environment's credential selection UI."""
        ...


class ApiKeyCredentials(CredentialProvider):
    """In-memory API key with an optional interactive selector.

    The selector is an async callable supplied by the hosting surface (the CLI
    prompts on the terminal). The API surface has none and calls select()
    when a client posts a key.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        selector: Optional[KeySelector] = None,
    ) -> None:
        self._api_key = api_key or None
        self._selector = selector

    @classmethod
    def from_settings(cls, selector: Optional[KeySelector] = None) -> "ApiKeyCredentials":
        """Build credentials from config, then GEMINI_API_KEY / GOOGLE_API_KEY."""
        load_dotenv()
        api_key = (
            settings.google.api_key
            or os.environ.get("GEMINI_API_KEY")
            or os.environ.get("GOOGLE_API_KEY")
        )
        return cls(api_key=api_key, selector=selector)

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key

    def has_selected_key(self) -> bool:
        return bool(self._api_key and self._api_key.strip())

    def select(self, api_key: str) -> None:
        self._api_key = api_key.strip() or None
        logger.info("API key selected" if self._api_key else "API key cleared")

    async def open_select_key(self) -> None:
        if self._selector is None:
            logger.warning("No credential selector available; set an API key first")
            return
        key = await self._selector()
        if key:
            self.select(key)
