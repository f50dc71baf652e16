"""Gemini adapter for the text-generation layer.

Wraps the google-genai async client. The client is resolved from the
injected credentials at call time, so a key selected after the adapter was
built is still honored.
"""

import logging
from typing import Optional

from google.genai import types as genai_types

from forecastee.services.credentials import CredentialProvider
from forecastee.services.genai_client import get_genai_client
from forecastee.services.llm.base import TextAdapter

logger = logging.getLogger(__name__)


class GeminiAdapter(TextAdapter):
    """Text adapter backed by the Gemini API (google-genai SDK)."""

    def __init__(self, model_id: str, credentials: CredentialProvider) -> None:
        """Initialize adapter for the given Gemini model.

        Args:
            model_id: Gemini model identifier (e.g., "gemini-2.5-flash").
            credentials: Provider of the API key.
        """
        self._model_id = model_id
        self._credentials = credentials

    @property
    def model_id(self) -> str:
        return self._model_id

    async def generate_text(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
    ) -> str:
        client = get_genai_client(self._credentials)
        config = genai_types.GenerateContentConfig(
            temperature=temperature,
            system_instruction=system_prompt or None,
        )
        logger.debug(f"generate_content model={self._model_id} prompt_chars={len(prompt)}")
        response = await client.aio.models.generate_content(
            model=self._model_id,
            contents=prompt,
            config=config,
        )
        return response.text or ""
