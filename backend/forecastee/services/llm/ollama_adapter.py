"""Ollama adapter for the text-generation layer.

Connects via ollama.AsyncClient with optional auth headers. Lets the
summary come from a local or cloud Ollama model; video generation still
goes through Gemini.
"""

import logging
from typing import Optional

from ollama import AsyncClient

from forecastee.services.llm.base import TextAdapter

logger = logging.getLogger(__name__)


class OllamaAdapter(TextAdapter):
    """Text adapter backed by a local or cloud Ollama instance.

    Strips the "ollama/" prefix from model IDs before passing to the ollama
    library. Always passes stream=False to avoid async generator responses.
    """

    def __init__(
        self,
        model_id: str,
        base_url: str = "http://localhost:11434",
        api_key: Optional[str] = None,
    ) -> None:
        """Initialize adapter for the given Ollama model.

        Args:
            model_id: Model identifier, optionally prefixed with "ollama/"
                      (e.g., "ollama/llama3.1" or "llama3.1").
            base_url: Base URL of the Ollama server.
            api_key: Optional API key for authentication (cloud deployments).
        """
        # The library expects bare model names
        self._ollama_model = model_id.removeprefix("ollama/")
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = AsyncClient(host=base_url, headers=headers)

    @property
    def model_id(self) -> str:
        return f"ollama/{self._ollama_model}"

    async def generate_text(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
    ) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        logger.debug(f"chat model={self._ollama_model} messages={len(messages)}")
        response = await self._client.chat(
            model=self._ollama_model,
            messages=messages,
            options={"temperature": temperature},
            stream=False,
        )
        return response.message.content or ""
