"""Provider registry for text-generation adapters.

Routes model IDs to the correct adapter implementation based on the model
ID prefix. Supports Gemini (default) and Ollama (ollama/ prefix).
"""

import logging

from forecastee.config import settings
from forecastee.services.credentials import CredentialProvider
from forecastee.services.llm.base import TextAdapter

logger = logging.getLogger(__name__)


def _is_ollama_model(model_id: str) -> bool:
    """Return True if the model ID uses the ollama/ prefix."""
    return model_id.startswith("ollama/")


def get_adapter(model_id: str, credentials: CredentialProvider) -> TextAdapter:
    """Return the appropriate text adapter for the given model ID.

    Routing logic:
    - "ollama/*"    → OllamaAdapter (endpoint and key from settings.ollama)
    - anything else → GeminiAdapter using the injected credentials

    Args:
        model_id: Model identifier string (e.g., "gemini-2.5-flash",
                  "ollama/llama3.1").
        credentials: Credential provider threaded in by the orchestrator.

    Returns:
        Configured TextAdapter instance ready for use.
    """
    if _is_ollama_model(model_id):
        from forecastee.services.llm.ollama_adapter import OllamaAdapter

        logger.debug(
            "Routing %s to OllamaAdapter (base_url=%s, has_key=%s)",
            model_id,
            settings.ollama.endpoint,
            bool(settings.ollama.api_key),
        )
        return OllamaAdapter(
            model_id=model_id,
            base_url=settings.ollama.endpoint,
            api_key=settings.ollama.api_key,
        )

    from forecastee.services.llm.gemini_adapter import GeminiAdapter

    logger.debug("Routing %s to GeminiAdapter", model_id)
    return GeminiAdapter(model_id=model_id, credentials=credentials)
