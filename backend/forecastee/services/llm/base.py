"""Abstract base class for text-generation adapters.

Defines the async interface the narrative summarizer depends on, so the
provider (Gemini or Ollama) can be chosen by model ID.
"""

from abc import ABC, abstractmethod
from typing import Optional


class TextAdapter(ABC):
    """Abstract base class for text-generation providers.

    Implementations return the raw generated text, or an empty string when
    the provider produced nothing. Provider errors propagate unchanged.
    """

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
    ) -> str:
        """Generate free-form text from a prompt.

        Args:
            prompt: The user prompt to send to the model.
            system_prompt: Optional system/instruction prompt.
            temperature: Sampling temperature (0.0-1.0). Lower = more deterministic.

        Returns:
            Generated text ("" if the model returned none).
        """
        ...
