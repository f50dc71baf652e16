"""Text-generation provider abstraction layer.

Provides a unified async interface for free-form text generation across
Gemini and Ollama.

Usage:
    from forecastee.services.llm import get_adapter, TextAdapter

    adapter = get_adapter("gemini-2.5-flash", credentials)
    text = await adapter.generate_text(prompt, system_prompt=instructions)

    adapter = get_adapter("ollama/llama3.1", credentials)
    text = await adapter.generate_text(prompt)
"""

from forecastee.services.llm.base import TextAdapter
from forecastee.services.llm.registry import get_adapter

__all__ = ["TextAdapter", "get_adapter"]
