"""Gemini client wrapper using the google-genai SDK.

Clients are created from the injected credential provider and cached per
API key, so swapping keys mid-session yields a fresh client.

Usage:
    from forecastee.services.genai_client import get_genai_client

    client = get_genai_client(credentials)
    response = await client.aio.models.generate_content(...)
"""

from google import genai

from forecastee.errors import MissingCredentialError
from forecastee.services.credentials import CredentialProvider

# Per-key client cache
_clients: dict[str, genai.Client] = {}


def get_genai_client(credentials: CredentialProvider) -> genai.Client:
    """Get or create a Gemini API client for the selected key.

    Raises:
        MissingCredentialError: If no key has been selected.
    """
    if not credentials.has_selected_key():
        raise MissingCredentialError("No API key selected")

    key = credentials.api_key
    if key not in _clients:
        _clients[key] = genai.Client(api_key=key)

    return _clients[key]


def clear_genai_clients() -> None:
    """Drop cached clients (used on shutdown and in tests)."""
    _clients.clear()
