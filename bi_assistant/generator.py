from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from .config import Settings, get_settings
from .errors import GenerationError

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str:
        """Return free-form text for `prompt`; raise GenerationError on failure."""
        ...


def _openai_client(settings: Settings) -> Optional[Any]:
    if not settings.openai_api_key:
        return None
    from openai import OpenAI
    # OPENAI_BASE_URL (e.g. a local Ollama server) is picked up by the SDK
    return OpenAI(api_key=settings.openai_api_key)


class OpenAITextGenerator:
    """Chat-completions backed generator. Temperature 0 keeps the SQL stable."""

    def __init__(self, client: Any, model: str):
        self._client = client
        self.model = model

    def generate(self, prompt: str) -> str:
        try:
            resp = self._client.chat.completions.create(
                model=self.model,
                temperature=0,
                messages=[{"role": "user", "content": prompt}],
            )
            text = resp.choices[0].message.content
        except Exception as e:
            raise GenerationError(f"Failed to generate SQL query: {e}") from e
        if not (text or "").strip():
            raise GenerationError("Failed to generate SQL query: Empty response from AI model")
        return text


def configure_generator(settings: Optional[Settings] = None) -> Optional[OpenAITextGenerator]:
    """Build the default generator, or None when no API key is configured."""
    settings = settings or get_settings()
    client = _openai_client(settings)
    if client is None:
        logger.info("OPENAI_API_KEY not set; no text generator configured")
        return None
    return OpenAITextGenerator(client, settings.model)
