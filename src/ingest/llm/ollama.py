"""Local models served by Ollama through its OpenAI-compatible endpoint."""

import logging
import os

from src.ingest.llm.base import LLMProvider, missing_sdk
from src.ingest.llm.openai import chat_json

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434/v1"


class OllamaProvider(LLMProvider):
    """No API key; OLLAMA_BASE_URL points at a non-local server."""

    provider_id = "ollama"
    default_model = "llama3"
    env_var = None

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        try:
            import openai
        except ImportError:
            raise missing_sdk("openai", "openai") from None

        base_url = os.environ.get("OLLAMA_BASE_URL", DEFAULT_BASE_URL)
        model = model or self.default_model
        logger.debug("ollama completion at %s: model=%s", base_url, model)
        return chat_json(
            openai.OpenAI(base_url=base_url, api_key="ollama"),
            model,
            self.resolve_system(system),
            prompt,
        )
