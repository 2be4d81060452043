"""Chat completions for the hosted OpenAI API and for Ollama's compatible endpoint."""

import logging
from typing import Any

from src.ingest.llm.base import LLMProvider, missing_sdk

logger = logging.getLogger(__name__)


def chat_json(client: Any, model: str, system: str, prompt: str, **options: Any) -> str:
    response = client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ],
        **options,
    )
    return response.choices[0].message.content or ""


class OpenAIProvider(LLMProvider):
    provider_id = "openai"
    default_model = "gpt-4o-mini"
    env_var = "OPENAI_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        key = self.require_api_key()
        try:
            import openai
        except ImportError:
            raise missing_sdk("openai", "openai") from None

        model = model or self.default_model
        logger.debug("openai completion: model=%s, %d prompt chars", model, len(prompt))
        return chat_json(
            openai.OpenAI(api_key=key),
            model,
            self.resolve_system(system),
            prompt,
            temperature=0.2,
            response_format={"type": "json_object"},
        )
