"""Enrichment and relevance calls through the Messages API."""

import logging

from src.ingest.llm.base import LLMProvider, missing_sdk

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    provider_id = "anthropic"
    default_model = "claude-sonnet-4-20250514"
    env_var = "ANTHROPIC_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        key = self.require_api_key()
        try:
            import anthropic
        except ImportError:
            raise missing_sdk("anthropic", "anthropic") from None

        model = model or self.default_model
        logger.debug("anthropic completion: model=%s, %d prompt chars", model, len(prompt))
        reply = anthropic.Anthropic(api_key=key).messages.create(
            model=model,
            max_tokens=2048,
            system=self.resolve_system(system),
            messages=[{"role": "user", "content": prompt}],
        )
        return reply.content[0].text  # type: ignore[union-attr]
