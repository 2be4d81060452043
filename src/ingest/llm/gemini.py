"""Gemini calls via the google-genai SDK, asking for a JSON response body."""

import logging

from src.ingest.llm.base import LLMProvider, missing_sdk

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    provider_id = "gemini"
    default_model = "gemini-2.5-flash"
    env_var = "GOOGLE_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        key = self.require_api_key()
        try:
            from google import genai
            from google.genai import types as genai_types
        except ImportError:
            raise missing_sdk("google-genai", "gemini") from None

        model = model or self.default_model
        logger.debug("gemini completion: model=%s, %d prompt chars", model, len(prompt))
        generation = genai_types.GenerateContentConfig(
            system_instruction=self.resolve_system(system),
            response_mime_type="application/json",
        )
        result = genai.Client(api_key=key).models.generate_content(
            model=model, contents=prompt, config=generation,
        )
        return result.text or ""
