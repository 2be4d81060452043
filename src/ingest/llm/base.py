"""Abstract base class for LLM providers and shared response parsing."""

import json
import os
import re
from abc import ABC, abstractmethod
from typing import Any

ENRICH_SYSTEM_PROMPT = (
    "You are a technical writer for a developer-focused directory of AI agents, "
    "MCP servers, and agentic tools.\n\n"
    "Given a tool's name, URLs, and raw content (README or website text), produce "
    "a structured profile.\n\n"
    "Return ONLY a JSON object (no markdown, no explanation) with these fields:\n"
    "- name (string): the tool's name\n"
    "- short_description (string): one-line description, max 100 characters\n"
    "- description (string): 2-4 sentences on what it does, who it is for, "
    "and key capabilities\n"
    '- category (string): one of "agent", "mcp-server", "framework", "infra", '
    '"platform"\n'
    "- subcategories (list[str]): up to 3 relevant subcategories\n"
    "- use_cases (list[str]): 3-5 specific use cases\n"
    "- integrations (list[str]): 3-8 key integrations or compatible tools\n"
    '- pricing_model (string): one of "Free", "Open Source", "Freemium", '
    '"Paid", "Enterprise"\n'
    "- pricing (string or null): pricing details\n"
    "- docs_url (string or null): documentation URL\n"
    "- pros (list[str]): 3-5 strengths\n"
    "- cons (list[str]): 3-5 limitations\n"
    '- setup_complexity (string): one of "Low", "Medium", "High"\n'
    '- maturity (string): one of "Early", "Growing", "Mature"\n\n'
    "Be factual and concise; do not invent features not in the content. "
    'Use "agent" for autonomous or coding agents, "mcp-server" for Model '
    'Context Protocol servers, "framework" for LLM/agent frameworks, "infra" '
    'for vector databases, hosting and inference, "platform" for full platforms.'
)


def parse_json_response(raw_text: str) -> dict[str, Any]:
    """Parse an LLM response text into a JSON object.

    Handles markdown-wrapped JSON (```json ... ```) and plain JSON.
    """
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", raw_text.strip())
    cleaned = re.sub(r"\n?```\s*$", "", cleaned)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        msg = f"Failed to parse LLM response as JSON: {e}"
        raise ValueError(msg) from e

    if not isinstance(data, dict):
        msg = "LLM response is not a JSON object"
        raise ValueError(msg)
    return data


class LLMProvider(ABC):
    """Base class that every LLM provider must implement."""

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'anthropic')."""

    @abstractmethod
    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        """Send a prompt to the LLM and return raw response text.

        Args:
            prompt: The user message (tool content, or a list to classify).
            model: Override the provider's default model. None uses default.
            system: Override the system prompt. None falls back to ENRICH_SYSTEM_PROMPT.

        Returns:
            Raw text response from the LLM (expected to be JSON).
        """

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str | None:
        """Environment variable name for the API key, or None if not needed."""

    def require_api_key(self) -> str:
        """Read the provider's API key from the environment."""
        key = os.environ.get(self.env_var) if self.env_var else None
        if not key:
            msg = f"{self.env_var} environment variable is required"
            raise ValueError(msg)
        return key

    @staticmethod
    def resolve_system(system: str | None) -> str:
        return system if system is not None else ENRICH_SYSTEM_PROMPT


def missing_sdk(package: str, extra: str) -> ImportError:
    """ImportError with the install hint for an optional provider SDK."""
    msg = f"{package} is required for this provider. Install with: pip install 'tool-directory[{extra}]'"
    return ImportError(msg)
