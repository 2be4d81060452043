"""Configuration models and YAML loader for the tool directory."""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator


class RankingConfig(BaseModel):
    """Weights for relevance scoring and the sponsorship bonus."""

    name_exact: int = Field(default=100, ge=0)
    name_prefix: int = Field(default=80, ge=0)
    name_substring: int = Field(default=60, ge=0)
    category_exact: int = Field(default=40, ge=0)
    short_description: int = Field(default=30, ge=0)
    subcategory: int = Field(default=20, ge=0)
    use_case: int = Field(default=15, ge=0)
    description: int = Field(default=10, ge=0)
    integration: int = Field(default=10, ge=0)

    premium_bonus: int = Field(default=5, ge=0)
    category_bonus: int = Field(default=3, ge=0)
    basic_bonus: int = Field(default=1, ge=0)
    featured_bonus: int = Field(default=2, ge=0)


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/directory.db"


class StoreConfig(BaseModel):
    """Which content store backs the site, and where the static data lives."""

    backend: Literal["static", "sqlite"] = "static"
    listings_path: str = "data/listings.yaml"
    categories_path: str = "data/categories.yaml"
    comparisons_path: str = "data/comparisons.yaml"
    mcp_platforms_path: str = "data/mcp_platforms.yaml"
    fallback_to_static: bool = True


class IngestConfig(BaseModel):
    """LLM-assisted ingestion settings."""

    llm_provider: str = "openai"
    llm_model: str | None = None
    fetch_timeout_seconds: float = Field(default=10.0, gt=0.0)
    content_char_limit: int = Field(default=8000, ge=500)
    batch_size: int = Field(default=20, ge=1, le=100)
    delay_seconds: float = Field(default=1.0, ge=0.0)
    dry_run: bool = False
    awesome_lists: list[str] = Field(
        default_factory=lambda: [
            "https://raw.githubusercontent.com/e2b-dev/awesome-ai-agents/main/README.md",
            "https://raw.githubusercontent.com/kyrolabs/awesome-langchain/main/README.md",
            "https://raw.githubusercontent.com/punkpeye/awesome-mcp-servers/main/README.md",
        ]
    )
    github_topics: list[str] = Field(
        default_factory=lambda: [
            "topic:llm-agent",
            "topic:mcp-server",
            "topic:ai-agent",
            "topic:agent-framework",
        ]
    )

    @field_validator("llm_provider")
    @classmethod
    def provider_lowercase(cls, v: str) -> str:
        v = v.lower().strip()
        if not v:
            msg = "llm_provider must not be empty"
            raise ValueError(msg)
        return v


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    ingest: IngestConfig = Field(default_factory=IngestConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
