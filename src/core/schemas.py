"""Core data models for the AI tool directory."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

Category = Literal["agent", "mcp-server", "framework", "infra", "platform"]
# "featured" is a legacy tier value still present in older rows.
SponsoredTier = Literal["basic", "category", "premium", "featured"]
PricingModel = Literal["Free", "Open Source", "Freemium", "Paid", "Enterprise"]
SetupComplexity = Literal["Low", "Medium", "High"]
Maturity = Literal["Early", "Growing", "Mature"]
ListingStatus = Literal["published", "pending_review", "rejected"]

CATEGORIES: tuple[str, ...] = ("agent", "mcp-server", "framework", "infra", "platform")

CATEGORY_LABELS: dict[str, str] = {
    "agent": "AI Agent",
    "mcp-server": "MCP Server",
    "framework": "Framework",
    "infra": "Infrastructure",
    "platform": "Platform",
}


class Listing(BaseModel):
    """One directory entry.

    Frozen: ranking returns the same instances reordered, never copies.
    """

    model_config = ConfigDict(frozen=True)

    slug: str
    name: str
    short_description: str = ""
    description: str = ""
    category: Category
    subcategories: tuple[str, ...] = ()
    use_cases: tuple[str, ...] = ()
    integrations: tuple[str, ...] = ()
    featured: bool = False
    sponsored_tier: SponsoredTier | None = None

    pricing_model: PricingModel = "Free"
    pricing: str | None = None
    github_url: str | None = None
    github_stars: int | None = None
    website_url: str = ""
    docs_url: str | None = None
    last_updated: date = Field(default_factory=date.today)
    pros: tuple[str, ...] = ()
    cons: tuple[str, ...] = ()
    setup_complexity: SetupComplexity = "Medium"
    maturity: Maturity = "Early"

    @field_validator("slug")
    @classmethod
    def slug_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "slug must not be empty"
            raise ValueError(msg)
        return v.strip()

    @field_validator("sponsored_tier", mode="before")
    @classmethod
    def empty_tier_is_none(cls, v: object) -> object:
        if v in ("", "none"):
            return None
        return v


class ScoredListing(BaseModel):
    """Pairs a frozen Listing with its relevance breakdown."""

    model_config = ConfigDict(frozen=True)

    listing: Listing
    text_score: int = Field(default=0, ge=0)
    commercial_bonus: int = Field(default=0, ge=0)

    @property
    def score(self) -> int:
        return self.text_score + self.commercial_bonus


class CategoryPage(BaseModel):
    """A curated "best of" page listing a hand-picked set of tools."""

    slug: str
    title: str
    seo_title: str = ""
    seo_description: str = ""
    description: str = ""
    tool_slugs: list[str] = Field(default_factory=list)


class ComparisonFeature(BaseModel):
    """One row of a head-to-head feature table."""

    name: str
    tool_a: str
    tool_b: str


class ComparisonPage(BaseModel):
    """An editorial "A vs B" page."""

    slug: str
    tool_a_slug: str
    tool_b_slug: str
    verdict: str = ""
    features: list[ComparisonFeature] = Field(default_factory=list)
    seo_title: str = ""
    seo_description: str = ""

    @field_validator("tool_b_slug")
    @classmethod
    def distinct_tools(cls, v: str, info: ValidationInfo) -> str:
        if v == info.data.get("tool_a_slug"):
            msg = f"comparison must name two different tools, got '{v}' twice"
            raise ValueError(msg)
        return v


class Comparison(BaseModel):
    """A comparison page with both of its listings resolved."""

    page: ComparisonPage
    tool_a: Listing
    tool_b: Listing


class McpPlatform(BaseModel):
    """A grouping of MCP servers by the platform area they connect to."""

    slug: str
    name: str
    description: str = ""
    tool_slugs: list[str] = Field(default_factory=list)


class DirectoryStats(BaseModel):
    """Headline counts shown on the home page."""

    total_tools: int = 0
    total_categories: int = 0
    total_comparisons: int = 0
    total_mcp_servers: int = 0
