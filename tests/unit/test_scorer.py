"""Tests for relevance scoring and ranking."""

import pytest

from src.core.config import RankingConfig
from src.core.schemas import Listing
from src.ranking.scorer import (
    commercial_bonus,
    normalize_query,
    rank_by_relevance,
    score_listing,
    score_listings,
    text_score,
)


def _listing(
    name: str,
    *,
    slug: str | None = None,
    category: str = "framework",
    short_description: str = "",
    description: str = "",
    subcategories: tuple[str, ...] = (),
    use_cases: tuple[str, ...] = (),
    integrations: tuple[str, ...] = (),
    sponsored_tier: str | None = None,
    featured: bool = False,
) -> Listing:
    return Listing(
        slug=slug or name.lower().replace(" ", "-"),
        name=name,
        category=category,  # type: ignore[arg-type]
        short_description=short_description,
        description=description,
        subcategories=subcategories,
        use_cases=use_cases,
        integrations=integrations,
        sponsored_tier=sponsored_tier,  # type: ignore[arg-type]
        featured=featured,
    )


def _names(listings: list[Listing]) -> list[str]:
    return [item.name for item in listings]


# ---------------------------------------------------------------------------
# Individual signals
# ---------------------------------------------------------------------------


class TestTextScore:
    def test_name_exact(self) -> None:
        assert text_score(_listing("CrewAI", category="agent"), "crewai") == 100

    def test_name_prefix(self) -> None:
        assert text_score(_listing("CrewAI Tools", category="agent"), "crewai") == 80

    def test_name_substring(self) -> None:
        assert text_score(_listing("Super CrewAI", category="agent"), "crewai") == 60

    def test_only_strongest_name_rule_counts(self) -> None:
        # exact also satisfies prefix and substring, but only 100 is awarded
        assert text_score(_listing("Aider", category="agent"), "aider") == 100

    def test_category_exact(self) -> None:
        assert text_score(_listing("Foo", category="framework"), "framework") == 40

    def test_category_space_separated_form(self) -> None:
        assert text_score(_listing("Foo", category="mcp-server"), "mcp server") == 40
        assert text_score(_listing("Foo", category="mcp-server"), "mcp-server") == 40

    def test_category_partial_is_not_a_match(self) -> None:
        assert text_score(_listing("Foo", category="framework"), "frame") == 0

    def test_short_description(self) -> None:
        assert text_score(_listing("Foo", short_description="A vector DB"), "vector") == 30

    def test_subcategory(self) -> None:
        assert text_score(_listing("Foo", subcategories=("Multi-Agent",)), "multi") == 20

    def test_use_case(self) -> None:
        assert text_score(_listing("Foo", use_cases=("Code review",)), "review") == 15

    def test_description(self) -> None:
        assert text_score(_listing("Foo", description="Works offline"), "offline") == 10

    def test_integration(self) -> None:
        assert text_score(_listing("Foo", integrations=("Slack",)), "slack") == 10

    def test_signals_are_additive(self) -> None:
        listing = _listing(
            "Qdrant",
            category="infra",
            short_description="Vector search engine",
            description="Vector similarity search",
            subcategories=("Vector Database",),
            use_cases=("Vector search",),
            integrations=("vector-tools",),
        )
        assert text_score(listing, "vector") == 30 + 20 + 15 + 10 + 10

    def test_case_insensitive(self) -> None:
        listing = _listing("LangChain", integrations=("OpenAI",))
        assert text_score(listing, "openai") == 10
        assert score_listing(listing, "LANGCHAIN").text_score == 100

    def test_empty_tags_do_not_match(self) -> None:
        assert text_score(_listing("Foo"), "bar") == 0

    def test_empty_needle_scores_zero(self) -> None:
        assert text_score(_listing("Foo"), "") == 0

    def test_custom_weights(self) -> None:
        config = RankingConfig(name_exact=7)
        assert text_score(_listing("Foo"), "foo", config) == 7


class TestCommercialBonus:
    @pytest.mark.parametrize(
        ("tier", "expected"),
        [("premium", 5), ("category", 3), ("featured", 3), ("basic", 1), (None, 0)],
    )
    def test_tier_bonus(self, tier: str | None, expected: int) -> None:
        assert commercial_bonus(_listing("Foo", sponsored_tier=tier)) == expected

    def test_featured_flag_is_independent(self) -> None:
        assert commercial_bonus(_listing("Foo", featured=True)) == 2
        assert commercial_bonus(_listing("Foo", sponsored_tier="premium", featured=True)) == 7


class TestScoreListing:
    def test_breakdown(self) -> None:
        scored = score_listing(_listing("LlamaIndex", sponsored_tier="premium"), "framework")
        assert scored.text_score == 40
        assert scored.commercial_bonus == 5
        assert scored.score == 45

    def test_query_is_trimmed(self) -> None:
        assert score_listing(_listing("Aider", category="agent"), "  Aider  ").text_score == 100

    def test_normalize_query(self) -> None:
        assert normalize_query("  MCP Server ") == "mcp server"
        assert normalize_query(None) == ""


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


class TestRankByRelevance:
    def test_framework_scenario(self) -> None:
        listings = [
            _listing("LangChain", category="framework"),
            _listing("LlamaIndex", category="framework", sponsored_tier="premium"),
            _listing("CrewAI", category="agent"),
        ]
        assert _names(rank_by_relevance(listings, "framework")) == ["LlamaIndex", "LangChain"]

    def test_exact_name_beats_substring(self) -> None:
        listings = [
            _listing("CrewAI Studio", category="platform", sponsored_tier="premium", featured=True),
            _listing("My CrewAI Helper", category="agent"),
            _listing("CrewAI", category="agent"),
        ]
        ranked = _names(rank_by_relevance(listings, "CrewAI"))
        assert ranked[0] == "CrewAI"
        assert ranked.index("CrewAI") < ranked.index("My CrewAI Helper")

    def test_commercial_bonus_never_admits(self) -> None:
        listings = [
            _listing("Sponsored", sponsored_tier="premium", featured=True),
            _listing("Match", short_description="graph database"),
        ]
        assert _names(rank_by_relevance(listings, "graph")) == ["Match"]

    def test_no_match_returns_empty(self) -> None:
        assert rank_by_relevance([_listing("Foo")], "zzz") == []

    def test_empty_collection(self) -> None:
        assert rank_by_relevance([], "anything") == []
        assert rank_by_relevance([], "") == []

    def test_empty_query_keeps_everything_in_sponsorship_order(self) -> None:
        listings = [
            _listing("Zeta"),
            _listing("Alpha"),
            _listing("Mid", sponsored_tier="basic"),
            _listing("Top", sponsored_tier="premium"),
            _listing("Flagged", featured=True),
        ]
        ranked = rank_by_relevance(listings, "")
        assert _names(ranked) == ["Top", "Mid", "Flagged", "Alpha", "Zeta"]
        assert set(ranked) == set(listings)

    def test_whitespace_query_is_empty(self) -> None:
        listings = [_listing("B"), _listing("A")]
        assert _names(rank_by_relevance(listings, "   ")) == ["A", "B"]

    def test_equal_scores_break_by_tier_then_featured_then_name(self) -> None:
        # All four match only on description (10). Bonuses differ, so pick
        # weights where bonuses are zero to isolate the tie-break.
        config = RankingConfig(premium_bonus=0, category_bonus=0, basic_bonus=0, featured_bonus=0)
        listings = [
            _listing("Delta", description="agent tool"),
            _listing("Charlie", description="agent tool", featured=True),
            _listing("Bravo", description="agent tool", sponsored_tier="basic"),
            _listing("Alpha", description="agent tool"),
            _listing("Echo", description="agent tool", sponsored_tier="premium"),
        ]
        ranked = rank_by_relevance(listings, "tool", config)
        assert _names(ranked) == ["Echo", "Bravo", "Charlie", "Alpha", "Delta"]

    def test_scores_are_non_increasing(self) -> None:
        listings = [
            _listing("Vector One", short_description="vector"),
            _listing("Other", description="vector stuff", sponsored_tier="premium"),
            _listing("Vector", category="infra"),
            _listing("Thing", integrations=("vector",), featured=True),
        ]
        scored = score_listings(listings, "vector")
        totals = [s.score for s in scored]
        assert totals == sorted(totals, reverse=True)
        assert all(s.text_score > 0 for s in scored)

    def test_every_result_matches_textually(self) -> None:
        listings = [
            _listing("Aider", category="agent", use_cases=("Refactoring",)),
            _listing("Devin", category="agent", featured=True),
            _listing("Qdrant", category="infra", integrations=("LangChain",)),
        ]
        for listing in rank_by_relevance(listings, "refactor"):
            fields = [
                listing.name,
                listing.short_description,
                listing.description,
                listing.category,
                *listing.subcategories,
                *listing.use_cases,
                *listing.integrations,
            ]
            assert any("refactor" in f.lower() for f in fields)

    def test_idempotent(self) -> None:
        listings = [
            _listing("Same", slug="same-b", description="x"),
            _listing("Same", slug="same-a", description="x"),
            _listing("Other", description="x"),
        ]
        first = rank_by_relevance(listings, "x")
        second = rank_by_relevance(listings, "x")
        assert [i.slug for i in first] == [i.slug for i in second]
        assert [i.slug for i in first] == ["other", "same-a", "same-b"]

    def test_input_order_does_not_matter(self) -> None:
        listings = [
            _listing("B", description="q"),
            _listing("A", description="q"),
            _listing("C", description="q", featured=True),
        ]
        forward = rank_by_relevance(listings, "q")
        backward = rank_by_relevance(list(reversed(listings)), "q")
        assert forward == backward

    def test_returns_same_instances(self) -> None:
        listing = _listing("Foo")
        assert rank_by_relevance([listing], "foo")[0] is listing
