"""Tests for slugify and star formatting."""

import pytest

from src.core.text import format_stars, slugify


class TestSlugify:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("LangChain", "langchain"),
            ("Semantic Kernel", "semantic-kernel"),
            ("  GPT--Engineer!! ", "gpt-engineer"),
            ("Vercel AI SDK 4.0", "vercel-ai-sdk-4-0"),
            ("---", ""),
        ],
    )
    def test_slugify(self, name: str, expected: str) -> None:
        assert slugify(name) == expected


class TestFormatStars:
    def test_small(self) -> None:
        assert format_stars(999) == "999"

    def test_thousands_one_decimal(self) -> None:
        assert format_stars(1200) == "1.2K"

    def test_ten_thousands_no_decimal(self) -> None:
        assert format_stars(98000) == "98K"
