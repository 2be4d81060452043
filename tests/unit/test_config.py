"""Tests for configuration models and YAML loading."""

from pathlib import Path
from textwrap import dedent

import pytest
from pydantic import ValidationError

from src.core.config import (
    DatabaseConfig,
    IngestConfig,
    RankingConfig,
    Settings,
    StoreConfig,
)


class TestRankingConfig:
    def test_defaults_match_weight_table(self) -> None:
        r = RankingConfig()
        assert (r.name_exact, r.name_prefix, r.name_substring) == (100, 80, 60)
        assert r.category_exact == 40
        assert r.short_description == 30
        assert r.subcategory == 20
        assert r.use_case == 15
        assert r.description == 10
        assert r.integration == 10
        assert (r.premium_bonus, r.category_bonus, r.basic_bonus, r.featured_bonus) == (5, 3, 1, 2)

    def test_negative_weight_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RankingConfig(name_exact=-1)


class TestStoreConfig:
    def test_defaults(self) -> None:
        s = StoreConfig()
        assert s.backend == "static"
        assert s.fallback_to_static is True

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValidationError):
            StoreConfig(backend="postgres")  # type: ignore[arg-type]


class TestIngestConfig:
    def test_defaults(self) -> None:
        i = IngestConfig()
        assert i.llm_provider == "openai"
        assert i.batch_size == 20
        assert i.content_char_limit == 8000
        assert i.dry_run is False
        assert i.awesome_lists
        assert i.github_topics

    def test_provider_normalized(self) -> None:
        assert IngestConfig(llm_provider="  Anthropic ").llm_provider == "anthropic"

    def test_empty_provider_rejected(self) -> None:
        with pytest.raises(ValidationError):
            IngestConfig(llm_provider="  ")

    def test_batch_size_bounds(self) -> None:
        with pytest.raises(ValidationError):
            IngestConfig(batch_size=0)
        with pytest.raises(ValidationError):
            IngestConfig(batch_size=101)


class TestDatabaseConfig:
    def test_default_path(self) -> None:
        assert DatabaseConfig().path == "data/directory.db"


class TestSettingsFromYaml:
    def test_load_valid(self, tmp_path: Path) -> None:
        config = tmp_path / "settings.yaml"
        config.write_text(dedent("""\
            database:
              path: /tmp/test.db
            store:
              backend: sqlite
            ranking:
              name_exact: 200
            ingest:
              llm_provider: gemini
              dry_run: true
        """))
        s = Settings.from_yaml(config)
        assert s.database.path == "/tmp/test.db"
        assert s.store.backend == "sqlite"
        assert s.ranking.name_exact == 200
        assert s.ranking.name_prefix == 80
        assert s.ingest.llm_provider == "gemini"
        assert s.ingest.dry_run is True

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        config = tmp_path / "settings.yaml"
        config.write_text("")
        s = Settings.from_yaml(config)
        assert s.store.backend == "static"
        assert s.ranking == RankingConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            Settings.from_yaml(tmp_path / "nope.yaml")

    def test_invalid_values(self, tmp_path: Path) -> None:
        config = tmp_path / "settings.yaml"
        config.write_text("ranking:\n  premium_bonus: -5\n")
        with pytest.raises(ValidationError):
            Settings.from_yaml(config)

    def test_example_config_loads(self) -> None:
        example = Path(__file__).parent.parent.parent / "config" / "settings.example.yaml"
        s = Settings.from_yaml(example)
        assert s.ranking == RankingConfig()
