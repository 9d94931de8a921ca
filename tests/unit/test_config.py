"""Tests for configuration models and YAML loading."""

from pathlib import Path
from textwrap import dedent

import pytest
from pydantic import ValidationError

from people_search.core.config import (
    AccumulationConfig,
    ApiConfig,
    PaginationConfig,
    Settings,
    ShareConfig,
)


class TestApiConfig:
    def test_defaults(self) -> None:
        a = ApiConfig()
        assert a.transport == "http"
        assert a.search_path == "/search"
        assert a.timeout_ms == 10000
        assert a.fixture_path is None

    def test_base_url_trailing_slash_stripped(self) -> None:
        a = ApiConfig(base_url="https://api.example.com/")
        assert a.base_url == "https://api.example.com"

    def test_search_path_gets_leading_slash(self) -> None:
        a = ApiConfig(search_path="v1/search")
        assert a.search_path == "/v1/search"

    def test_timeout_min(self) -> None:
        with pytest.raises(ValidationError):
            ApiConfig(timeout_ms=50)


class TestPaginationConfig:
    def test_defaults(self) -> None:
        p = PaginationConfig()
        assert p.page_size == 10
        assert p.max_pages == 3

    def test_page_size_bounds(self) -> None:
        with pytest.raises(ValidationError):
            PaginationConfig(page_size=0)
        with pytest.raises(ValidationError):
            PaginationConfig(page_size=101)


class TestAccumulationConfig:
    def test_no_dedupe_by_default(self) -> None:
        assert AccumulationConfig().dedupe_field is None

    def test_blank_dedupe_field_is_none(self) -> None:
        assert AccumulationConfig(dedupe_field="   ").dedupe_field is None

    def test_dedupe_field_stripped(self) -> None:
        assert AccumulationConfig(dedupe_field=" id ").dedupe_field == "id"


class TestSettings:
    def test_all_defaults(self) -> None:
        s = Settings()
        assert s.api == ApiConfig()
        assert s.pagination == PaginationConfig()
        assert s.share == ShareConfig()

    def test_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text(dedent("""\
            api:
              base_url: https://people.example.com/
              timeout_ms: 2500
            pagination:
              page_size: 25
            accumulation:
              dedupe_field: id
        """))
        s = Settings.from_yaml(path)
        assert s.api.base_url == "https://people.example.com"
        assert s.api.timeout_ms == 2500
        assert s.pagination.page_size == 25
        assert s.pagination.max_pages == 3
        assert s.accumulation.dedupe_field == "id"

    def test_empty_yaml_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("")
        assert Settings.from_yaml(path) == Settings()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "nope.yaml")

    def test_invalid_values_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("pagination:\n  page_size: -1\n")
        with pytest.raises(ValidationError):
            Settings.from_yaml(path)
