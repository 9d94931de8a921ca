"""Configuration models and YAML loader for the people search client."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


class ApiConfig(BaseModel):
    """How the search API is reached."""

    transport: str = "http"
    base_url: str = "http://localhost:8000"
    search_path: str = "/search"
    timeout_ms: int = Field(default=10000, ge=100)
    fixture_path: str | None = None

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("search_path")
    @classmethod
    def leading_slash(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith("/"):
            v = f"/{v}"
        return v


class PaginationConfig(BaseModel):
    """Server page size and how many pages the CLI loads."""

    page_size: int = Field(default=10, ge=1, le=100)
    max_pages: int = Field(default=3, ge=1, le=50)


class AccumulationConfig(BaseModel):
    """Accumulation hardening options.

    ``dedupe_field`` names a record field with a stable identity. When unset,
    records repeated across pages are kept as returned by the server.
    """

    dedupe_field: str | None = None

    @field_validator("dedupe_field")
    @classmethod
    def blank_is_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


class ShareConfig(BaseModel):
    """Base location used when building shareable search links."""

    base_url: str = "/search"


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    accumulation: AccumulationConfig = Field(default_factory=AccumulationConfig)
    share: ShareConfig = Field(default_factory=ShareConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
