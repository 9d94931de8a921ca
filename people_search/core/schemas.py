"""Core data models for the people search client.

Everything here is frozen: pages, accumulated results and filter sets are
replaced wholesale, never edited in place.
"""

import math
import re
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

_FIRST_INT = re.compile(r"(\d+)")
_SKILL_SEPARATORS = re.compile(r"[;,]")


class ExperienceBand(str, Enum):
    ALL = "all"
    ENTRY = "entry"
    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"
    EXPERT = "expert"


class Region(str, Enum):
    ALL = "all"
    NORTH_AMERICA = "north-america"
    EUROPE = "europe"
    ASIA = "asia"
    SOUTH_AMERICA = "south-america"
    AFRICA = "africa"
    OCEANIA = "oceania"


class RoleGroup(str, Enum):
    ALL = "all"
    ENGINEERING = "engineering"
    DESIGN = "design"
    PRODUCT = "product"
    DATA = "data"
    MANAGEMENT = "management"
    MARKETING = "marketing"
    SALES = "sales"


class SortOrder(str, Enum):
    RELEVANCE = "relevance"
    EXPERIENCE_HIGH = "experience-high"
    EXPERIENCE_LOW = "experience-low"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"


def _is_set(value: Any) -> bool:
    """Truthiness that also treats NaN as unset."""
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


class Record(BaseModel):
    """A single search hit.

    Only the fields the refinement steps inspect are declared; everything else
    the server sends is kept as extra data. Malformed values degrade to empty
    strings / zero instead of failing validation.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    id: str = ""
    name: str = ""
    role: str = ""
    location: str = ""
    city: str = ""
    country: str = ""
    description: str = ""
    skills: str | list[str] = ""
    experience_years: Any = Field(
        default=None,
        validation_alias=AliasChoices("experience_years", "experienceYears"),
    )
    experience: Any = None
    relevance_score: float = Field(
        default=0.0,
        validation_alias=AliasChoices("relevanceScore", "relevance_score"),
    )

    @field_validator("id", "name", "role", "location", "city", "country", "description", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator("skills", mode="before")
    @classmethod
    def coerce_skills(cls, v: Any) -> str | list[str]:
        if v is None:
            return ""
        if isinstance(v, (list, tuple)):
            return [s if isinstance(s, str) else str(s) for s in v if s is not None]
        return v if isinstance(v, str) else str(v)

    @field_validator("relevance_score", mode="before")
    @classmethod
    def coerce_score(cls, v: Any) -> float:
        if isinstance(v, bool):
            return 0.0
        try:
            score = float(v)
        except (TypeError, ValueError):
            return 0.0
        return score if math.isfinite(score) else 0.0

    @classmethod
    def from_wire(cls, item: dict[str, Any]) -> "Record":
        """Build a Record from one response item.

        Items shaped ``{"person": {...}, "score": 0.8}`` are flattened; the
        outer score becomes the relevance score unless the person carries one.
        """
        person = item.get("person")
        if not isinstance(person, dict):
            return cls.model_validate(item)
        data = {k: v for k, v in item.items() if k != "person"}
        data.update(person)
        if "score" in item and "relevanceScore" not in data and "relevance_score" not in data:
            data["relevanceScore"] = item["score"]
        return cls.model_validate(data)

    @property
    def years(self) -> float:
        """Years of experience: numeric field, else first integer in the text, else 0."""
        raw = self.experience_years if _is_set(self.experience_years) else self.experience
        if isinstance(raw, bool) or raw is None:
            return 0.0
        if isinstance(raw, (int, float)):
            return float(raw) if math.isfinite(raw) else 0.0
        if isinstance(raw, str):
            match = _FIRST_INT.search(raw)
            return float(match.group(1)) if match else 0.0
        return 0.0

    @property
    def skills_list(self) -> list[str]:
        raw = self.skills if isinstance(self.skills, list) else [self.skills]
        parts: list[str] = []
        for entry in raw:
            parts.extend(s.strip() for s in _SKILL_SEPARATORS.split(entry))
        return [p for p in parts if p]

    @property
    def skills_text(self) -> str:
        if isinstance(self.skills, list):
            return ",".join(self.skills)
        return self.skills

    @property
    def search_text(self) -> str:
        """Searchable fields joined with spaces (not lower-cased)."""
        fields = (
            self.name,
            self.role,
            self.location,
            self.city,
            self.country,
            self.description,
            self.skills_text,
        )
        return " ".join(f for f in fields if f)

    def identity(self, field: str) -> Any:
        """Value of ``field`` (declared or extra), or None when missing/empty."""
        if field in type(self).model_fields:
            value = getattr(self, field)
        else:
            value = (self.model_extra or {}).get(field)
        return value if _is_set(value) else None


class Page(BaseModel):
    """One server page for a (query, offset, limit) request."""

    model_config = ConfigDict(frozen=True)

    offset: int = Field(ge=0)
    limit: int = Field(gt=0)
    items: tuple[Record, ...] = ()
    has_more: bool = False
    total: int = Field(default=0, ge=0)


class QueryToken(BaseModel):
    """Identity of one accumulation lifetime.

    The generation changes on every reset, so a re-submitted identical query
    still invalidates replies issued before it.
    """

    model_config = ConfigDict(frozen=True)

    query: str = ""
    generation: int = Field(default=0, ge=0)


class AccumulatedResult(BaseModel):
    """All pages merged so far for one query."""

    model_config = ConfigDict(frozen=True)

    query: str = ""
    items: tuple[Record, ...] = ()
    has_more: bool = False
    total: int = Field(default=0, ge=0)


class FilterSet(BaseModel):
    """Client-side refinement state. Changing it never triggers a fetch."""

    model_config = ConfigDict(frozen=True)

    free_text: str = ""
    experience: ExperienceBand = ExperienceBand.ALL
    region: Region = Region.ALL
    role: RoleGroup = RoleGroup.ALL
    sort: SortOrder = SortOrder.RELEVANCE

    @property
    def is_default(self) -> bool:
        return self == FilterSet()


class QueryState(BaseModel):
    """Canonical addressable search state."""

    model_config = ConfigDict(frozen=True)

    query: str = ""
    filters: FilterSet = Field(default_factory=FilterSet)
    offset: int = Field(default=0, ge=0)


class ActiveFilter(BaseModel):
    """Display projection of one non-default FilterSet field."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    value: str
    label: str


class FetchFailure(BaseModel):
    """A failed fetch: network error, timeout or non-success response."""

    model_config = ConfigDict(frozen=True)

    query: str
    offset: int = Field(ge=0)
    message: str


class SearchView(BaseModel):
    """Everything a presenter needs to render the current search."""

    model_config = ConfigDict(frozen=True)

    query: str
    filters: FilterSet
    items: tuple[Record, ...] = ()
    active_filters: tuple[ActiveFilter, ...] = ()
    count: int = 0
    total_accumulated: int = 0
    total: int = 0
    has_more: bool = False
    loading: bool = False
    error: str | None = None

    @property
    def is_filtered(self) -> bool:
        """True when refinement hid some accumulated records."""
        return self.count != self.total_accumulated
