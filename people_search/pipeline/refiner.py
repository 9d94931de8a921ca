"""RefinementEngine: client-side filter chain and sort over accumulated results.

Step order (fixed; each step sees only what survived the previous one):
  1. FreeTextFilter      : case-insensitive substring over searchable fields
  2. ExperienceBandFilter: half-open year bands
  3. RegionFilter        : keyword match on location (or country)
  4. RoleGroupFilter     : keyword match on role
  5. sort_records        : stable sort by the selected order

Pure: no network, no mutation of the accumulated result. Missing fields fall
back to "" / 0; a record is only dropped by an active facet that does not match.
"""

import locale
import logging
import math
from collections.abc import Callable, Sequence

from people_search.core.schemas import (
    AccumulatedResult,
    ExperienceBand,
    FilterSet,
    Record,
    Region,
    RoleGroup,
    SortOrder,
)

logger = logging.getLogger(__name__)

# A filter is a callable that takes records and returns a subset.
Filter = Callable[[list[Record]], list[Record]]

# Half-open [low, high) year ranges; entry has no lower bound.
EXPERIENCE_BANDS: dict[ExperienceBand, tuple[float, float]] = {
    ExperienceBand.ENTRY: (-math.inf, 2),
    ExperienceBand.JUNIOR: (2, 5),
    ExperienceBand.MID: (5, 10),
    ExperienceBand.SENIOR: (10, 15),
    ExperienceBand.EXPERT: (15, math.inf),
}

REGION_KEYWORDS: dict[Region, tuple[str, ...]] = {
    Region.NORTH_AMERICA: ("usa", "canada", "mexico", "united states", "america", "us"),
    Region.EUROPE: ("uk", "germany", "france", "spain", "italy", "poland", "netherlands", "europe"),
    Region.ASIA: ("india", "china", "japan", "korea", "singapore", "asia"),
    Region.SOUTH_AMERICA: ("brazil", "argentina", "chile", "colombia"),
    Region.AFRICA: ("south africa", "egypt", "nigeria", "kenya", "africa"),
    Region.OCEANIA: ("australia", "new zealand", "oceania"),
}

ROLE_KEYWORDS: dict[RoleGroup, tuple[str, ...]] = {
    RoleGroup.ENGINEERING: ("engineer", "developer", "programmer", "software"),
    RoleGroup.DESIGN: ("designer", "ux", "ui"),
    RoleGroup.PRODUCT: ("product manager", "product owner", "pm"),
    RoleGroup.DATA: ("data scientist", "data analyst", "analytics"),
    RoleGroup.MANAGEMENT: ("manager", "director", "lead", "cto", "ceo"),
    RoleGroup.MARKETING: ("marketing", "growth"),
    RoleGroup.SALES: ("sales", "account executive"),
}


class FreeTextFilter:
    """Keep records whose searchable text contains the filter string."""

    def __init__(self, text: str) -> None:
        self._needle = text.lower() if text.strip() else ""

    def __call__(self, records: list[Record]) -> list[Record]:
        if not self._needle:
            return records
        result = [r for r in records if self._needle in r.search_text.lower()]
        _log_removed("FreeTextFilter", records, result)
        return result


class ExperienceBandFilter:
    """Keep records whose years of experience fall inside the band."""

    def __init__(self, band: ExperienceBand) -> None:
        self._range = EXPERIENCE_BANDS.get(band)

    def __call__(self, records: list[Record]) -> list[Record]:
        if self._range is None:
            return records
        low, high = self._range
        result = [r for r in records if low <= r.years < high]
        _log_removed("ExperienceBandFilter", records, result)
        return result


class KeywordFilter:
    """Keep records whose lower-cased field text contains any keyword.

    An empty keyword list means the facet is off (pass-through).
    """

    def __init__(self, name: str, keywords: Sequence[str], field: Callable[[Record], str]) -> None:
        self._name = name
        self._keywords = tuple(k.lower() for k in keywords)
        self._field = field

    def __call__(self, records: list[Record]) -> list[Record]:
        if not self._keywords:
            return records
        result = [r for r in records if self._matches(r)]
        _log_removed(self._name, records, result)
        return result

    def _matches(self, record: Record) -> bool:
        text = self._field(record).lower()
        return any(k in text for k in self._keywords)


class RegionFilter(KeywordFilter):
    """Match location, falling back to country when location is empty."""

    def __init__(self, region: Region) -> None:
        super().__init__("RegionFilter", REGION_KEYWORDS.get(region, ()), _location_text)


class RoleGroupFilter(KeywordFilter):
    def __init__(self, role: RoleGroup) -> None:
        super().__init__("RoleGroupFilter", ROLE_KEYWORDS.get(role, ()), _role_text)


def _location_text(record: Record) -> str:
    return record.location or record.country


def _role_text(record: Record) -> str:
    return record.role


def _log_removed(name: str, before: list[Record], after: list[Record]) -> None:
    removed = len(before) - len(after)
    if removed:
        logger.debug("%s: removed %d records", name, removed)


def run_filter_chain(records: list[Record], filters: list[Filter]) -> list[Record]:
    """Apply filters in order, returning the surviving records."""
    result = records
    for f in filters:
        result = f(result)
    return result


def build_filters(filters: FilterSet) -> list[Filter]:
    """Build the filter chain for a FilterSet (fixed step order)."""
    return [
        FreeTextFilter(filters.free_text),
        ExperienceBandFilter(filters.experience),
        RegionFilter(filters.region),
        RoleGroupFilter(filters.role),
    ]


def sort_records(records: list[Record], order: SortOrder) -> list[Record]:
    """Stable sort; equal keys keep their accumulated order."""
    if order is SortOrder.EXPERIENCE_HIGH:
        return sorted(records, key=lambda r: r.years, reverse=True)
    if order is SortOrder.EXPERIENCE_LOW:
        return sorted(records, key=lambda r: r.years)
    if order is SortOrder.NAME_ASC:
        return sorted(records, key=lambda r: locale.strxfrm(r.name))
    if order is SortOrder.NAME_DESC:
        return sorted(records, key=lambda r: locale.strxfrm(r.name), reverse=True)
    return sorted(records, key=lambda r: r.relevance_score, reverse=True)


def refine(accumulated: AccumulatedResult | Sequence[Record], filters: FilterSet) -> list[Record]:
    """Filter and sort accumulated records for display.

    Args:
        accumulated: An AccumulatedResult, or a plain sequence of records.
        filters: The current FilterSet.

    Returns:
        A new list; the input is left untouched.
    """
    items = accumulated.items if isinstance(accumulated, AccumulatedResult) else accumulated
    filtered = run_filter_chain(list(items), build_filters(filters))
    return sort_records(filtered, filters.sort)


class RefinementCache:
    """Memoizes refine() by (buffer version, FilterSet).

    The buffer version changes on every effective merge or reset, so a cached
    view can never outlive the data it was computed from.
    """

    def __init__(self) -> None:
        self._key: tuple[int, FilterSet] | None = None
        self._value: list[Record] = []
        self.hits = 0
        self.misses = 0

    def get(self, version: int, accumulated: AccumulatedResult, filters: FilterSet) -> list[Record]:
        key = (version, filters)
        if key == self._key:
            self.hits += 1
            return list(self._value)
        self.misses += 1
        self._value = refine(accumulated, filters)
        self._key = key
        return list(self._value)
