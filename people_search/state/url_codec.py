"""Addressable search state: URL parameter encoding and decoding.

Pure functions, no routing dependency. Defaults are omitted when encoding and
unknown values decode to their defaults, never an error.
"""

import logging
from enum import Enum
from typing import TypeVar
from urllib.parse import parse_qs, quote_plus, urlencode, urlsplit

from people_search.core.schemas import (
    ExperienceBand,
    FilterSet,
    Region,
    RoleGroup,
    SortOrder,
)

logger = logging.getLogger(__name__)

# --- Parameter names (URL concern) ---

PARAM_QUERY = "q"
PARAM_FREE_TEXT = "filter"
PARAM_EXPERIENCE = "experience"
PARAM_REGION = "region"
PARAM_ROLE = "role"
PARAM_SORT = "sort"

_E = TypeVar("_E", bound=Enum)


def _parse_enum(value: object, enum_cls: type[_E], default: _E) -> _E:
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return default
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        logger.debug("Unknown %s value '%s' - using default", enum_cls.__name__, value)
        return default


def parse_experience(value: object) -> ExperienceBand:
    return _parse_enum(value, ExperienceBand, ExperienceBand.ALL)


def parse_region(value: object) -> Region:
    return _parse_enum(value, Region, Region.ALL)


def parse_role(value: object) -> RoleGroup:
    return _parse_enum(value, RoleGroup, RoleGroup.ALL)


def parse_sort(value: object) -> SortOrder:
    return _parse_enum(value, SortOrder, SortOrder.RELEVANCE)


def encode_filters(filters: FilterSet) -> dict[str, str]:
    """Return the non-default filter fields as URL parameters."""
    params: dict[str, str] = {}
    if filters.free_text:
        params[PARAM_FREE_TEXT] = filters.free_text
    if filters.experience is not ExperienceBand.ALL:
        params[PARAM_EXPERIENCE] = filters.experience.value
    if filters.region is not Region.ALL:
        params[PARAM_REGION] = filters.region.value
    if filters.role is not RoleGroup.ALL:
        params[PARAM_ROLE] = filters.role.value
    if filters.sort is not SortOrder.RELEVANCE:
        params[PARAM_SORT] = filters.sort.value
    return params


def decode_filters(params: dict[str, str]) -> FilterSet:
    """Build a FilterSet from URL parameters, defaulting anything unknown."""
    return FilterSet(
        free_text=params.get(PARAM_FREE_TEXT, ""),
        experience=parse_experience(params.get(PARAM_EXPERIENCE)),
        region=parse_region(params.get(PARAM_REGION)),
        role=parse_role(params.get(PARAM_ROLE)),
        sort=parse_sort(params.get(PARAM_SORT)),
    )


def encode_state(query: str, filters: FilterSet) -> str:
    """Encode query + filters as a URL query string (no leading ``?``).

    A blank query is omitted, as is every default filter field.
    """
    params: dict[str, str] = {}
    if query.strip():
        params[PARAM_QUERY] = query
    params.update(encode_filters(filters))
    return urlencode(params, quote_via=quote_plus)


def decode_state(url: str) -> tuple[str, FilterSet]:
    """Decode a full URL, a path with query, or a bare query string.

    Repeated parameters keep their first value; unrelated parameters are ignored.
    """
    if "?" in url:
        raw = urlsplit(url).query
    elif "=" in url:
        raw = url
    else:
        raw = ""
    parsed = parse_qs(raw, keep_blank_values=True)
    params = {key: values[0] for key, values in parsed.items() if values}
    return params.get(PARAM_QUERY, ""), decode_filters(params)


def build_state_url(base: str, query: str, filters: FilterSet) -> str:
    """Build a shareable link for the given state."""
    encoded = encode_state(query, filters)
    if not encoded:
        return base
    return f"{base}?{encoded}"
