"""Active filter projection: human-readable chips for non-default filters.

Each chip carries a stable id; removing it resets exactly that one field.
"""

from people_search.core.schemas import (
    ActiveFilter,
    ExperienceBand,
    FilterSet,
    Region,
    RoleGroup,
    SortOrder,
)

FILTER_SEARCH = "search"
FILTER_EXPERIENCE = "experience"
FILTER_REGION = "region"
FILTER_ROLE = "role"
FILTER_SORT = "sort"

# Chip id -> FilterSet field it resets.
_FIELD_BY_ID: dict[str, str] = {
    FILTER_SEARCH: "free_text",
    FILTER_EXPERIENCE: "experience",
    FILTER_REGION: "region",
    FILTER_ROLE: "role",
    FILTER_SORT: "sort",
}

EXPERIENCE_LABELS: dict[ExperienceBand, str] = {
    ExperienceBand.ENTRY: "Entry Level",
    ExperienceBand.JUNIOR: "Junior",
    ExperienceBand.MID: "Mid-Level",
    ExperienceBand.SENIOR: "Senior",
    ExperienceBand.EXPERT: "Expert",
}

SORT_LABELS: dict[SortOrder, str] = {
    SortOrder.EXPERIENCE_HIGH: "Experience ↓",
    SortOrder.EXPERIENCE_LOW: "Experience ↑",
    SortOrder.NAME_ASC: "Name A-Z",
    SortOrder.NAME_DESC: "Name Z-A",
}

# Option tables for filter pickers: facet -> [(value, label), ...]
FILTER_OPTIONS: dict[str, list[tuple[str, str]]] = {
    FILTER_EXPERIENCE: [
        ("all", "All Levels"),
        ("entry", "Entry (0-2 years)"),
        ("junior", "Junior (2-5 years)"),
        ("mid", "Mid (5-10 years)"),
        ("senior", "Senior (10-15 years)"),
        ("expert", "Expert (15+ years)"),
    ],
    FILTER_REGION: [
        ("all", "All Regions"),
        ("north-america", "North America"),
        ("europe", "Europe"),
        ("asia", "Asia"),
        ("south-america", "South America"),
        ("africa", "Africa"),
        ("oceania", "Oceania"),
    ],
    FILTER_ROLE: [
        ("all", "All Roles"),
        ("engineering", "Engineering"),
        ("design", "Design"),
        ("product", "Product"),
        ("data", "Data & Analytics"),
        ("management", "Management"),
        ("marketing", "Marketing"),
        ("sales", "Sales"),
    ],
    FILTER_SORT: [
        ("relevance", "Relevance"),
        ("experience-high", "Experience ↓"),
        ("experience-low", "Experience ↑"),
        ("name-asc", "Name A-Z"),
        ("name-desc", "Name Z-A"),
    ],
}


def region_label(region: Region) -> str:
    """'north-america' -> 'North America'."""
    return " ".join(word.capitalize() for word in region.value.split("-"))


def role_label(role: RoleGroup) -> str:
    return role.value.capitalize()


def project_active_filters(filters: FilterSet) -> list[ActiveFilter]:
    """Return one ActiveFilter per non-default field, in display order."""
    active: list[ActiveFilter] = []
    if filters.free_text:
        active.append(ActiveFilter(
            id=FILTER_SEARCH,
            type=FILTER_SEARCH,
            value=filters.free_text,
            label=f'"{filters.free_text}"',
        ))
    if filters.experience is not ExperienceBand.ALL:
        active.append(ActiveFilter(
            id=FILTER_EXPERIENCE,
            type=FILTER_EXPERIENCE,
            value=filters.experience.value,
            label=EXPERIENCE_LABELS[filters.experience],
        ))
    if filters.region is not Region.ALL:
        active.append(ActiveFilter(
            id=FILTER_REGION,
            type=FILTER_REGION,
            value=filters.region.value,
            label=region_label(filters.region),
        ))
    if filters.role is not RoleGroup.ALL:
        active.append(ActiveFilter(
            id=FILTER_ROLE,
            type=FILTER_ROLE,
            value=filters.role.value,
            label=role_label(filters.role),
        ))
    if filters.sort is not SortOrder.RELEVANCE:
        active.append(ActiveFilter(
            id=FILTER_SORT,
            type=FILTER_SORT,
            value=filters.sort.value,
            label=SORT_LABELS[filters.sort],
        ))
    return active


def remove_filter(filters: FilterSet, filter_id: str) -> FilterSet:
    """Reset the single field behind ``filter_id``; unknown ids change nothing."""
    field = _FIELD_BY_ID.get(filter_id)
    if field is None:
        return filters
    default = FilterSet.model_fields[field].default
    return filters.model_copy(update={field: default})


def clear_filters(filters: FilterSet) -> FilterSet:
    """Reset every filter field. The query is not part of a FilterSet."""
    return FilterSet()
