"""QueryStateStore: the canonical, addressable search state.

State transitions go through :func:`apply_patch`, a pure function the session
reducer shares. The store adds subscription and URL binding on top.
"""

import logging
from collections.abc import Callable
from typing import Any

from people_search.core.schemas import FilterSet, QueryState
from people_search.state.url_codec import (
    build_state_url,
    decode_state,
    parse_experience,
    parse_region,
    parse_role,
    parse_sort,
)

logger = logging.getLogger(__name__)

Listener = Callable[[QueryState, QueryState], None]

_FILTER_PARSERS: dict[str, Callable[[Any], Any]] = {
    "experience": parse_experience,
    "region": parse_region,
    "role": parse_role,
    "sort": parse_sort,
}


def patch_filters(filters: FilterSet, **patch: Any) -> FilterSet:
    """Return ``filters`` with the given fields replaced.

    Facet values decode permissively (unknown -> default). ``None`` resets a
    field to its default.
    """
    updates: dict[str, Any] = {}
    for key, value in patch.items():
        if key == "free_text":
            updates[key] = "" if value is None else str(value)
        elif key in _FILTER_PARSERS:
            updates[key] = _FILTER_PARSERS[key](value)
        else:
            msg = f"Unknown filter field '{key}'"
            raise ValueError(msg)
    if not updates:
        return filters
    return filters.model_copy(update=updates)


def apply_patch(state: QueryState, **patch: Any) -> QueryState:
    """Apply a partial update and return the new canonical state.

    A new ``query`` resets ``offset`` to 0 in the same step. Filter fields never
    touch ``offset``.
    """
    query = state.query
    offset = state.offset
    if "offset" in patch:
        offset = int(patch.pop("offset"))
        if offset < 0:
            msg = f"offset must be >= 0, got {offset}"
            raise ValueError(msg)
    if "query" in patch:
        new_query = patch.pop("query") or ""
        if new_query != query:
            query = new_query
            offset = 0
    filters = patch_filters(state.filters, **patch)
    return QueryState(query=query, filters=filters, offset=offset)


class QueryStateStore:
    """Holds the current QueryState and notifies subscribers on change.

    Usage::

        store = QueryStateStore()
        unsubscribe = store.subscribe(lambda old, new: ...)
        store.update(query="python", region="europe")
        link = store.to_url()
    """

    def __init__(self, state: QueryState | None = None, base_url: str = "/search") -> None:
        self._state = state or QueryState()
        self._base_url = base_url
        self._listeners: list[Listener] = []

    @property
    def state(self) -> QueryState:
        return self._state

    @property
    def query(self) -> str:
        return self._state.query

    @property
    def filters(self) -> FilterSet:
        return self._state.filters

    @property
    def offset(self) -> int:
        return self._state.offset

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, **patch: Any) -> QueryState:
        """Apply a partial patch; subscribers see the whole change at once."""
        return self.replace(apply_patch(self._state, **patch))

    def replace(self, state: QueryState) -> QueryState:
        """Swap in a complete state. No-op (and no notification) when equal."""
        previous = self._state
        if state == previous:
            return previous
        self._state = state
        logger.debug("Query state: %s -> %s", previous, state)
        for listener in list(self._listeners):
            listener(previous, state)
        return state

    def to_url(self, base: str | None = None) -> str:
        """Shareable link for the current query and filters."""
        return build_state_url(base or self._base_url, self._state.query, self._state.filters)

    @classmethod
    def from_url(cls, url: str, base_url: str = "/search") -> "QueryStateStore":
        """Create a store whose state is decoded from ``url``."""
        query, filters = decode_state(url)
        return cls(QueryState(query=query, filters=filters), base_url=base_url)
