"""Search session: an explicit reducer plus the async driver around it.

Every state change is one action applied by :func:`reduce`:

  QueryChanged      -> query set, offset 0, buffer reset under a new token
  LoadMoreRequested -> next offset requested (one load-more at a time)
  PageReceived      -> merged only if its token still matches the buffer
  FetchFailed       -> error recorded; accumulated results kept
  FilterChanged / FilterRemoved / FiltersCleared -> filters only, no fetch

:class:`SearchSession` dispatches actions, launches a fetch for each offset
newly marked in flight, and commits query state to the QueryStateStore.
"""

import json
import logging
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

from people_search.core.schemas import (
    FetchFailure,
    FilterSet,
    Page,
    QueryState,
    QueryToken,
    Record,
    SearchView,
)
from people_search.pipeline.accumulator import AccumulationBuffer
from people_search.pipeline.active_filters import (
    clear_filters,
    project_active_filters,
    remove_filter,
)
from people_search.pipeline.fetcher import FetchCoordinator
from people_search.pipeline.refiner import RefinementCache
from people_search.state.store import QueryStateStore, apply_patch, patch_filters
from people_search.state.url_codec import decode_state

logger = logging.getLogger(__name__)

_FROZEN = ConfigDict(frozen=True)


class QueryChanged(BaseModel):
    model_config = _FROZEN

    query: str


class LoadMoreRequested(BaseModel):
    model_config = _FROZEN


class PageReceived(BaseModel):
    model_config = _FROZEN

    token: QueryToken
    page: Page


class FetchFailed(BaseModel):
    model_config = _FROZEN

    token: QueryToken
    offset: int = Field(ge=0)
    message: str


class FilterChanged(BaseModel):
    model_config = _FROZEN

    patch: dict[str, Any]


class FilterRemoved(BaseModel):
    model_config = _FROZEN

    filter_id: str


class FiltersCleared(BaseModel):
    model_config = _FROZEN


Action = Union[
    QueryChanged,
    LoadMoreRequested,
    PageReceived,
    FetchFailed,
    FilterChanged,
    FilterRemoved,
    FiltersCleared,
]


class SessionState(BaseModel):
    """Complete session state; replaced, never mutated."""

    model_config = _FROZEN

    query_state: QueryState = Field(default_factory=QueryState)
    buffer: AccumulationBuffer = Field(default_factory=AccumulationBuffer)
    in_flight: tuple[int, ...] = ()
    error: str | None = None

    @property
    def loading(self) -> bool:
        return bool(self.in_flight)


def reduce(state: SessionState, action: Action) -> SessionState:
    """Apply one action and return the next state. Pure."""
    if isinstance(action, QueryChanged):
        return SessionState(
            query_state=apply_patch(state.query_state, query=action.query, offset=0),
            buffer=state.buffer.reset(action.query),
            in_flight=(0,),
            error=None,
        )

    if isinstance(action, LoadMoreRequested):
        buffer = state.buffer
        if state.in_flight or not buffer.loaded or not buffer.has_more:
            logger.debug(
                "Load more ignored (in_flight=%s, loaded=%s, has_more=%s)",
                state.in_flight, buffer.loaded, buffer.has_more,
            )
            return state
        offset = buffer.next_offset
        return state.model_copy(update={
            "query_state": apply_patch(state.query_state, offset=offset),
            "in_flight": (offset,),
        })

    if isinstance(action, PageReceived):
        if not state.buffer.is_bound_to(action.token):
            logger.info(
                "Ignoring reply for superseded query '%s' (offset=%d)",
                action.token.query, action.page.offset,
            )
            return state
        return state.model_copy(update={
            "buffer": state.buffer.merge(action.page, action.token),
            "in_flight": _without(state.in_flight, action.page.offset),
            "error": None,
        })

    if isinstance(action, FetchFailed):
        if not state.buffer.is_bound_to(action.token):
            logger.info("Ignoring failure for superseded query '%s'", action.token.query)
            return state
        return state.model_copy(update={
            "in_flight": _without(state.in_flight, action.offset),
            "error": action.message,
        })

    if isinstance(action, FilterChanged):
        filters = patch_filters(state.query_state.filters, **action.patch)
        return _with_filters(state, filters)

    if isinstance(action, FilterRemoved):
        return _with_filters(state, remove_filter(state.query_state.filters, action.filter_id))

    if isinstance(action, FiltersCleared):
        return _with_filters(state, clear_filters(state.query_state.filters))

    msg = f"Unknown action: {action!r}"
    raise TypeError(msg)


def _without(offsets: tuple[int, ...], offset: int) -> tuple[int, ...]:
    return tuple(o for o in offsets if o != offset)


def _with_filters(state: SessionState, filters: FilterSet) -> SessionState:
    if filters == state.query_state.filters:
        return state
    query_state = state.query_state.model_copy(update={"filters": filters})
    return state.model_copy(update={"query_state": query_state})


def build_view(state: SessionState, items: list[Record]) -> SearchView:
    """Assemble the presenter view from state and already-refined items."""
    filters = state.query_state.filters
    buffer = state.buffer
    return SearchView(
        query=state.query_state.query,
        filters=filters,
        items=tuple(items),
        active_filters=tuple(project_active_filters(filters)),
        count=len(items),
        total_accumulated=len(buffer.items),
        total=buffer.total,
        has_more=buffer.has_more,
        loading=state.loading,
        error=state.error,
    )


def summary_line(view: SearchView) -> str:
    """'Loaded 20 of 57 total results (4 after filtering)'."""
    total = view.total or view.total_accumulated
    line = f"Loaded {view.total_accumulated} of {total} total results"
    if view.is_filtered:
        line += f" ({view.count} after filtering)"
    return line


def export_view_json(view: SearchView) -> str:
    """Export the refined view as a JSON string."""
    data = {
        "query": view.query,
        "summary": summary_line(view),
        "active_filters": [f.model_dump() for f in view.active_filters],
        "count": view.count,
        "total_accumulated": view.total_accumulated,
        "total": view.total,
        "has_more": view.has_more,
        "error": view.error,
        "results": [
            {**r.model_dump(), "years": r.years, "skills": r.skills_list}
            for r in view.items
        ],
    }
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


class SearchSession:
    """Drives one search session against a FetchCoordinator.

    Usage::

        session = SearchSession(FetchCoordinator(transport), page_size=10)
        view = await session.submit("python developers")
        view = session.set_filters(region="europe", sort="name-asc")
        view = await session.load_more()
        link = session.store.to_url()
    """

    def __init__(
        self,
        coordinator: FetchCoordinator,
        store: QueryStateStore | None = None,
        *,
        page_size: int = 10,
        dedupe_field: str | None = None,
    ) -> None:
        if page_size <= 0:
            msg = f"page_size must be > 0, got {page_size}"
            raise ValueError(msg)
        self._coordinator = coordinator
        self._store = store or QueryStateStore()
        self._page_size = page_size
        self._state = SessionState(
            query_state=self._store.state.model_copy(update={"offset": 0}),
            buffer=AccumulationBuffer(dedupe_field=dedupe_field),
        )
        self._cache = RefinementCache()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def store(self) -> QueryStateStore:
        return self._store

    @property
    def page_size(self) -> int:
        return self._page_size

    def dispatch(self, action: Action) -> SessionState:
        """Apply an action and commit the resulting query state to the store."""
        self._state = reduce(self._state, action)
        self._store.replace(self._state.query_state)
        return self._state

    async def submit(self, query: str) -> SearchView:
        """Start (or restart) a search. Re-submitting the same query refetches."""
        logger.info("Submitting query '%s'", query)
        state = self.dispatch(QueryChanged(query=query))
        await self._fetch_started(state, before=())
        return self.view()

    async def load_more(self) -> SearchView:
        """Fetch the next page if there is one and no fetch is outstanding."""
        before = self._state.in_flight
        state = self.dispatch(LoadMoreRequested())
        await self._fetch_started(state, before=before)
        return self.view()

    def set_filters(self, **patch: Any) -> SearchView:
        """Change filter fields (free_text, experience, region, role, sort)."""
        self.dispatch(FilterChanged(patch=patch))
        return self.view()

    def remove_filter(self, filter_id: str) -> SearchView:
        self.dispatch(FilterRemoved(filter_id=filter_id))
        return self.view()

    def clear_filters(self) -> SearchView:
        self.dispatch(FiltersCleared())
        return self.view()

    async def navigate(self, url: str) -> SearchView:
        """Apply an addressable URL. Fetches only when the query changes."""
        query, filters = decode_state(url)
        self.dispatch(FilterChanged(patch=filters.model_dump()))
        buffer = self._state.buffer
        never_searched = buffer.token.generation == 0
        if never_searched or query != self._state.query_state.query:
            return await self.submit(query)
        return self.view()

    def view(self) -> SearchView:
        """Refined view of what has been accumulated so far."""
        buffer = self._state.buffer
        items = self._cache.get(buffer.version, buffer.result, self._state.query_state.filters)
        return build_view(self._state, items)

    async def _fetch_started(self, state: SessionState, *, before: tuple[int, ...]) -> None:
        token = state.buffer.token
        for offset in state.in_flight:
            if offset in before:
                continue
            outcome = await self._coordinator.fetch(token.query, self._page_size, offset)
            if isinstance(outcome, FetchFailure):
                self.dispatch(FetchFailed(token=token, offset=offset, message=outcome.message))
            else:
                self.dispatch(PageReceived(token=token, page=outcome))
