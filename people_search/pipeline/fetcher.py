"""FetchCoordinator: one transport call per (query, offset) request.

No caching and no deduplication of identical concurrent calls; callers own
that. Transport failures come back as FetchFailure values, logged, never raised.
"""

import logging
from typing import Any

from people_search.core.schemas import FetchFailure, Page, Record
from people_search.transport.base import SearchTransport, TransportError

logger = logging.getLogger(__name__)


class FetchCoordinator:
    """Turns transport responses into Pages.

    Usage::

        coordinator = FetchCoordinator(transport)
        outcome = await coordinator.fetch("python", limit=10, offset=0)
        if isinstance(outcome, FetchFailure):
            ...  # show outcome.message
    """

    def __init__(self, transport: SearchTransport) -> None:
        self._transport = transport
        self._in_flight: dict[tuple[str, int], int] = {}
        self._calls = 0

    @property
    def in_flight(self) -> set[tuple[str, int]]:
        """(query, offset) pairs with a request currently outstanding."""
        return set(self._in_flight)

    @property
    def call_count(self) -> int:
        """Number of transport calls issued so far."""
        return self._calls

    async def fetch(self, query: str, limit: int, offset: int) -> Page | FetchFailure:
        """Fetch one page.

        Raises:
            ValueError: If ``limit <= 0`` or ``offset < 0``.
        """
        if limit <= 0:
            msg = f"limit must be > 0, got {limit}"
            raise ValueError(msg)
        if offset < 0:
            msg = f"offset must be >= 0, got {offset}"
            raise ValueError(msg)

        key = (query, offset)
        if key in self._in_flight:
            logger.debug("Overlapping request for '%s' at offset %d", query, offset)
        self._in_flight[key] = self._in_flight.get(key, 0) + 1
        self._calls += 1

        logger.info("Fetching '%s' (offset=%d, limit=%d)", query, offset, limit)
        try:
            body = await self._transport.search(query, limit, offset)
        except TransportError as e:
            logger.warning("Fetch failed for '%s' at offset %d: %s", query, offset, e)
            return FetchFailure(query=query, offset=offset, message=str(e))
        finally:
            self._release(key)

        try:
            page = parse_page(body, limit=limit, offset=offset)
        except ValueError as e:
            logger.warning("Malformed response for '%s' at offset %d: %s", query, offset, e)
            return FetchFailure(query=query, offset=offset, message=str(e))

        logger.info(
            "Received %d items for '%s' (offset=%d, has_more=%s, total=%d)",
            len(page.items), query, offset, page.has_more, page.total,
        )
        return page

    def _release(self, key: tuple[str, int]) -> None:
        remaining = self._in_flight.get(key, 0) - 1
        if remaining > 0:
            self._in_flight[key] = remaining
        else:
            self._in_flight.pop(key, None)


def parse_page(body: Any, *, limit: int, offset: int) -> Page:
    """Build a Page from a response body ``{items|people, hasMore, total}``.

    Missing ``hasMore`` is inferred from a full page; missing ``total`` is the
    number of items seen so far. Non-object items are skipped.

    Raises:
        ValueError: If the body is not an object or its items are not a list.
    """
    if not isinstance(body, dict):
        msg = "Malformed search response: expected a JSON object"
        raise ValueError(msg)

    raw_items = body.get("items", body.get("people"))
    if raw_items is None:
        raw_items = []
    if not isinstance(raw_items, list):
        msg = "Malformed search response: items must be a list"
        raise ValueError(msg)

    items: list[Record] = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            logger.debug("Skipping non-object item: %r", raw)
            continue
        items.append(Record.from_wire(raw))

    has_more = body.get("hasMore", body.get("has_more"))
    if not isinstance(has_more, bool):
        has_more = len(raw_items) >= limit

    total = body.get("total")
    if isinstance(total, bool) or not isinstance(total, int) or total < 0:
        total = offset + len(items)

    return Page(offset=offset, limit=limit, items=tuple(items), has_more=has_more, total=total)
