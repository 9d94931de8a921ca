"""Tests for FetchCoordinator and response parsing."""

import asyncio
from typing import Any

import pytest

from people_search.core.schemas import FetchFailure, Page
from people_search.pipeline.fetcher import FetchCoordinator, parse_page
from people_search.transport.base import SearchTransport, TransportError

# ---------------------------------------------------------------------------
# Fake transports
# ---------------------------------------------------------------------------


class StaticTransport(SearchTransport):
    """Returns a fixed body and records every call."""

    def __init__(self, body: Any) -> None:
        self.body = body
        self.calls: list[tuple[str, int, int]] = []

    @property
    def transport_id(self) -> str:
        return "static"

    async def search(self, query: str, limit: int, offset: int) -> Any:
        self.calls.append((query, limit, offset))
        return self.body


class FailingTransport(SearchTransport):
    @property
    def transport_id(self) -> str:
        return "failing"

    async def search(self, query: str, limit: int, offset: int) -> Any:
        raise TransportError("Search request failed: HTTP 503")


class GatedTransport(SearchTransport):
    """Blocks until released, so in-flight bookkeeping can be observed."""

    def __init__(self) -> None:
        self.release = asyncio.Event()

    @property
    def transport_id(self) -> str:
        return "gated"

    async def search(self, query: str, limit: int, offset: int) -> Any:
        await self.release.wait()
        return {"items": [], "hasMore": False, "total": 0}


# ---------------------------------------------------------------------------
# FetchCoordinator
# ---------------------------------------------------------------------------


class TestFetchCoordinator:
    async def test_returns_page(self) -> None:
        transport = StaticTransport({"items": [{"name": "Ann"}], "hasMore": True, "total": 31})
        page = await FetchCoordinator(transport).fetch("python", limit=10, offset=20)

        assert isinstance(page, Page)
        assert page.offset == 20
        assert page.limit == 10
        assert [r.name for r in page.items] == ["Ann"]
        assert page.has_more is True
        assert page.total == 31
        assert transport.calls == [("python", 10, 20)]

    async def test_one_call_per_fetch(self) -> None:
        transport = StaticTransport({"items": []})
        coordinator = FetchCoordinator(transport)
        await coordinator.fetch("q", limit=10, offset=0)
        await coordinator.fetch("q", limit=10, offset=0)
        assert len(transport.calls) == 2
        assert coordinator.call_count == 2

    async def test_transport_failure_becomes_value(self) -> None:
        outcome = await FetchCoordinator(FailingTransport()).fetch("python", limit=10, offset=0)
        assert isinstance(outcome, FetchFailure)
        assert outcome.message == "Search request failed: HTTP 503"
        assert outcome.query == "python"
        assert outcome.offset == 0

    async def test_malformed_body_becomes_failure(self) -> None:
        outcome = await FetchCoordinator(StaticTransport(["not", "an", "object"])).fetch("q", 10, 0)
        assert isinstance(outcome, FetchFailure)
        assert "Malformed" in outcome.message

    async def test_empty_result_is_not_an_error(self) -> None:
        outcome = await FetchCoordinator(StaticTransport({"items": [], "hasMore": False, "total": 0})).fetch(
            "nobody", 10, 0,
        )
        assert isinstance(outcome, Page)
        assert outcome.items == ()

    @pytest.mark.parametrize("limit", [0, -5])
    async def test_limit_must_be_positive(self, limit: int) -> None:
        with pytest.raises(ValueError, match="limit"):
            await FetchCoordinator(StaticTransport({})).fetch("q", limit=limit, offset=0)

    async def test_offset_must_be_non_negative(self) -> None:
        with pytest.raises(ValueError, match="offset"):
            await FetchCoordinator(StaticTransport({})).fetch("q", limit=10, offset=-1)

    async def test_in_flight_tracking(self) -> None:
        transport = GatedTransport()
        coordinator = FetchCoordinator(transport)

        task = asyncio.create_task(coordinator.fetch("go", 10, 0))
        await asyncio.sleep(0)
        assert coordinator.in_flight == {("go", 0)}

        transport.release.set()
        await task
        assert coordinator.in_flight == set()

    async def test_in_flight_cleared_after_failure(self) -> None:
        coordinator = FetchCoordinator(FailingTransport())
        await coordinator.fetch("go", 10, 0)
        assert coordinator.in_flight == set()


# ---------------------------------------------------------------------------
# parse_page
# ---------------------------------------------------------------------------


class TestParsePage:
    def test_people_key(self) -> None:
        page = parse_page({"people": [{"name": "Ann"}], "hasMore": False, "total": 1}, limit=10, offset=0)
        assert [r.name for r in page.items] == ["Ann"]

    def test_missing_items_is_empty(self) -> None:
        page = parse_page({}, limit=10, offset=0)
        assert page.items == ()

    def test_has_more_inferred_from_full_page(self) -> None:
        full = parse_page({"items": [{"name": str(i)} for i in range(3)]}, limit=3, offset=0)
        short = parse_page({"items": [{"name": "x"}]}, limit=3, offset=0)
        assert full.has_more is True
        assert short.has_more is False

    def test_total_inferred(self) -> None:
        page = parse_page({"items": [{"name": "x"}, {"name": "y"}]}, limit=10, offset=10)
        assert page.total == 12

    def test_negative_total_inferred(self) -> None:
        page = parse_page({"items": [], "total": -3}, limit=10, offset=0)
        assert page.total == 0

    def test_non_object_items_skipped(self) -> None:
        page = parse_page({"items": [{"name": "Ann"}, "junk", 3, None]}, limit=10, offset=0)
        assert [r.name for r in page.items] == ["Ann"]

    def test_items_not_list(self) -> None:
        with pytest.raises(ValueError, match="items must be a list"):
            parse_page({"items": "nope"}, limit=10, offset=0)

    def test_body_not_object(self) -> None:
        with pytest.raises(ValueError, match="expected a JSON object"):
            parse_page(None, limit=10, offset=0)
