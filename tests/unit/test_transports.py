"""Tests for the HTTP and file transports and the transport registry."""

import json
from pathlib import Path

import httpx
import pytest

from people_search.core.config import ApiConfig
from people_search.transport import available_transports, get_transport
from people_search.transport.base import TransportError
from people_search.transport.file import FileSearchTransport
from people_search.transport.http import HttpSearchTransport


def _http_transport(handler: object, **config: object) -> HttpSearchTransport:
    api = ApiConfig(base_url="https://people.example.com", **config)  # type: ignore[arg-type]
    client = httpx.AsyncClient(
        base_url=api.base_url,
        transport=httpx.MockTransport(handler),  # type: ignore[arg-type]
    )
    return HttpSearchTransport(api, client=client)


# ---------------------------------------------------------------------------
# HttpSearchTransport
# ---------------------------------------------------------------------------


class TestHttpSearchTransport:
    async def test_request_shape(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"items": [], "hasMore": False, "total": 0})

        transport = _http_transport(handler)
        body = await transport.search("python developers", limit=10, offset=20)

        assert body == {"items": [], "hasMore": False, "total": 0}
        assert len(seen) == 1
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/search"
        assert request.url.params["query"] == "python developers"
        assert request.url.params["limit"] == "10"
        assert request.url.params["offset"] == "20"

    async def test_custom_search_path(self) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json={})

        await _http_transport(handler, search_path="/api/v2/search").search("q", 5, 0)
        assert paths == ["/api/v2/search"]

    async def test_http_error_status(self) -> None:
        transport = _http_transport(lambda request: httpx.Response(503))
        with pytest.raises(TransportError, match="HTTP 503"):
            await transport.search("q", 10, 0)

    async def test_invalid_json(self) -> None:
        transport = _http_transport(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(TransportError, match="not valid JSON"):
            await transport.search("q", 10, 0)

    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(TransportError, match="timed out"):
            await _http_transport(handler, timeout_ms=500).search("q", 10, 0)

    async def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TransportError, match="refused"):
            await _http_transport(handler).search("q", 10, 0)

    async def test_injected_client_not_closed(self) -> None:
        transport = _http_transport(lambda request: httpx.Response(200, json={}))
        await transport.aclose()
        assert await transport.search("q", 10, 0) == {}

    async def test_owned_client_closed_by_context_manager(self) -> None:
        async with HttpSearchTransport(ApiConfig()) as transport:
            assert transport.transport_id == "http"
        assert transport._client.is_closed


# ---------------------------------------------------------------------------
# FileSearchTransport
# ---------------------------------------------------------------------------


@pytest.fixture
def corpus(tmp_path: Path) -> Path:
    path = tmp_path / "people.json"
    path.write_text(json.dumps([
        {"name": "Ann", "role": "Software Engineer", "skills": "Python, Go"},
        {"name": "Bo", "role": "Designer", "skills": ["Figma"]},
        {"name": "Cy", "role": "Python Developer"},
        "not a record",
    ]))
    return path


class TestFileSearchTransport:
    async def test_matches_all_words(self, corpus: Path) -> None:
        body = await FileSearchTransport(corpus).search("python engineer", limit=10, offset=0)
        assert [i["name"] for i in body["items"]] == ["Ann"]
        assert body["total"] == 1
        assert body["hasMore"] is False

    async def test_empty_query_matches_everything(self, corpus: Path) -> None:
        body = await FileSearchTransport(corpus).search("", limit=10, offset=0)
        assert body["total"] == 3

    async def test_pagination(self, corpus: Path) -> None:
        transport = FileSearchTransport(corpus)
        first = await transport.search("", limit=2, offset=0)
        second = await transport.search("", limit=2, offset=2)
        assert [i["name"] for i in first["items"]] == ["Ann", "Bo"]
        assert first["hasMore"] is True
        assert [i["name"] for i in second["items"]] == ["Cy"]
        assert second["hasMore"] is False

    def test_wrapped_corpus(self, tmp_path: Path) -> None:
        path = tmp_path / "wrapped.json"
        path.write_text(json.dumps({"people": [{"name": "Ann"}]}))
        assert FileSearchTransport(path).transport_id == "file"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(TransportError, match="not found"):
            FileSearchTransport(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{")
        with pytest.raises(TransportError, match="Failed to load"):
            FileSearchTransport(path)

    def test_not_a_list(self, tmp_path: Path) -> None:
        path = tmp_path / "scalar.json"
        path.write_text("42")
        with pytest.raises(TransportError, match="list of records"):
            FileSearchTransport(path)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegistry:
    def test_available(self) -> None:
        assert available_transports() == ["file", "http"]

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown transport 'grpc'"):
            get_transport("grpc", ApiConfig())

    async def test_http(self) -> None:
        transport = get_transport("http", ApiConfig())
        assert isinstance(transport, HttpSearchTransport)
        await transport.aclose()

    def test_file_requires_fixture(self) -> None:
        with pytest.raises(ValueError, match="fixture_path"):
            get_transport("file", ApiConfig())

    def test_file(self, corpus: Path) -> None:
        transport = get_transport("file", ApiConfig(fixture_path=str(corpus)))
        assert isinstance(transport, FileSearchTransport)
