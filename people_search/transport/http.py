"""HTTP transport for the search API, using httpx.

Issues ``GET {base_url}{search_path}?query=...&limit=...&offset=...`` and
returns the decoded JSON body. Every failure surfaces as TransportError.
"""

import logging
from types import TracebackType
from typing import Any

import httpx

from people_search.core.config import ApiConfig
from people_search.transport.base import SearchTransport, TransportError

logger = logging.getLogger(__name__)


class HttpSearchTransport(SearchTransport):
    """Search transport backed by one ``httpx.AsyncClient``.

    Usage::

        async with HttpSearchTransport(config) as transport:
            body = await transport.search("python", limit=10, offset=0)

    A client can be injected (tests use ``httpx.MockTransport``); an injected
    client is not closed by this transport.
    """

    def __init__(self, config: ApiConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_ms / 1000.0),
            follow_redirects=True,
        )

    @property
    def transport_id(self) -> str:
        return "http"

    async def search(self, query: str, limit: int, offset: int) -> Any:
        params = {"query": query, "limit": str(limit), "offset": str(offset)}
        logger.debug("GET %s params=%s", self._config.search_path, params)
        try:
            response = await self._client.get(self._config.search_path, params=params)
        except httpx.TimeoutException as e:
            msg = f"Search request timed out after {self._config.timeout_ms} ms"
            raise TransportError(msg) from e
        except httpx.HTTPError as e:
            msg = f"Search request failed: {e}"
            raise TransportError(msg) from e

        if response.status_code >= 400:
            msg = f"Search request failed: HTTP {response.status_code}"
            raise TransportError(msg)

        try:
            return response.json()
        except ValueError as e:
            msg = "Search response is not valid JSON"
            raise TransportError(msg) from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpSearchTransport":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
