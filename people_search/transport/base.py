"""Abstract base class for search transports."""

from abc import ABC, abstractmethod
from typing import Any


class TransportError(Exception):
    """The search API could not be reached or answered with a failure."""


class SearchTransport(ABC):
    """Base class that every transport must implement."""

    @property
    @abstractmethod
    def transport_id(self) -> str:
        """Unique identifier for this transport (e.g. 'http')."""

    @abstractmethod
    async def search(self, query: str, limit: int, offset: int) -> Any:
        """Run one search request and return the decoded response body.

        Raises:
            TransportError: On network failure, timeout or non-success status.
        """

    async def aclose(self) -> None:
        """Release any held resources. Default: nothing to release."""
