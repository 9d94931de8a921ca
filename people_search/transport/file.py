"""Local JSON corpus transport for offline runs.

The corpus is a JSON array of records, or an object with an ``items`` /
``people`` array. Matching is a case-insensitive substring test of every
query word against the record's searchable text; order is the file order.
"""

import json
import logging
from pathlib import Path
from typing import Any

from people_search.core.schemas import Record
from people_search.transport.base import SearchTransport, TransportError

logger = logging.getLogger(__name__)


class FileSearchTransport(SearchTransport):
    """Serves pages from a JSON file loaded once at construction."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._items = _load_items(self._path)
        logger.info("Loaded %d records from %s", len(self._items), self._path)

    @property
    def transport_id(self) -> str:
        return "file"

    async def search(self, query: str, limit: int, offset: int) -> Any:
        words = [w for w in query.lower().split() if w]
        matches = [item for item in self._items if _matches(item, words)]
        page = matches[offset:offset + limit]
        return {
            "items": page,
            "hasMore": offset + limit < len(matches),
            "total": len(matches),
        }


def _load_items(path: Path) -> list[dict[str, Any]]:
    if not path.exists():
        msg = f"Fixture file not found: {path}"
        raise TransportError(msg)
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        msg = f"Failed to load fixture {path}: {e}"
        raise TransportError(msg) from e
    if isinstance(data, dict):
        data = data.get("items", data.get("people", []))
    if not isinstance(data, list):
        msg = f"Fixture {path} does not contain a list of records"
        raise TransportError(msg)
    return [item for item in data if isinstance(item, dict)]


def _matches(item: dict[str, Any], words: list[str]) -> bool:
    if not words:
        return True
    text = Record.from_wire(item).search_text.lower()
    return all(w in text for w in words)
