"""AccumulationBuffer: merges successive pages of one query into one list.

Merge rules:
  1. Token mismatch (other query, or an older generation of the same query)
     -> page discarded. This stands in for request cancellation.
  2. offset == 0          -> items replaced (a fresh search never appends)
  3. offset == next       -> items appended in received order
  4. offset >  next       -> parked until its predecessor has been applied
  5. 0 < offset < next    -> already applied, discarded

The buffer is immutable; reset() and merge() return a new buffer, so readers
never observe a half-applied page. Records repeated across pages are kept
unless ``dedupe_field`` names a stable identity field.
"""

import logging

from pydantic import BaseModel, ConfigDict, Field

from people_search.core.schemas import AccumulatedResult, Page, QueryToken, Record

logger = logging.getLogger(__name__)


class AccumulationBuffer(BaseModel):
    """Accumulated items plus the bookkeeping needed to merge safely."""

    model_config = ConfigDict(frozen=True)

    token: QueryToken = Field(default_factory=QueryToken)
    items: tuple[Record, ...] = ()
    has_more: bool = False
    total: int = Field(default=0, ge=0)
    next_offset: int = Field(default=0, ge=0)
    loaded: bool = False
    parked: tuple[Page, ...] = ()
    version: int = Field(default=0, ge=0)
    dedupe_field: str | None = None

    @property
    def query(self) -> str:
        return self.token.query

    @property
    def result(self) -> AccumulatedResult:
        return AccumulatedResult(
            query=self.token.query,
            items=self.items,
            has_more=self.has_more,
            total=self.total,
        )

    def is_bound_to(self, token: QueryToken) -> bool:
        return token == self.token

    def reset(self, query: str) -> "AccumulationBuffer":
        """Return an empty buffer bound to ``query`` under a fresh token."""
        token = QueryToken(query=query, generation=self.token.generation + 1)
        logger.debug("Buffer reset: '%s' -> '%s' (generation %d)", self.query, query, token.generation)
        return AccumulationBuffer(
            token=token,
            version=self.version + 1,
            dedupe_field=self.dedupe_field,
        )

    def merge(self, page: Page, token: QueryToken) -> "AccumulationBuffer":
        """Merge ``page`` fetched under ``token`` and return the new buffer."""
        if token != self.token:
            logger.warning(
                "Discarding stale page for '%s' (offset=%d): buffer is bound to '%s'",
                token.query, page.offset, self.query,
            )
            return self

        if page.offset == 0:
            merged = self._apply(page, replace=True)
        elif page.offset == self.next_offset:
            merged = self._apply(page, replace=False)
        elif page.offset > self.next_offset:
            logger.debug("Parking early page at offset %d (waiting for %d)", page.offset, self.next_offset)
            kept = tuple(p for p in self.parked if p.offset != page.offset)
            return self.model_copy(
                update={"parked": tuple(sorted((*kept, page), key=lambda p: p.offset))},
            )
        else:
            logger.warning("Discarding page at offset %d: already applied", page.offset)
            return self

        return merged._drain()

    def _apply(self, page: Page, *, replace: bool) -> "AccumulationBuffer":
        existing = () if replace else self.items
        new_items = self._dedupe(existing, page.items)
        return self.model_copy(
            update={
                "items": (*existing, *new_items),
                "has_more": page.has_more,
                "total": page.total,
                "next_offset": page.offset + page.limit,
                "loaded": True,
                "version": self.version + 1,
            },
        )

    def _drain(self) -> "AccumulationBuffer":
        """Apply parked pages that have become contiguous; drop obsolete ones."""
        buffer = self
        while buffer.parked:
            ready = [p for p in buffer.parked if p.offset == buffer.next_offset]
            pending = tuple(p for p in buffer.parked if p.offset > buffer.next_offset)
            dropped = len(buffer.parked) - len(pending) - len(ready)
            if dropped:
                logger.debug("Dropping %d parked pages behind offset %d", dropped, buffer.next_offset)
            buffer = buffer.model_copy(update={"parked": pending})
            if not ready:
                break
            buffer = buffer._apply(ready[0], replace=False)
        return buffer

    def _dedupe(self, existing: tuple[Record, ...], incoming: tuple[Record, ...]) -> tuple[Record, ...]:
        if self.dedupe_field is None:
            return incoming
        seen = {_identity_key(r, self.dedupe_field) for r in existing}
        seen.discard(None)
        result: list[Record] = []
        for record in incoming:
            key = _identity_key(record, self.dedupe_field)
            if key is not None and key in seen:
                continue
            if key is not None:
                seen.add(key)
            result.append(record)
        removed = len(incoming) - len(result)
        if removed:
            logger.debug("Dedupe on '%s': removed %d records", self.dedupe_field, removed)
        return tuple(result)


def _identity_key(record: Record, field: str) -> str | None:
    value = record.identity(field)
    return None if value is None else str(value)
