"""Query cache: aggregate responses keyed by query identity."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
import time
from typing import TYPE_CHECKING

from fedvlm._singleflight import singleflight_cached

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fedvlm.models import AggregateResponse
    from fedvlm.query import QueryKey

logger = logging.getLogger(__name__)


@dataclass
class QueryCache:
    """Successful aggregate responses, with single-flight fetching.

    Federated data changes slowly, so an entry stays fresh for as long as the
    process lives unless ``ttl_seconds`` is set. Failures are never stored.
    """

    ttl_seconds: float | None = None
    clock: Callable[[], float] = time.monotonic
    _entries: dict[QueryKey, tuple[AggregateResponse, float | None]] = field(
        default_factory=dict
    )
    _inflight: dict[QueryKey, asyncio.Future[AggregateResponse]] = field(
        default_factory=dict
    )
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def get(self, key: QueryKey) -> AggregateResponse | None:
        """Return the cached response if present and not expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self.clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: QueryKey, value: AggregateResponse) -> None:
        expires_at = (
            None
            if self.ttl_seconds is None
            else self.clock() + max(0.0, self.ttl_seconds)
        )
        self._entries[key] = (value, expires_at)

    def invalidate(self, key: QueryKey) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def is_pending(self, key: QueryKey) -> bool:
        return key in self._inflight

    def __contains__(self, key: object) -> bool:
        return key in self._entries and self.get(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_fetch(
        self,
        key: QueryKey,
        fetch: Callable[[], Awaitable[AggregateResponse]],
    ) -> AggregateResponse:
        """Return the cached response for *key* or run *fetch* once for it.

        Concurrent callers for the same key share one *fetch* call.
        """
        value, fetched = await singleflight_cached(
            key,
            lock=self._lock,
            inflight=self._inflight,
            cache_get=self.get,
            cache_set=self.set,
            work=fetch,
        )
        if not fetched:
            logger.debug("Cache hit for %s", key)
        return value
