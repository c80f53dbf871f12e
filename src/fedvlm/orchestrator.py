"""Query Orchestrator: a keyed state machine over federated fetches.

States move ``IDLE -> PENDING -> {SUCCESS, ERROR}``. Submitting a different
key goes back to ``PENDING`` and drops the previous key's data or error, so a
view never shows results that belong to another query. Responses that arrive
for a key the orchestrator has moved away from are cached but do not touch
the current state.

Refetching is driven by key identity only: reading state, mounting a new
view or re-submitting a key that already succeeded never hits the transport.
Nothing is retried automatically.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
import logging
from typing import TYPE_CHECKING

from fedvlm.aggregate import build_aggregate
from fedvlm.cache import QueryCache
from fedvlm.errors import FedVLMError, InternalError
from fedvlm.query import QueryKey, classify

if TYPE_CHECKING:
    from fedvlm.config import Config
    from fedvlm.models import AggregateResponse
    from fedvlm.transport import Transport

logger = logging.getLogger(__name__)


class QueryPhase(str, Enum):
    """Lifecycle phase of the current query."""

    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class QueryState:
    """Snapshot of the orchestrator for one query key."""

    key: QueryKey | None = None
    phase: QueryPhase = QueryPhase.IDLE
    data: AggregateResponse | None = None
    error: BaseException | None = None

    def __post_init__(self) -> None:
        """Keep phase and payload consistent."""
        if self.phase is QueryPhase.SUCCESS and self.data is None:
            raise InternalError("SUCCESS state requires data")
        if self.phase is QueryPhase.ERROR and self.error is None:
            raise InternalError("ERROR state requires an error")
        if self.phase is not QueryPhase.IDLE and self.key is None:
            raise InternalError(f"{self.phase.value} state requires a query key")

    @property
    def is_pending(self) -> bool:
        return self.phase is QueryPhase.PENDING

    @property
    def is_error(self) -> bool:
        return self.phase is QueryPhase.ERROR

    @property
    def is_success(self) -> bool:
        return self.phase is QueryPhase.SUCCESS


IDLE = QueryState()


class QueryOrchestrator:
    """Issue federated queries and expose their pending/error/success state.

    Example:
        async with HttpTransport.from_config(config) as transport:
            orchestrator = QueryOrchestrator(transport)
            state = await orchestrator.submit("BRCA1")
            if state.is_success:
                print(len(state.data.result_sets))
    """

    def __init__(
        self, transport: Transport, *, cache: QueryCache | None = None
    ) -> None:
        self._transport = transport
        self._cache = cache if cache is not None else QueryCache()
        self._state: QueryState = IDLE

    @classmethod
    def from_config(cls, transport: Transport, config: Config) -> QueryOrchestrator:
        """Build an orchestrator whose cache honours ``config.cache_ttl_seconds``."""
        return cls(transport, cache=QueryCache(ttl_seconds=config.cache_ttl_seconds))

    @property
    def state(self) -> QueryState:
        return self._state

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @property
    def current_key(self) -> QueryKey | None:
        return self._state.key

    async def submit(self, query: QueryKey | str) -> QueryState:
        """Run *query* (a key or a raw search term) and return its final state.

        A raw term is classified once here. When another key is submitted
        before this one finishes, the returned state still describes *query*
        but the orchestrator's ``state`` stays on the newer key.
        """
        key = query if isinstance(query, QueryKey) else classify(query)

        cached = self._cache.get(key)
        if cached is not None:
            state = QueryState(key=key, phase=QueryPhase.SUCCESS, data=cached)
            self._transition(state)
            return state

        if not (self._state.key == key and self._state.is_pending):
            self._transition(QueryState(key=key, phase=QueryPhase.PENDING))

        try:
            data = await self._cache.get_or_fetch(key, lambda: self._fetch(key))
        except asyncio.CancelledError:
            raise
        except FedVLMError as exc:
            logger.warning("Query %s failed: %s", key, exc)
            state = QueryState(key=key, phase=QueryPhase.ERROR, error=exc)
        except Exception as exc:
            # Third-party transports may raise anything; it is still an error state.
            logger.warning("Query %s failed unexpectedly", key, exc_info=True)
            state = QueryState(key=key, phase=QueryPhase.ERROR, error=exc)
        else:
            state = QueryState(key=key, phase=QueryPhase.SUCCESS, data=data)

        if self._state.key == key:
            self._transition(state)
        else:
            logger.debug(
                "Dropping late %s for %s; current query is %s",
                state.phase.value,
                key,
                self._state.key,
            )
        return state

    def reset(self) -> None:
        """Return to ``IDLE``; cached responses are kept."""
        self._transition(IDLE)

    async def _fetch(self, key: QueryKey) -> AggregateResponse:
        payload = await self._transport.fetch(key)
        return build_aggregate(payload, key)

    def _transition(self, state: QueryState) -> None:
        previous = self._state
        if previous.key != state.key or previous.phase is not state.phase:
            logger.debug(
                "%s %s -> %s %s",
                previous.key or "-",
                previous.phase.value,
                state.key or "-",
                state.phase.value,
            )
        self._state = state
