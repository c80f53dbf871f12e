"""fedvlm: Search a federated variant network and normalize node answers.

Public API:
    - search(): One-shot federated query returning a QueryState
    - QueryOrchestrator: Keyed pending/error/success state machine
    - ResultView: Per-view node filtering and display rows
    - Config: Configuration dataclass
"""

from __future__ import annotations

import logging

from fedvlm.aggregate import aggregate, build_aggregate
from fedvlm.cache import QueryCache
from fedvlm.config import Config
from fedvlm.consequence import translate
from fedvlm.errors import (
    ConfigurationError,
    FedVLMError,
    InternalError,
    MalformedPayloadError,
    QueryError,
    TransportError,
)
from fedvlm.filters import FilterState, exclude_all, exclude_none, toggle, visible
from fedvlm.models import (
    AggregateResponse,
    Association,
    Consequence,
    Exon,
    GeneResultSet,
    NodeFailure,
    ResultSet,
)
from fedvlm.orchestrator import QueryOrchestrator, QueryPhase, QueryState
from fedvlm.query import QueryKey, classify, looks_like_variant_id
from fedvlm.registry import DEFAULT_REGISTRY, NodeRegistry, PeerNode
from fedvlm.transport import HttpTransport, StaticTransport, Transport, build_transport
from fedvlm.view import ResultView, ViewStatus

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("fedvlm")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("fedvlm").addHandler(logging.NullHandler())

logger = logging.getLogger(__name__)


async def search(
    term: str | QueryKey,
    *,
    config: Config | None = None,
    transport: Transport | None = None,
) -> QueryState:
    """Run a single federated query.

    Args:
        term: A gene symbol, a ``chrom-pos-ref-alt`` variant id, or a QueryKey.
        config: Endpoints and registry. Defaults to ``Config()``.
        transport: Optional transport override (the caller then owns it).

    Returns:
        The final QueryState (SUCCESS with an AggregateResponse, or ERROR).

    Example:
        state = await search("13-42298583-A-G", config=Config(use_mock=True))
        for result_set in state.data.result_sets:
            print(result_set.peer_node_id, result_set.allele_count)
    """
    config = config or Config()
    owns_transport = transport is None
    if transport is None:
        transport = build_transport(config)

    try:
        return await QueryOrchestrator.from_config(transport, config).submit(term)
    finally:
        aclose = getattr(transport, "aclose", None)
        if owns_transport and callable(aclose):
            try:
                await aclose()
            except Exception as exc:
                # Cleanup should never mask the primary failure.
                logger.warning("Transport cleanup failed: %s", exc)


__all__ = [
    "DEFAULT_REGISTRY",
    "AggregateResponse",
    "Association",
    "Config",
    "ConfigurationError",
    "Consequence",
    "Exon",
    "FedVLMError",
    "FilterState",
    "GeneResultSet",
    "HttpTransport",
    "InternalError",
    "MalformedPayloadError",
    "NodeFailure",
    "NodeRegistry",
    "PeerNode",
    "QueryCache",
    "QueryError",
    "QueryKey",
    "QueryOrchestrator",
    "QueryPhase",
    "QueryState",
    "ResultSet",
    "ResultView",
    "StaticTransport",
    "Transport",
    "TransportError",
    "ViewStatus",
    "aggregate",
    "build_aggregate",
    "build_transport",
    "classify",
    "exclude_all",
    "exclude_none",
    "looks_like_variant_id",
    "search",
    "toggle",
    "translate",
    "visible",
]
