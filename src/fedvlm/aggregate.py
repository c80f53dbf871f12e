"""Result Aggregator: per-node answers to one ``AggregateResponse``."""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import TYPE_CHECKING, Any

from fedvlm.errors import MalformedPayloadError
from fedvlm.models import AggregateResponse, GeneResultSet, NodeFailure, ResultSet
from fedvlm.parser import parse_node
from fedvlm.payload import RawResponse, validate_payload
from fedvlm.result import Success

if TYPE_CHECKING:
    from collections.abc import Iterable

    from fedvlm.query import QueryKey

logger = logging.getLogger(__name__)


def aggregate(
    result_sets: Iterable[ResultSet],
    *,
    query: QueryKey,
    exists: bool = True,
    genes: Iterable[GeneResultSet] = (),
    failures: Iterable[NodeFailure] = (),
) -> AggregateResponse:
    """Collect node result sets into a fresh ``AggregateResponse``.

    Order is preserved and nothing is de-duplicated across nodes: two nodes
    may legitimately disagree about the same variant. When the entity does not
    exist at all the result sequence is empty whatever was passed in.
    """
    if not exists:
        return AggregateResponse(query=query, exists=False)
    return AggregateResponse(
        query=query,
        exists=True,
        result_sets=tuple(result_sets),
        genes=tuple(genes),
        failures=tuple(failures),
    )


def build_aggregate(payload: Any, query: QueryKey) -> AggregateResponse:
    """Parse a raw federated response and aggregate it.

    Node entries that fail to parse are recorded as ``NodeFailure`` values and
    do not prevent the other nodes from being aggregated. A repeated
    ``(variant_id, peer_node_id)`` pair, within one node or across nodes, keeps
    the first result set and records each later one as a failure.

    Raises:
        MalformedPayloadError: If the document itself is not a federated
            response (not an object, or ``resultSets`` is not a list).
    """
    if not isinstance(payload, dict):
        raise MalformedPayloadError(
            f"Expected a JSON object for {query}, got {type(payload).__name__}",
            hint="The federation endpoint returned an unexpected document.",
        )
    response = validate_payload(RawResponse, payload)
    if not response.exists:
        logger.debug("No node knows %s", query)
        return aggregate((), query=query, exists=False)

    fallback_variant_id = query.value if query.kind == "variant" else None
    result_sets: list[ResultSet] = []
    genes: list[GeneResultSet] = []
    failures: list[NodeFailure] = []
    seen: set[tuple[str, str]] = set()

    for index, raw in enumerate(response.result_sets):
        parsed = parse_node(
            raw, query.kind, index=index, fallback_variant_id=fallback_variant_id
        )
        if not isinstance(parsed, Success):
            failures.append(parsed.error)
            continue

        value = parsed.value
        node_results = value.result_sets if isinstance(value, GeneResultSet) else (value,)
        kept: list[ResultSet] = []
        for result_set in node_results:
            if result_set.key in seen:
                failures.append(_duplicate_failure(index, result_set))
                continue
            seen.add(result_set.key)
            kept.append(result_set)

        result_sets.extend(kept)
        if isinstance(value, GeneResultSet):
            if len(kept) != len(node_results):
                value = replace(value, result_sets=tuple(kept))
            genes.append(value)

    if failures:
        logger.warning(
            "%s: %d of %d node entries could not be parsed",
            query,
            len(failures),
            len(response.result_sets),
        )
    return aggregate(
        result_sets, query=query, exists=True, genes=genes, failures=failures
    )


def _duplicate_failure(index: int, result_set: ResultSet) -> NodeFailure:
    variant_id, peer_node_id = result_set.key
    error = MalformedPayloadError(
        f"Duplicate result for variant {variant_id} from node {peer_node_id}",
        hint="A node may report each variant at most once per response.",
        peer_node_id=peer_node_id,
        field="results",
    )
    logger.warning("Skipping entry %d: %s", index, error)
    return NodeFailure(index=index, error=error, peer_node_id=peer_node_id)
