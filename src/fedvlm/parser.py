"""Response Parser: one node's raw JSON fragment to canonical results.

All functions here are pure and synchronous. ``parse_node`` is the
fault-isolating entry point used by the aggregator: it never raises for a
malformed node entry and returns a typed ``Failure`` instead.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fedvlm.consequence import translate
from fedvlm.errors import MalformedPayloadError
from fedvlm.models import (
    Association,
    Consequence,
    Exon,
    GeneResultSet,
    NodeFailure,
    ResultSet,
)
from fedvlm.payload import (
    RawGeneNodeResult,
    RawNodeResult,
    RawVariantRecord,
    peek_node_id,
    validate_payload,
)
from fedvlm.result import Failure, Result, Success

if TYPE_CHECKING:
    from collections.abc import Iterable

    from fedvlm.payload import RawExon
    from fedvlm.query import QueryKind

logger = logging.getLogger(__name__)


def parse_variant_result_set(
    raw: Any, *, fallback_variant_id: str | None = None
) -> ResultSet:
    """Parse one node's entry from a variant response.

    Args:
        raw: The node's JSON fragment (``{id, results, info}``).
        fallback_variant_id: Variant id to use when the node omits
            ``results`` (normally the query's own variant id).

    Raises:
        MalformedPayloadError: If required fields are missing or mistyped.
    """
    record = validate_payload(RawNodeResult, raw, peer_node_id=peek_node_id(raw))
    return _result_set_from_record(
        record,
        peer_node_id=record.id,
        fallback_variant_id=fallback_variant_id,
        exons=None,
    )


def parse_gene_result_set(raw: Any) -> GeneResultSet:
    """Parse one node's entry from a gene response.

    Variant sub-records go through the same per-result rule as a variant
    query; sub-records without their own node id inherit the enclosing one.
    The exon list is kept whole (coding and non-coding) and attached to every
    sub-result so a track can be sized from it.

    Raises:
        MalformedPayloadError: If required fields are missing or mistyped.
    """
    node = validate_payload(RawGeneNodeResult, raw, peer_node_id=peek_node_id(raw))
    exons = _exons(node.info.exons or ())
    result_sets = tuple(
        _result_set_from_record(
            record,
            peer_node_id=record.id or node.id,
            fallback_variant_id=None,
            exons=exons,
        )
        for record in node.info.variants
    )
    return GeneResultSet(
        peer_node_id=node.id,
        gene_symbol=node.info.gene_symbol,
        result_sets=result_sets,
        exons=exons,
    )


def parse_node(
    raw: Any,
    kind: QueryKind,
    *,
    index: int,
    fallback_variant_id: str | None = None,
) -> Result[ResultSet | GeneResultSet, NodeFailure]:
    """Parse one node entry, isolating failures to that node."""
    try:
        if kind == "gene":
            return Success(parse_gene_result_set(raw))
        return Success(
            parse_variant_result_set(raw, fallback_variant_id=fallback_variant_id)
        )
    except MalformedPayloadError as exc:
        peer_node_id = exc.peer_node_id or peek_node_id(raw)
        logger.warning(
            "Skipping malformed entry %d (node %s): %s",
            index,
            peer_node_id or "?",
            exc,
        )
        return Failure(NodeFailure(index=index, error=exc, peer_node_id=peer_node_id))


def coding_exons(exons: Iterable[Exon] | None) -> tuple[Exon, ...]:
    """Return only the coding exons, for drawing a gene track."""
    if not exons:
        return ()
    return tuple(exon for exon in exons if exon.is_coding)


def _result_set_from_record(
    record: RawVariantRecord,
    *,
    peer_node_id: str,
    fallback_variant_id: str | None,
    exons: tuple[Exon, ...] | None,
) -> ResultSet:
    if record.results:
        variant_id = record.results[0].id
    elif fallback_variant_id is not None:
        variant_id = fallback_variant_id
    else:
        raise MalformedPayloadError(
            f"Node {peer_node_id} returned a result without a variant id",
            hint="Each variant record needs results[0].id.",
            peer_node_id=peer_node_id,
            field="results",
        )

    info = record.info
    consequence = (
        Consequence(raw=info.consequence, label=translate(info.consequence))
        if info.consequence is not None
        else None
    )
    associations = tuple(
        Association(
            id=a.id,
            p_value=a.p_value,
            phenotype_description=a.phenotype_description,
            phenotype_id=a.phenotype_id,
        )
        for a in info.associations
    )
    return ResultSet(
        variant_id=variant_id,
        peer_node_id=peer_node_id,
        allele_count=info.ac,
        consequence=consequence,
        associations=associations,
        exons=exons,
    )


def _exons(raw_exons: Iterable[RawExon]) -> tuple[Exon, ...]:
    return tuple(
        Exon(start=e.start, stop=e.stop, feature_type=e.feature_type)
        for e in raw_exons
    )
