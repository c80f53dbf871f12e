"""Canonical, immutable result types shared by parser, aggregator and view."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from fedvlm.errors import MalformedPayloadError
    from fedvlm.query import QueryKey

CODING_FEATURE_TYPE = "CDS"

AggregateStatus = Literal["ok", "partial", "error"]


@dataclass(frozen=True, slots=True)
class Association:
    """A phenotype correlation reported for a variant."""

    id: int
    p_value: float | None = None
    phenotype_description: str | None = None
    phenotype_id: str | None = None

    @property
    def label(self) -> str:
        """Return the description, falling back to the phenotype id."""
        return self.phenotype_description or self.phenotype_id or ""


@dataclass(frozen=True, slots=True)
class Consequence:
    """A consequence code in both its raw and translated forms.

    Sorting and filtering use ``raw``; display uses ``label``.
    """

    raw: str
    label: str


@dataclass(frozen=True, slots=True)
class Exon:
    """A coding or non-coding region of a gene."""

    start: int
    stop: int
    feature_type: str

    @property
    def is_coding(self) -> bool:
        return self.feature_type == CODING_FEATURE_TYPE


@dataclass(frozen=True, slots=True)
class ResultSet:
    """One peer node's answer about one variant.

    ``exons`` is ``None`` for variant queries and holds the node's full exon
    list (coding and non-coding) for gene queries.
    """

    variant_id: str
    peer_node_id: str
    allele_count: int
    consequence: Consequence | None = None
    associations: tuple[Association, ...] = ()
    exons: tuple[Exon, ...] | None = None

    @property
    def key(self) -> tuple[str, str]:
        """Identity of this result set within one aggregate response."""
        return (self.variant_id, self.peer_node_id)


@dataclass(frozen=True, slots=True)
class GeneResultSet:
    """One peer node's answer to a gene query."""

    peer_node_id: str
    gene_symbol: str
    result_sets: tuple[ResultSet, ...] = ()
    exons: tuple[Exon, ...] = ()


@dataclass(frozen=True, slots=True)
class NodeFailure:
    """A node entry that could not be parsed.

    ``index`` is the entry's position in the raw ``resultSets`` list.
    """

    index: int
    error: MalformedPayloadError
    peer_node_id: str | None = None


@dataclass(frozen=True)
class AggregateResponse:
    """Every node's answer to a single logical query.

    ``exists`` is False only when the federation reports that no node knows
    the entity at all; an existing entity with no answering nodes has
    ``exists=True`` and no result sets.
    """

    query: QueryKey
    exists: bool
    result_sets: tuple[ResultSet, ...] = ()
    genes: tuple[GeneResultSet, ...] = ()
    failures: tuple[NodeFailure, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.result_sets

    @property
    def peer_node_ids(self) -> tuple[str, ...]:
        """Node ids in order of first appearance."""
        seen: dict[str, None] = {}
        for result_set in self.result_sets:
            seen.setdefault(result_set.peer_node_id, None)
        for gene in self.genes:
            seen.setdefault(gene.peer_node_id, None)
        return tuple(seen)

    @property
    def status(self) -> AggregateStatus:
        """``"ok"`` without failures, ``"error"`` when every node failed."""
        if not self.failures:
            return "ok"
        if self.result_sets or self.genes:
            return "partial"
        return "error"
