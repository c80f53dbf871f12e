"""Result view: filter state, display rows and messages for one mounted view.

A ``ResultView`` plays the part of the host component. Each instance starts
with no exclusions and reads whatever the orchestrator currently holds;
creating one never triggers a fetch.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from fedvlm.errors import TransportError
from fedvlm.filters import FilterState
from fedvlm.parser import coding_exons
from fedvlm.registry import DEFAULT_REGISTRY, NodeRegistry, PeerNode

if TYPE_CHECKING:
    from fedvlm.models import Exon, GeneResultSet, ResultSet
    from fedvlm.orchestrator import QueryOrchestrator, QueryState


class ViewStatus(str, Enum):
    """What the view should show right now."""

    IDLE = "idle"
    PENDING = "pending"
    ERROR = "error"
    #: No node knows the entity.
    NOT_FOUND = "not_found"
    #: The entity exists but no node returned results.
    NO_RESULTS = "no_results"
    #: Results exist but every one of them is filtered out.
    ALL_FILTERED = "all_filtered"
    RESULTS = "results"


@dataclass(frozen=True, slots=True)
class ResultRow:
    """One result set projected for display."""

    peer_node_id: str
    node_name: str
    hosting_institution: str | None
    variant_id: str
    allele_count: int
    consequence: str | None
    consequence_code: str | None
    phenotypes: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class NodeOption:
    """A node the user can include or exclude."""

    node: PeerNode
    excluded: bool
    result_count: int


@dataclass(frozen=True, slots=True)
class GeneTrack:
    """Exon layout for drawing one gene.

    The extent spans every exon so non-coding regions size the track, while
    only coding exons are drawn.
    """

    gene_symbol: str
    start: int
    stop: int
    coding_exons: tuple[Exon, ...]


def to_row(result_set: ResultSet, registry: NodeRegistry) -> ResultRow:
    node = registry.lookup(result_set.peer_node_id)
    consequence = result_set.consequence
    return ResultRow(
        peer_node_id=node.id,
        node_name=node.display_name,
        hosting_institution=node.hosting_institution,
        variant_id=result_set.variant_id,
        allele_count=result_set.allele_count,
        consequence=consequence.label if consequence else None,
        consequence_code=consequence.raw if consequence else None,
        phenotypes=tuple(a.label for a in result_set.associations if a.label),
    )


def gene_track(gene: GeneResultSet) -> GeneTrack | None:
    """Return the track layout for *gene*, or None when it has no exons."""
    if not gene.exons:
        return None
    return GeneTrack(
        gene_symbol=gene.gene_symbol,
        start=min(e.start for e in gene.exons),
        stop=max(e.stop for e in gene.exons),
        coding_exons=coding_exons(gene.exons),
    )


class ResultView:
    """Filterable view over the orchestrator's current aggregate."""

    def __init__(
        self,
        orchestrator: QueryOrchestrator,
        *,
        registry: NodeRegistry = DEFAULT_REGISTRY,
    ) -> None:
        self._orchestrator = orchestrator
        self._registry = registry
        self._filters = FilterState()

    @property
    def filters(self) -> FilterState:
        return self._filters

    @property
    def state(self) -> QueryState:
        return self._orchestrator.state

    def toggle(self, node_id: str) -> FilterState:
        self._filters = self._filters.toggle(node_id)
        return self._filters

    def exclude_all(self) -> FilterState:
        self._filters = self._filters.exclude_all(self._registry)
        return self._filters

    def exclude_none(self) -> FilterState:
        self._filters = self._filters.exclude_none()
        return self._filters

    def all_results(self) -> tuple[ResultSet, ...]:
        """Every result set of the current aggregate (empty until a success)."""
        data = self.state.data
        return data.result_sets if data is not None else ()

    def visible_results(self) -> tuple[ResultSet, ...]:
        return self._filters.apply(self.all_results())

    def rows(self) -> tuple[ResultRow, ...]:
        return tuple(to_row(rs, self._registry) for rs in self.visible_results())

    def genes(self) -> tuple[GeneResultSet, ...]:
        data = self.state.data
        if data is None:
            return ()
        return self._filters.apply(data.genes)

    def node_options(self) -> tuple[NodeOption, ...]:
        """Registry nodes followed by any unknown nodes that answered."""
        counts: dict[str, int] = {}
        for rs in self.all_results():
            counts[rs.peer_node_id] = counts.get(rs.peer_node_id, 0) + 1

        options = [
            NodeOption(node, self._filters.is_excluded(node.id), counts.get(node.id, 0))
            for node in self._registry
        ]
        data = self.state.data
        answered = data.peer_node_ids if data is not None else ()
        options.extend(
            NodeOption(
                self._registry.lookup(node_id),
                self._filters.is_excluded(node_id),
                counts.get(node_id, 0),
            )
            for node_id in answered
            if node_id not in self._registry
        )
        return tuple(options)

    @property
    def status(self) -> ViewStatus:
        state = self.state
        if state.is_pending:
            return ViewStatus.PENDING
        if state.is_error:
            return ViewStatus.ERROR
        data = state.data
        if data is None:
            return ViewStatus.IDLE
        if not data.exists:
            return ViewStatus.NOT_FOUND
        if data.is_empty:
            return ViewStatus.NO_RESULTS
        if not self.visible_results():
            return ViewStatus.ALL_FILTERED
        return ViewStatus.RESULTS

    def message(self) -> str | None:
        """User-facing text for states that have no rows to show."""
        return describe(self.status, self.state)


def describe(status: ViewStatus, state: QueryState) -> str | None:
    key = state.key
    label = key.value if key is not None else ""
    noun = "gene" if key is not None and key.kind == "gene" else "variant"
    if status is ViewStatus.PENDING:
        return f"Searching for {label}..."
    if status is ViewStatus.ERROR:
        hint = ""
        if isinstance(state.error, TransportError) and state.error.status_code:
            hint = f" (status {state.error.status_code})"
        return (
            f"There was an error looking up {noun} {label}{hint}, "
            "please try again later."
        )
    if status is ViewStatus.NOT_FOUND:
        if noun == "gene":
            return f"No gene with symbol {label} was found."
        return f"No variant with id {label} was found."
    if status is ViewStatus.NO_RESULTS:
        return f"No peer nodes returned results for {noun} {label}."
    if status is ViewStatus.ALL_FILTERED:
        return "No unfiltered results. Include at least one peer node to see results."
    return None
