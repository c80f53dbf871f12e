"""Peer-node registry: display metadata for federation participants.

The registry is plain, immutable configuration. It is injected wherever it is
needed (``Config.registry``, ``ResultView``) so tests can substitute their own
node tables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping


@dataclass(frozen=True, slots=True)
class PeerNode:
    """One data-holding participant in the federation."""

    id: str
    name: str | None = None
    hosting_institution: str | None = None

    @property
    def display_name(self) -> str:
        """Return the node name, or a synthesized ``Peer {id}`` label."""
        return self.name if self.name else f"Peer {self.id}"


@dataclass(frozen=True)
class NodeRegistry:
    """Immutable lookup table from node identifier to ``PeerNode``.

    Lookups never fail: an identifier missing from the table yields a
    synthesized node with no name and no hosting institution.
    """

    _nodes: Mapping[str, PeerNode] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_nodes", MappingProxyType(dict(self._nodes)))

    def __hash__(self) -> int:
        return hash(tuple(self._nodes.items()))

    @classmethod
    def from_nodes(cls, nodes: Iterable[PeerNode]) -> NodeRegistry:
        """Build a registry from ``PeerNode`` values, keyed by their ids."""
        return cls({node.id: node for node in nodes})

    @classmethod
    def from_mapping(cls, table: Mapping[str, Mapping[str, str | None]]) -> NodeRegistry:
        """Build a registry from ``{id: {"name": ..., "hosting_institution": ...}}``."""
        return cls(
            {
                node_id: PeerNode(
                    id=node_id,
                    name=meta.get("name"),
                    hosting_institution=meta.get("hosting_institution"),
                )
                for node_id, meta in table.items()
            }
        )

    def lookup(self, node_id: str) -> PeerNode:
        """Return the node for *node_id*, synthesizing one for unknown ids."""
        node = self._nodes.get(node_id)
        if node is None:
            return PeerNode(id=node_id)
        return node

    def display_name(self, node_id: str) -> str:
        return self.lookup(node_id).display_name

    def hosting_institution(self, node_id: str) -> str | None:
        return self.lookup(node_id).hosting_institution

    def node_ids(self) -> frozenset[str]:
        """Return the full registry key set."""
        return frozenset(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[PeerNode]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)


# TODO: source these from the federation server once it publishes node metadata.
DEFAULT_REGISTRY = NodeRegistry.from_nodes(
    [
        PeerNode("1", "gnomAD", "Broad Institute"),
        PeerNode("2", "Autism Sequencing Consortium", "Broad Institute"),
        PeerNode("3", "BipEx", "Broad Institute"),
        PeerNode("4", "Epi25", "Epi25 Collaborative"),
        PeerNode("5", "Schema", "Broad Institute"),
    ]
)
