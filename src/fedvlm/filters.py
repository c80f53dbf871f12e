"""Node Filter: hide or show individual peer nodes without re-querying.

Every operation is pure. Exclusion sets are frozensets of node ids; an id
that is not in the registry is still a valid exclusion key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, TypeVar

if TYPE_CHECKING:
    from collections.abc import Iterable

    from fedvlm.registry import NodeRegistry


class HasPeerNode(Protocol):
    @property
    def peer_node_id(self) -> str: ...


R = TypeVar("R", bound=HasPeerNode)


def visible(result_sets: Iterable[R], excluded: Iterable[str]) -> tuple[R, ...]:
    """Return the entries whose node is not excluded, in their original order."""
    excluded_ids = excluded if isinstance(excluded, frozenset) else frozenset(excluded)
    return tuple(rs for rs in result_sets if rs.peer_node_id not in excluded_ids)


def toggle(excluded: Iterable[str], node_id: str) -> frozenset[str]:
    """Exclude *node_id* if it is shown, show it if it is excluded."""
    return frozenset(excluded) ^ {node_id}


def exclude_all(registry: NodeRegistry) -> frozenset[str]:
    """Exclude every node the registry knows about."""
    return registry.node_ids()


def exclude_none() -> frozenset[str]:
    """Show every node."""
    return frozenset()


@dataclass(frozen=True, slots=True)
class FilterState:
    """The set of node ids the user chose to hide.

    A new ``FilterState`` starts with no exclusions; every transition returns
    a new value.
    """

    excluded: frozenset[str] = frozenset()

    def toggle(self, node_id: str) -> FilterState:
        return FilterState(toggle(self.excluded, node_id))

    def exclude_all(self, registry: NodeRegistry) -> FilterState:
        return FilterState(exclude_all(registry))

    def exclude_none(self) -> FilterState:
        return FilterState(exclude_none())

    def is_excluded(self, node_id: str) -> bool:
        return node_id in self.excluded

    def apply(self, result_sets: Iterable[R]) -> tuple[R, ...]:
        return visible(result_sets, self.excluded)
