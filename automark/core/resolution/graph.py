"""Dependency graph, virtual package resolution and acyclic reduction."""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Set

from ..control import DependencyRecord

logger = logging.getLogger(__name__)


class DependencyGraph:
    """Mapping of package name to the set of names it depends on.

    The graph owns its dependency sets: resolve_virtuals() adds edges to
    them and reduce_acyclic() removes edges and nodes in place.
    """

    def __init__(self, edges: Optional[Mapping[str, Iterable[str]]] = None):
        self._edges: Dict[str, Set[str]] = {}
        if edges:
            for name, deps in edges.items():
                self._edges[name] = set(deps)

    @classmethod
    def from_records(cls, records: Mapping[str, DependencyRecord],
                     candidates: Optional[Iterable[str]] = None) -> 'DependencyGraph':
        """Build a graph from parsed records.

        Args:
            records: Dict of name -> DependencyRecord (from the control parser)
            candidates: Extra node names; a candidate without a record
                becomes a node with no dependencies

        Returns:
            New DependencyGraph
        """
        graph = cls()
        for name, record in records.items():
            graph._edges[name] = set(record.dependencies)
        for name in candidates or ():
            graph._edges.setdefault(name, set())
        return graph

    def __contains__(self, name: str) -> bool:
        return name in self._edges

    def __len__(self) -> int:
        return len(self._edges)

    def __iter__(self):
        return iter(self._edges)

    def dependencies(self, name: str) -> Set[str]:
        """Live dependency set of a node (not a copy)."""
        return self._edges[name]

    def nodes(self) -> Set[str]:
        return set(self._edges)

    def items(self):
        return self._edges.items()

    def copy(self) -> 'DependencyGraph':
        return DependencyGraph(self._edges)

    def to_dict(self) -> Dict[str, Set[str]]:
        return {name: set(deps) for name, deps in self._edges.items()}

    def add_edge(self, name: str, target: str):
        self._edges[name].add(target)

    def prune_dangling(self) -> int:
        """Drop every edge whose target is not a node.

        Returns:
            Number of edges removed
        """
        removed = 0
        for deps in self._edges.values():
            dangling = [target for target in deps if target not in self._edges]
            for target in dangling:
                deps.discard(target)
            removed += len(dangling)
        return removed

    def leaves(self) -> Set[str]:
        """Nodes with an empty dependency set."""
        return {name for name, deps in self._edges.items() if not deps}

    def remove_nodes(self, names: Iterable[str]):
        for name in names:
            del self._edges[name]


def build_providers(records: Mapping[str, DependencyRecord]) -> Dict[str, List[str]]:
    """Map each provided (virtual) name to the packages providing it.

    Returns:
        Dict of virtual name -> provider names, in record order
    """
    providers: Dict[str, List[str]] = {}
    for name, record in records.items():
        for provided in record.provided_names:
            providers.setdefault(provided, []).append(name)
    return providers


def resolve_virtuals(graph: DependencyGraph,
                     records: Mapping[str, DependencyRecord]) -> int:
    """Add an edge to every concrete provider of a depended-on virtual name.

    The edge to the virtual name itself is kept; it dangles and is pruned by
    reduce_acyclic(). Provides are not chained, so one pass is enough.

    Args:
        graph: Graph to update in place
        records: Parsed records holding the provides lists

    Returns:
        Number of edges added
    """
    providers = build_providers(records)
    added = 0
    for name, deps in graph.items():
        new_targets = set()
        for target in deps:
            for provider in providers.get(target, ()):
                if provider not in deps:
                    new_targets.add(provider)
        if new_targets:
            logger.debug(f"{name}: virtual dependencies resolve to {sorted(new_targets)}")
            deps |= new_targets
            added += len(new_targets)
    return added


def reduce_acyclic(graph: DependencyGraph) -> Set[str]:
    """Strip every node whose dependency chain ends without a cycle.

    Each pass first prunes edges pointing outside the graph, then removes
    the nodes left without dependencies. Stops after a pass removing
    nothing; there are at most len(graph) + 1 passes.

    On return every remaining node has a non-empty dependency set made only
    of remaining nodes.

    Args:
        graph: Graph to reduce in place

    Returns:
        Names removed from the graph
    """
    acyclic: Set[str] = set()
    passes = 0

    while True:
        passes += 1
        graph.prune_dangling()
        leaves = graph.leaves()
        if not leaves:
            break
        logger.debug(f"Acyclic pass {passes}: {', '.join(sorted(leaves))}")
        graph.remove_nodes(leaves)
        acyclic |= leaves

    logger.debug(f"Reduction done after {passes} pass(es): "
                 f"{len(acyclic)} acyclic, {len(graph)} residual")
    return acyclic
