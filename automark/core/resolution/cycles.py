"""Cycle group enumeration and the complete detection pipeline."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from ..control import parse_control
from .graph import DependencyGraph, resolve_virtuals, reduce_acyclic

logger = logging.getLogger(__name__)

GROUP_SEPARATOR = ", "


@dataclass
class CycleReport:
    """Outcome of one detection pass.

    Attributes:
        acyclic: Names whose dependency chain terminates (mark automatic)
        residual: Names left on, or feeding into, some cycle
        groups: Sorted members of each cycle group, in display order
    """
    acyclic: Set[str] = field(default_factory=set)
    residual: Set[str] = field(default_factory=set)
    groups: List[List[str]] = field(default_factory=list)

    @property
    def cycles(self) -> List[str]:
        """Groups formatted for display ("a, b, c")."""
        return [GROUP_SEPARATOR.join(group) for group in self.groups]

    @property
    def nodes(self) -> Set[str]:
        """Every node of the detection pass."""
        return self.acyclic | self.residual

    def has_cycles(self) -> bool:
        return bool(self.groups)


def find_cycle_groups(graph: DependencyGraph) -> List[List[str]]:
    """Partition a reduced graph into reachability groups.

    Starting from each node not yet claimed (in sorted order), a
    depth-first walk collects every node reachable through dependency
    edges. Nodes are claimed globally, so two cycles joined through a
    shared node end up in the same group.

    Args:
        graph: Graph already reduced by reduce_acyclic()

    Returns:
        Groups of sorted names, ordered by their formatted string
    """
    visited: Set[str] = set()
    groups = []

    for start in sorted(graph):
        if start in visited:
            continue

        group = []
        stack = [start]
        visited.add(start)
        while stack:
            name = stack.pop()
            group.append(name)
            # Reversed so that pops come out in sorted order
            for target in sorted(graph.dependencies(name), reverse=True):
                if target in graph and target not in visited:
                    visited.add(target)
                    stack.append(target)

        groups.append(sorted(group))

    groups.sort(key=GROUP_SEPARATOR.join)
    return groups


def format_cycle_groups(groups: Iterable[Iterable[str]]) -> List[str]:
    """Format groups as sorted "a, b" strings, sorted among themselves."""
    return sorted(GROUP_SEPARATOR.join(sorted(group)) for group in groups)


def detect_cycles(content: str, candidates: Optional[Iterable[str]] = None) -> CycleReport:
    """Run parse, virtual resolution, reduction and grouping on metadata text.

    Args:
        content: Control-format text describing the candidate packages
        candidates: Candidate names; those without a usable block in
            content still count as nodes (with no dependencies)

    Returns:
        CycleReport
    """
    records = parse_control(content)
    graph = DependencyGraph.from_records(records, candidates)
    logger.debug(f"Parsed {len(records)} record(s), graph has {len(graph)} node(s)")

    resolve_virtuals(graph, records)
    acyclic = reduce_acyclic(graph)
    groups = find_cycle_groups(graph)

    if groups:
        logger.info(f"Found {len(groups)} cycle group(s) among {len(graph)} package(s)")

    return CycleReport(acyclic=acyclic, residual=graph.nodes(), groups=groups)
