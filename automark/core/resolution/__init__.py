"""Dependency graph analysis: virtual resolution, reduction, cycle groups."""

from .graph import (
    DependencyGraph,
    build_providers,
    resolve_virtuals,
    reduce_acyclic,
)
from .cycles import (
    CycleReport,
    find_cycle_groups,
    format_cycle_groups,
    detect_cycles,
)

__all__ = [
    'DependencyGraph',
    'build_providers',
    'resolve_virtuals',
    'reduce_acyclic',
    'CycleReport',
    'find_cycle_groups',
    'format_cycle_groups',
    'detect_cycles',
]
