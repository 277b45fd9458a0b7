"""Tests for dependency graph reduction and cycle groups"""

import pytest

from automark.core.control import DependencyRecord, parse_control
from automark.core.resolution import (
    DependencyGraph,
    build_providers,
    find_cycle_groups,
    format_cycle_groups,
    reduce_acyclic,
    resolve_virtuals,
)


def make_graph(edges):
    return DependencyGraph(edges)


class TestDependencyGraph:
    """Tests for the graph container."""

    def test_from_records(self):
        records = {
            'a': DependencyRecord(name='a', dependencies={'b'}),
            'b': DependencyRecord(name='b', provided_names=['v']),
        }
        graph = DependencyGraph.from_records(records)
        assert graph.to_dict() == {'a': {'b'}, 'b': set()}

    def test_from_records_seeds_candidates(self):
        records = {'a': DependencyRecord(name='a', dependencies={'b'})}
        graph = DependencyGraph.from_records(records, candidates=['a', 'b'])
        assert graph.to_dict() == {'a': {'b'}, 'b': set()}

    def test_graph_owns_its_sets(self):
        deps = {'b'}
        graph = make_graph({'a': deps})
        graph.add_edge('a', 'c')
        assert deps == {'b'}

    def test_prune_dangling(self):
        graph = make_graph({'a': {'b', 'x', 'y'}, 'b': {'a'}})
        assert graph.prune_dangling() == 2
        assert graph.to_dict() == {'a': {'b'}, 'b': {'a'}}

    def test_copy_is_independent(self):
        graph = make_graph({'a': {'b'}})
        clone = graph.copy()
        clone.add_edge('a', 'c')
        assert graph.dependencies('a') == {'b'}


class TestResolveVirtuals:
    """Tests for virtual package resolution."""

    def test_build_providers(self):
        records = parse_control(
            "Package: exim\nProvides: mta\n\n"
            "Package: postfix\nProvides: mta, smtpd\n"
        )
        assert build_providers(records) == {'mta': ['exim', 'postfix'], 'smtpd': ['postfix']}

    def test_adds_provider_edges_and_keeps_virtual(self):
        records = parse_control(
            "Package: mutt\nDepends: mta\n\n"
            "Package: exim\nProvides: mta\n\n"
            "Package: postfix\nProvides: mta\n"
        )
        graph = DependencyGraph.from_records(records)
        added = resolve_virtuals(graph, records)
        assert added == 2
        assert graph.dependencies('mutt') == {'mta', 'exim', 'postfix'}

    def test_provides_not_chained(self):
        """b provides v1 and depends on v2; only the direct provider is added."""
        records = parse_control(
            "Package: a\nDepends: v1\n\n"
            "Package: b\nDepends: v2\nProvides: v1\n\n"
            "Package: c\nProvides: v2\n"
        )
        graph = DependencyGraph.from_records(records)
        resolve_virtuals(graph, records)
        assert graph.dependencies('a') == {'v1', 'b'}
        assert graph.dependencies('b') == {'v2', 'c'}

    def test_no_virtuals(self):
        records = parse_control("Package: a\nDepends: b\n\nPackage: b\nDepends: a\n")
        graph = DependencyGraph.from_records(records)
        assert resolve_virtuals(graph, records) == 0

    def test_virtual_dependency_becomes_acyclic(self):
        """X depends only on v, Y provides v: Y goes first, then X."""
        records = parse_control("Package: x\nDepends: v\n\nPackage: y\nProvides: v\n")
        graph = DependencyGraph.from_records(records)
        resolve_virtuals(graph, records)

        graph.prune_dangling()
        assert graph.leaves() == {'y'}

        assert reduce_acyclic(graph) == {'x', 'y'}
        assert len(graph) == 0


class TestReduceAcyclic:
    """Tests for the acyclic reducer."""

    def test_worked_example(self):
        """A<->B cycle, C->D chain: D then C are removed."""
        graph = make_graph({'A': {'B'}, 'B': {'A'}, 'C': {'D'}, 'D': set()})
        acyclic = reduce_acyclic(graph)
        assert acyclic == {'C', 'D'}
        assert graph.nodes() == {'A', 'B'}

    def test_removal_order(self, caplog):
        import logging
        graph = make_graph({'A': {'B'}, 'B': {'A'}, 'C': {'D'}, 'D': set()})
        with caplog.at_level(logging.DEBUG, logger='automark.core.resolution.graph'):
            reduce_acyclic(graph)
        messages = [r.getMessage() for r in caplog.records]
        assert "Acyclic pass 1: D" in messages
        assert "Acyclic pass 2: C" in messages

    def test_dangling_references_pruned(self):
        graph = make_graph({'a': {'gone', 'virtual'}, 'b': {'b'}})
        assert reduce_acyclic(graph) == {'a'}
        assert graph.to_dict() == {'b': {'b'}}

    def test_node_feeding_a_cycle_stays(self):
        graph = make_graph({'a': {'b'}, 'b': {'c'}, 'c': {'b'}})
        assert reduce_acyclic(graph) == set()
        assert graph.nodes() == {'a', 'b', 'c'}

    def test_empty_graph(self):
        graph = make_graph({})
        assert reduce_acyclic(graph) == set()
        assert len(graph) == 0

    def test_long_chain(self):
        edges = {f"p{i}": {f"p{i + 1}"} for i in range(500)}
        edges['p500'] = set()
        graph = make_graph(edges)
        assert len(reduce_acyclic(graph)) == 501
        assert len(graph) == 0


class TestReductionProperties:
    """Properties that hold for any input."""

    GRAPHS = [
        {'A': {'B'}, 'B': {'A'}, 'C': {'D'}, 'D': set()},
        {'a': {'b', 'x'}, 'b': {'c'}, 'c': {'a', 'd'}, 'd': set(), 'e': {'a'}},
        {'a': {'a'}, 'b': {'a', 'c'}, 'c': {'virtual'}},
        {'a': {'b'}, 'b': {'c'}, 'c': {'d'}, 'd': {'b'}, 'e': {'f'}, 'f': {'e', 'g'}, 'g': set()},
    ]

    @pytest.mark.parametrize("edges", GRAPHS)
    def test_idempotent(self, edges):
        graph = make_graph(edges)
        reduce_acyclic(graph)
        before = graph.to_dict()
        assert reduce_acyclic(graph) == set()
        assert graph.to_dict() == before

    @pytest.mark.parametrize("edges", GRAPHS)
    def test_conservation(self, edges):
        graph = make_graph(edges)
        acyclic = reduce_acyclic(graph)
        residual = graph.nodes()
        assert acyclic | residual == set(edges)
        assert not acyclic & residual

    @pytest.mark.parametrize("edges", GRAPHS)
    def test_residual_invariant(self, edges):
        graph = make_graph(edges)
        reduce_acyclic(graph)
        for name, deps in graph.items():
            assert deps
            assert deps <= graph.nodes()

    @pytest.mark.parametrize("edges", GRAPHS)
    def test_partition(self, edges):
        graph = make_graph(edges)
        reduce_acyclic(graph)
        groups = find_cycle_groups(graph)
        members = [name for group in groups for name in group]
        assert len(members) == len(set(members))
        assert set(members) == graph.nodes()


class TestFindCycleGroups:
    """Tests for cycle group enumeration."""

    def test_single_cycle(self):
        graph = make_graph({'A': {'B'}, 'B': {'A'}})
        assert find_cycle_groups(graph) == [['A', 'B']]
        assert format_cycle_groups(find_cycle_groups(graph)) == ['A, B']

    def test_separate_cycles(self):
        graph = make_graph({'d': {'c'}, 'c': {'d'}, 'a': {'b'}, 'b': {'a'}})
        assert find_cycle_groups(graph) == [['a', 'b'], ['c', 'd']]

    def test_shared_node_merges_groups(self):
        """A<->B and B<->D share B: one traversal from A yields all three."""
        graph = make_graph({'A': {'B', 'C'}, 'B': {'A', 'D'}, 'C': set(), 'D': {'B'}})
        reduce_acyclic(graph)
        assert graph.nodes() == {'A', 'B', 'D'}
        assert find_cycle_groups(graph) == [['A', 'B', 'D']]

    def test_feeder_joins_cycle_group(self):
        """A node pointing into a cycle is claimed by the first traversal."""
        graph = make_graph({'a': {'b'}, 'b': {'c'}, 'c': {'b'}})
        assert find_cycle_groups(graph) == [['a', 'b', 'c']]

    def test_claimed_nodes_not_repeated(self):
        """z reaches the a<->b cycle, but a and b were claimed before."""
        graph = make_graph({'a': {'b'}, 'b': {'a'}, 'z': {'a'}})
        assert find_cycle_groups(graph) == [['a', 'b'], ['z']]

    def test_deterministic(self):
        """Grouping depends on names only, not on insertion order.

        Starting from z would claim a and b in a single group.
        """
        edges = [('z', {'a'}), ('y', {'x', 'w'}), ('x', {'y'}), ('w', {'y'}),
                 ('b', {'a'}), ('a', {'b'})]
        orders = [edges, list(reversed(edges)), edges[3:] + edges[:3]]
        results = [
            find_cycle_groups(make_graph({name: set(deps) for name, deps in order}))
            for order in orders
        ]
        assert results[0] == [['a', 'b'], ['w', 'x', 'y'], ['z']]
        assert results[1] == results[0]
        assert results[2] == results[0]

    def test_groups_sorted_by_string(self):
        graph = make_graph({'b': {'c'}, 'c': {'b'}, 'a-z': {'a'}, 'a': {'a-z'}})
        assert format_cycle_groups(find_cycle_groups(graph)) == ['a, a-z', 'b, c']

    def test_large_cycle_no_recursion_limit(self):
        size = 5000
        edges = {f"p{i}": {f"p{(i + 1) % size}"} for i in range(size)}
        groups = find_cycle_groups(make_graph(edges))
        assert len(groups) == 1
        assert len(groups[0]) == size

    def test_empty(self):
        assert find_cycle_groups(make_graph({})) == []

    def test_format_sorts_members_and_groups(self):
        assert format_cycle_groups([['z', 'y'], ['b', 'a']]) == ['a, b', 'y, z']
