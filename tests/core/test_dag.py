# tests/core/test_dag.py
"""Tests for the table dependency graph."""

from collections.abc import Callable

import pytest

from flowbench.contracts import ParsedTable

TableFactory = Callable[..., ParsedTable]


class TestDependencyGraphBuilder:
    """Building graphs node by node."""

    def test_empty_graph(self) -> None:
        from flowbench.core.dag import DependencyGraph

        graph = DependencyGraph()
        assert graph.node_count == 0
        assert graph.edge_count == 0
        assert graph.positions() == {}

    def test_add_edge_requires_both_nodes(self) -> None:
        from flowbench.contracts import TableKind
        from flowbench.core.dag import DependencyGraph

        graph = DependencyGraph()
        graph.add_node("table-a", name="a", kind=TableKind.VIEW)

        with pytest.raises(KeyError, match="table-b"):
            graph.add_edge("table-a", "table-b")

    def test_get_node_info_missing(self) -> None:
        from flowbench.core.dag import DependencyGraph

        with pytest.raises(KeyError):
            DependencyGraph().get_node_info("nope")


class TestFromTables:
    """Graph construction from parsed tables."""

    def test_linear_chain(self, make_table: TableFactory) -> None:
        from flowbench.core.dag import DependencyGraph

        graph = DependencyGraph.from_tables(
            [make_table("raw"), make_table("clean", "raw"), make_table("agg", "clean")]
        )

        assert graph.node_count == 3
        assert set(graph.get_edges()) == {("table-raw", "table-clean"), ("table-clean", "table-agg")}
        assert graph.is_acyclic()
        assert graph.levels() == {"table-raw": 0, "table-clean": 1, "table-agg": 2}

    def test_unresolved_upstream_becomes_placeholder(self, make_table: TableFactory) -> None:
        from flowbench.core.dag import DependencyGraph

        graph = DependencyGraph.from_tables([make_table("a", "ghost"), make_table("b", "ghost")])

        info = graph.get_node_info("table-ghost")
        assert info.is_placeholder
        assert info.source_node_id == "table-a"
        assert graph.node_count == 3
        assert set(graph.get_edges()) == {("table-ghost", "table-a"), ("table-ghost", "table-b")}

    def test_table_defined_after_reference_is_not_a_placeholder(self, make_table: TableFactory) -> None:
        from flowbench.core.dag import DependencyGraph

        graph = DependencyGraph.from_tables([make_table("b", "a"), make_table("a")])

        assert not graph.get_node_info("table-a").is_placeholder
        assert graph.node_count == 2

    def test_cycle_members(self, make_table: TableFactory) -> None:
        from flowbench.core.dag import DependencyGraph

        graph = DependencyGraph.from_tables(
            [make_table("a", "c"), make_table("b", "a"), make_table("c", "b"), make_table("d", "c")]
        )

        assert not graph.is_acyclic()
        assert graph.cyclic_nodes() == {"table-a", "table-b", "table-c"}

    def test_cycle_still_gets_finite_levels(self, make_table: TableFactory) -> None:
        from flowbench.core.dag import DependencyGraph

        graph = DependencyGraph.from_tables([make_table("a", "b"), make_table("b", "a"), make_table("c", "a")])
        levels = graph.levels()

        assert levels["table-a"] == levels["table-b"] == 0
        assert levels["table-c"] == 1

    def test_longest_path_level(self, make_table: TableFactory) -> None:
        """A node sits one level right of its deepest upstream."""
        from flowbench.core.dag import DependencyGraph

        graph = DependencyGraph.from_tables(
            [make_table("a"), make_table("b", "a"), make_table("c", "a", "b")]
        )

        assert graph.levels()["table-c"] == 2


class TestLayout:
    """Node positions for the graph panel."""

    def test_single_node(self, make_table: TableFactory) -> None:
        from flowbench.core.dag import DependencyGraph

        graph = DependencyGraph.from_tables([make_table("only")])
        assert graph.positions() == {"table-only": (80.0, 160.0)}

    def test_rows_centred_per_level(self, make_table: TableFactory) -> None:
        from flowbench.core.dag import DependencyGraph

        graph = DependencyGraph.from_tables(
            [make_table("a"), make_table("b"), make_table("c", "a", "b")]
        )
        positions = graph.positions()

        assert positions["table-a"] == (80.0, 80.0)
        assert positions["table-b"] == (80.0, 240.0)
        assert positions["table-c"] == (430.0, 160.0)


class TestToPipelineGraph:
    """Projection to the immutable graph contract."""

    def test_edge_ids_and_record_counts(self, make_table: TableFactory) -> None:
        from flowbench.contracts import TableResult, TableStatus
        from flowbench.core.dag import DependencyGraph

        a, b = make_table("a"), make_table("b", "a")
        result_a = TableResult(
            id="table-a",
            name="a",
            kind=a.kind,
            status=TableStatus.SUCCESS,
            rows_written=12_500,
            rows_updated=2_000,
            dropped=7,
            warnings=0,
            failed=0,
            duration_seconds=10,
            expectations="Not defined",
            file_id="file-1",
        )

        graph = DependencyGraph.from_tables([a, b]).to_pipeline_graph({"table-a": result_a})

        (edge,) = graph.edges
        assert edge.id == "table-a-table-b"
        assert (edge.source, edge.target) == ("table-a", "table-b")
        assert edge.record_count == "12K"
        assert not edge.is_dashed

        node_a = graph.get_node("table-a")
        assert node_a.duration == "10s"
        assert node_a.output_records == "12K"
        assert node_a.dropped_records == 7
        assert node_a.node_type == "materialized"

    def test_placeholder_node_projection(self, make_table: TableFactory) -> None:
        from flowbench.contracts import NodeStatus
        from flowbench.core.dag import DependencyGraph

        graph = DependencyGraph.from_tables([make_table("a", "ghost")]).to_pipeline_graph({})

        ghost = graph.get_node("table-ghost")
        assert ghost.status is NodeStatus.PLACEHOLDER
        assert ghost.is_placeholder
        assert ghost.duration == "-"
        assert ghost.source_node_id == "table-a"
        (edge,) = graph.edges
        assert edge.is_dashed
        assert edge.record_count is None

    def test_every_edge_endpoint_is_a_node(self, make_table: TableFactory) -> None:
        from flowbench.core.dag import DependencyGraph

        tables = [make_table("a", "x", "y"), make_table("b", "a", "x"), make_table("c", "b", "z")]
        graph = DependencyGraph.from_tables(tables).to_pipeline_graph({})

        ids = {node.id for node in graph.nodes}
        for edge in graph.edges:
            assert edge.source in ids
            assert edge.target in ids
