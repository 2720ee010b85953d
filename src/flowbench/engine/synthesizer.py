# src/flowbench/engine/synthesizer.py
"""Synthesize per-table results and the dependency graph for a run.

There is no compute backend: row counts are synthetic. They are drawn from
a random generator seeded by a digest of the table set, so the same code
always produces the same figures, and editing the pipeline changes them.

Status policy:
- A table referencing an upstream name that no parsed table defines is
  WARNING (one warning per unresolved name). The graph still carries the
  edge, pointing at a placeholder node.
- A table that sits on a dependency cycle is FAILED.
- Everything else is SUCCESS.
"""

import hashlib
import json
import random
from collections.abc import Sequence

from flowbench.contracts import ParsedTable, PipelineGraph, TableResult, TableStatus
from flowbench.core.dag import DependencyGraph

BASE_DURATION_SECONDS = 10
DURATION_STEP_SECONDS = 8
LAST_TABLE_EXPECTATIONS = "3 met"
NO_EXPECTATIONS = "Not defined"


def table_set_seed(tables: Sequence[ParsedTable]) -> int:
    """Stable seed for a table set.

    Uses SHA-256 over a canonical JSON rendering (sorted keys) so the seed
    does not depend on PYTHONHASHSEED or dict ordering.
    """
    canonical = json.dumps(
        [
            {"name": t.name, "kind": t.kind.value, "upstream": list(t.upstream_names)}
            for t in tables
        ],
        sort_keys=True,
        separators=(",", ":"),
    )
    digest = hashlib.sha256(canonical.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


def synthesize_results(tables: Sequence[ParsedTable]) -> list[TableResult]:
    """Produce one TableResult per parsed table, in parse order.

    Args:
        tables: Parsed tables with unique names

    Returns:
        Results in the same order as `tables`; empty for no tables
    """
    if not tables:
        return []

    rng = random.Random(table_set_seed(tables))
    defined = {table.name for table in tables}
    cyclic = DependencyGraph.from_tables(tables).cyclic_nodes()
    last_index = len(tables) - 1

    results: list[TableResult] = []
    for index, table in enumerate(tables):
        # Draw every figure unconditionally so one table's status never shifts another's numbers
        rows_written = rng.randint(5, 54) * 1000 + rng.randint(0, 999)
        rows_updated = rng.randint(1, 10) * 1000 + rng.randint(0, 999)
        drops = rng.random() > 0.8
        dropped_count = rng.randint(1, 49)

        unresolved = tuple(name for name in table.upstream_names if name not in defined)
        if table.node_id in cyclic:
            status = TableStatus.FAILED
        elif unresolved:
            status = TableStatus.WARNING
        else:
            status = TableStatus.SUCCESS

        results.append(
            TableResult(
                id=table.node_id,
                name=table.name,
                kind=table.kind,
                status=status,
                rows_written=rows_written,
                rows_updated=rows_updated,
                dropped=dropped_count if drops else 0,
                warnings=len(unresolved),
                failed=1 if status is TableStatus.FAILED else 0,
                duration_seconds=BASE_DURATION_SECONDS + index * DURATION_STEP_SECONDS,
                expectations=LAST_TABLE_EXPECTATIONS if index == last_index else NO_EXPECTATIONS,
                file_id=table.file_id,
                unresolved_upstreams=unresolved,
            )
        )
    return results


def build_graph(
    tables: Sequence[ParsedTable],
    results: Sequence[TableResult],
) -> PipelineGraph:
    """Build the graph panel's nodes and edges.

    Every upstream reference becomes an edge upstream -> downstream; an
    unresolved name gets a placeholder node so no edge dangles.
    """
    if not tables:
        return PipelineGraph.empty()

    graph = DependencyGraph.from_tables(tables)
    return graph.to_pipeline_graph({result.id: result for result in results})
