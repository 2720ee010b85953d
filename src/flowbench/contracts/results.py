"""Run outcomes and derived artifacts.

These types answer: "What did the last run produce?"

IMPORTANT:
- Every type here is frozen and uses tuples for collections. Snapshots are
  handed to UI panels by reference and must never be mutated.
- TableResult figures are synthetic but deterministic for a given table set.
"""

from dataclasses import dataclass, field
from datetime import datetime

from flowbench.contracts.enums import (
    HistoryStatus,
    NodeStatus,
    SourceLanguage,
    SourceOrigin,
    TableKind,
    TableStatus,
)


def format_duration(seconds: int) -> str:
    """Format whole seconds as the editor shows them ("45s", "2m 5s")."""
    minutes, remaining = divmod(max(seconds, 0), 60)
    if minutes > 0:
        return f"{minutes}m {remaining}s"
    return f"{remaining}s"


def format_count(count: int) -> str:
    """Format a row count in thousands ("12K"), or verbatim below 1000."""
    if count >= 1000:
        return f"{count // 1000}K"
    return str(count)


def table_node_id(name: str) -> str:
    """Node and result id for a table name.

    Placeholder nodes use the same scheme, so a table defined later under
    the referenced name would take over the placeholder's id.
    """
    return f"table-{name}"


@dataclass(frozen=True)
class ParsedTable:
    """A table definition extracted from source text."""

    name: str
    kind: TableKind
    upstream_names: tuple[str, ...]
    file_id: str
    origin: SourceOrigin
    language: SourceLanguage

    @property
    def node_id(self) -> str:
        return table_node_id(self.name)


@dataclass(frozen=True)
class TableResult:
    """Synthesized execution result for one table.

    unresolved_upstreams lists upstream names no parsed table defines;
    a non-empty list is why status is WARNING.
    """

    id: str
    name: str
    kind: TableKind
    status: TableStatus
    rows_written: int
    rows_updated: int
    dropped: int
    warnings: int
    failed: int
    duration_seconds: int
    expectations: str
    file_id: str
    unresolved_upstreams: tuple[str, ...] = ()

    @property
    def duration_label(self) -> str:
        return format_duration(self.duration_seconds)

    @property
    def written_label(self) -> str:
        return format_count(self.rows_written)

    @property
    def updated_label(self) -> str:
        return format_count(self.rows_updated)


@dataclass(frozen=True)
class GraphNode:
    """Node in the pipeline graph visualization."""

    id: str
    name: str
    node_type: str
    status: NodeStatus
    duration: str
    output_records: str
    position: tuple[float, float]
    dropped_records: int | None = None
    file_id: str | None = None
    is_placeholder: bool = False
    source_node_id: str | None = None


@dataclass(frozen=True)
class GraphEdge:
    """Directed edge, upstream -> downstream (the direction data flows)."""

    id: str
    source: str
    target: str
    record_count: str | None = None
    is_dashed: bool = False


@dataclass(frozen=True)
class PipelineGraph:
    """Nodes and edges for the graph panel.

    Invariant: every edge endpoint is the id of a node in `nodes`.
    """

    nodes: tuple[GraphNode, ...] = field(default_factory=tuple)
    edges: tuple[GraphEdge, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> "PipelineGraph":
        return cls(nodes=(), edges=())

    def get_node(self, node_id: str) -> GraphNode:
        """Get a node by id.

        Raises:
            KeyError: If no node has this id
        """
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise KeyError(f"Node not found: {node_id}")


@dataclass(frozen=True)
class RunHistoryEntry:
    """One bar of the run-history histogram."""

    id: str
    status: HistoryStatus
    duration: int
    timestamp: datetime
