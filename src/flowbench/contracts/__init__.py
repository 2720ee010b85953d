"""Shared contracts for cross-boundary data types.

All dataclasses and enums that cross subsystem boundaries (engine <-> UI,
core <-> engine) MUST be defined here.

Import pattern:
    from flowbench.contracts import PipelineState, TableResult, RunType
"""

from flowbench.contracts.enums import (
    HistoryStatus,
    LastRunStatus,
    NodeStatus,
    PipelineStatus,
    RunType,
    SourceLanguage,
    SourceOrigin,
    TableKind,
    TableStatus,
)
from flowbench.contracts.results import (
    GraphEdge,
    GraphNode,
    ParsedTable,
    PipelineGraph,
    RunHistoryEntry,
    TableResult,
    format_count,
    format_duration,
    table_node_id,
)
from flowbench.contracts.sources import ContentEntry, OpenBuffer, ResolvedSource
from flowbench.contracts.state import (
    Completed,
    Errored,
    ExecutionSnapshot,
    Idle,
    PipelineState,
    Running,
    Stopped,
)

__all__ = [
    # enums
    "HistoryStatus",
    "LastRunStatus",
    "NodeStatus",
    "PipelineStatus",
    "RunType",
    "SourceLanguage",
    "SourceOrigin",
    "TableKind",
    "TableStatus",
    # results
    "GraphEdge",
    "GraphNode",
    "ParsedTable",
    "PipelineGraph",
    "RunHistoryEntry",
    "TableResult",
    "format_count",
    "format_duration",
    "table_node_id",
    # sources
    "ContentEntry",
    "OpenBuffer",
    "ResolvedSource",
    # state
    "Completed",
    "Errored",
    "ExecutionSnapshot",
    "Idle",
    "PipelineState",
    "Running",
    "Stopped",
]
