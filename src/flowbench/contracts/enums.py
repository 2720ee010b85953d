"""All status codes, kinds, and modes used across subsystem boundaries.

Every enum here is (str, Enum) because its value is what the presentation
layer renders and compares against. Values match the labels the editor UI
already displays, so do not rename them casually.
"""

from enum import Enum
from pathlib import PurePosixPath


class PipelineStatus(str, Enum):
    """Discriminator for the PipelineState tagged union."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"
    STOPPED = "stopped"

    @property
    def is_resting(self) -> bool:
        """Whether a new run may be started from this status."""
        return self is not PipelineStatus.RUNNING


class RunType(str, Enum):
    """Variant of a run.

    DRY_RUN exercises the same stage simulation; it is only carried through
    state so the UI can label it.
    """

    RUN = "run"
    DRY_RUN = "dryRun"


class LastRunStatus(str, Enum):
    """Outcome of the most recent run, as shown next to the run button."""

    COMPLETE = "complete"
    FAILED = "failed"
    CANCELED = "canceled"


class TableStatus(str, Enum):
    """Synthesized execution status of a single table."""

    SUCCESS = "success"
    WARNING = "warning"
    FAILED = "failed"


class NodeStatus(str, Enum):
    """Status of a node in the pipeline graph.

    PLACEHOLDER marks a name-only node standing in for an upstream
    reference that no parsed table defines.
    """

    SUCCESS = "success"
    WARNING = "warning"
    FAILED = "failed"
    PLACEHOLDER = "placeholder"

    @classmethod
    def from_table_status(cls, status: TableStatus) -> "NodeStatus":
        return cls(status.value)


class TableKind(str, Enum):
    """Kind of dataset a table definition produces."""

    STREAMING_TABLE = "Streaming table"
    MATERIALIZED_VIEW = "Materialized view"
    PERSISTED_VIEW = "Persisted view"
    VIEW = "View"

    @property
    def node_type(self) -> str:
        """Graph node type used by the graph panel."""
        return _NODE_TYPES[self]


_NODE_TYPES: dict[TableKind, str] = {
    TableKind.STREAMING_TABLE: "streaming",
    TableKind.MATERIALIZED_VIEW: "materialized",
    TableKind.PERSISTED_VIEW: "persisted",
    TableKind.VIEW: "view",
}


class HistoryStatus(str, Enum):
    """Outcome of a past run in the run-history histogram."""

    SUCCESS = "success"
    FAILED = "failed"


class SourceOrigin(str, Enum):
    """Where a resolved source text came from.

    Values:
        BUFFER: An open editor tab
        GENERATED: Content previously produced by the assistant
        SAMPLE: Built-in demo content
    """

    BUFFER = "buffer"
    GENERATED = "generated"
    SAMPLE = "sample"


class SourceLanguage(str, Enum):
    """Language of a source file. Only PYTHON and SQL are parsed."""

    PYTHON = "python"
    SQL = "sql"
    OTHER = "other"

    @classmethod
    def from_filename(cls, name: str) -> "SourceLanguage":
        """Infer the language from a file name suffix."""
        suffix = PurePosixPath(name).suffix.lower()
        if suffix == ".py":
            return cls.PYTHON
        if suffix == ".sql":
            return cls.SQL
        return cls.OTHER

    @classmethod
    def from_label(cls, label: str) -> "SourceLanguage":
        """Map a free-form language label (e.g. "python", "SQL") to a member."""
        try:
            return cls(label.strip().lower())
        except ValueError:
            return cls.OTHER

    @property
    def is_parseable(self) -> bool:
        return self is not SourceLanguage.OTHER
