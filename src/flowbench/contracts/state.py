"""Pipeline execution state.

PipelineState is a tagged union: exactly one variant is active at a time,
discriminated by the `status` class attribute. Only Running carries
progress.

    Idle --run--> Running --(all stages done)--> Completed
    Running --stop--> Stopped
    Running --(internal failure)--> Errored
    Completed/Errored/Stopped --run--> Running
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar

from flowbench.contracts.enums import LastRunStatus, PipelineStatus, RunType
from flowbench.contracts.results import PipelineGraph, RunHistoryEntry, TableResult


@dataclass(frozen=True)
class Idle:
    """No run has started."""

    status: ClassVar[PipelineStatus] = PipelineStatus.IDLE


@dataclass(frozen=True)
class Running:
    """A run is actively progressing.

    progress is a cumulative fraction in [0, 1], non-decreasing within a run.
    current_stage is the label of the stage being animated.
    """

    status: ClassVar[PipelineStatus] = PipelineStatus.RUNNING

    run_type: RunType
    start_time: datetime
    progress: float
    current_stage: str


@dataclass(frozen=True)
class Completed:
    """All stages finished without cancellation or error."""

    status: ClassVar[PipelineStatus] = PipelineStatus.COMPLETED

    duration: int
    run_type: RunType


@dataclass(frozen=True)
class Errored:
    """The run aborted because of an internal failure."""

    status: ClassVar[PipelineStatus] = PipelineStatus.ERROR

    message: str


@dataclass(frozen=True)
class Stopped:
    """The run was cancelled by the user mid-flight.

    duration is the ticker's elapsed whole seconds at the moment of the stop,
    not a wall-clock recomputation.
    """

    status: ClassVar[PipelineStatus] = PipelineStatus.STOPPED

    duration: int


PipelineState = Idle | Running | Completed | Errored | Stopped


@dataclass(frozen=True)
class ExecutionSnapshot:
    """Everything the controller publishes, as one immutable value.

    has_run_pipeline becomes True after the first successful completion and
    is never reset. The derived artifacts (table_results, run_history, graph)
    are replaced wholesale by each completed run.
    """

    state: PipelineState = field(default_factory=Idle)
    has_run_pipeline: bool = False
    last_run_timestamp: datetime | None = None
    last_run_status: LastRunStatus | None = None
    execution_duration: int = 0
    table_results: tuple[TableResult, ...] = ()
    run_history: tuple[RunHistoryEntry, ...] = ()
    graph: PipelineGraph = field(default_factory=PipelineGraph.empty)

    @property
    def status(self) -> PipelineStatus:
        return self.state.status

    @property
    def is_running(self) -> bool:
        return isinstance(self.state, Running)
