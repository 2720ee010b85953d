"""Run engine: ExecutionController, StageScheduler, source resolution and result synthesis."""

from flowbench.engine.cancellation import CancellationToken
from flowbench.engine.controller import (
    ExecutionController,
    PipelineAlreadyRunningError,
    RunCompleteCallback,
    SnapshotListener,
)
from flowbench.engine.history import MAX_HISTORY_SIZE, generate_run_history
from flowbench.engine.parser import parse_tables
from flowbench.engine.resolver import has_runnable_content, resolve_sources
from flowbench.engine.samples import SAMPLE_CONTENTS
from flowbench.engine.scheduler import StageScheduler
from flowbench.engine.synthesizer import build_graph, synthesize_results
from flowbench.engine.workspace import Workspace, load_workspace

__all__ = [
    "MAX_HISTORY_SIZE",
    "SAMPLE_CONTENTS",
    "CancellationToken",
    "ExecutionController",
    "PipelineAlreadyRunningError",
    "RunCompleteCallback",
    "SnapshotListener",
    "StageScheduler",
    "Workspace",
    "build_graph",
    "generate_run_history",
    "has_runnable_content",
    "load_workspace",
    "parse_tables",
    "resolve_sources",
    "synthesize_results",
]
