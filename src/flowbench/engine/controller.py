# src/flowbench/engine/controller.py
"""ExecutionController: run lifecycle and the single published state.

Coordinates:
- Run start (fresh cancellation token, duration ticker, Running state)
- Stage animation via StageScheduler
- Result derivation (resolve -> parse -> synthesize -> graph -> history)
- Stop, failure and disposal

Every mutation of the published ExecutionSnapshot goes through
_transition(), which publishes exactly once to every subscriber.
"""

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import Any

from flowbench.contracts import (
    Completed,
    Errored,
    ExecutionSnapshot,
    LastRunStatus,
    PipelineGraph,
    PipelineState,
    Running,
    RunType,
    Stopped,
    TableResult,
)
from flowbench.core.clock import AsyncioClock, Clock, Ticker
from flowbench.core.config import ExecutionSettings
from flowbench.core.logging import get_logger
from flowbench.engine.cancellation import CancellationToken
from flowbench.engine.history import generate_run_history
from flowbench.engine.parser import parse_tables
from flowbench.engine.resolver import has_runnable_content, resolve_sources
from flowbench.engine.scheduler import StageScheduler
from flowbench.engine.synthesizer import build_graph, synthesize_results
from flowbench.engine.workspace import Workspace

logger = get_logger(__name__)

SnapshotListener = Callable[[ExecutionSnapshot], None]
OpenResultsCallback = Callable[[], None]
RunCompleteCallback = Callable[[Sequence[TableResult], PipelineGraph], None]


class PipelineAlreadyRunningError(RuntimeError):
    """Raised when run_pipeline() is called while a run is in flight."""


class ExecutionController:
    """Owns pipeline run state and publishes it to subscribers.

    Example:
        controller = ExecutionController(workspace, clock=SimulatedClock())
        unsubscribe = controller.subscribe(render)
        state = await controller.run_pipeline(RunType.DRY_RUN)

    A listener may call stop_pipeline() from inside its callback; the
    cancellation is picked up at the scheduler's next check.
    """

    def __init__(
        self,
        workspace: Workspace,
        *,
        settings: ExecutionSettings | None = None,
        clock: Clock | None = None,
        on_open_results: OpenResultsCallback | None = None,
        on_run_complete: RunCompleteCallback | None = None,
    ) -> None:
        self._workspace = workspace
        self._settings = settings or ExecutionSettings()
        self._clock: Clock = clock or AsyncioClock()
        self._on_open_results = on_open_results
        self._on_run_complete = on_run_complete

        self._snapshot = ExecutionSnapshot()
        self._listeners: list[SnapshotListener] = []
        self._token: CancellationToken | None = None
        self._ticker: Ticker | None = None
        self._in_flight = False
        self._disposed = False

    @property
    def workspace(self) -> Workspace:
        return self._workspace

    @property
    def settings(self) -> ExecutionSettings:
        return self._settings

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener for every published snapshot.

        Returns:
            A callable that removes the listener (safe to call twice)
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> ExecutionSnapshot:
        return self._snapshot

    def can_run_pipeline(self) -> bool:
        return has_runnable_content(self._workspace.open_buffers, self._workspace.generated)

    async def run_pipeline(self, run_type: RunType = RunType.RUN) -> PipelineState:
        """Simulate one pipeline run through all configured stages.

        Failures inside the run are logged and become the Errored state; they
        are never raised to the caller.

        Args:
            run_type: RUN or DRY_RUN; only recorded in the resulting state

        Returns:
            The resting state the run ended in (Completed, Errored or Stopped)

        Raises:
            PipelineAlreadyRunningError: If a run is already in flight
            RuntimeError: If the controller has been disposed
        """
        if self._disposed:
            raise RuntimeError("ExecutionController has been disposed")
        if self._in_flight or not self._snapshot.status.is_resting:
            raise PipelineAlreadyRunningError("A pipeline run is already in progress")

        self._in_flight = True
        token = CancellationToken()
        self._token = token
        results: tuple[TableResult, ...] = ()
        graph = PipelineGraph.empty()
        completed = False

        try:
            start_time = self._clock.now()
            stages = self._settings.stages
            logger.info("Pipeline run started", run_type=run_type.value, stages=len(stages))

            self._ticker = self._clock.every(self._settings.tick_interval_seconds, self._on_tick)
            if self._on_open_results is not None:
                self._on_open_results()
            if token.cancelled:
                # Stopped from inside on_open_results, before the first stage
                self._stop_ticker()
                self._transition(
                    state=Stopped(duration=0),
                    execution_duration=0,
                    last_run_status=LastRunStatus.CANCELED,
                    last_run_timestamp=self._clock.now(),
                )
                logger.info("Pipeline run stopped", duration=0, reason=token.reason)
                return self._snapshot.state
            self._transition(
                state=Running(
                    run_type=run_type,
                    start_time=start_time,
                    progress=0.0,
                    current_stage=stages[0].label,
                ),
                execution_duration=0,
            )

            def on_progress(label: str, progress: float) -> None:
                if token.cancelled:
                    return
                state = Running(
                    run_type=run_type,
                    start_time=start_time,
                    progress=progress,
                    current_stage=label,
                )
                if state != self._snapshot.state:
                    self._transition(state=state)

            scheduler = StageScheduler(
                stages,
                steps_per_stage=self._settings.steps_per_stage,
                clock=self._clock,
            )
            finished = await scheduler.run(token, on_progress)
            if not finished or token.cancelled:
                # stop_pipeline() already published Stopped
                logger.debug("Stage loop cancelled", reason=token.reason)
                return self._snapshot.state

            self._stop_ticker()
            now = self._clock.now()
            duration = int((now - start_time).total_seconds())

            results, graph = self._derive_results()
            self._transition(
                state=Completed(duration=duration, run_type=run_type),
                has_run_pipeline=True,
                last_run_timestamp=now,
                last_run_status=LastRunStatus.COMPLETE,
                table_results=results,
                run_history=generate_run_history(now, size=self._settings.history_size),
                graph=graph,
            )
            completed = True
            logger.info(
                "Pipeline run completed",
                run_type=run_type.value,
                duration=duration,
                tables=len(results),
            )
        except asyncio.CancelledError:
            # The task itself was cancelled: treat it like a user stop
            self.stop_pipeline()
            raise
        except Exception as e:
            self._stop_ticker()
            if not token.cancelled:
                logger.exception("Pipeline run failed", run_type=run_type.value, error=str(e))
                self._transition(
                    state=Errored(message=str(e) or type(e).__name__),
                    last_run_status=LastRunStatus.FAILED,
                )
        finally:
            self._stop_ticker()
            if self._token is token:
                self._token = None
            self._in_flight = False

        if completed and self._on_run_complete is not None:
            try:
                self._on_run_complete(results, graph)
            except Exception as e:
                # The run itself succeeded; the state stays Completed
                logger.exception("on_run_complete callback failed", error=str(e))

        return self._snapshot.state

    def stop_pipeline(self) -> None:
        """Cancel the active run. No-op when nothing is running."""
        token = self._token
        if token is None or token.cancelled:
            return

        token.cancel()
        self._stop_ticker()

        if self._snapshot.is_running:
            duration = self._snapshot.execution_duration
            self._transition(
                state=Stopped(duration=duration),
                last_run_status=LastRunStatus.CANCELED,
                last_run_timestamp=self._clock.now(),
            )
            logger.info("Pipeline run stopped", duration=duration)

    def dispose(self) -> None:
        """Stop any run, release the ticker and drop all listeners. Idempotent."""
        self.stop_pipeline()
        if self._token is not None:
            self._token.cancel("dispose")
        self._stop_ticker()
        self._listeners.clear()
        self._disposed = True

    def _derive_results(self) -> tuple[tuple[TableResult, ...], PipelineGraph]:
        workspace = self._workspace
        sources = resolve_sources(workspace.open_buffers, workspace.generated, workspace.samples)
        tables = parse_tables(sources)
        results = synthesize_results(tables)
        return tuple(results), build_graph(tables, results)

    def _on_tick(self) -> None:
        if self._token is None or self._token.cancelled:
            return
        self._transition(execution_duration=self._snapshot.execution_duration + 1)

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def _transition(self, **changes: Any) -> None:
        self._snapshot = replace(self._snapshot, **changes)
        # Copy: a listener may unsubscribe (or stop the run) while we iterate
        for listener in list(self._listeners):
            listener(self._snapshot)
