# src/flowbench/cli.py
"""flowbench Command Line Interface.

Entry point for the flowbench CLI tool.
"""

import asyncio
import json
import signal
from contextlib import suppress
from pathlib import Path

import typer
from pydantic import ValidationError

from flowbench import __version__
from flowbench.contracts import (
    Completed,
    Errored,
    ExecutionSnapshot,
    PipelineGraph,
    PipelineState,
    Running,
    RunType,
    Stopped,
    TableResult,
    format_duration,
)
from flowbench.core.clock import AsyncioClock, Clock, SimulatedClock
from flowbench.core.config import FlowbenchSettings, load_settings, resolve_config
from flowbench.core.logging import configure_logging
from flowbench.engine import (
    ExecutionController,
    load_workspace,
    parse_tables,
    resolve_sources,
)

app = typer.Typer(
    name="flowbench",
    help="flowbench: simulated pipeline runs over pipeline source code.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"flowbench version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """flowbench: simulated pipeline runs over pipeline source code."""
    pass


def _load_config(settings: str | None) -> FlowbenchSettings:
    """Load settings, or defaults when no file is given. Exits 1 on error."""
    if settings is None:
        return FlowbenchSettings()

    try:
        return load_settings(Path(settings))
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


class _ProgressEcho:
    """Snapshot listener printing stage changes (every tick when verbose)."""

    def __init__(self, verbose: bool) -> None:
        self._verbose = verbose
        self._stage: str | None = None

    def __call__(self, snapshot: ExecutionSnapshot) -> None:
        state = snapshot.state
        if not isinstance(state, Running):
            return
        if state.current_stage != self._stage:
            self._stage = state.current_stage
            typer.echo(f"[{state.progress:4.0%}] {state.current_stage}")
        elif self._verbose:
            typer.echo(f"[{state.progress:4.0%}]   elapsed {snapshot.execution_duration}s")


async def _run_until_interrupted(controller: ExecutionController, run_type: RunType) -> PipelineState:
    """Run the pipeline; Ctrl-C stops it instead of killing the process."""
    loop = asyncio.get_running_loop()
    handler_installed = False
    # Signal handlers are unavailable on some platforms and off the main thread
    with suppress(NotImplementedError, RuntimeError, ValueError):
        loop.add_signal_handler(signal.SIGINT, controller.stop_pipeline)
        handler_installed = True
    try:
        return await controller.run_pipeline(run_type)
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)


@app.command()
def run(
    directory: Path = typer.Argument(
        ...,
        help="Directory containing pipeline .py and .sql sources.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Record the run as a dry run.",
    ),
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    instant: bool = typer.Option(
        False,
        "--instant",
        help="Run the stages in simulated time (no waiting).",
    ),
    samples: bool = typer.Option(
        False,
        "--samples",
        help="Fall back to the built-in demo pipeline when the directory has no sources.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show detailed output.",
    ),
) -> None:
    """Simulate a pipeline run over the sources in DIRECTORY.

    Press Ctrl-C to stop the run.
    """
    config = _load_config(settings)
    configure_logging(
        "DEBUG" if verbose else config.logging.level,
        json_output=config.logging.json_output,
    )

    try:
        workspace = load_workspace(directory, include_samples=samples)
    except NotADirectoryError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    clock: Clock = SimulatedClock() if instant else AsyncioClock()
    controller = ExecutionController(workspace, settings=config.execution, clock=clock)

    if not controller.can_run_pipeline() and not samples:
        typer.echo(f"Nothing to run: no .py or .sql source with content in {directory}", err=True)
        typer.echo("Add --samples to run the built-in demo pipeline.", err=True)
        raise typer.Exit(1)

    if verbose:
        typer.echo(f"Loaded {len(workspace.open_buffers)} source file(s) from {directory}")

    controller.subscribe(_ProgressEcho(verbose))
    run_type = RunType.DRY_RUN if dry_run else RunType.RUN
    try:
        state = asyncio.run(_run_until_interrupted(controller, run_type))
        snapshot = controller.snapshot()
    finally:
        controller.dispose()

    if isinstance(state, Completed):
        label = "Dry run" if state.run_type is RunType.DRY_RUN else "Run"
        typer.echo(f"\n{label} completed in {format_duration(state.duration)}")
        _echo_results(snapshot.table_results)
        _echo_graph(snapshot.graph, verbose=verbose)
        return

    if isinstance(state, Stopped):
        typer.echo(f"\nRun stopped after {format_duration(state.duration)}", err=True)
    elif isinstance(state, Errored):
        typer.echo(f"\nRun failed: {state.message}", err=True)
    raise typer.Exit(1)


def _echo_results(results: tuple[TableResult, ...]) -> None:
    if not results:
        typer.echo("No tables defined.")
        return

    width = max(len(result.name) for result in results)
    typer.echo(f"\n{'TABLE':<{width}}  {'TYPE':<17}  {'STATUS':<7}  WRITTEN  UPDATED  DROPPED  DURATION")
    for result in results:
        typer.echo(
            f"{result.name:<{width}}  {result.kind.value:<17}  {result.status.value:<7}  "
            f"{result.written_label:>7}  {result.updated_label:>7}  {result.dropped:>7}  "
            f"{result.duration_label:>8}"
        )
        for name in result.unresolved_upstreams:
            typer.echo(f"  warning: upstream '{name}' is not defined in this pipeline")


def _echo_graph(graph: PipelineGraph, *, verbose: bool) -> None:
    typer.echo(f"\nGraph: {len(graph.nodes)} nodes, {len(graph.edges)} edges")
    for edge in graph.edges:
        source = graph.get_node(edge.source)
        target = graph.get_node(edge.target)
        suffix = " (unresolved)" if edge.is_dashed else ""
        typer.echo(f"  {source.name} -> {target.name}{suffix}")
    if verbose:
        for node in graph.nodes:
            x, y = node.position
            typer.echo(f"  {node.id} at ({x:g}, {y:g}): {node.status.value}")


@app.command()
def tables(
    directory: Path = typer.Argument(
        ...,
        help="Directory containing pipeline .py and .sql sources.",
    ),
) -> None:
    """List the tables defined in DIRECTORY without running anything."""
    try:
        workspace = load_workspace(directory)
    except NotADirectoryError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    sources = resolve_sources(workspace.open_buffers, workspace.generated, workspace.samples)
    parsed = parse_tables(sources)
    if not parsed:
        typer.echo("No tables defined.")
        return

    for table in parsed:
        upstream = ", ".join(table.upstream_names) or "-"
        typer.echo(f"{table.name} ({table.kind.value}) in {table.file_id} <- {upstream}")


@app.command()
def stages(
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the resolved execution settings as JSON.",
    ),
) -> None:
    """Show the configured run stages."""
    config = _load_config(settings)

    if as_json:
        typer.echo(json.dumps(resolve_config(config)["execution"], indent=2))
        return

    previous = 0.0
    for index, stage in enumerate(config.execution.stages, start=1):
        typer.echo(
            f"{index}. {stage.label:<28} {previous:4.0%} -> {stage.target_progress:4.0%}  "
            f"{stage.duration_ms} ms"
        )
        previous = stage.target_progress
    typer.echo(
        f"Total: {config.execution.total_duration_ms} ms, "
        f"{config.execution.steps_per_stage} steps per stage"
    )


if __name__ == "__main__":
    app()
