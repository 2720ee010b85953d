# tests/conftest.py
"""Shared test fixtures and helpers.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/
"""

import os
from collections.abc import Callable

import pytest
from hypothesis import Phase, Verbosity, settings

from flowbench.contracts import (
    ParsedTable,
    ResolvedSource,
    SourceLanguage,
    SourceOrigin,
    TableKind,
)
from flowbench.core.clock import SimulatedClock

# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Builders
# =============================================================================


def _make_table(
    name: str,
    *upstream: str,
    kind: TableKind = TableKind.MATERIALIZED_VIEW,
    file_id: str = "file-1",
) -> ParsedTable:
    """ParsedTable with sensible defaults for graph and synthesis tests."""
    return ParsedTable(
        name=name,
        kind=kind,
        upstream_names=tuple(upstream),
        file_id=file_id,
        origin=SourceOrigin.BUFFER,
        language=SourceLanguage.PYTHON,
    )


def _python_source(content: str, file_id: str = "pipeline.py") -> ResolvedSource:
    return ResolvedSource(
        file_id=file_id,
        name=file_id,
        content=content,
        language=SourceLanguage.PYTHON,
        origin=SourceOrigin.BUFFER,
    )


def _sql_source(content: str, file_id: str = "pipeline.sql") -> ResolvedSource:
    return ResolvedSource(
        file_id=file_id,
        name=file_id,
        content=content,
        language=SourceLanguage.SQL,
        origin=SourceOrigin.BUFFER,
    )


@pytest.fixture
def make_table() -> Callable[..., ParsedTable]:
    return _make_table


@pytest.fixture
def python_source() -> Callable[..., ResolvedSource]:
    return _python_source


@pytest.fixture
def sql_source() -> Callable[..., ResolvedSource]:
    return _sql_source


@pytest.fixture
def clock() -> SimulatedClock:
    """Virtual clock: every run finishes instantly and deterministically."""
    return SimulatedClock()
