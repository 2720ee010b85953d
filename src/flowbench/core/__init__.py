# src/flowbench/core/__init__.py
"""Core infrastructure: Configuration, Logging, Clock, Dependency graph."""

from flowbench.core.clock import AsyncioClock, Clock, SimulatedClock, Ticker
from flowbench.core.config import (
    DEFAULT_STAGES,
    ExecutionSettings,
    FlowbenchSettings,
    LoggingSettings,
    StageSettings,
    load_settings,
)
from flowbench.core.dag import DependencyGraph, NodeInfo
from flowbench.core.logging import configure_logging, get_logger

__all__ = [
    "DEFAULT_STAGES",
    "AsyncioClock",
    "Clock",
    "DependencyGraph",
    "ExecutionSettings",
    "FlowbenchSettings",
    "LoggingSettings",
    "NodeInfo",
    "SimulatedClock",
    "StageSettings",
    "Ticker",
    "configure_logging",
    "get_logger",
    "load_settings",
]
