# src/flowbench/core/config.py
"""
Configuration schema and loading for flowbench.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class StageSettings(BaseModel):
    """One phase of the simulated run.

    Example YAML:
        execution:
          stages:
            - label: "Initializing..."
              target_progress: 0.15
              duration_ms: 800
    """

    model_config = {"frozen": True}

    label: str = Field(
        min_length=1,
        description="Status text shown to the user while this stage runs",
    )
    target_progress: float = Field(
        gt=0.0,
        le=1.0,
        description="Cumulative progress fraction reached at the end of the stage",
    )
    duration_ms: int = Field(
        ge=0,
        description="Nominal milliseconds spent animating through the stage",
    )

    @property
    def duration_seconds(self) -> float:
        return self.duration_ms / 1000


DEFAULT_STAGES: tuple[StageSettings, ...] = (
    StageSettings(label="Initializing...", target_progress=0.15, duration_ms=800),
    StageSettings(label="Running transformations...", target_progress=0.50, duration_ms=1500),
    StageSettings(label="Processing tables...", target_progress=0.85, duration_ms=1500),
    StageSettings(label="Finalizing...", target_progress=1.0, duration_ms=1000),
)


class ExecutionSettings(BaseModel):
    """Stage simulation and derived-artifact configuration."""

    model_config = {"frozen": True}

    stages: tuple[StageSettings, ...] = Field(
        default=DEFAULT_STAGES,
        description="Ordered stage list; targets strictly increasing, last is 1.0",
    )
    steps_per_stage: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Progress updates (and cancellation checks) per stage",
    )
    tick_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Period of the execution-duration ticker",
    )
    history_size: int = Field(
        default=6,
        ge=1,
        le=6,
        description="Entries in the regenerated run history",
    )

    @field_validator("stages")
    @classmethod
    def validate_stage_progression(
        cls, v: tuple[StageSettings, ...]
    ) -> tuple[StageSettings, ...]:
        """Targets must strictly increase and the last stage must reach 1.0."""
        if not v:
            raise ValueError("at least one stage is required")

        previous = 0.0
        for stage in v:
            if stage.target_progress <= previous:
                raise ValueError(
                    f"stage '{stage.label}' target_progress {stage.target_progress} "
                    f"must be greater than the previous target {previous}"
                )
            previous = stage.target_progress

        if v[-1].target_progress != 1.0:
            raise ValueError(
                f"last stage '{v[-1].label}' must have target_progress 1.0, "
                f"got {v[-1].target_progress}"
            )
        return v

    @property
    def total_duration_ms(self) -> int:
        return sum(stage.duration_ms for stage in self.stages)


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum log level",
    )
    json_output: bool = Field(
        default=False,
        description="Render log lines as JSON instead of console key=value",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


class FlowbenchSettings(BaseModel):
    """Top-level flowbench configuration.

    Every section has defaults, so an empty settings file is valid.
    """

    model_config = {"frozen": True}

    execution: ExecutionSettings = Field(
        default_factory=ExecutionSettings,
        description="Run simulation configuration",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )


def load_settings(config_path: Path) -> FlowbenchSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (FLOWBENCH_*) - highest priority
    2. Config file (settings.yaml)
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: FLOWBENCH_EXECUTION__STEPS_PER_STAGE for
    nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated FlowbenchSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="FLOWBENCH",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; Pydantic fields are lowercase
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {
        k.lower(): _lower_keys(v)
        for k, v in dynaconf_settings.as_dict().items()
        if k not in internal_keys
    }
    return FlowbenchSettings(**raw_config)


def _lower_keys(value: Any) -> Any:
    """Lowercase nested mapping keys coming from environment overrides."""
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_lower_keys(item) for item in value]
    return value


def resolve_config(settings: FlowbenchSettings) -> dict[str, Any]:
    """Convert validated settings to a JSON-safe dict (used by `stages --json`)."""
    return settings.model_dump(mode="json")
