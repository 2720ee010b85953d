# src/flowbench/engine/scheduler.py
"""StageScheduler: animates cumulative progress through configured stages.

Each stage is split into equal steps. Between steps the scheduler suspends
on the clock, and that suspension is the only place a cancellation can be
observed: the token is checked right before and right after every sleep.
"""

from collections.abc import Callable, Sequence

from flowbench.core.clock import Clock
from flowbench.core.config import StageSettings
from flowbench.core.logging import get_logger
from flowbench.engine.cancellation import CancellationToken

logger = get_logger(__name__)

# (stage label, cumulative progress)
ProgressCallback = Callable[[str, float], None]


class StageScheduler:
    """Drive progress from 0 to 1 through an ordered list of stages.

    Invariants over the published values of one run:
    - progress never decreases
    - progress never exceeds the current stage's target (so never exceeds 1)
    - a run that finishes publishes exactly 1.0 last
    """

    def __init__(
        self,
        stages: Sequence[StageSettings],
        *,
        steps_per_stage: int = 10,
        clock: Clock,
    ) -> None:
        if not stages:
            raise ValueError("StageScheduler requires at least one stage")
        if steps_per_stage < 1:
            raise ValueError(f"steps_per_stage must be at least 1, got {steps_per_stage}")
        self._stages = tuple(stages)
        self._steps = steps_per_stage
        self._clock = clock

    @property
    def stages(self) -> tuple[StageSettings, ...]:
        return self._stages

    async def run(self, token: CancellationToken, on_progress: ProgressCallback) -> bool:
        """Animate every stage in order.

        Args:
            token: Checked around every suspension
            on_progress: Receives (stage label, progress) on every change

        Returns:
            True if all stages finished, False if cancelled part-way
        """
        progress = 0.0

        for stage in self._stages:
            if token.cancelled:
                return False

            logger.debug("Entering stage", stage=stage.label, target=stage.target_progress)
            on_progress(stage.label, progress)

            start = progress
            increment = (stage.target_progress - start) / self._steps
            step_seconds = stage.duration_seconds / self._steps

            for step in range(self._steps):
                if token.cancelled:
                    return False
                await self._clock.sleep(step_seconds)
                if token.cancelled:
                    return False

                # Clamp: float accumulation must never overshoot the stage target
                progress = max(progress, min(start + increment * (step + 1), stage.target_progress))
                on_progress(stage.label, progress)

            if progress != stage.target_progress:
                progress = stage.target_progress
                on_progress(stage.label, progress)

        return True
