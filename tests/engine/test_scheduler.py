# tests/engine/test_scheduler.py
"""Tests for staged progress animation."""

import asyncio

import pytest
from hypothesis import given
from hypothesis import strategies as st

from flowbench.core.config import StageSettings


@st.composite
def stage_lists(draw: st.DrawFn) -> list[StageSettings]:
    """Valid stage lists: strictly increasing targets ending at 1.0."""
    targets = sorted(draw(st.lists(st.floats(min_value=0.01, max_value=0.99), unique=True, max_size=5)))
    targets.append(1.0)
    return [
        StageSettings(
            label=f"Stage {index}...",
            target_progress=target,
            duration_ms=draw(st.integers(min_value=0, max_value=2000)),
        )
        for index, target in enumerate(targets)
    ]


def _run(scheduler: object, token: object) -> tuple[bool, list[tuple[str, float]]]:
    published: list[tuple[str, float]] = []

    async def go() -> bool:
        return await scheduler.run(token, lambda label, progress: published.append((label, progress)))  # type: ignore[attr-defined]

    return asyncio.run(go()), published


class TestStageScheduler:
    """Progress invariants."""

    def test_requires_stages(self) -> None:
        from flowbench.core.clock import SimulatedClock
        from flowbench.engine.scheduler import StageScheduler

        with pytest.raises(ValueError):
            StageScheduler([], clock=SimulatedClock())

    def test_default_stages(self) -> None:
        from flowbench.core.clock import SimulatedClock
        from flowbench.core.config import DEFAULT_STAGES
        from flowbench.engine.cancellation import CancellationToken
        from flowbench.engine.scheduler import StageScheduler

        clock = SimulatedClock()
        finished, published = _run(StageScheduler(DEFAULT_STAGES, clock=clock), CancellationToken())

        assert finished
        assert published[0] == ("Initializing...", 0.0)
        assert published[-1] == ("Finalizing...", 1.0)
        assert clock.elapsed.total_seconds() == pytest.approx(4.8)
        # Every stage reaches its target exactly
        for stage in DEFAULT_STAGES:
            assert (stage.label, stage.target_progress) in published

    def test_each_stage_announced_before_its_steps(self) -> None:
        from flowbench.core.clock import SimulatedClock
        from flowbench.core.config import DEFAULT_STAGES
        from flowbench.engine.cancellation import CancellationToken
        from flowbench.engine.scheduler import StageScheduler

        _, published = _run(
            StageScheduler(DEFAULT_STAGES, steps_per_stage=2, clock=SimulatedClock()),
            CancellationToken(),
        )

        assert published[:3] == [
            ("Initializing...", 0.0),
            ("Initializing...", pytest.approx(0.075)),
            ("Initializing...", 0.15),
        ]
        assert published[3] == ("Running transformations...", 0.15)

    @given(stages=stage_lists(), steps=st.integers(min_value=1, max_value=20))
    def test_progress_monotonic_bounded_and_ends_at_one(self, stages: list[StageSettings], steps: int) -> None:
        from flowbench.core.clock import SimulatedClock
        from flowbench.engine.cancellation import CancellationToken
        from flowbench.engine.scheduler import StageScheduler

        finished, published = _run(
            StageScheduler(stages, steps_per_stage=steps, clock=SimulatedClock()),
            CancellationToken(),
        )

        assert finished
        values = [progress for _, progress in published]
        assert all(0.0 <= v <= 1.0 for v in values)
        assert all(later >= earlier for earlier, later in zip(values, values[1:], strict=False))
        assert values[-1] == 1.0

    def test_pre_cancelled_token_publishes_nothing(self) -> None:
        from flowbench.core.clock import SimulatedClock
        from flowbench.core.config import DEFAULT_STAGES
        from flowbench.engine.cancellation import CancellationToken
        from flowbench.engine.scheduler import StageScheduler

        token = CancellationToken()
        token.cancel()
        finished, published = _run(StageScheduler(DEFAULT_STAGES, clock=SimulatedClock()), token)

        assert not finished
        assert published == []

    def test_cancel_observed_at_next_check(self) -> None:
        from flowbench.core.clock import SimulatedClock
        from flowbench.core.config import DEFAULT_STAGES
        from flowbench.engine.cancellation import CancellationToken
        from flowbench.engine.scheduler import StageScheduler

        clock = SimulatedClock()
        token = CancellationToken()
        published: list[float] = []

        def on_progress(label: str, progress: float) -> None:
            published.append(progress)
            if progress >= 0.4:
                token.cancel()

        async def go() -> bool:
            return await StageScheduler(DEFAULT_STAGES, clock=clock).run(token, on_progress)

        assert asyncio.run(go()) is False
        assert published[-1] == pytest.approx(0.43)
        assert clock.elapsed.total_seconds() == pytest.approx(2.0)


class TestCancellationToken:
    def test_cancel_is_idempotent_and_keeps_first_reason(self) -> None:
        from flowbench.engine.cancellation import CancellationToken

        token = CancellationToken()
        assert not token.cancelled

        token.cancel("user_cancel")
        token.cancel("dispose")

        assert token.cancelled
        assert token.reason == "user_cancel"
        assert "cancelled" in repr(token)
