# src/flowbench/engine/history.py
"""Synthetic run history for the histogram panel.

The history is regenerated in full after every completed run. It does not
record the run that just finished and does not accumulate.
"""

from datetime import datetime, timedelta

from flowbench.contracts import HistoryStatus, RunHistoryEntry

# (status, duration seconds, age), oldest first
_HISTORY_TEMPLATE: tuple[tuple[HistoryStatus, int, timedelta], ...] = (
    (HistoryStatus.SUCCESS, 145, timedelta(hours=2)),
    (HistoryStatus.SUCCESS, 132, timedelta(minutes=90)),
    (HistoryStatus.FAILED, 89, timedelta(hours=1)),
    (HistoryStatus.SUCCESS, 156, timedelta(minutes=30)),
    (HistoryStatus.SUCCESS, 148, timedelta(minutes=15)),
    (HistoryStatus.SUCCESS, 156, timedelta(0)),
)

MAX_HISTORY_SIZE = len(_HISTORY_TEMPLATE)


def generate_run_history(now: datetime, *, size: int = MAX_HISTORY_SIZE) -> tuple[RunHistoryEntry, ...]:
    """Generate the most recent `size` synthetic runs, most recent first.

    Args:
        now: Timestamp of the newest entry
        size: Number of entries, 1 to MAX_HISTORY_SIZE

    Raises:
        ValueError: If size is out of range
    """
    if not 1 <= size <= MAX_HISTORY_SIZE:
        raise ValueError(f"size must be between 1 and {MAX_HISTORY_SIZE}, got {size}")

    entries = [
        RunHistoryEntry(
            id=f"run-{number}",
            status=status,
            duration=duration,
            timestamp=now - age,
        )
        for number, (status, duration, age) in enumerate(_HISTORY_TEMPLATE, start=1)
    ]
    return tuple(reversed(entries))[:size]
