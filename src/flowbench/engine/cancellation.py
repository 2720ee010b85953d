# src/flowbench/engine/cancellation.py
"""Cooperative cancellation for a single run."""


class CancellationToken:
    """One-shot cancellation flag, polled by the stage loop.

    A fresh token is issued for every run. Cancelling is idempotent and
    cannot be undone.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "user_cancel") -> None:
        if not self._cancelled:
            self._cancelled = True
            self._reason = reason

    def __repr__(self) -> str:
        state = f"cancelled ({self._reason})" if self._cancelled else "active"
        return f"<CancellationToken {state}>"
