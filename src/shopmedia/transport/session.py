"""Upload session state machine.

Tracks one submission attempt: how many bytes have been streamed, the
percentage shown to the operator, and the terminal outcome.  Enforces
valid lifecycle transitions and keeps the reported percentage
monotonically non-decreasing.
"""

from __future__ import annotations

from shopmedia.models import UploadResult, UploadState

_MIB = 1024 * 1024


class UploadSession:
    """Progress and lifecycle of one submission.

    Valid transitions::

        PENDING    -> UPLOADING | FAILED
        UPLOADING  -> SUCCEEDED | FAILED
        SUCCEEDED  -> (terminal)
        FAILED     -> (terminal)

    Parameters
    ----------
    total_bytes:
        Size of the encoded request body.
    """

    VALID_TRANSITIONS: dict[UploadState, set[UploadState]] = {
        UploadState.PENDING: {UploadState.UPLOADING, UploadState.FAILED},
        UploadState.UPLOADING: {UploadState.SUCCEEDED, UploadState.FAILED},
        UploadState.SUCCEEDED: set(),
        UploadState.FAILED: set(),
    }

    def __init__(self, total_bytes: int) -> None:
        if total_bytes < 0:
            raise ValueError(f"total_bytes must be >= 0, got {total_bytes}")
        self.total_bytes: int = total_bytes
        self.transferred_bytes: int = 0
        self.percent: int = 0
        self.state: UploadState = UploadState.PENDING
        self.outcome: UploadResult | None = None

    @property
    def finished(self) -> bool:
        return self.state in (UploadState.SUCCEEDED, UploadState.FAILED)

    def transition(self, new_state: UploadState) -> None:
        """Attempt to transition to *new_state*.

        Raises
        ------
        ValueError
            If the transition from the current state to *new_state* is
            not valid.
        """
        allowed = self.VALID_TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise ValueError(
                f"Invalid state transition: {self.state.value} -> {new_state.value}. "
                f"Allowed transitions from {self.state.value}: "
                f"{{{', '.join(s.value for s in allowed)}}}"
            )
        self.state = new_state

    def advance(self, num_bytes: int) -> int:
        """Record *num_bytes* more sent and return the current percentage.

        The percentage is ``round(transferred * 100 / total)``, capped at
        100, and never lower than any value previously returned.
        """
        if self.state is not UploadState.UPLOADING:
            raise ValueError(f"Cannot record progress in state {self.state.value}")
        if num_bytes < 0:
            raise ValueError(f"num_bytes must be >= 0, got {num_bytes}")
        self.transferred_bytes = min(self.total_bytes, self.transferred_bytes + num_bytes)
        if self.total_bytes:
            computed = int(self.transferred_bytes * 100 / self.total_bytes + 0.5)
        else:
            computed = 100
        self.percent = max(self.percent, min(100, computed))
        return self.percent

    def finish(self, outcome: UploadResult) -> None:
        """Record the terminal *outcome* and move to the matching state."""
        self.transition(UploadState.SUCCEEDED if outcome.ok else UploadState.FAILED)
        self.outcome = outcome

    @property
    def status_text(self) -> str:
        """Human-readable status line for the progress indicator."""
        if self.state is UploadState.PENDING:
            return "Preparing upload..."
        if self.state is UploadState.SUCCEEDED:
            return "Upload complete"
        if self.state is UploadState.FAILED:
            return "Upload failed"
        return (
            f"Uploading... {self.percent}% "
            f"({self.transferred_bytes / _MIB:.1f}MB / {self.total_bytes / _MIB:.1f}MB)"
        )
