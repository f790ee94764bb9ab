"""Session-control errors.

These are raised to the caller and signal orchestration or infrastructure
defects. Degraded measurements are recorded inside the SessionResult
instead and never raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from slo.contracts import SessionResult


class SessionError(Exception):
    """Base class for measurement session errors."""


class SessionStateError(SessionError):
    """Operation called in the wrong session state."""


class EndBeforeStartError(SessionStateError):
    """End was called before a successful Start."""


class SnapshotFetchError(SessionError):
    """The snapshot fetcher failed during Start or End."""

    def __init__(self, phase: str, message: str) -> None:
        super().__init__(f"{phase} snapshot fetch failed: {message}")
        self.phase = phase


class ResultSinkError(SessionError):
    """Persisting a computed result failed.

    The result itself is valid and kept on the exception so callers may
    retry persistence.
    """

    def __init__(self, result: SessionResult, message: str) -> None:
        super().__init__(f"result sink failed: {message}")
        self.result = result
