from __future__ import annotations

from collections.abc import Iterable, Mapping

from slo.contracts import SessionResult
from slo.sink import ResultSink


class ScriptedFetcher:
    """Returns queued snapshots in order; queued exceptions are raised."""

    def __init__(self, snapshots: Iterable[Mapping[str, float] | Exception]) -> None:
        self._queue = list(snapshots)
        self.calls = 0

    def __call__(self) -> Mapping[str, float]:
        self.calls += 1
        item = self._queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeClock:
    """Wall clock returning queued instants (seconds since epoch)."""

    def __init__(self, *instants: float) -> None:
        self._instants = list(instants)

    def __call__(self) -> float:
        return self._instants.pop(0)


class RecordingSink(ResultSink):
    def __init__(self) -> None:
        self.saved: list[SessionResult] = []

    def save(self, result: SessionResult) -> None:
        self.saved.append(result)


class FailingSink(ResultSink):
    def __init__(self, exc: Exception) -> None:
        self.exc = exc
        self.attempts = 0

    def save(self, result: SessionResult) -> None:
        self.attempts += 1
        raise self.exc
