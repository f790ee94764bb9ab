"""Measurement session: before/after snapshots around a unit of work."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

from slo.contracts import (
    EvaluationPolicy,
    MetricDefinition,
    MetricMap,
    SessionMeta,
    SessionResult,
)
from slo.definitions import default_metric_definitions
from slo.errors import (
    EndBeforeStartError,
    ResultSinkError,
    SessionStateError,
    SnapshotFetchError,
)
from slo.policy import SKIP_REASON_MISSING, evaluate_global_policy, evaluate_negative_delta

if TYPE_CHECKING:
    from slo.sink import ResultSink


SnapshotFetcher = Callable[[], MetricMap]


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    STARTED = "started"
    ENDED = "ended"


def _unix_ms(seconds: float) -> int:
    return int(seconds * 1000)


def compute_result(
    start: MetricMap,
    end: MetricMap,
    definitions: Iterable[MetricDefinition],
    policy: EvaluationPolicy,
    *,
    start_time_unix_ms: int,
    end_time_unix_ms: int,
    meta: SessionMeta | None = None,
    labels: Mapping[str, str] | None = None,
) -> SessionResult:
    """Compute per-metric deltas between two snapshots under a policy.

    Args:
        start: Snapshot captured at Start
        end: Snapshot captured at End
        definitions: Tracked metrics, matched by exact key
        policy: Evaluation policy
        start_time_unix_ms: Window start
        end_time_unix_ms: Window end
        meta: Report-only metadata
        labels: Result labels

    Returns:
        SessionResult with measurements, skip reasons, warnings, and errors
    """
    measurements: dict[str, float] = {}
    skipped: dict[str, str] = {}
    warnings: list[str] = []
    errors: list[str] = []

    for definition in definitions:
        name = definition.name
        if name not in start or name not in end:
            skipped[name] = SKIP_REASON_MISSING
            continue

        decision = evaluate_global_policy(policy, definition)
        warnings.extend(decision.warnings)
        if decision.error is not None:
            errors.append(decision.error)
        if not decision.measure:
            if decision.skip_reason is not None:
                skipped[name] = decision.skip_reason
            continue

        delta = end[name] - start[name]
        decision = evaluate_negative_delta(policy, definition, delta)
        warnings.extend(decision.warnings)
        if not decision.measure:
            skipped[name] = decision.skip_reason or ""
            continue

        measurements[name] = delta

    return SessionResult(
        meta=meta or SessionMeta(),
        labels=labels or {},
        start_time_unix_ms=start_time_unix_ms,
        end_time_unix_ms=end_time_unix_ms,
        measurements=measurements,
        skipped=skipped,
        warnings=tuple(warnings),
        errors=tuple(errors),
    )


class MeasurementSession:
    """Before/after measurement of tracked metrics around one unit of work.

    A session moves ``NOT_STARTED -> STARTED -> ENDED``. It is meant for
    single-threaded use; callers running units of work concurrently create
    one session per unit of work.

    Whether measurement is enabled at all is the caller's decision: a
    session always measures once constructed.
    """

    def __init__(
        self,
        fetcher: SnapshotFetcher,
        definitions: Iterable[MetricDefinition] | None = None,
        policy: EvaluationPolicy | None = None,
        sink: ResultSink | None = None,
        *,
        labels: Mapping[str, str] | None = None,
        meta: SessionMeta | None = None,
        logger: logging.Logger | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize measurement session.

        Args:
            fetcher: Returns a metric snapshot; called once at Start and once at End
            definitions: Tracked metrics (defaults to the reconcile counter)
            policy: Evaluation policy (defaults to no parallel execution)
            sink: Persists the result at End (None disables persistence)
            labels: Result labels
            meta: Report-only metadata
            logger: Logger for diagnostic narration (defaults to module logger)
            clock: Wall-clock source in seconds since epoch
        """
        self._fetcher = fetcher
        self.definitions: tuple[MetricDefinition, ...] = tuple(
            default_metric_definitions() if definitions is None else definitions
        )
        self.policy = policy or EvaluationPolicy()
        self.sink = sink
        self.labels: Mapping[str, str] = MappingProxyType(dict(labels or {}))
        self.meta = meta or SessionMeta()
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._clock = clock

        self._state = SessionState.NOT_STARTED
        self._start_snapshot: MetricMap | None = None
        self._start_time: float | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def start_snapshot(self) -> MetricMap | None:
        return self._start_snapshot

    def start(self) -> None:
        """Capture the "before" snapshot.

        Raises:
            SessionStateError: If the session was already started
            SnapshotFetchError: If the fetcher fails; the session stays NOT_STARTED
        """
        if self._state is not SessionState.NOT_STARTED:
            raise SessionStateError(f"Start called in state {self._state.value}")

        snapshot = self._fetch("start")
        self._start_snapshot = snapshot
        self._start_time = self._clock()
        self._state = SessionState.STARTED
        self._logger.debug(
            "slo.session.started",
            extra={"series_count": len(snapshot), "test_case": self.meta.test_case},
        )

    def end(self) -> SessionResult:
        """Capture the "after" snapshot, compute deltas, and persist the result.

        Returns:
            The computed SessionResult

        Raises:
            EndBeforeStartError: If Start has not succeeded
            SessionStateError: If End already succeeded
            SnapshotFetchError: If the fetcher fails; no result is produced
            ResultSinkError: If the sink fails; the session is ENDED and the
                result is available on the error
        """
        if self._state is SessionState.NOT_STARTED:
            raise EndBeforeStartError("Start must precede End")
        if self._state is SessionState.ENDED:
            raise SessionStateError("End called on an ended session")
        if self._start_snapshot is None or self._start_time is None:
            raise SessionStateError("Started session has no start snapshot")

        end_snapshot = self._fetch("end")
        end_time = self._clock()

        result = compute_result(
            self._start_snapshot,
            end_snapshot,
            self.definitions,
            self.policy,
            start_time_unix_ms=_unix_ms(self._start_time),
            end_time_unix_ms=_unix_ms(end_time),
            meta=self.meta,
            labels=self.labels,
        )
        self._state = SessionState.ENDED
        self._logger.info(
            "slo.session.ended",
            extra={
                "test_case": self.meta.test_case,
                "measured": len(result.measurements),
                "skipped": len(result.skipped),
                "warnings": len(result.warnings),
                "errors": len(result.errors),
            },
        )

        if self.sink is None:
            return result
        try:
            self.sink.save(result)
        except Exception as exc:
            self._logger.warning(
                "slo.session.sink_failed",
                extra={"test_case": self.meta.test_case, "error": str(exc)},
            )
            raise ResultSinkError(result, str(exc)) from exc
        return result

    def _fetch(self, phase: str) -> MetricMap:
        try:
            snapshot = self._fetcher()
        except Exception as exc:
            self._logger.warning(
                "slo.session.fetch_failed",
                extra={"phase": phase, "error": str(exc)},
            )
            raise SnapshotFetchError(phase, str(exc)) from exc
        return MappingProxyType(dict(snapshot))
