"""Best-effort measurement around a unit of work.

``measure`` plays the role of before/after test hooks: it starts the
session, runs the wrapped block, ends the session, and labels the
outcome. Measurement problems are logged and recorded on the run, never
raised, so they cannot fail the unit of work. Exceptions from the block
itself propagate unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from slo.contracts import SessionResult
from slo.errors import ResultSinkError, SessionError
from slo.outcome import Outcome, classify_outcome
from slo.session import MeasurementSession

logger = logging.getLogger(__name__)


@dataclass
class MeasurementRun:
    """State of one measured unit of work.

    Attributes:
        passed: Whether the unit of work succeeded (set by ``measure``, or
            by the caller for units that report failure without raising)
        result: Session result when End succeeded
        outcome: Labelled outcome, set when the block exits
        failures: Session-control errors encountered (logged, not raised)
    """

    passed: bool = True
    result: SessionResult | None = None
    outcome: Outcome | None = None
    failures: list[SessionError] = field(default_factory=list)

    def mark_failed(self) -> None:
        self.passed = False


@contextmanager
def measure(
    session: MeasurementSession,
    *,
    enabled: bool = True,
    required: Iterable[str] | None = None,
) -> Iterator[MeasurementRun]:
    """Measure the wrapped block with ``session``.

    Args:
        session: Fresh (NOT_STARTED) measurement session
        enabled: When False, nothing is measured
        required: Metric names that must be measured for a SUCCESS outcome
            (defaults to every definition tracked by the session)

    Yields:
        MeasurementRun updated with the result and outcome on exit
    """
    run = MeasurementRun()
    if required is None:
        required_names = [definition.name for definition in session.definitions]
    else:
        required_names = list(required)

    if enabled:
        try:
            session.start()
        except SessionError as exc:
            run.failures.append(exc)
            logger.warning("slo.harness.start_failed", extra={"error": str(exc)})

    try:
        yield run
    except BaseException:
        run.passed = False
        raise
    finally:
        if enabled:
            run.result = _end_best_effort(session, run)
        run.outcome = classify_outcome(run.passed, run.result, required_names)
        logger.info(
            "slo.harness.outcome",
            extra={"outcome": run.outcome.value, "test_case": session.meta.test_case},
        )


def _end_best_effort(session: MeasurementSession, run: MeasurementRun) -> SessionResult | None:
    try:
        return session.end()
    except ResultSinkError as exc:
        # the result is valid even though it was not persisted
        run.failures.append(exc)
        logger.warning("slo.harness.sink_failed", extra={"error": str(exc)})
        return exc.result
    except SessionError as exc:
        run.failures.append(exc)
        logger.warning("slo.harness.end_failed", extra={"error": str(exc)})
        return None
