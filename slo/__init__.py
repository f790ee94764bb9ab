"""Before/after metric delta measurement for SLO reporting."""

import logging

from slo.contracts import (
    EvaluationPolicy,
    GlobalInParallel,
    MetricDefinition,
    MetricMap,
    MetricScope,
    NegativeDelta,
    SessionMeta,
    SessionResult,
)
from slo.definitions import default_metric_definitions
from slo.errors import (
    EndBeforeStartError,
    ResultSinkError,
    SessionError,
    SessionStateError,
    SnapshotFetchError,
)
from slo.exposition import parse_exposition
from slo.harness import MeasurementRun, measure
from slo.outcome import Outcome, classify_outcome
from slo.session import MeasurementSession, SessionState, compute_result
from slo.sink import JsonFileSink, ResultSink

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "EndBeforeStartError",
    "EvaluationPolicy",
    "GlobalInParallel",
    "JsonFileSink",
    "MeasurementRun",
    "MeasurementSession",
    "MetricDefinition",
    "MetricMap",
    "MetricScope",
    "NegativeDelta",
    "Outcome",
    "ResultSink",
    "ResultSinkError",
    "SessionError",
    "SessionMeta",
    "SessionResult",
    "SessionState",
    "SessionStateError",
    "SnapshotFetchError",
    "classify_outcome",
    "compute_result",
    "default_metric_definitions",
    "measure",
    "parse_exposition",
]
