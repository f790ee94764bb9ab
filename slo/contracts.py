"""Measurement session contracts.

This module defines the data model shared by the measurement session,
its evaluation policy, and result sinks: metric definitions, the
parallel-execution policy, report metadata, and the session result.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

MetricMap = Mapping[str, float]
"""Snapshot of a metrics exposition keyed by series identity."""


class MetricScope(str, Enum):
    """Attribution scope of a tracked metric."""

    GLOBAL = "global"
    SCOPED = "scoped"


class GlobalInParallel(str, Enum):
    """Treatment of global metrics while sessions may run in parallel."""

    SKIP = "skip"
    WARN = "warn"
    FAIL = "fail"

    @classmethod
    def parse(cls, value: GlobalInParallel | str | None) -> GlobalInParallel | None:
        """Resolve a configured value, returning None when unrecognized."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class NegativeDelta(str, Enum):
    """Treatment of a delta where the end value is below the start value."""

    PASS = "pass"
    WARN = "warn"
    SKIP = "skip"


@dataclass(frozen=True)
class MetricDefinition:
    """Tracked metric.

    Attributes:
        name: Series identity or bare metric name, matched by exact key
        scope: Whether the metric is shared across units of work

    Raises:
        ValueError: If name is empty or scope is unknown
    """

    name: str
    scope: MetricScope = MetricScope.SCOPED

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("name must not be empty")
        try:
            object.__setattr__(self, "scope", MetricScope(self.scope))
        except ValueError:
            raise ValueError(
                f"scope must be one of {{'global', 'scoped'}} (got {self.scope!r})"
            ) from None

    @property
    def is_global(self) -> bool:
        return self.scope is MetricScope.GLOBAL

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "scope": self.scope.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MetricDefinition:
        return cls(name=data["name"], scope=data.get("scope", MetricScope.SCOPED.value))


@dataclass(frozen=True)
class EvaluationPolicy:
    """Policy applied to metric definitions when a session ends.

    Attributes:
        allow_parallel: Whether sessions may run concurrently. When False,
            global metrics are evaluated like scoped ones.
        on_global_in_parallel: Treatment of global metrics in parallel mode.
            Kept as given; unrecognized or unset values take the default
            branch (warn plus a diagnostic warning).
        on_negative_delta: Treatment of negative deltas (counter resets)
    """

    allow_parallel: bool = False
    on_global_in_parallel: GlobalInParallel | str | None = None
    on_negative_delta: NegativeDelta = NegativeDelta.PASS

    def __post_init__(self) -> None:
        object.__setattr__(self, "on_negative_delta", NegativeDelta(self.on_negative_delta))

    @property
    def global_in_parallel(self) -> GlobalInParallel | None:
        """Recognized treatment, or None when the configured value is unknown."""
        return GlobalInParallel.parse(self.on_global_in_parallel)

    def to_dict(self) -> dict[str, Any]:
        raw = self.on_global_in_parallel
        return {
            "allow_parallel": self.allow_parallel,
            "on_global_in_parallel": raw.value if isinstance(raw, Enum) else raw,
            "on_negative_delta": self.on_negative_delta.value,
        }


@dataclass(frozen=True)
class SessionMeta:
    """Report-only session metadata.

    Safe to be high cardinality; never interpreted by the session.

    Attributes:
        method: How the session was driven (e.g. "pytest", "cli", "watch")
        scope: What the window covers (e.g. "test-run", "time-window")
        run_id: CI or batch run identifier
        suite: Test suite name
        test_case: Test case name
        namespace: Namespace or instance under test
        extra: Free-form caller metadata, must be JSON-serializable to persist
    """

    method: str = ""
    scope: str = ""
    run_id: str = ""
    suite: str = ""
    test_case: str = ""
    namespace: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "scope": self.scope,
            "run_id": self.run_id,
            "suite": self.suite,
            "test_case": self.test_case,
            "namespace": self.namespace,
            "extra": dict(self.extra),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SessionMeta:
        return cls(
            method=data.get("method", ""),
            scope=data.get("scope", ""),
            run_id=data.get("run_id", ""),
            suite=data.get("suite", ""),
            test_case=data.get("test_case", ""),
            namespace=data.get("namespace", ""),
            extra=dict(data.get("extra", {})),
        )


@dataclass(frozen=True)
class SessionResult:
    """Output of one measurement session.

    Constructed once when a session ends and immutable afterwards.

    Attributes:
        meta: Report-only metadata
        labels: Low-cardinality labels (e.g. {"suite": "e2e"})
        start_time_unix_ms: Wall-clock start of the window (milliseconds)
        end_time_unix_ms: Wall-clock end of the window (milliseconds)
        measurements: Metric name -> delta
        skipped: Metric name -> reason no measurement was produced
        warnings: Human-readable warnings, in order
        errors: Non-fatal errors, in order

    Raises:
        ValueError: If a timestamp is negative
    """

    start_time_unix_ms: int
    end_time_unix_ms: int
    meta: SessionMeta = field(default_factory=SessionMeta)
    labels: Mapping[str, str] = field(default_factory=dict)
    measurements: Mapping[str, float] = field(default_factory=dict)
    skipped: Mapping[str, str] = field(default_factory=dict)
    warnings: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.start_time_unix_ms < 0:
            raise ValueError(f"start_time_unix_ms must be >= 0, got {self.start_time_unix_ms}")
        if self.end_time_unix_ms < 0:
            raise ValueError(f"end_time_unix_ms must be >= 0, got {self.end_time_unix_ms}")
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))
        object.__setattr__(self, "measurements", MappingProxyType(dict(self.measurements)))
        object.__setattr__(self, "skipped", MappingProxyType(dict(self.skipped)))
        object.__setattr__(self, "warnings", tuple(self.warnings))
        object.__setattr__(self, "errors", tuple(self.errors))

    @property
    def duration_ms(self) -> int:
        return self.end_time_unix_ms - self.start_time_unix_ms

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary.

        Returns:
            Dictionary representation with stable field names
        """
        return {
            "meta": self.meta.to_dict(),
            "labels": dict(self.labels),
            "start_time_unix_ms": self.start_time_unix_ms,
            "end_time_unix_ms": self.end_time_unix_ms,
            "measurements": dict(self.measurements),
            "skipped": dict(self.skipped),
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SessionResult:
        """Deserialize from dictionary.

        Args:
            data: Dictionary produced by ``to_dict`` or read from a persisted artifact

        Returns:
            SessionResult instance
        """
        return cls(
            meta=SessionMeta.from_dict(data.get("meta", {})),
            labels=dict(data.get("labels", {})),
            start_time_unix_ms=data["start_time_unix_ms"],
            end_time_unix_ms=data["end_time_unix_ms"],
            measurements={k: float(v) for k, v in data.get("measurements", {}).items()},
            skipped=dict(data.get("skipped", {})),
            warnings=tuple(data.get("warnings", ())),
            errors=tuple(data.get("errors", ())),
        )
