"""Evaluation policy decision table.

A global counter sampled by several concurrent sessions cannot be
attributed to any single unit of work. The policy lets callers drop such
metrics, flag them for audit, or report them as non-fatal errors.
"""

from __future__ import annotations

from dataclasses import dataclass

from slo.contracts import EvaluationPolicy, GlobalInParallel, MetricDefinition, NegativeDelta

SKIP_REASON_MISSING = "metric missing"
SKIP_REASON_GLOBAL_PARALLEL = "global metric in parallel mode"
SKIP_REASON_NEGATIVE_DELTA = "negative delta"


@dataclass(frozen=True)
class PolicyDecision:
    """Effect of the policy on one metric definition.

    Attributes:
        measure: Whether a measurement should be produced
        skip_reason: Reason recorded in ``skipped`` when not measured
        warnings: Warnings to append to the result
        error: Non-fatal error to append to the result
    """

    measure: bool = True
    skip_reason: str | None = None
    warnings: tuple[str, ...] = ()
    error: str | None = None


MEASURE = PolicyDecision()


def evaluate_global_policy(policy: EvaluationPolicy, definition: MetricDefinition) -> PolicyDecision:
    """Apply the parallel-execution table to a definition.

    Only global definitions under ``allow_parallel`` are affected; every
    other combination is measured normally.
    """
    if not policy.allow_parallel or not definition.is_global:
        return MEASURE

    name = definition.name
    action = policy.global_in_parallel
    if action is GlobalInParallel.SKIP:
        return PolicyDecision(measure=False, skip_reason=SKIP_REASON_GLOBAL_PARALLEL)
    if action is GlobalInParallel.FAIL:
        return PolicyDecision(
            measure=False, error=f"policy fail: global metric in parallel mode: {name}"
        )

    warning = f"global metric used in parallel mode: {name}"
    if action is GlobalInParallel.WARN:
        return PolicyDecision(warnings=(warning,))
    return PolicyDecision(
        warnings=(
            warning,
            f"unknown on_global_in_parallel policy; proceeding: {policy.on_global_in_parallel!r}",
        )
    )


def evaluate_negative_delta(
    policy: EvaluationPolicy, definition: MetricDefinition, delta: float
) -> PolicyDecision:
    """Apply the negative-delta axis to a computed delta."""
    if delta >= 0 or policy.on_negative_delta is NegativeDelta.PASS:
        return MEASURE
    if policy.on_negative_delta is NegativeDelta.SKIP:
        return PolicyDecision(measure=False, skip_reason=SKIP_REASON_NEGATIVE_DELTA)
    return PolicyDecision(warnings=(f"negative delta for {definition.name}: {delta}",))
