"""Default metric definition set."""

from __future__ import annotations

from slo.contracts import MetricDefinition, MetricScope

RECONCILE_TOTAL = "controller_runtime_reconcile_total"


def default_metric_definitions() -> list[MetricDefinition]:
    """Return the baseline definitions: the controller reconcile counter.

    The reconcile counter aggregates every controller in the process, so
    it is tracked as a global metric.
    """
    return [MetricDefinition(name=RECONCILE_TOTAL, scope=MetricScope.GLOBAL)]
