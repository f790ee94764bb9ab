"""Labelled outcome of a measured unit of work.

Measurement failure is not unit-of-work failure: a unit that passed but
could not be measured is reported as ``skip``, and a failing unit stays
``fail`` whatever happened to its measurement.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from enum import Enum

from slo.contracts import SessionResult


class Outcome(str, Enum):
    SUCCESS = "success"
    FAIL = "fail"
    SKIP = "skip"


def missing_measurements(
    result: SessionResult, required: Iterable[str] | None = None
) -> list[str]:
    """Return required metric names that have no valid measurement.

    Args:
        result: Session result to inspect
        required: Metric names that must be measured (defaults to every
            metric the result mentions)

    Returns:
        Sorted names that were skipped, absent, negative, or non-finite
    """
    if required is None:
        names = set(result.measurements) | set(result.skipped)
    else:
        names = set(required)

    missing: list[str] = []
    for name in sorted(names):
        value = result.measurements.get(name)
        if value is None or not math.isfinite(value) or value < 0:
            missing.append(name)
    return missing


def classify_outcome(
    unit_passed: bool,
    result: SessionResult | None,
    required: Iterable[str] | None = None,
) -> Outcome:
    """Classify a measured unit of work.

    Args:
        unit_passed: Whether the unit of work itself succeeded
        result: Session result, or None when no result was produced
        required: Metric names that must be measured

    Returns:
        FAIL if the unit failed, SKIP if the result carries policy errors
        or any required measurement is missing or invalid, SUCCESS otherwise
    """
    if not unit_passed:
        return Outcome.FAIL
    if result is None or result.errors:
        return Outcome.SKIP
    if missing_measurements(result, required):
        return Outcome.SKIP
    return Outcome.SUCCESS
