"""Helpers for result labels, metadata, and artifact file names."""

from __future__ import annotations

import re
from pathlib import Path

from slo.contracts import SessionMeta

DEFAULT_ARTIFACTS_DIR = "/tmp"
DEFAULT_SUMMARY_FILENAME = "sli-summary.json"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def default_test_case(test_case: str, fallback: str) -> str:
    """Return the trimmed test case, or the trimmed fallback when empty."""
    if test_case.strip():
        return test_case.strip()
    return fallback.strip()


def default_labels(suite: str, test_case: str, namespace: str, run_id: str) -> dict[str, str]:
    """Build low-cardinality result labels, omitting empty values."""
    candidates = {
        "suite": suite,
        "test_case": test_case,
        "namespace": namespace,
        "run_id": run_id,
    }
    return {key: value for key, value in candidates.items() if value}


def default_meta(
    method: str, scope: str, run_id: str, suite: str, test_case: str, namespace: str
) -> SessionMeta:
    return SessionMeta(
        method=method,
        scope=scope,
        run_id=run_id,
        suite=suite,
        test_case=test_case,
        namespace=namespace,
    )


def sanitize_filename(value: str) -> str:
    """Make a value safe to embed in a file name.

    Runs of characters outside ``[A-Za-z0-9._-]`` become a single ``_``;
    leading/trailing separators are dropped and an empty result becomes
    ``unknown``.
    """
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", value.strip()).strip("._")
    return cleaned or "unknown"


def summary_filename(run_id: str, test_case: str) -> str:
    """Per-test artifact name, e.g. ``sli-summary.<run>.<case>.json``."""
    return f"sli-summary.{sanitize_filename(run_id)}.{sanitize_filename(test_case)}.json"


def summary_path(artifacts_dir: str | Path | None, filename: str | None = None) -> Path:
    """Resolve the artifact path, defaulting the directory and file name."""
    directory = Path(artifacts_dir) if artifacts_dir else Path(DEFAULT_ARTIFACTS_DIR)
    return directory / (filename or DEFAULT_SUMMARY_FILENAME)
