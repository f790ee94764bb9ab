"""SLO measurement CLI.

Measures the reconcile-counter delta (or any configured metrics) around
either a fixed time window or a wrapped command, and writes the session
result as JSON. The wrapped command's exit status decides whether the
unit of work passed; measurement problems only ever downgrade a passing
run to ``skip``.

Usage::

    python -m apps.slo_measure --enable --metrics-url http://localhost:8080/metrics \
        --test-case smoke -- ./run-smoke.sh
"""

from __future__ import annotations

import argparse
import logging
import shlex
import subprocess
import sys
import time
from pathlib import Path

from core.config import Config, apply_env_overrides, load_config
from core.logging import setup_console_logging, setup_json_logging
from slo.contracts import EvaluationPolicy, MetricDefinition
from slo.fetchers import CommandMetricsFetcher, HttpMetricsFetcher
from slo.harness import measure
from slo.naming import default_labels, default_meta, summary_filename
from slo.session import MeasurementSession, SnapshotFetcher
from slo.sink import JsonFileSink

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        description="Measure metric deltas around a time window or a command (after --)"
    )
    parser.add_argument(
        "--config-root",
        default=".",
        help="Directory containing config/ (defaults to current working directory)",
    )
    parser.add_argument(
        "--enable",
        action="store_true",
        help="Measure even if slo.enabled is false in config/env",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--metrics-url", help="Metrics endpoint to scrape")
    source.add_argument(
        "--metrics-command",
        help="Command whose stdout is the exposition text (shell-style quoting)",
    )
    parser.add_argument("--token", help="Bearer token for --metrics-url")
    parser.add_argument(
        "--window-seconds",
        type=float,
        default=0.0,
        help="Time window to measure when no command is given (default: 0)",
    )
    parser.add_argument(
        "--metric",
        action="append",
        default=None,
        metavar="NAME[:SCOPE]",
        help="Metric to track (repeatable); scope is global or scoped",
    )
    parser.add_argument("--allow-parallel", action="store_true", default=None)
    parser.add_argument(
        "--on-global-in-parallel",
        default=None,
        help="skip | warn | fail (default from config)",
    )
    parser.add_argument("--suite", default=None)
    parser.add_argument("--test-case", default="")
    parser.add_argument("--namespace", default="")
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--output", type=Path, default=None, help="Result JSON path")
    parser.add_argument("--log-dir", default=None, help="Override logging.log_dir")
    return parser


def _load(config_root: str) -> Config:
    if (Path(config_root) / "config" / "base.yaml").exists():
        return apply_env_overrides(load_config(config_root))
    return apply_env_overrides(Config())


def _parse_metric(value: str) -> MetricDefinition:
    name, _, scope = value.rpartition(":")
    if not name or scope not in ("global", "scoped"):
        return MetricDefinition(name=value)
    return MetricDefinition(name=name, scope=scope)  # type: ignore[arg-type]


def _build_fetcher(args: argparse.Namespace, cfg: Config) -> SnapshotFetcher:
    fetch = cfg.slo.fetch
    if args.metrics_command:
        return CommandMetricsFetcher(shlex.split(args.metrics_command), timeout=fetch.timeout_sec)
    url = args.metrics_url or fetch.metrics_url
    if url:
        return HttpMetricsFetcher(
            url,
            token=args.token or fetch.token,
            timeout=fetch.timeout_sec,
            verify=fetch.verify_tls,
        )
    if fetch.command:
        return CommandMetricsFetcher(fetch.command, timeout=fetch.timeout_sec)
    raise SystemExit("no metrics source: pass --metrics-url or --metrics-command")


def run_measurement(args: argparse.Namespace, command: list[str]) -> int:
    """Run one measured unit of work.

    Args:
        args: Parsed arguments
        command: Wrapped command (empty for a time window)

    Returns:
        Exit code of the wrapped command (0 for a time window)
    """
    cfg = _load(args.config_root)
    log_dir = args.log_dir or str(cfg.logging.log_dir)
    if cfg.logging.json_format:
        setup_json_logging(log_dir, cfg.logging.level)
    else:
        setup_console_logging(cfg.logging.level)

    slo_cfg = cfg.slo
    suite = args.suite if args.suite is not None else slo_cfg.suite
    run_id = args.run_id if args.run_id is not None else slo_cfg.run_id
    definitions = (
        [_parse_metric(value) for value in args.metric]
        if args.metric
        else slo_cfg.build_definitions()
    )
    configured = slo_cfg.build_policy()
    policy = EvaluationPolicy(
        allow_parallel=(
            args.allow_parallel if args.allow_parallel is not None else configured.allow_parallel
        ),
        on_global_in_parallel=args.on_global_in_parallel or configured.on_global_in_parallel,
        on_negative_delta=configured.on_negative_delta,
    )
    output = args.output or slo_cfg.summary_path(
        summary_filename(run_id, args.test_case) if args.test_case else None
    )

    session = MeasurementSession(
        _build_fetcher(args, cfg),
        definitions,
        policy,
        JsonFileSink(output),
        labels=default_labels(suite, args.test_case, args.namespace, run_id),
        meta=default_meta(
            "cli",
            "command" if command else "time-window",
            run_id,
            suite,
            args.test_case,
            args.namespace,
        ),
    )

    exit_code = 0
    with measure(session, enabled=args.enable or slo_cfg.enabled) as run:
        if command:
            exit_code = subprocess.run(command, check=False).returncode
            if exit_code != 0:
                run.mark_failed()
        elif args.window_seconds > 0:
            time.sleep(args.window_seconds)

    assert run.outcome is not None
    logger.info(
        "slo_measure.done",
        extra={"outcome": run.outcome.value, "output": str(output), "exit_code": exit_code},
    )
    print(f"outcome={run.outcome.value} output={output}")
    for failure in run.failures:
        print(f"measurement: {failure}")
    return exit_code


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Args:
        argv: Command line arguments; everything after ``--`` is the wrapped command

    Returns:
        Exit code
    """
    raw = list(sys.argv[1:] if argv is None else argv)
    command: list[str] = []
    if "--" in raw:
        split = raw.index("--")
        raw, command = raw[:split], raw[split + 1 :]

    args = build_parser().parse_args(raw)
    return run_measurement(args, command)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
