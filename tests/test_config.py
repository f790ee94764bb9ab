from __future__ import annotations

from pathlib import Path

import pytest
import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from core.config import Config, apply_env_overrides, load_config, parse_bool
from slo.contracts import GlobalInParallel, MetricScope, NegativeDelta
from slo.definitions import RECONCILE_TOTAL


def repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def write_config(tmp_path: Path, data: dict) -> Path:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "base.yaml").write_text(yaml.safe_dump(data), encoding="utf-8")
    return tmp_path


def test_load_config_from_repo() -> None:
    cfg = load_config(repo_root())

    assert cfg.app.name == "slolab"
    assert cfg.app.env == "dev"
    assert cfg.logging.json_format is True
    assert cfg.logging.log_dir == Path("./var/log/slolab")
    assert cfg.slo.enabled is False
    assert cfg.slo.artifacts_dir == Path("/tmp")
    assert cfg.slo.suite == "e2e"
    assert cfg.slo.policy.on_global_in_parallel == "skip"
    assert cfg.slo.fetch.metrics_url is None


def test_load_config_missing_base(tmp_path: Path) -> None:
    (tmp_path / "config").mkdir()

    with pytest.raises(FileNotFoundError, match="Missing or empty config file"):
        load_config(tmp_path)


def test_load_config_empty_base(tmp_path: Path) -> None:
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "base.yaml").write_text("", encoding="utf-8")

    with pytest.raises(FileNotFoundError):
        load_config(tmp_path)


def test_unknown_keys_rejected(tmp_path: Path) -> None:
    root = write_config(tmp_path, {"slo": {"enabled": True, "redis_url": "redis://x"}})

    with pytest.raises(ValidationError):
        load_config(root)


def test_partial_config_uses_defaults(tmp_path: Path) -> None:
    root = write_config(tmp_path, {"slo": {"enabled": True}})

    cfg = load_config(root)

    assert cfg.slo.enabled is True
    assert cfg.app.name == "slolab"
    assert cfg.slo.policy.allow_parallel is False


def test_build_definitions_default_to_reconcile_counter() -> None:
    definitions = Config().slo.build_definitions()

    assert [d.name for d in definitions] == [RECONCILE_TOTAL]
    assert definitions[0].scope is MetricScope.GLOBAL


def test_build_definitions_from_config(tmp_path: Path) -> None:
    root = write_config(
        tmp_path,
        {"slo": {"metrics": [{"name": "jobs_total"}, {"name": "reconcile_total", "scope": "global"}]}},
    )

    definitions = load_config(root).slo.build_definitions()

    assert [(d.name, d.scope) for d in definitions] == [
        ("jobs_total", MetricScope.SCOPED),
        ("reconcile_total", MetricScope.GLOBAL),
    ]


def test_build_policy(tmp_path: Path) -> None:
    root = write_config(
        tmp_path,
        {
            "slo": {
                "policy": {
                    "allow_parallel": True,
                    "on_global_in_parallel": "fail",
                    "on_negative_delta": "skip",
                }
            }
        },
    )

    policy = load_config(root).slo.build_policy()

    assert policy.allow_parallel is True
    assert policy.global_in_parallel is GlobalInParallel.FAIL
    assert policy.on_negative_delta is NegativeDelta.SKIP


def test_unknown_global_policy_is_kept_raw(tmp_path: Path) -> None:
    root = write_config(tmp_path, {"slo": {"policy": {"on_global_in_parallel": "explode"}}})

    policy = load_config(root).slo.build_policy()

    assert policy.on_global_in_parallel == "explode"
    assert policy.global_in_parallel is None


def test_summary_path() -> None:
    cfg = Config()

    assert cfg.slo.summary_path() == Path("/tmp/sli-summary.json")
    assert cfg.slo.summary_path("x.json") == Path("/tmp/x.json")


@pytest.mark.parametrize(
    ("value", "default", "expected"),
    [
        ("1", False, True),
        ("TRUE", False, True),
        (" yes ", False, True),
        ("on", False, True),
        ("0", True, False),
        ("off", True, False),
        ("No", True, False),
        ("maybe", True, True),
        ("", False, False),
        (None, True, True),
    ],
)
def test_parse_bool(value: str | None, default: bool, expected: bool) -> None:
    assert parse_bool(value, default) is expected


def test_env_overrides() -> None:
    environ = {
        "SLOLAB_ENABLED": "true",
        "ARTIFACTS_DIR": "/artifacts",
        "CI_RUN_ID": "run-42",
        "SLO_ALLOW_PARALLEL": "1",
        "SLO_METRICS_URL": "https://operator:8443/metrics",
        "SLO_METRICS_TOKEN": "tkn",
    }
    base = Config()

    cfg = apply_env_overrides(base, environ)

    assert cfg.slo.enabled is True
    assert cfg.slo.artifacts_dir == Path("/artifacts")
    assert cfg.slo.run_id == "run-42"
    assert cfg.slo.policy.allow_parallel is True
    assert cfg.slo.fetch.metrics_url == "https://operator:8443/metrics"
    assert cfg.slo.fetch.token == "tkn"
    # original is untouched
    assert base.slo.enabled is False
    assert base.slo.fetch.metrics_url is None


def test_blank_env_values_are_ignored() -> None:
    cfg = apply_env_overrides(
        Config(), {"SLOLAB_ENABLED": "  ", "ARTIFACTS_DIR": "", "CI_RUN_ID": " "}
    )

    assert cfg.slo.enabled is False
    assert cfg.slo.artifacts_dir == Path("/tmp")
    assert cfg.slo.run_id == ""
