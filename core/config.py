from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, Field

from slo.contracts import EvaluationPolicy, MetricDefinition, NegativeDelta
from slo.definitions import default_metric_definitions
from slo.naming import DEFAULT_ARTIFACTS_DIR, summary_path

_TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "f", "no", "n", "off"}


class AppCfg(BaseModel):
    model_config: ClassVar[dict[str, Any]] = {"extra": "forbid"}

    name: str = "slolab"
    env: str = "dev"


class LoggingCfg(BaseModel):
    model_config: ClassVar[dict[str, Any]] = {"extra": "forbid"}

    level: str = "INFO"
    json_format: bool = True
    log_dir: Path = Path("./var/log/slolab")


class MetricDefCfg(BaseModel):
    model_config: ClassVar[dict[str, Any]] = {"extra": "forbid"}

    name: str
    scope: Literal["global", "scoped"] = "scoped"


class PolicyCfg(BaseModel):
    model_config: ClassVar[dict[str, Any]] = {"extra": "forbid"}

    allow_parallel: bool = False
    # kept as a plain string; unknown values take the policy's default branch
    on_global_in_parallel: str | None = "skip"
    on_negative_delta: Literal["pass", "warn", "skip"] = "pass"


class FetchCfg(BaseModel):
    model_config: ClassVar[dict[str, Any]] = {"extra": "forbid"}

    metrics_url: str | None = None
    token: str | None = None
    timeout_sec: float = 2.0
    verify_tls: bool = True
    command: list[str] | None = None


class SloCfg(BaseModel):
    model_config: ClassVar[dict[str, Any]] = {"extra": "forbid"}

    enabled: bool = False
    artifacts_dir: Path = Path(DEFAULT_ARTIFACTS_DIR)
    run_id: str = ""
    suite: str = ""
    metrics: list[MetricDefCfg] | None = None
    policy: PolicyCfg = Field(default_factory=PolicyCfg)
    fetch: FetchCfg = Field(default_factory=FetchCfg)

    def build_definitions(self) -> list[MetricDefinition]:
        if self.metrics is None:
            return default_metric_definitions()
        return [MetricDefinition(name=m.name, scope=m.scope) for m in self.metrics]  # type: ignore[arg-type]

    def build_policy(self) -> EvaluationPolicy:
        return EvaluationPolicy(
            allow_parallel=self.policy.allow_parallel,
            on_global_in_parallel=self.policy.on_global_in_parallel,
            on_negative_delta=NegativeDelta(self.policy.on_negative_delta),
        )

    def summary_path(self, filename: str | None = None) -> Path:
        return summary_path(self.artifacts_dir, filename)


class Config(BaseModel):
    model_config: ClassVar[dict[str, Any]] = {"extra": "forbid"}

    app: AppCfg = Field(default_factory=AppCfg)
    logging: LoggingCfg = Field(default_factory=LoggingCfg)
    slo: SloCfg = Field(default_factory=SloCfg)


def _read_yaml(path: Path) -> dict[str, Any]:
    """Safe YAML read; returns {} if file missing/empty."""
    import yaml  # lazy import

    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data or {}


def load_config(base_dir: str | Path) -> Config:
    """Load config models from ./config/base.yaml."""

    base_path = Path(base_dir)
    base_yaml = base_path / "config" / "base.yaml"
    data = _read_yaml(base_yaml)
    if not data:
        msg = f"Missing or empty config file: {base_yaml}"
        raise FileNotFoundError(msg)

    return Config.model_validate(data)


def parse_bool(value: str | None, default: bool) -> bool:
    """Parse a boolean flag; unrecognized or empty values keep ``default``."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return default


def apply_env_overrides(cfg: Config, environ: Mapping[str, str] | None = None) -> Config:
    """Return a copy of ``cfg`` with environment overrides applied.

    Recognized variables: ``SLOLAB_ENABLED``, ``ARTIFACTS_DIR``, ``CI_RUN_ID``,
    ``SLO_ALLOW_PARALLEL``, ``SLO_METRICS_URL``, ``SLO_METRICS_TOKEN``.
    """
    env = os.environ if environ is None else environ

    def _get(key: str) -> str | None:
        value = env.get(key)
        if value is None or not value.strip():
            return None
        return value.strip()

    slo = cfg.slo
    policy = slo.policy.model_copy(
        update={"allow_parallel": parse_bool(_get("SLO_ALLOW_PARALLEL"), slo.policy.allow_parallel)}
    )
    fetch = slo.fetch.model_copy(
        update={
            "metrics_url": _get("SLO_METRICS_URL") or slo.fetch.metrics_url,
            "token": _get("SLO_METRICS_TOKEN") or slo.fetch.token,
        }
    )
    artifacts_dir = _get("ARTIFACTS_DIR")
    slo = slo.model_copy(
        update={
            "enabled": parse_bool(_get("SLOLAB_ENABLED"), slo.enabled),
            "artifacts_dir": Path(artifacts_dir) if artifacts_dir else slo.artifacts_dir,
            "run_id": _get("CI_RUN_ID") or slo.run_id,
            "policy": policy,
            "fetch": fetch,
        }
    )
    return cfg.model_copy(update={"slo": slo})
