"""Configuration loading for evaluation runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from regeval.metrics import EvaluationMetric, MetricConfigError, MetricRegistry, create_default_registry


def load_yaml(path: Path) -> Dict:
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _require_field_name(section: Mapping[str, Any], key: str) -> str:
    value = section.get(key)
    if not isinstance(value, str) or not value.strip():
        raise MetricConfigError(f"evaluation.{key} must be a non-empty string")
    return value.strip()


@dataclass(frozen=True)
class EvaluationConfig:
    """Field names plus the metrics to evaluate over them."""

    actual_field: str
    predicted_field: str
    metrics: List[EvaluationMetric] = field(default_factory=list)

    @classmethod
    def from_mapping(
        cls,
        config: Mapping[str, Any],
        registry: Optional[MetricRegistry] = None,
    ) -> "EvaluationConfig":
        registry = registry or create_default_registry()

        evaluation = config.get("evaluation") or {}
        if not isinstance(evaluation, Mapping):
            raise MetricConfigError("'evaluation' section must be a mapping")
        actual_field = _require_field_name(evaluation, "actual_field")
        predicted_field = _require_field_name(evaluation, "predicted_field")

        metric_section = config.get("metrics")
        if metric_section is None:
            metric_section = {name: None for name in sorted(registry.registered_metric_names())}
        if not isinstance(metric_section, Mapping):
            raise MetricConfigError("'metrics' section must be a mapping of metric name to options")

        metrics = [registry.parse_metric(str(name), options) for name, options in metric_section.items()]
        return cls(actual_field=actual_field, predicted_field=predicted_field, metrics=metrics)

    @classmethod
    def from_yaml(cls, path: Path, registry: Optional[MetricRegistry] = None) -> "EvaluationConfig":
        return cls.from_mapping(load_yaml(path), registry)
