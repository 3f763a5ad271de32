"""Push-down evaluation metrics and registry."""

from .base import (
    AggregationSpec,
    EvaluationMetric,
    EvaluationMetricResult,
    MetricComputationError,
    MetricConfigError,
    MetricResultError,
    ReductionKind,
    Script,
    UnknownMetricError,
)
from .msle import MeanSquaredLogarithmicError, MsleConfig, MsleResult
from .registry import MetricRegistry, create_default_registry

__all__ = [
    "AggregationSpec",
    "EvaluationMetric",
    "EvaluationMetricResult",
    "MetricComputationError",
    "MetricConfigError",
    "MetricResultError",
    "ReductionKind",
    "Script",
    "UnknownMetricError",
    "MeanSquaredLogarithmicError",
    "MsleConfig",
    "MsleResult",
    "MetricRegistry",
    "create_default_registry",
]
