"""Base types shared by push-down evaluation metrics."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Protocol, Tuple, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from regeval.io import StreamOutput


class MetricComputationError(RuntimeError):
    """Raised when the aggregation engine cannot compute a requested metric."""


class MetricConfigError(ValueError):
    """Raised when metric configuration cannot be parsed."""


class MetricResultError(ValueError):
    """Raised when a metric result payload cannot be parsed."""


class UnknownMetricError(KeyError):
    """Raised when a metric name is not present in the registry."""


class ReductionKind(str, Enum):
    """Reduction operators an aggregation engine applies across per-row values."""

    AVG = "avg"

    @classmethod
    def from_value(cls, value: "ReductionKind | str") -> "ReductionKind":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unsupported reduction kind '{value}'. Valid options: {[m.value for m in cls]}")


@dataclass(frozen=True)
class Script:
    """Per-row expression evaluated inside the aggregation engine."""

    source: str
    lang: str = "painless"
    params: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"source": self.source, "lang": self.lang}
        if self.params:
            payload["params"] = dict(self.params)
        return payload


@dataclass(frozen=True)
class AggregationSpec:
    """A named reduction over a scripted per-row value."""

    name: str
    kind: ReductionKind
    script: Script

    def to_dict(self) -> Dict[str, Any]:
        return {self.name: {self.kind.value: {"script": self.script.to_dict()}}}


AggregationRequest = Tuple[List[AggregationSpec], List[AggregationSpec]]


@runtime_checkable
class EvaluationMetricResult(Protocol):
    @property
    def metric_name(self) -> str:
        ...

    @property
    def writeable_name(self) -> str:
        ...

    def to_dict(self) -> Dict[str, Any]:
        ...

    def write_to(self, stream: "StreamOutput") -> None:
        ...


@runtime_checkable
class EvaluationMetric(Protocol):
    """Capability set every push-down metric offers to the evaluation driver."""

    @property
    def name(self) -> str:
        ...

    @property
    def writeable_name(self) -> str:
        ...

    def to_dict(self) -> Dict[str, Any]:
        ...

    def write_to(self, stream: "StreamOutput") -> None:
        ...

    def aggs(self, actual_field: str, predicted_field: str) -> AggregationRequest:
        ...

    def process(self, results: Mapping[str, float]) -> None:
        ...

    @property
    def result(self) -> Optional[EvaluationMetricResult]:
        ...


def registered_metric_name(evaluation_name: str, metric_name: str) -> str:
    """Name under which a metric is registered for transport, e.g. ``regression.huber``."""

    return f"{evaluation_name}.{metric_name}"


def float_bits(value: float) -> int:
    """Return the IEEE-754 bit pattern of ``value`` as a signed 64-bit integer."""

    return int(np.array(value, dtype=np.float64).view(np.int64))


def coerce_float(name: str, value: object, error_cls: type[ValueError] = MetricConfigError) -> float:
    """Coerce a value to float64, raising ``error_cls`` for booleans and non-numerics."""

    if isinstance(value, bool):
        raise error_cls(f"'{name}' must be a number, got boolean {value!r}")
    if isinstance(value, (int, float, np.floating, np.integer)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as exc:
            raise error_cls(f"'{name}' must be a number, got {value!r}") from exc
    raise error_cls(f"'{name}' must be a number, got {type(value).__name__}")
