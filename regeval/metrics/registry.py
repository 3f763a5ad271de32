"""Metric registry and named wire-form dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from regeval.io import StreamInput, StreamOutput

from . import msle
from .base import EvaluationMetric, EvaluationMetricResult, UnknownMetricError


@dataclass(frozen=True)
class MetricEntry:
    """Constructors for one metric, keyed by its registered name."""

    metric_name: str
    writeable_name: str
    parse: Callable[[Optional[Mapping[str, Any]]], EvaluationMetric]
    read_metric: Callable[[StreamInput], EvaluationMetric]
    read_result: Callable[[StreamInput], EvaluationMetricResult]
    parse_result: Callable[[Mapping[str, Any]], EvaluationMetricResult]


class MetricRegistry:
    """Resolves metrics by configuration name and by transport name."""

    def __init__(self) -> None:
        self._by_name: Dict[str, MetricEntry] = {}
        self._by_writeable_name: Dict[str, MetricEntry] = {}

    def register(self, entry: MetricEntry) -> None:
        if entry.metric_name in self._by_name:
            raise ValueError(f"Metric {entry.metric_name} already registered")
        if entry.writeable_name in self._by_writeable_name:
            raise ValueError(f"Writeable name {entry.writeable_name} already registered")
        self._by_name[entry.metric_name] = entry
        self._by_writeable_name[entry.writeable_name] = entry

    def registered_metric_names(self) -> set[str]:
        return set(self._by_name.keys())

    def entry(self, metric_name: str) -> MetricEntry:
        if metric_name not in self._by_name:
            known = ", ".join(sorted(self._by_name))
            raise UnknownMetricError(f"Unknown metric '{metric_name}'. Known metrics: {known}")
        return self._by_name[metric_name]

    def _writeable_entry(self, writeable_name: str) -> MetricEntry:
        if writeable_name not in self._by_writeable_name:
            known = ", ".join(sorted(self._by_writeable_name))
            raise UnknownMetricError(f"Unknown writeable metric '{writeable_name}'. Known: {known}")
        return self._by_writeable_name[writeable_name]

    def parse_metric(self, metric_name: str, payload: Optional[Mapping[str, Any]]) -> EvaluationMetric:
        return self.entry(metric_name).parse(payload)

    def parse_result(self, metric_name: str, payload: Mapping[str, Any]) -> EvaluationMetricResult:
        return self.entry(metric_name).parse_result(payload)

    def write_named_metric(self, metric: EvaluationMetric, stream: StreamOutput) -> None:
        self._writeable_entry(metric.writeable_name)
        stream.write_string(metric.writeable_name)
        metric.write_to(stream)

    def read_named_metric(self, stream: StreamInput) -> EvaluationMetric:
        return self._writeable_entry(stream.read_string()).read_metric(stream)

    def write_named_result(self, result: EvaluationMetricResult, stream: StreamOutput) -> None:
        self._writeable_entry(result.writeable_name)
        stream.write_string(result.writeable_name)
        result.write_to(stream)

    def read_named_result(self, stream: StreamInput) -> EvaluationMetricResult:
        return self._writeable_entry(stream.read_string()).read_result(stream)


def create_default_registry() -> MetricRegistry:
    registry = MetricRegistry()
    registry.register(
        MetricEntry(
            metric_name=msle.NAME,
            writeable_name=msle.WRITEABLE_NAME,
            parse=msle.MeanSquaredLogarithmicError.from_dict,
            read_metric=msle.MeanSquaredLogarithmicError.from_stream,
            read_result=msle.MsleResult.from_stream,
            parse_result=msle.MsleResult.from_dict,
        )
    )
    return registry
