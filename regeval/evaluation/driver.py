"""Round-based driver connecting metrics to an aggregation engine."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Protocol, Sequence

from regeval.metrics.base import AggregationSpec, EvaluationMetric, MetricComputationError

logger = logging.getLogger(__name__)


class AggregationEngine(Protocol):
    """Executes push-down aggregations over the dataset and returns named scalars.

    Aggregations that produced no value may be omitted from the returned mapping.
    Script failures (for example a non-positive logarithm argument) are raised.
    """

    def execute(
        self,
        aggregations: Sequence[AggregationSpec],
        pipeline_aggregations: Sequence[AggregationSpec],
    ) -> Mapping[str, float]:
        ...


@dataclass
class EvaluationRound:
    round_idx: int
    aggregation_names: List[str]
    metric_names: List[str]
    duration_s: float


def collect_requests(
    metrics: Sequence[EvaluationMetric],
    actual_field: str,
    predicted_field: str,
) -> tuple[List[AggregationSpec], List[AggregationSpec], List[EvaluationMetric]]:
    """Union the aggregations every metric still needs; return them with the requesting metrics."""

    aggregations: List[AggregationSpec] = []
    pipeline_aggregations: List[AggregationSpec] = []
    active: List[EvaluationMetric] = []
    seen: set[str] = set()
    for metric in metrics:
        primary, pipeline = metric.aggs(actual_field, predicted_field)
        if not primary and not pipeline:
            continue
        for spec in (*primary, *pipeline):
            if spec.name in seen:
                raise ValueError(f"Aggregation name {spec.name} requested by more than one metric")
            seen.add(spec.name)
        aggregations.extend(primary)
        pipeline_aggregations.extend(pipeline)
        active.append(metric)
    return aggregations, pipeline_aggregations, active


def run_evaluation(
    metrics: Sequence[EvaluationMetric],
    engine: AggregationEngine,
    actual_field: str,
    predicted_field: str,
    max_rounds: int = 10,
    progress_fn: Optional[Callable[[EvaluationRound], None]] = None,
) -> List[EvaluationRound]:
    """Run evaluation rounds until no metric requests further aggregations."""

    if max_rounds < 1:
        raise ValueError("max_rounds must be >= 1")

    rounds: List[EvaluationRound] = []
    for round_idx in range(1, max_rounds + 1):
        aggregations, pipeline_aggregations, active = collect_requests(metrics, actual_field, predicted_field)
        if not active:
            break

        logger.info(
            "Round %d: submitting %d aggregation(s) for %s",
            round_idx,
            len(aggregations) + len(pipeline_aggregations),
            ", ".join(metric.name for metric in active),
        )
        start = time.perf_counter()
        try:
            results = engine.execute(aggregations, pipeline_aggregations)
        except MetricComputationError:
            raise
        except Exception as exc:
            raise MetricComputationError(f"Aggregation round {round_idx} failed: {exc}") from exc

        for metric in active:
            metric.process(results)

        round_result = EvaluationRound(
            round_idx=round_idx,
            aggregation_names=[spec.name for spec in (*aggregations, *pipeline_aggregations)],
            metric_names=[metric.name for metric in active],
            duration_s=time.perf_counter() - start,
        )
        rounds.append(round_result)
        if progress_fn is not None:
            progress_fn(round_result)

    pending = [metric.name for metric in metrics if metric.result is None]
    if pending:
        raise MetricComputationError(f"Metrics without a result after {max_rounds} round(s): {pending}")
    return rounds
