"""Evaluation driver, engine response parsing and reporting."""

from .driver import AggregationEngine, EvaluationRound, collect_requests, run_evaluation
from .reporting import dumps_strict, json_safe, metrics_to_dataframe, write_results_csv
from .results import ResponseFormatError, load_aggregation_values, parse_aggregation_values

__all__ = [
    "AggregationEngine",
    "EvaluationRound",
    "collect_requests",
    "run_evaluation",
    "dumps_strict",
    "json_safe",
    "metrics_to_dataframe",
    "write_results_csv",
    "ResponseFormatError",
    "load_aggregation_values",
    "parse_aggregation_values",
]
