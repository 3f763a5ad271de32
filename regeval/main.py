"""Entry point for planning push-down aggregations and collecting their results."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Sequence

import yaml

from regeval.evaluation import (
    ResponseFormatError,
    collect_requests,
    dumps_strict,
    load_aggregation_values,
    write_results_csv,
)
from regeval.metrics import MetricConfigError, MetricResultError, UnknownMetricError
from regeval.utils import EvaluationConfig

logger = logging.getLogger("regeval")

CLI_ERRORS = (
    FileNotFoundError,
    yaml.YAMLError,
    MetricConfigError,
    MetricResultError,
    UnknownMetricError,
    ResponseFormatError,
    json.JSONDecodeError,
)


def build_request_body(config: EvaluationConfig) -> Dict[str, Any]:
    """Render the search body an engine would execute for the configured metrics."""

    aggregations, pipeline_aggregations, _ = collect_requests(
        config.metrics, config.actual_field, config.predicted_field
    )
    aggs: Dict[str, Any] = {}
    for spec in (*aggregations, *pipeline_aggregations):
        aggs.update(spec.to_dict())
    return {"size": 0, "aggs": aggs}


def collect_results(config: EvaluationConfig, response_path: Path) -> Dict[str, Any]:
    values = load_aggregation_values(response_path)
    _, _, active = collect_requests(config.metrics, config.actual_field, config.predicted_field)
    for metric in active:
        metric.process(values)
    return {
        metric.name: metric.result.to_dict() if metric.result is not None else None
        for metric in config.metrics
    }


def _write_json(payload: Dict[str, Any], output: Path | None) -> None:
    text = dumps_strict(payload, indent=2)
    if output is None:
        print(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    logger.info("Wrote %s", output)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Push-down regression evaluation.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    plan = subparsers.add_parser("plan", help="Print the aggregation request for a config file.")
    plan.add_argument("--config", required=True, help="Path to YAML config")
    plan.add_argument("--output", help="Write the request JSON here instead of stdout")

    collect = subparsers.add_parser("collect", help="Compute metric results from an engine response.")
    collect.add_argument("--config", required=True, help="Path to YAML config")
    collect.add_argument("--response", required=True, help="Path to the engine response JSON")
    collect.add_argument("--output", help="Write the results JSON here instead of stdout")
    collect.add_argument("--csv", help="Also write a CSV summary to this path")

    args = parser.parse_args(argv)

    if args.verbose:
        log_level = logging.DEBUG
    elif args.quiet:
        log_level = logging.WARNING
    else:
        log_level = logging.INFO
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=log_level,
    )

    output = Path(args.output) if args.output else None
    try:
        config = EvaluationConfig.from_yaml(Path(args.config))
        if args.command == "plan":
            _write_json(build_request_body(config), output)
            return 0
        results = collect_results(config, Path(args.response))
    except CLI_ERRORS as exc:
        print(f"[ERROR] {args.command} failed: {exc}", file=sys.stderr)
        return 1
    _write_json(results, output)
    if args.csv:
        csv_path = write_results_csv(config.metrics, Path(args.csv))
        logger.info("Wrote %s", csv_path)
    return 0


if __name__ == "__main__":  # pragma: no cover - manual execution
    sys.exit(main())
