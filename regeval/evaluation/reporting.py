"""Utilities for persisting evaluation results."""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

import pandas as pd

from regeval.metrics.base import EvaluationMetric

DEFAULT_COLUMNS: Sequence[str] = (
    "Metric_Name",
    "Writeable_Name",
    "Config",
    "Result",
)


def json_safe(value: Any) -> Any:
    """Replace non-finite floats with ``None`` so the payload is strict JSON."""

    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, Mapping):
        return {str(key): json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(item) for item in value]
    return value


def dumps_strict(value: Any, **kwargs: Any) -> str:
    return json.dumps(json_safe(value), allow_nan=False, **kwargs)


def metrics_to_dataframe(metrics: Sequence[EvaluationMetric]) -> pd.DataFrame:
    rows: List[Dict[str, object]] = []
    for metric in metrics:
        result = metric.result
        rows.append(
            {
                "Metric_Name": metric.name,
                "Writeable_Name": metric.writeable_name,
                "Config": dumps_strict(metric.to_dict(), sort_keys=True),
                "Result": dumps_strict(result.to_dict(), sort_keys=True) if result is not None else pd.NA,
            }
        )
    if not rows:
        return pd.DataFrame(columns=DEFAULT_COLUMNS)
    df = pd.DataFrame(rows, columns=list(DEFAULT_COLUMNS))
    df.sort_values(by="Metric_Name", inplace=True)
    return df.reset_index(drop=True)


def write_results_csv(metrics: Sequence[EvaluationMetric], output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    metrics_to_dataframe(metrics).to_csv(output_path, index=False)
    return output_path
