"""Utilities for loading aggregation engine responses."""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Dict, Mapping


class ResponseFormatError(ValueError):
    """Raised when an engine response does not follow the expected schema."""


def _coerce_value(name: str, body: object) -> float:
    if isinstance(body, Mapping):
        if "value" not in body:
            raise ResponseFormatError(f"Aggregation '{name}' has no 'value' field.")
        body = body["value"]
    if body is None:
        # Single-value reductions over zero documents report null.
        return math.nan
    if isinstance(body, bool) or not isinstance(body, (int, float)):
        raise ResponseFormatError(f"Aggregation '{name}' value must be a number, got {body!r}.")
    return float(body)


def parse_aggregation_values(payload: object) -> Dict[str, float]:
    """Flatten an engine response into ``{aggregation_name: value}``.

    Accepted shapes:

    - ``{"aggregations": {"name": {"value": 0.48}}}``
    - ``{"name": {"value": 0.48}}`` or ``{"name": 0.48}``
    """

    if not isinstance(payload, Mapping):
        raise ResponseFormatError("Response payload must be a JSON object.")
    aggregations = payload.get("aggregations", payload)
    if not isinstance(aggregations, Mapping):
        raise ResponseFormatError("'aggregations' must be a JSON object.")
    return {str(name): _coerce_value(str(name), body) for name, body in aggregations.items()}


def load_aggregation_values(response_path: Path) -> Dict[str, float]:
    if not response_path.exists():
        raise FileNotFoundError(f"Response file not found: {response_path}")
    with response_path.open("r", encoding="utf-8") as fp:
        payload = json.load(fp)
    return parse_aggregation_values(payload)
