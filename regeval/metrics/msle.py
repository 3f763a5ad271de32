"""Mean squared logarithmic error computed inside the aggregation engine.

    msle = 1/n * sum((log(y + offset) - log(y' + offset)) ** 2)

``offset`` keeps the arguments of the logarithm positive. The squared
log-difference is evaluated per row by the engine and reduced with ``avg``,
so no rows are transferred to the evaluator.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from regeval.io import StreamInput, StreamOutput

from .base import (
    AggregationRequest,
    AggregationSpec,
    MetricConfigError,
    MetricResultError,
    ReductionKind,
    Script,
    coerce_float,
    float_bits,
    registered_metric_name,
)

logger = logging.getLogger(__name__)

NAME = "mean_squared_logarithmic_error"
REGRESSION_NAME = "regression"
WRITEABLE_NAME = registered_metric_name(REGRESSION_NAME, NAME)
AGG_NAME = f"regression_{NAME}"

OFFSET = "offset"
ERROR = "error"
DEFAULT_OFFSET = 1.0

SCRIPT_TEMPLATE = (
    "def offset = {offset};"
    "def diff = Math.log(doc['{actual}'].value + offset) - Math.log(doc['{predicted}'].value + offset);"
    "return diff * diff;"
)


def _script_literal(value: float) -> str:
    if math.isnan(value):
        return "Double.NaN"
    if math.isinf(value):
        return "Double.POSITIVE_INFINITY" if value > 0 else "Double.NEGATIVE_INFINITY"
    # repr() is the shortest string that reads back to the same double.
    return repr(float(value))


def _quote_field(field_name: str) -> str:
    return field_name.replace("\\", "\\\\").replace("'", "\\'")


def build_script(actual_field: str, predicted_field: str, offset: float) -> Script:
    source = SCRIPT_TEMPLATE.format(
        offset=_script_literal(offset),
        actual=_quote_field(actual_field),
        predicted=_quote_field(predicted_field),
    )
    return Script(source=source)


def build_aggregation(actual_field: str, predicted_field: str, offset: float) -> AggregationSpec:
    """Return the ``avg`` aggregation over the squared log-difference of both fields."""

    return AggregationSpec(
        name=AGG_NAME,
        kind=ReductionKind.AVG,
        script=build_script(actual_field, predicted_field, offset),
    )


@dataclass(frozen=True, eq=False)
class MsleConfig:
    offset: float = DEFAULT_OFFSET

    def __post_init__(self) -> None:
        object.__setattr__(self, "offset", coerce_float(OFFSET, self.offset))

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "MsleConfig":
        """Parse ``{"offset": number}``; unknown keys are ignored."""

        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise MetricConfigError(f"{NAME} configuration must be a mapping, got {type(payload).__name__}")
        offset = payload.get(OFFSET)
        if offset is None:
            return cls()
        return cls(offset=offset)

    @classmethod
    def from_stream(cls, stream: StreamInput) -> "MsleConfig":
        return cls(offset=stream.read_double())

    def write_to(self, stream: StreamOutput) -> None:
        stream.write_double(self.offset)

    def to_dict(self) -> Dict[str, Any]:
        return {OFFSET: self.offset}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MsleConfig):
            return NotImplemented
        return float_bits(self.offset) == float_bits(other.offset)

    def __hash__(self) -> int:
        return hash(float_bits(self.offset))


@dataclass(frozen=True, eq=False)
class MsleResult:
    error: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "error", coerce_float(ERROR, self.error, MetricResultError))

    @property
    def metric_name(self) -> str:
        return NAME

    @property
    def writeable_name(self) -> str:
        return WRITEABLE_NAME

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "MsleResult":
        if not isinstance(payload, Mapping) or ERROR not in payload:
            raise MetricResultError(f"{NAME} result must be a mapping with '{ERROR}'")
        return cls(error=payload[ERROR])

    @classmethod
    def from_stream(cls, stream: StreamInput) -> "MsleResult":
        return cls(error=stream.read_double())

    def write_to(self, stream: StreamOutput) -> None:
        stream.write_double(self.error)

    def to_dict(self) -> Dict[str, Any]:
        return {ERROR: self.error}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MsleResult):
            return NotImplemented
        return float_bits(self.error) == float_bits(other.error)

    def __hash__(self) -> int:
        return hash(float_bits(self.error))


@dataclass(frozen=True)
class Pending:
    """No aggregation output has been consumed yet."""


@dataclass(frozen=True)
class Computed:
    result: MsleResult


MetricState = Union[Pending, Computed]


class MeanSquaredLogarithmicError:
    """Stateful MSLE metric bound to a single evaluation session."""

    def __init__(self, offset: Optional[float] = None) -> None:
        self.config = MsleConfig() if offset is None else MsleConfig(offset=offset)
        self._state: MetricState = Pending()

    @classmethod
    def from_config(cls, config: MsleConfig) -> "MeanSquaredLogarithmicError":
        return cls(offset=config.offset)

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "MeanSquaredLogarithmicError":
        return cls.from_config(MsleConfig.from_dict(payload))

    @classmethod
    def from_stream(cls, stream: StreamInput) -> "MeanSquaredLogarithmicError":
        return cls.from_config(MsleConfig.from_stream(stream))

    @property
    def name(self) -> str:
        return NAME

    @property
    def writeable_name(self) -> str:
        return WRITEABLE_NAME

    @property
    def offset(self) -> float:
        return self.config.offset

    @property
    def state(self) -> MetricState:
        return self._state

    def aggs(self, actual_field: str, predicted_field: str) -> AggregationRequest:
        """Return ``(aggregations, pipeline_aggregations)`` still needed this round.

        Once a result is computed both lists are empty.
        """

        if isinstance(self._state, Computed):
            return [], []
        aggregation = build_aggregation(actual_field, predicted_field, self.config.offset)
        logger.debug("Requesting %s over actual=%s predicted=%s", aggregation.name, actual_field, predicted_field)
        return [aggregation], []

    def process(self, results: Mapping[str, float]) -> None:
        value = results.get(AGG_NAME)
        if value is None:
            # No rows produced a value for the aggregation.
            logger.warning("Aggregation %s missing from results; defaulting %s to 0.0", AGG_NAME, NAME)
            error = 0.0
        else:
            error = float(value)

        if isinstance(self._state, Computed):
            logger.warning("%s already computed; overwriting result", NAME)
        self._state = Computed(MsleResult(error=error))
        logger.debug("%s computed error=%r", NAME, error)

    @property
    def result(self) -> Optional[MsleResult]:
        if isinstance(self._state, Computed):
            return self._state.result
        return None

    def write_to(self, stream: StreamOutput) -> None:
        self.config.write_to(stream)

    def to_dict(self) -> Dict[str, Any]:
        return self.config.to_dict()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MeanSquaredLogarithmicError):
            return NotImplemented
        return self.config == other.config

    def __hash__(self) -> int:
        return hash(self.config)

    def __repr__(self) -> str:
        return f"MeanSquaredLogarithmicError(offset={self.config.offset!r}, state={self._state!r})"
