import re
from typing import Dict, List, Mapping, Sequence

import numpy as np
import pandas as pd
import pytest

from regeval.metrics import AggregationSpec, ReductionKind

_OFFSET_RE = re.compile(r"def offset = ([^;]+);")
_FIELD_RE = re.compile(r"doc\['((?:[^'\\]|\\.)*)'\]\.value")


class DataFrameEngine:
    """Evaluates the MSLE script shape over in-memory shards, summing and counting per shard."""

    def __init__(self, shards: Sequence[pd.DataFrame]) -> None:
        self.shards = list(shards)
        self.calls: List[List[str]] = []

    def execute(
        self,
        aggregations: Sequence[AggregationSpec],
        pipeline_aggregations: Sequence[AggregationSpec],
    ) -> Mapping[str, float]:
        self.calls.append([spec.name for spec in aggregations])
        values: Dict[str, float] = {}
        for spec in aggregations:
            assert spec.kind is ReductionKind.AVG
            offset = float(_OFFSET_RE.search(spec.script.source).group(1))
            actual, predicted = (f.replace("\\'", "'") for f in _FIELD_RE.findall(spec.script.source))
            total, count = 0.0, 0
            for shard in self.shards:
                if shard.empty:
                    continue
                a = shard[actual].to_numpy(dtype=float) + offset
                p = shard[predicted].to_numpy(dtype=float) + offset
                if (a <= 0).any() or (p <= 0).any():
                    raise ArithmeticError("log of non-positive value")
                diff = np.log(a) - np.log(p)
                total += float(np.sum(diff * diff))
                count += len(shard)
            if count:
                values[spec.name] = total / count
        return values


@pytest.fixture
def example_shards():
    return [
        pd.DataFrame({"actual": [1.0], "predicted": [3.0]}),
        pd.DataFrame({"actual": [5.0], "predicted": [2.0]}),
    ]


@pytest.fixture
def engine(example_shards):
    return DataFrameEngine(example_shards)
