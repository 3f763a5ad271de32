"""Tests for the mean squared logarithmic error metric."""

import math

import pytest

from regeval.io import StreamInput, StreamOutput
from regeval.metrics import (
    MeanSquaredLogarithmicError,
    MetricConfigError,
    MetricResultError,
    MsleConfig,
    MsleResult,
    ReductionKind,
)
from regeval.metrics.msle import AGG_NAME, Computed, Pending, build_aggregation

EXAMPLE_ERROR = math.log(2.0) ** 2


class TestAggs:
    def test_single_avg_aggregation_while_pending(self):
        metric = MeanSquaredLogarithmicError()
        primary, pipeline = metric.aggs("price", "ml.price_prediction")

        assert pipeline == []
        assert len(primary) == 1
        spec = primary[0]
        assert spec.name == "regression_mean_squared_logarithmic_error"
        assert spec.kind is ReductionKind.AVG
        assert spec.script.source == (
            "def offset = 1.0;"
            "def diff = Math.log(doc['price'].value + offset) - Math.log(doc['ml.price_prediction'].value + offset);"
            "return diff * diff;"
        )

    def test_offset_rendered_exactly(self):
        spec = build_aggregation("a", "b", 1234567.125)
        assert "def offset = 1234567.125;" in spec.script.source

        spec = build_aggregation("a", "b", 0.1)
        assert "def offset = 0.1;" in spec.script.source

    def test_field_names_with_quotes_are_escaped(self):
        spec = build_aggregation("it's", "b", 1.0)
        assert "doc['it\\'s'].value" in spec.script.source

    def test_request_body_shape(self):
        spec = build_aggregation("a", "b", 2.0)
        body = spec.to_dict()
        assert list(body) == [AGG_NAME]
        assert body[AGG_NAME]["avg"]["script"]["lang"] == "painless"
        assert "params" not in body[AGG_NAME]["avg"]["script"]

    @pytest.mark.parametrize("fields", [("a", "b"), ("x", "y"), ("", "")])
    def test_no_requests_once_computed(self, fields):
        metric = MeanSquaredLogarithmicError()
        metric.process({AGG_NAME: 0.25})

        assert metric.aggs(*fields) == ([], [])


class TestProcess:
    def test_initially_pending(self):
        metric = MeanSquaredLogarithmicError()
        assert isinstance(metric.state, Pending)
        assert metric.result is None

    def test_reported_average_becomes_error(self):
        metric = MeanSquaredLogarithmicError(offset=1.0)
        metric.aggs("actual", "predicted")
        metric.process({AGG_NAME: 0.4805})

        assert isinstance(metric.state, Computed)
        assert metric.result.error == pytest.approx(0.4805, abs=1e-9)

    def test_missing_aggregation_defaults_to_zero(self):
        metric = MeanSquaredLogarithmicError()
        metric.process({"some_other_agg": 3.0})

        assert isinstance(metric.state, Computed)
        assert metric.result == MsleResult(0.0)

    def test_nan_value_passes_through(self):
        metric = MeanSquaredLogarithmicError()
        metric.process({AGG_NAME: float("nan")})
        assert math.isnan(metric.result.error)

    def test_second_process_overwrites(self):
        metric = MeanSquaredLogarithmicError()
        metric.process({AGG_NAME: 1.0})
        metric.process({AGG_NAME: 2.0})

        assert metric.result == MsleResult(2.0)
        assert isinstance(metric.state, Computed)


class TestConfig:
    def test_default_offset(self):
        assert MeanSquaredLogarithmicError().offset == 1.0
        assert MsleConfig().offset == 1.0
        assert MsleConfig.from_dict({}).offset == 1.0
        assert MsleConfig.from_dict(None).offset == 1.0
        assert MsleConfig.from_dict({"offset": None}).offset == 1.0

    def test_from_dict_ignores_unknown_fields(self):
        config = MsleConfig.from_dict({"offset": 3, "unknown": "x"})
        assert config.offset == 3.0
        assert isinstance(config.offset, float)

    def test_numeric_string_offset_is_accepted(self):
        assert MsleConfig.from_dict({"offset": "2.5"}).offset == 2.5

    @pytest.mark.parametrize("bad", ["abc", True, [1.0], {"value": 1}])
    def test_non_numeric_offset_rejected(self, bad):
        with pytest.raises(MetricConfigError):
            MsleConfig.from_dict({"offset": bad})

    def test_non_mapping_rejected(self):
        with pytest.raises(MetricConfigError):
            MsleConfig.from_dict(5)

    def test_structured_form(self):
        assert MsleConfig(2.0).to_dict() == {"offset": 2.0}
        assert MsleResult(0.5).to_dict() == {"error": 0.5}
        assert MsleResult.from_dict({"error": 0.5}) == MsleResult(0.5)

    def test_config_is_immutable(self):
        config = MsleConfig(1.0)
        with pytest.raises(AttributeError):
            config.offset = 2.0


class TestEquality:
    def test_equal_offsets(self):
        assert MsleConfig(1.5) == MsleConfig(1.5)
        assert hash(MsleConfig(1.5)) == hash(MsleConfig(1.5))
        assert MeanSquaredLogarithmicError(1.5) == MeanSquaredLogarithmicError(1.5)
        assert hash(MeanSquaredLogarithmicError(1.5)) == hash(MeanSquaredLogarithmicError(1.5))

    def test_different_offsets(self):
        assert MsleConfig(1.0) != MsleConfig(2.0)
        assert MeanSquaredLogarithmicError(1.0) != MeanSquaredLogarithmicError(2.0)

    def test_bitwise_comparison(self):
        assert MsleConfig(0.0) != MsleConfig(-0.0)
        assert MsleResult(float("nan")) == MsleResult(float("nan"))
        assert MsleResult(0.1 + 0.2) != MsleResult(0.3)

    def test_results_deduplicate_in_sets(self):
        assert len({MsleResult(0.5), MsleResult(0.5), MsleResult(0.25)}) == 2


class TestWireForm:
    @pytest.mark.parametrize(
        "offset",
        [0.0, -0.0, 1.0, -3.5, 1e-308, 5e-324, 1.7976931348623157e308, -1e300, 0.1, float("inf")],
    )
    def test_config_round_trip(self, offset):
        out = StreamOutput()
        MsleConfig(offset).write_to(out)
        data = out.getvalue()

        assert len(data) == 8
        restored = MsleConfig.from_stream(StreamInput(data))
        assert restored == MsleConfig(offset)
        assert math.copysign(1.0, restored.offset) == math.copysign(1.0, offset)

    @pytest.mark.parametrize("error", [0.0, EXAMPLE_ERROR, 1e-300, 123456789.123456789, float("nan")])
    def test_result_round_trip(self, error):
        out = StreamOutput()
        MsleResult(error).write_to(out)
        assert MsleResult.from_stream(StreamInput(out.getvalue())) == MsleResult(error)

    def test_big_endian_layout(self):
        out = StreamOutput()
        MsleConfig(1.0).write_to(out)
        assert out.getvalue() == bytes.fromhex("3ff0000000000000")

    def test_metric_round_trip_keeps_name_and_drops_state(self):
        metric = MeanSquaredLogarithmicError(offset=0.5)
        metric.process({AGG_NAME: 1.0})
        out = StreamOutput()
        metric.write_to(out)

        restored = MeanSquaredLogarithmicError.from_stream(StreamInput(out.getvalue()))
        assert restored == metric
        assert restored.result is None


def test_name_is_stable_across_construction_paths():
    out = StreamOutput()
    MeanSquaredLogarithmicError(2.0).write_to(out)

    metrics = [
        MeanSquaredLogarithmicError(),
        MeanSquaredLogarithmicError.from_dict({"offset": 2.0}),
        MeanSquaredLogarithmicError.from_stream(StreamInput(out.getvalue())),
    ]
    assert {m.name for m in metrics} == {"mean_squared_logarithmic_error"}
    assert {m.writeable_name for m in metrics} == {"regression.mean_squared_logarithmic_error"}
    assert MsleResult(0.0).metric_name == "mean_squared_logarithmic_error"


class TestResultParsing:
    @pytest.mark.parametrize("payload", [{"value": 1.0}, {"error": "abc"}, {"error": True}, [0.5]])
    def test_malformed_result_payload(self, payload):
        with pytest.raises(MetricResultError):
            MsleResult.from_dict(payload)

    def test_direct_construction_uses_same_error_type(self):
        with pytest.raises(MetricResultError):
            MsleResult(error="x")

    def test_result_errors_are_not_config_errors(self):
        with pytest.raises(MetricResultError) as excinfo:
            MsleResult.from_dict({})
        assert not isinstance(excinfo.value, MetricConfigError)
