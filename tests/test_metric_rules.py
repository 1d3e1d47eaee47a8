from __future__ import annotations

from datetime import datetime, timezone

import pytest

from metricboard.domain import MetricAggregation, MetricValue, MetricValueType, ValidationRules
from metricboard.errors import InvalidMetricValue
from metricboard.services.metric_rules import aggregate_values, validate_metric_values


def series(*points: tuple[float, int]) -> list[MetricValue]:
    return [MetricValue(value=value, timestamp=datetime(2025, 1, day, tzinfo=timezone.utc)) for value, day in points]


def test_percentage_values_bounded():
    validate_metric_values(MetricValueType.PERCENTAGE, series((0, 1), (100, 2), (55.5, 3)))
    with pytest.raises(InvalidMetricValue) as excinfo:
        validate_metric_values(MetricValueType.PERCENTAGE, series((50, 1), (100.1, 2)))
    assert excinfo.value.index == 1


def test_min_and_max_rules():
    rules = ValidationRules(min=10, max=20)
    validate_metric_values(MetricValueType.INTEGER, series((10, 1), (20, 2)), rules)
    with pytest.raises(InvalidMetricValue, match="below minimum"):
        validate_metric_values(MetricValueType.INTEGER, series((9, 1)), rules)
    with pytest.raises(InvalidMetricValue, match="above maximum"):
        validate_metric_values(MetricValueType.INTEGER, series((15, 1), (21, 2)), rules)


def test_negative_values_can_be_disallowed():
    validate_metric_values(MetricValueType.CURRENCY, series((-5, 1)))
    with pytest.raises(InvalidMetricValue) as excinfo:
        validate_metric_values(MetricValueType.CURRENCY, series((3, 1), (-5, 2)), ValidationRules(allow_negative=False))
    assert excinfo.value.index == 1
    assert "negative" in excinfo.value.reason


def test_empty_series_aggregates_to_none():
    for aggregation in MetricAggregation:
        assert aggregate_values([], aggregation) is None


@pytest.mark.parametrize(
    ("aggregation", "expected"),
    [
        (MetricAggregation.SUM, 60.0),
        (MetricAggregation.AVERAGE, 15.0),
        (MetricAggregation.MEDIAN, 12.5),
        (MetricAggregation.MIN, 5),
        (MetricAggregation.MAX, 30),
    ],
)
def test_aggregations(aggregation: MetricAggregation, expected: float):
    values = series((10, 1), (30, 2), (5, 3), (15, 4))
    assert aggregate_values(values, aggregation) == pytest.approx(expected)


def test_latest_uses_timestamp_not_position():
    values = series((7, 9), (3, 2), (11, 5))
    assert aggregate_values(values, MetricAggregation.LATEST) == 7
