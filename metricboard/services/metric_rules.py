"""Write-time value checks and declarative aggregation for metrics."""

from __future__ import annotations

import logging
from statistics import fmean, median
from typing import Sequence

from metricboard.domain import MetricAggregation, MetricValue, MetricValueType, ValidationRules
from metricboard.errors import InvalidMetricValue

logger = logging.getLogger(__name__)

PERCENTAGE_BOUNDS = (0.0, 100.0)


def _violation(value: float, value_type: MetricValueType, rules: ValidationRules | None) -> str | None:
    if value_type == MetricValueType.PERCENTAGE:
        low, high = PERCENTAGE_BOUNDS
        if not low <= value <= high:
            return f"percentage value {value} outside [{low:g}, {high:g}]"
    if rules is None:
        return None
    if rules.min is not None and value < rules.min:
        return f"value {value} below minimum {rules.min}"
    if rules.max is not None and value > rules.max:
        return f"value {value} above maximum {rules.max}"
    if not rules.allow_negative and value < 0:
        return f"negative value {value} not allowed"
    return None


def validate_metric_values(
    value_type: MetricValueType,
    values: Sequence[MetricValue],
    rules: ValidationRules | None = None,
) -> None:
    """Raise ``InvalidMetricValue`` for the first value that breaks the metric's constraints."""

    for index, item in enumerate(values):
        reason = _violation(item.value, value_type, rules)
        if reason is not None:
            logger.warning("Rejected metric value %d: %s", index, reason)
            raise InvalidMetricValue(index, reason)


def aggregate_values(values: Sequence[MetricValue], aggregation: MetricAggregation) -> float | None:
    """Summarize a series with the metric's aggregation; ``None`` for an empty series."""

    if not values:
        return None
    numbers = [item.value for item in values]
    if aggregation == MetricAggregation.SUM:
        return float(sum(numbers))
    if aggregation == MetricAggregation.LATEST:
        return max(values, key=lambda item: item.timestamp).value
    if aggregation == MetricAggregation.AVERAGE:
        return fmean(numbers)
    if aggregation == MetricAggregation.MEDIAN:
        return float(median(numbers))
    if aggregation == MetricAggregation.MIN:
        return min(numbers)
    if aggregation == MetricAggregation.MAX:
        return max(numbers)
    raise ValueError(f"Unsupported aggregation: {aggregation}")


__all__ = ["PERCENTAGE_BOUNDS", "aggregate_values", "validate_metric_values"]
