"""Pydantic schemas for metrics and their time-series values."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, Field

from metricboard.domain import MetricAggregation, MetricValueType


def _strip_name(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("name must not be blank")
    return stripped


# Surrounding whitespace is dropped; a blank name is rejected.
EntityName = Annotated[str, Field(min_length=1, max_length=255), AfterValidator(_strip_name)]


class MetricValueSchema(BaseModel):
    value: float
    timestamp: datetime = Field(..., description="ISO 8601 instant of the observation")


class ValidationRulesSchema(BaseModel):
    min: float | None = None
    max: float | None = None
    allow_negative: bool = Field(default=True)
    required_frequency: Literal["daily", "weekly", "monthly"] | None = None


class MetricCreateRequest(BaseModel):
    name: EntityName = Field(..., examples=["Monthly Recurring Revenue"])
    description: str = Field(default="")
    value_type: MetricValueType
    unit: str = Field(default="", max_length=64, examples=["USD"])
    values: list[MetricValueSchema] = Field(default_factory=list)
    aggregation: MetricAggregation = Field(default=MetricAggregation.LATEST)
    tags: list[str] = Field(default_factory=list)
    validation_rules: ValidationRulesSchema | None = None


class MetricUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    name: EntityName | None = None
    description: str | None = None
    value_type: MetricValueType | None = None
    unit: str | None = Field(default=None, max_length=64)
    values: list[MetricValueSchema] | None = None
    aggregation: MetricAggregation | None = None
    tags: list[str] | None = None
    validation_rules: ValidationRulesSchema | None = None


class MetricSchema(BaseModel):
    uuid: str
    name: str
    description: str
    value_type: MetricValueType
    unit: str
    values: list[MetricValueSchema]
    aggregation: MetricAggregation
    tags: list[str]
    validation_rules: ValidationRulesSchema | None = None


__all__ = [
    "MetricCreateRequest",
    "MetricSchema",
    "MetricUpdateRequest",
    "MetricValueSchema",
    "ValidationRulesSchema",
]
