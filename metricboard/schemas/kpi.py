"""Pydantic schemas for KPIs, their targets and evaluations."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from metricboard.domain import KpiStatus
from metricboard.schemas.metric import EntityName


class KpiTargetSchema(BaseModel):
    value: float
    date: datetime | None = Field(default=None, description="Optional date the target applies to")
    label: str | None = Field(default=None, examples=["Q1 Target"])


class KpiThresholdsSchema(BaseModel):
    warning: float | None = None
    critical: float | None = None


class KpiCreateRequest(BaseModel):
    name: EntityName
    description: str = Field(default="")
    metric_uuid: str
    targets: list[KpiTargetSchema]
    status: KpiStatus = Field(default=KpiStatus.ON_TRACK)
    thresholds: KpiThresholdsSchema | None = None


class KpiUpdateRequest(BaseModel):
    name: EntityName | None = None
    description: str | None = None
    metric_uuid: str | None = None
    targets: list[KpiTargetSchema] | None = None
    status: KpiStatus | None = None
    thresholds: KpiThresholdsSchema | None = None


class KpiSchema(BaseModel):
    uuid: str
    name: str
    description: str
    metric_uuid: str
    targets: list[KpiTargetSchema]
    status: KpiStatus
    thresholds: KpiThresholdsSchema | None
    created_at: datetime
    updated_at: datetime


class KpiListItemSchema(BaseModel):
    uuid: str
    name: str
    description: str
    metric_uuid: str
    status: KpiStatus
    current_target: float | None = Field(default=None, description="Target in force at request time")


class KpiEvaluationSchema(BaseModel):
    kpi_uuid: str
    metric_uuid: str
    as_of: datetime
    current_value: float | None = Field(
        default=None, description="Metric values up to as_of summarised with the metric's aggregation"
    )
    current_target: float | None = None
    status: KpiStatus | None = Field(default=None, description="None when the metric has no values yet")


__all__ = [
    "KpiCreateRequest",
    "KpiEvaluationSchema",
    "KpiListItemSchema",
    "KpiSchema",
    "KpiTargetSchema",
    "KpiThresholdsSchema",
    "KpiUpdateRequest",
]
