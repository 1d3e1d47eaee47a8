"""Pydantic schemas for dashboards, tiles and composed data bundles."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from metricboard.domain import KpiStatus, MetricValueType, TileType
from metricboard.schemas.kpi import KpiTargetSchema, KpiThresholdsSchema
from metricboard.schemas.metric import EntityName, MetricValueSchema


class TileConfigSchema(BaseModel):
    """Grid tile; geometry bounds are checked by the layout validator, not here."""

    id: str = Field(..., min_length=1)
    x: int
    y: int
    w: int
    h: int
    type: TileType
    metric_uuids: list[str] = Field(default_factory=list)
    kpi_uuids: list[str] | None = None
    config: dict[str, Any] | None = Field(default=None, description="Opaque visualization settings")


class DashboardCreateRequest(BaseModel):
    name: EntityName
    description: str = Field(default="")
    tiles: list[TileConfigSchema]


class DashboardUpdateRequest(BaseModel):
    name: EntityName | None = None
    description: str | None = None
    tiles: list[TileConfigSchema] | None = None


class DashboardSchema(BaseModel):
    uuid: str
    name: str
    description: str
    owner_uuid: str
    tiles: list[TileConfigSchema]
    created_at: datetime
    updated_at: datetime


class DashboardListItemSchema(BaseModel):
    uuid: str
    name: str
    description: str
    owner_uuid: str
    tile_count: int
    updated_at: datetime
    is_owner: bool


class DashboardSummarySchema(BaseModel):
    uuid: str
    name: str
    description: str
    tiles: list[TileConfigSchema]


class MetricSeriesSchema(BaseModel):
    uuid: str
    name: str
    description: str
    unit: str
    value_type: MetricValueType
    values: list[MetricValueSchema]


class KpiSnapshotSchema(BaseModel):
    uuid: str
    name: str
    description: str
    metric_uuid: str
    targets: list[KpiTargetSchema]
    thresholds: KpiThresholdsSchema | None
    status: KpiStatus


class DashboardDataSchema(BaseModel):
    metrics: dict[str, MetricSeriesSchema]
    kpis: dict[str, KpiSnapshotSchema]


class DataWindowSchema(BaseModel):
    start_date: datetime | None = None
    end_date: datetime | None = None


class DashboardDataResponse(BaseModel):
    dashboard: DashboardSummarySchema
    data: DashboardDataSchema
    filters: DataWindowSchema


__all__ = [
    "DashboardCreateRequest",
    "DashboardDataResponse",
    "DashboardDataSchema",
    "DashboardListItemSchema",
    "DashboardSchema",
    "DashboardSummarySchema",
    "DashboardUpdateRequest",
    "DataWindowSchema",
    "KpiSnapshotSchema",
    "MetricSeriesSchema",
    "TileConfigSchema",
]
