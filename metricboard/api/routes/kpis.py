"""KPI endpoints, including soft deletion and on-demand evaluation."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from metricboard.api.converters import kpi_out, to_changes, to_targets, to_thresholds
from metricboard.api.dependencies import IdentityDependency
from metricboard.domain import Identity, Kpi, KpiStatus
from metricboard.schemas import (
    KpiCreateRequest,
    KpiEvaluationSchema,
    KpiListItemSchema,
    KpiSchema,
    KpiUpdateRequest,
)
from metricboard.services.kpis import KpiService


def get_kpis_router(service: KpiService, current_identity: IdentityDependency) -> APIRouter:
    router = APIRouter(prefix="/kpis", tags=["kpis"])

    @router.get("", response_model=list[KpiListItemSchema])
    async def list_kpis(
        status_filter: KpiStatus | None = Query(default=None, alias="status", description="Filter by KPI status"),
        _: Identity = Depends(current_identity),
    ) -> list[KpiListItemSchema]:
        items = await service.list_items(status=status_filter)
        return [
            KpiListItemSchema(
                uuid=item.uuid,
                name=item.name,
                description=item.description,
                metric_uuid=item.metric_uuid,
                status=item.status,
                current_target=item.current_target,
            )
            for item in items
        ]

    @router.get("/by-metric/{metric_uuid}", response_model=list[KpiSchema])
    async def list_kpis_for_metric(metric_uuid: str, _: Identity = Depends(current_identity)) -> list[KpiSchema]:
        return [kpi_out(kpi) for kpi in await service.by_metric(metric_uuid)]

    @router.get("/{kpi_uuid}", response_model=KpiSchema)
    async def get_kpi(kpi_uuid: str, _: Identity = Depends(current_identity)) -> KpiSchema:
        return kpi_out(await service.get(kpi_uuid))

    @router.get("/{kpi_uuid}/evaluation", response_model=KpiEvaluationSchema)
    async def evaluate_kpi(
        kpi_uuid: str,
        as_of: datetime | None = Query(default=None, description="Evaluate as of this instant (default: now)"),
        _: Identity = Depends(current_identity),
    ) -> KpiEvaluationSchema:
        evaluation = await service.evaluate(kpi_uuid, as_of)
        return KpiEvaluationSchema(
            kpi_uuid=evaluation.kpi_uuid,
            metric_uuid=evaluation.metric_uuid,
            as_of=evaluation.as_of,
            current_value=evaluation.current_value,
            current_target=evaluation.current_target,
            status=evaluation.status,
        )

    @router.post("", response_model=KpiSchema, status_code=status.HTTP_201_CREATED)
    async def create_kpi(payload: KpiCreateRequest, _: Identity = Depends(current_identity)) -> KpiSchema:
        kpi = Kpi(
            uuid="",
            name=payload.name,
            description=payload.description,
            metric_uuid=payload.metric_uuid,
            targets=to_targets(payload.targets),
            status=payload.status,
            thresholds=to_thresholds(payload.thresholds),
        )
        return kpi_out(await service.create(kpi))

    @router.put("/{kpi_uuid}", response_model=KpiSchema)
    async def update_kpi(
        kpi_uuid: str,
        payload: KpiUpdateRequest,
        _: Identity = Depends(current_identity),
    ) -> KpiSchema:
        return kpi_out(await service.update(kpi_uuid, to_changes(payload)))

    @router.delete("/{kpi_uuid}", response_model=KpiSchema)
    async def archive_kpi(kpi_uuid: str, _: Identity = Depends(current_identity)) -> KpiSchema:
        return kpi_out(await service.archive(kpi_uuid))

    return router


__all__ = ["get_kpis_router"]
