"""Metric catalogue endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from metricboard.api.converters import metric_out, to_changes, to_metric_values, to_validation_rules
from metricboard.api.dependencies import IdentityDependency
from metricboard.domain import Identity, Metric
from metricboard.schemas import MetricCreateRequest, MetricSchema, MetricUpdateRequest
from metricboard.services.metrics import MetricService


def get_metrics_router(service: MetricService, current_identity: IdentityDependency) -> APIRouter:
    router = APIRouter(prefix="/metrics", tags=["metrics"])

    @router.get("", response_model=list[MetricSchema])
    async def list_metrics(_: Identity = Depends(current_identity)) -> list[MetricSchema]:
        return [metric_out(metric) for metric in await service.list_metrics()]

    @router.get("/{metric_uuid}", response_model=MetricSchema)
    async def get_metric(metric_uuid: str, _: Identity = Depends(current_identity)) -> MetricSchema:
        return metric_out(await service.get(metric_uuid))

    @router.post("", response_model=MetricSchema, status_code=status.HTTP_201_CREATED)
    async def create_metric(payload: MetricCreateRequest, _: Identity = Depends(current_identity)) -> MetricSchema:
        metric = Metric(
            uuid="",
            name=payload.name,
            description=payload.description,
            value_type=payload.value_type,
            unit=payload.unit,
            values=to_metric_values(payload.values),
            aggregation=payload.aggregation,
            tags=payload.tags,
            validation_rules=to_validation_rules(payload.validation_rules),
        )
        return metric_out(await service.create(metric))

    @router.put("/{metric_uuid}", response_model=MetricSchema)
    async def update_metric(
        metric_uuid: str,
        payload: MetricUpdateRequest,
        _: Identity = Depends(current_identity),
    ) -> MetricSchema:
        return metric_out(await service.update(metric_uuid, to_changes(payload)))

    return router


__all__ = ["get_metrics_router"]
