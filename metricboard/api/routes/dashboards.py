"""Dashboard endpoints with ownership checks and composed data bundles."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response, status

from metricboard.api.converters import dashboard_out, targets_out, thresholds_out, tiles_out, to_changes, to_tiles
from metricboard.api.dependencies import IdentityDependency
from metricboard.domain import Dashboard, Identity
from metricboard.errors import ForbiddenError
from metricboard.schemas import (
    DashboardCreateRequest,
    DashboardDataResponse,
    DashboardListItemSchema,
    DashboardSchema,
    DashboardUpdateRequest,
    MetricValueSchema,
)
from metricboard.schemas.dashboard import (
    DashboardDataSchema,
    DashboardSummarySchema,
    DataWindowSchema,
    KpiSnapshotSchema,
    MetricSeriesSchema,
)
from metricboard.services.dashboards import DashboardComposer, DashboardDataBundle, can_modify


def _ensure_can_modify(dashboard: Dashboard, identity: Identity, action: str) -> None:
    if not can_modify(dashboard, identity.user_uuid, identity.is_admin):
        raise ForbiddenError(f"You can only {action} your own dashboards", dashboard_uuid=dashboard.uuid)


def _bundle_out(bundle: DashboardDataBundle) -> DashboardDataResponse:
    return DashboardDataResponse(
        dashboard=DashboardSummarySchema(
            uuid=bundle.dashboard.uuid,
            name=bundle.dashboard.name,
            description=bundle.dashboard.description,
            tiles=tiles_out(bundle.dashboard.tiles),
        ),
        data=DashboardDataSchema(
            metrics={
                uuid: MetricSeriesSchema(
                    uuid=series.uuid,
                    name=series.name,
                    description=series.description,
                    unit=series.unit,
                    value_type=series.value_type,
                    values=[MetricValueSchema(value=item.value, timestamp=item.timestamp) for item in series.values],
                )
                for uuid, series in bundle.metrics.items()
            },
            kpis={
                uuid: KpiSnapshotSchema(
                    uuid=snapshot.uuid,
                    name=snapshot.name,
                    description=snapshot.description,
                    metric_uuid=snapshot.metric_uuid,
                    targets=targets_out(snapshot.targets),
                    thresholds=thresholds_out(snapshot.thresholds),
                    status=snapshot.status,
                )
                for uuid, snapshot in bundle.kpis.items()
            },
        ),
        filters=DataWindowSchema(start_date=bundle.filters.start_date, end_date=bundle.filters.end_date),
    )


def get_dashboards_router(
    composer: DashboardComposer,
    current_identity: IdentityDependency,
    duplicate_prefix: str,
) -> APIRouter:
    router = APIRouter(prefix="/dashboards", tags=["dashboards"])

    @router.get("", response_model=list[DashboardListItemSchema])
    async def list_dashboards(identity: Identity = Depends(current_identity)) -> list[DashboardListItemSchema]:
        items = await composer.list_items(identity.user_uuid, identity.is_admin)
        return [
            DashboardListItemSchema(
                uuid=item.uuid,
                name=item.name,
                description=item.description,
                owner_uuid=item.owner_uuid,
                tile_count=item.tile_count,
                updated_at=item.updated_at,
                is_owner=item.is_owner,
            )
            for item in items
        ]

    @router.get("/{dashboard_uuid}", response_model=DashboardSchema)
    async def get_dashboard(dashboard_uuid: str, _: Identity = Depends(current_identity)) -> DashboardSchema:
        return dashboard_out(await composer.get(dashboard_uuid))

    @router.get("/{dashboard_uuid}/data", response_model=DashboardDataResponse)
    async def get_dashboard_data(
        dashboard_uuid: str,
        start_date: datetime | None = Query(default=None, description="Inclusive lower bound for metric values"),
        end_date: datetime | None = Query(default=None, description="Inclusive upper bound for metric values"),
        _: Identity = Depends(current_identity),
    ) -> DashboardDataResponse:
        bundle = await composer.get_dashboard_data(dashboard_uuid, start_date=start_date, end_date=end_date)
        return _bundle_out(bundle)

    @router.post("", response_model=DashboardSchema, status_code=status.HTTP_201_CREATED)
    async def create_dashboard(
        payload: DashboardCreateRequest,
        identity: Identity = Depends(current_identity),
    ) -> DashboardSchema:
        dashboard = await composer.create(
            name=payload.name,
            description=payload.description,
            owner_uuid=identity.user_uuid,
            tiles=to_tiles(payload.tiles),
        )
        return dashboard_out(dashboard)

    @router.post("/{dashboard_uuid}/duplicate", response_model=DashboardSchema, status_code=status.HTTP_201_CREATED)
    async def duplicate_dashboard(
        dashboard_uuid: str,
        identity: Identity = Depends(current_identity),
    ) -> DashboardSchema:
        duplicate = await composer.duplicate(dashboard_uuid, identity.user_uuid, name_prefix=duplicate_prefix)
        return dashboard_out(duplicate)

    @router.put("/{dashboard_uuid}", response_model=DashboardSchema)
    async def update_dashboard(
        dashboard_uuid: str,
        payload: DashboardUpdateRequest,
        identity: Identity = Depends(current_identity),
    ) -> DashboardSchema:
        dashboard = await composer.get(dashboard_uuid)
        _ensure_can_modify(dashboard, identity, "edit")
        return dashboard_out(await composer.update(dashboard_uuid, to_changes(payload)))

    @router.delete("/{dashboard_uuid}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_dashboard(
        dashboard_uuid: str,
        identity: Identity = Depends(current_identity),
    ) -> Response:
        dashboard = await composer.get(dashboard_uuid)
        _ensure_can_modify(dashboard, identity, "delete")
        await composer.delete(dashboard_uuid)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


__all__ = ["get_dashboards_router"]
