"""Route registration helpers."""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter

from metricboard.api.dependencies import get_admin_dependency, get_identity_dependency
from metricboard.db.database import Database
from metricboard.db.stores import SqlDashboardStore, SqlKpiStore, SqlMetricStore
from metricboard.services.dashboards import DashboardComposer
from metricboard.services.kpis import KpiService
from metricboard.services.metrics import MetricService

from .auth import get_auth_router
from .dashboards import get_dashboards_router
from .kpis import get_kpis_router
from .metrics import get_metrics_router
from .users import get_users_router


def build_api_router(database: Database, *, duplicate_prefix: str, token_lifetime: timedelta) -> APIRouter:
    """Wire stores and services for ``database`` and return the combined router."""

    metric_store = SqlMetricStore(database)
    kpi_store = SqlKpiStore(database)
    dashboard_store = SqlDashboardStore(database)

    current_identity = get_identity_dependency(database)
    require_admin = get_admin_dependency(current_identity)

    api_router = APIRouter()
    api_router.include_router(get_auth_router(database, current_identity, token_lifetime))
    api_router.include_router(get_users_router(database, require_admin))
    api_router.include_router(get_metrics_router(MetricService(metric_store), current_identity))
    api_router.include_router(get_kpis_router(KpiService(kpi_store, metric_store), current_identity))
    api_router.include_router(
        get_dashboards_router(
            DashboardComposer(dashboard_store, metric_store, kpi_store),
            current_identity,
            duplicate_prefix,
        )
    )
    return api_router


__all__ = ["build_api_router"]
