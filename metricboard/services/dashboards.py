"""Dashboard composition: reference extraction, data bundles, duplication and ownership."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Mapping, Sequence
from uuid import uuid4

from metricboard.config.settings import DEFAULT_DUPLICATE_PREFIX
from metricboard.domain import (
    Dashboard,
    KpiStatus,
    KpiTarget,
    KpiThresholds,
    MetricValue,
    MetricValueType,
    TileConfig,
    ensure_utc,
    utcnow,
)
from metricboard.errors import NotFoundError
from metricboard.services.stores import DashboardStore, KpiStore, MetricStore
from metricboard.services.tile_validation import validate_tiles

logger = logging.getLogger(__name__)

_TIMESTAMPED_FIELDS = frozenset({"name", "description", "tiles"})


@dataclass
class DataWindow:
    start_date: datetime | None = None
    end_date: datetime | None = None

    def __post_init__(self) -> None:
        if self.start_date is not None:
            self.start_date = ensure_utc(self.start_date)
        if self.end_date is not None:
            self.end_date = ensure_utc(self.end_date)

    def contains(self, moment: datetime) -> bool:
        if self.start_date is not None and moment < self.start_date:
            return False
        if self.end_date is not None and moment > self.end_date:
            return False
        return True


@dataclass
class MetricSeries:
    uuid: str
    name: str
    description: str
    unit: str
    value_type: MetricValueType
    values: list[MetricValue]


@dataclass
class KpiSnapshot:
    uuid: str
    name: str
    description: str
    metric_uuid: str
    targets: list[KpiTarget]
    thresholds: KpiThresholds | None
    status: KpiStatus


@dataclass
class DashboardSummary:
    uuid: str
    name: str
    description: str
    tiles: list[TileConfig]


@dataclass
class DashboardDataBundle:
    dashboard: DashboardSummary
    metrics: dict[str, MetricSeries] = field(default_factory=dict)
    kpis: dict[str, KpiSnapshot] = field(default_factory=dict)
    filters: DataWindow = field(default_factory=DataWindow)


@dataclass
class DashboardListItem:
    uuid: str
    name: str
    description: str
    owner_uuid: str
    tile_count: int
    updated_at: datetime
    is_owner: bool


def _unique(uuids: Sequence[str], seen: dict[str, None]) -> None:
    for uuid in uuids:
        seen.setdefault(uuid, None)


def extract_metric_uuids(dashboard: Dashboard) -> list[str]:
    """Distinct metric UUIDs referenced by the dashboard, in first-seen tile order."""

    seen: dict[str, None] = {}
    for tile in dashboard.tiles:
        _unique(tile.metric_uuids, seen)
    return list(seen)


def extract_kpi_uuids(dashboard: Dashboard) -> list[str]:
    """Distinct KPI UUIDs referenced by the dashboard, in first-seen tile order."""

    seen: dict[str, None] = {}
    for tile in dashboard.tiles:
        _unique(tile.kpi_uuids or (), seen)
    return list(seen)


def can_modify(dashboard: Dashboard, user_uuid: str, is_admin: bool) -> bool:
    return is_admin or dashboard.owner_uuid == user_uuid


def _new_uuid() -> str:
    return str(uuid4())


class DashboardComposer:
    """Read-side aggregation and owner-aware mutation of dashboards."""

    def __init__(
        self,
        dashboards: DashboardStore,
        metrics: MetricStore,
        kpis: KpiStore,
        *,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = _new_uuid,
    ) -> None:
        self._dashboards = dashboards
        self._metrics = metrics
        self._kpis = kpis
        self._clock = clock
        self._id_factory = id_factory

    extract_metric_uuids = staticmethod(extract_metric_uuids)
    extract_kpi_uuids = staticmethod(extract_kpi_uuids)
    can_modify = staticmethod(can_modify)

    async def get(self, uuid: str) -> Dashboard:
        dashboard = await self._dashboards.find_by_id(uuid)
        if dashboard is None:
            raise NotFoundError("dashboard", uuid)
        return dashboard

    async def list_items(self, user_uuid: str, is_admin: bool) -> list[DashboardListItem]:
        dashboards = await self._dashboards.list_all()
        return [
            DashboardListItem(
                uuid=dashboard.uuid,
                name=dashboard.name,
                description=dashboard.description,
                owner_uuid=dashboard.owner_uuid,
                tile_count=len(dashboard.tiles),
                updated_at=dashboard.updated_at,
                is_owner=can_modify(dashboard, user_uuid, is_admin),
            )
            for dashboard in dashboards
        ]

    async def get_dashboard_data(
        self,
        uuid: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> DashboardDataBundle:
        """Bundle a dashboard with the metrics and KPIs its tiles reference.

        Metric values are limited to the inclusive ``[start_date, end_date]``
        window; either bound may be omitted. References that no longer resolve
        are left out of the bundle.
        """

        dashboard = await self.get(uuid)
        window = DataWindow(start_date=start_date, end_date=end_date)
        bundle = DashboardDataBundle(
            dashboard=DashboardSummary(
                uuid=dashboard.uuid,
                name=dashboard.name,
                description=dashboard.description,
                tiles=dashboard.tiles,
            ),
            filters=window,
        )

        for metric_uuid in extract_metric_uuids(dashboard):
            metric = await self._metrics.find_by_id(metric_uuid)
            if metric is None:
                logger.debug("Dashboard %s references missing metric %s", uuid, metric_uuid)
                continue
            bundle.metrics[metric_uuid] = MetricSeries(
                uuid=metric.uuid,
                name=metric.name,
                description=metric.description,
                unit=metric.unit,
                value_type=metric.value_type,
                values=[value for value in metric.values if window.contains(value.timestamp)],
            )

        for kpi_uuid in extract_kpi_uuids(dashboard):
            kpi = await self._kpis.find_by_id(kpi_uuid)
            if kpi is None:
                logger.debug("Dashboard %s references missing KPI %s", uuid, kpi_uuid)
                continue
            bundle.kpis[kpi_uuid] = KpiSnapshot(
                uuid=kpi.uuid,
                name=kpi.name,
                description=kpi.description,
                metric_uuid=kpi.metric_uuid,
                targets=kpi.targets,
                thresholds=kpi.thresholds,
                status=kpi.status,
            )

        return bundle

    async def create(self, name: str, description: str, owner_uuid: str, tiles: list[TileConfig]) -> Dashboard:
        validate_tiles(tiles)
        now = self._clock()
        dashboard = Dashboard(
            uuid=self._id_factory(),
            name=name,
            description=description,
            owner_uuid=owner_uuid,
            tiles=copy.deepcopy(tiles),
            created_at=now,
            updated_at=now,
        )
        await self._dashboards.save(dashboard)
        logger.info("Created dashboard %s for owner %s", dashboard.uuid, owner_uuid)
        return dashboard

    async def duplicate(
        self,
        uuid: str,
        new_owner_uuid: str,
        name_prefix: str = DEFAULT_DUPLICATE_PREFIX,
    ) -> Dashboard:
        """Copy a dashboard for a new owner.

        The tile list is deep-copied so later edits to either dashboard stay
        independent. Geometry is unchanged, so tiles are not re-validated.
        """

        original = await self.get(uuid)
        now = self._clock()
        duplicate = Dashboard(
            uuid=self._id_factory(),
            name=f"{name_prefix} {original.name}",
            description=original.description,
            owner_uuid=new_owner_uuid,
            tiles=copy.deepcopy(original.tiles),
            created_at=now,
            updated_at=now,
        )
        await self._dashboards.save(duplicate)
        logger.info("Duplicated dashboard %s as %s for owner %s", uuid, duplicate.uuid, new_owner_uuid)
        return duplicate

    async def update(self, uuid: str, changes: Mapping[str, Any]) -> Dashboard:
        await self.get(uuid)
        pending = dict(changes)
        if pending.get("tiles") is not None:
            validate_tiles(pending["tiles"])
        if _TIMESTAMPED_FIELDS.intersection(pending):
            pending["updated_at"] = self._clock()
        updated = await self._dashboards.update(uuid, pending)
        if updated is None:
            raise NotFoundError("dashboard", uuid)
        logger.info("Updated dashboard %s (%s)", uuid, ", ".join(sorted(changes)) or "no fields")
        return updated

    async def delete(self, uuid: str) -> None:
        if not await self._dashboards.delete(uuid):
            raise NotFoundError("dashboard", uuid)
        logger.info("Deleted dashboard %s", uuid)


__all__ = [
    "DashboardComposer",
    "DashboardDataBundle",
    "DashboardListItem",
    "DashboardSummary",
    "DataWindow",
    "KpiSnapshot",
    "MetricSeries",
    "can_modify",
    "extract_kpi_uuids",
    "extract_metric_uuids",
]
