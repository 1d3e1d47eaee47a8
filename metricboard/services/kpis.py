"""KPI lifecycle and evaluation against the underlying metric."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Mapping
from uuid import uuid4

from metricboard.domain import Kpi, KpiStatus, ensure_utc, utcnow
from metricboard.errors import NotFoundError, UnknownMetricReference
from metricboard.services.kpi_evaluator import evaluate_status, resolve_current_target, validate_targets
from metricboard.services.metric_rules import aggregate_values
from metricboard.services.stores import KpiStore, MetricStore

logger = logging.getLogger(__name__)

_TIMESTAMPED_FIELDS = frozenset({"name", "description", "targets", "thresholds"})


@dataclass
class KpiListItem:
    uuid: str
    name: str
    description: str
    metric_uuid: str
    status: KpiStatus
    current_target: float | None


@dataclass
class KpiEvaluation:
    kpi_uuid: str
    metric_uuid: str
    as_of: datetime
    current_value: float | None
    current_target: float | None
    status: KpiStatus | None


class KpiService:
    def __init__(
        self,
        kpis: KpiStore,
        metrics: MetricStore,
        *,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = lambda: str(uuid4()),
    ) -> None:
        self._kpis = kpis
        self._metrics = metrics
        self._clock = clock
        self._id_factory = id_factory

    async def get(self, uuid: str) -> Kpi:
        kpi = await self._kpis.find_by_id(uuid)
        if kpi is None:
            raise NotFoundError("kpi", uuid)
        return kpi

    async def list_items(self, status: KpiStatus | None = None, as_of: datetime | None = None) -> list[KpiListItem]:
        moment = ensure_utc(as_of) if as_of is not None else self._clock()
        items = []
        for kpi in await self._kpis.list_all():
            if status is not None and kpi.status != status:
                continue
            items.append(
                KpiListItem(
                    uuid=kpi.uuid,
                    name=kpi.name,
                    description=kpi.description,
                    metric_uuid=kpi.metric_uuid,
                    status=kpi.status,
                    current_target=resolve_current_target(kpi, moment),
                )
            )
        return items

    async def by_metric(self, metric_uuid: str) -> list[Kpi]:
        return await self._kpis.find_by_metric(metric_uuid)

    async def create(self, kpi: Kpi) -> Kpi:
        validate_targets(kpi.targets)
        if await self._metrics.find_by_id(kpi.metric_uuid) is None:
            raise UnknownMetricReference(kpi.metric_uuid)
        now = self._clock()
        created = replace(kpi, uuid=self._id_factory(), created_at=now, updated_at=now)
        await self._kpis.save(created)
        logger.info("Created KPI %s for metric %s", created.uuid, created.metric_uuid)
        return created

    async def update(self, uuid: str, changes: Mapping[str, Any]) -> Kpi:
        await self.get(uuid)
        pending = dict(changes)
        if pending.get("targets") is not None:
            validate_targets(pending["targets"])
        if "metric_uuid" in pending and await self._metrics.find_by_id(pending["metric_uuid"]) is None:
            raise UnknownMetricReference(pending["metric_uuid"])
        if _TIMESTAMPED_FIELDS.intersection(pending):
            pending["updated_at"] = self._clock()
        updated = await self._kpis.update(uuid, pending)
        if updated is None:
            raise NotFoundError("kpi", uuid)
        logger.info("Updated KPI %s (%s)", uuid, ", ".join(sorted(changes)) or "no fields")
        return updated

    async def archive(self, uuid: str) -> Kpi:
        """Soft delete: KPIs are kept and moved to the archived status."""

        await self.get(uuid)
        archived = await self._kpis.update(uuid, {"status": KpiStatus.ARCHIVED})
        if archived is None:
            raise NotFoundError("kpi", uuid)
        logger.info("Archived KPI %s", uuid)
        return archived

    async def evaluate(self, uuid: str, as_of: datetime | None = None) -> KpiEvaluation:
        """Aggregate the metric's values up to ``as_of`` and classify them against the KPI."""

        kpi = await self.get(uuid)
        metric = await self._metrics.find_by_id(kpi.metric_uuid)
        if metric is None:
            raise NotFoundError("metric", kpi.metric_uuid)
        moment = ensure_utc(as_of) if as_of is not None else self._clock()
        observed = [value for value in metric.values if value.timestamp <= moment]
        current_value = aggregate_values(observed, metric.aggregation)
        return KpiEvaluation(
            kpi_uuid=kpi.uuid,
            metric_uuid=metric.uuid,
            as_of=moment,
            current_value=current_value,
            current_target=resolve_current_target(kpi, moment),
            status=evaluate_status(kpi, current_value) if current_value is not None else None,
        )


__all__ = ["KpiEvaluation", "KpiListItem", "KpiService"]
