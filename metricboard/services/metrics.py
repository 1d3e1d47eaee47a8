"""Metric catalogue operations."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Mapping
from uuid import uuid4

from metricboard.domain import Metric
from metricboard.errors import NotFoundError
from metricboard.services.metric_rules import validate_metric_values
from metricboard.services.stores import MetricStore

logger = logging.getLogger(__name__)


class MetricService:
    """Create, read and update metrics. Metrics are never deleted."""

    def __init__(self, store: MetricStore, *, id_factory: Callable[[], str] = lambda: str(uuid4())) -> None:
        self._store = store
        self._id_factory = id_factory

    async def list_metrics(self) -> list[Metric]:
        return await self._store.list_all()

    async def get(self, uuid: str) -> Metric:
        metric = await self._store.find_by_id(uuid)
        if metric is None:
            raise NotFoundError("metric", uuid)
        return metric

    async def create(self, metric: Metric) -> Metric:
        validate_metric_values(metric.value_type, metric.values, metric.validation_rules)
        created = replace(metric, uuid=self._id_factory())
        await self._store.save(created)
        logger.info("Created metric %s (%s) with %d values", created.uuid, created.name, len(created.values))
        return created

    async def update(self, uuid: str, changes: Mapping[str, Any]) -> Metric:
        """Apply a partial update, re-checking values against the resulting type and rules."""

        current = await self.get(uuid)
        merged = replace(current, **changes)
        if {"values", "value_type", "validation_rules"}.intersection(changes):
            validate_metric_values(merged.value_type, merged.values, merged.validation_rules)
        updated = await self._store.update(uuid, changes)
        if updated is None:
            raise NotFoundError("metric", uuid)
        logger.info("Updated metric %s (%s)", uuid, ", ".join(sorted(changes)) or "no fields")
        return updated


__all__ = ["MetricService"]
