"""Storage collaborator contracts plus in-memory implementations.

Each store is keyed by entity UUID and guarantees atomic single-entity reads
and writes; nothing more. The in-memory stores copy entities on the way in and
out so callers never share mutable state with the store.
"""

from __future__ import annotations

import copy
from dataclasses import replace
from typing import Any, Generic, Iterable, Mapping, Protocol, TypeVar

from metricboard.domain import Dashboard, Kpi, Metric


class MetricStore(Protocol):
    async def find_by_id(self, uuid: str) -> Metric | None:
        ...

    async def list_all(self) -> list[Metric]:
        ...

    async def save(self, metric: Metric) -> None:
        ...

    async def update(self, uuid: str, changes: Mapping[str, Any]) -> Metric | None:
        ...


class KpiStore(Protocol):
    async def find_by_id(self, uuid: str) -> Kpi | None:
        ...

    async def list_all(self) -> list[Kpi]:
        ...

    async def find_by_metric(self, metric_uuid: str) -> list[Kpi]:
        ...

    async def save(self, kpi: Kpi) -> None:
        ...

    async def update(self, uuid: str, changes: Mapping[str, Any]) -> Kpi | None:
        ...


class DashboardStore(Protocol):
    async def find_by_id(self, uuid: str) -> Dashboard | None:
        ...

    async def list_all(self) -> list[Dashboard]:
        ...

    async def save(self, dashboard: Dashboard) -> None:
        ...

    async def update(self, uuid: str, changes: Mapping[str, Any]) -> Dashboard | None:
        ...

    async def delete(self, uuid: str) -> bool:
        ...


EntityT = TypeVar("EntityT", Metric, Kpi, Dashboard)


class _InMemoryStore(Generic[EntityT]):
    def __init__(self, entities: Iterable[EntityT] = ()) -> None:
        self._items: dict[str, EntityT] = {}
        self.lookups: list[str] = []
        for entity in entities:
            self._items[entity.uuid] = copy.deepcopy(entity)

    async def find_by_id(self, uuid: str) -> EntityT | None:
        self.lookups.append(uuid)
        entity = self._items.get(uuid)
        return copy.deepcopy(entity) if entity is not None else None

    async def list_all(self) -> list[EntityT]:
        return [copy.deepcopy(entity) for entity in self._items.values()]

    async def save(self, entity: EntityT) -> None:
        self._items[entity.uuid] = copy.deepcopy(entity)

    async def update(self, uuid: str, changes: Mapping[str, Any]) -> EntityT | None:
        existing = self._items.get(uuid)
        if existing is None:
            return None
        updated = replace(existing, **copy.deepcopy(dict(changes)))
        self._items[uuid] = updated
        return copy.deepcopy(updated)


class InMemoryMetricStore(_InMemoryStore[Metric]):
    """Metric store for tests and scripting."""


class InMemoryKpiStore(_InMemoryStore[Kpi]):
    """KPI store for tests and scripting."""

    async def find_by_metric(self, metric_uuid: str) -> list[Kpi]:
        return [copy.deepcopy(kpi) for kpi in self._items.values() if kpi.metric_uuid == metric_uuid]


class InMemoryDashboardStore(_InMemoryStore[Dashboard]):
    """Dashboard store for tests and scripting."""

    async def delete(self, uuid: str) -> bool:
        return self._items.pop(uuid, None) is not None


__all__ = [
    "DashboardStore",
    "InMemoryDashboardStore",
    "InMemoryKpiStore",
    "InMemoryMetricStore",
    "KpiStore",
    "MetricStore",
]
