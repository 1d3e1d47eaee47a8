"""SQLAlchemy-backed implementations of the metric, KPI and dashboard stores.

Nested documents (values, targets, tiles) live in JSON columns, so every
store call reads or writes exactly one row inside one session.
"""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import delete, select

from metricboard.db.database import Database
from metricboard.domain import (
    Dashboard,
    Kpi,
    KpiStatus,
    KpiTarget,
    KpiThresholds,
    Metric,
    MetricAggregation,
    MetricValue,
    MetricValueType,
    TileConfig,
    TileType,
    ValidationRules,
    ensure_utc,
)
from metricboard.models import DashboardRecord, KpiRecord, MetricRecord


# Serialisation helpers

def _dump_values(values: list[MetricValue]) -> list[dict[str, Any]]:
    return [{"value": item.value, "timestamp": item.timestamp.isoformat()} for item in values]


def _load_values(payload: list[dict[str, Any]] | None) -> list[MetricValue]:
    return [MetricValue(value=item["value"], timestamp=item["timestamp"]) for item in payload or []]


def _dump_rules(rules: ValidationRules | None) -> dict[str, Any] | None:
    if rules is None:
        return None
    return {
        "min": rules.min,
        "max": rules.max,
        "allow_negative": rules.allow_negative,
        "required_frequency": rules.required_frequency,
    }


def _load_rules(payload: dict[str, Any] | None) -> ValidationRules | None:
    return ValidationRules(**payload) if payload is not None else None


def _dump_targets(targets: list[KpiTarget]) -> list[dict[str, Any]]:
    return [
        {"value": target.value, "date": target.date.isoformat() if target.date else None, "label": target.label}
        for target in targets
    ]


def _load_targets(payload: list[dict[str, Any]] | None) -> list[KpiTarget]:
    return [KpiTarget(value=item["value"], date=item.get("date"), label=item.get("label")) for item in payload or []]


def _dump_thresholds(thresholds: KpiThresholds | None) -> dict[str, Any] | None:
    if thresholds is None:
        return None
    return {"warning": thresholds.warning, "critical": thresholds.critical}


def _load_thresholds(payload: dict[str, Any] | None) -> KpiThresholds | None:
    return KpiThresholds(**payload) if payload is not None else None


def _dump_tiles(tiles: list[TileConfig]) -> list[dict[str, Any]]:
    return [
        {
            "id": tile.id,
            "x": tile.x,
            "y": tile.y,
            "w": tile.w,
            "h": tile.h,
            "type": TileType(tile.type).value,
            "metric_uuids": list(tile.metric_uuids),
            "kpi_uuids": list(tile.kpi_uuids) if tile.kpi_uuids is not None else None,
            "config": tile.config,
        }
        for tile in tiles
    ]


def _load_tiles(payload: list[dict[str, Any]] | None) -> list[TileConfig]:
    return [
        TileConfig(
            id=item["id"],
            x=item["x"],
            y=item["y"],
            w=item["w"],
            h=item["h"],
            type=TileType(item["type"]),
            metric_uuids=list(item.get("metric_uuids") or []),
            kpi_uuids=item.get("kpi_uuids"),
            config=item.get("config"),
        )
        for item in payload or []
    ]


def _metric_from_record(record: MetricRecord) -> Metric:
    return Metric(
        uuid=record.uuid,
        name=record.name,
        description=record.description,
        value_type=MetricValueType(record.value_type),
        unit=record.unit,
        values=_load_values(record.values),
        aggregation=MetricAggregation(record.aggregation),
        tags=list(record.tags or []),
        validation_rules=_load_rules(record.validation_rules),
    )


def _kpi_from_record(record: KpiRecord) -> Kpi:
    return Kpi(
        uuid=record.uuid,
        name=record.name,
        description=record.description,
        metric_uuid=record.metric_uuid,
        targets=_load_targets(record.targets),
        status=KpiStatus(record.status),
        thresholds=_load_thresholds(record.thresholds),
        created_at=ensure_utc(record.created_at),
        updated_at=ensure_utc(record.updated_at),
    )


def _dashboard_from_record(record: DashboardRecord) -> Dashboard:
    return Dashboard(
        uuid=record.uuid,
        name=record.name,
        description=record.description,
        owner_uuid=record.owner_uuid,
        tiles=_load_tiles(record.tiles),
        created_at=ensure_utc(record.created_at),
        updated_at=ensure_utc(record.updated_at),
    )


_METRIC_COLUMNS = {
    "name": lambda value: value,
    "description": lambda value: value,
    "value_type": lambda value: MetricValueType(value).value,
    "unit": lambda value: value,
    "values": _dump_values,
    "aggregation": lambda value: MetricAggregation(value).value,
    "tags": list,
    "validation_rules": _dump_rules,
}

_KPI_COLUMNS = {
    "name": lambda value: value,
    "description": lambda value: value,
    "metric_uuid": lambda value: value,
    "targets": _dump_targets,
    "status": lambda value: KpiStatus(value).value,
    "thresholds": _dump_thresholds,
    "created_at": lambda value: value,
    "updated_at": lambda value: value,
}

_DASHBOARD_COLUMNS = {
    "name": lambda value: value,
    "description": lambda value: value,
    "owner_uuid": lambda value: value,
    "tiles": _dump_tiles,
    "created_at": lambda value: value,
    "updated_at": lambda value: value,
}


def _apply_changes(record: Any, changes: Mapping[str, Any], columns: Mapping[str, Any]) -> None:
    for key, value in changes.items():
        if key not in columns:
            raise ValueError(f"Unknown field for {type(record).__name__}: {key}")
        setattr(record, key, columns[key](value))


class SqlMetricStore:
    def __init__(self, database: Database) -> None:
        self._database = database

    async def find_by_id(self, uuid: str) -> Metric | None:
        async with self._database.session() as session:
            record = await session.get(MetricRecord, uuid)
            return _metric_from_record(record) if record is not None else None

    async def list_all(self) -> list[Metric]:
        async with self._database.session() as session:
            result = await session.execute(select(MetricRecord).order_by(MetricRecord.name))
            return [_metric_from_record(record) for record in result.scalars().all()]

    async def save(self, metric: Metric) -> None:
        async with self._database.session() as session:
            record = MetricRecord(uuid=metric.uuid)
            _apply_changes(
                record,
                {
                    "name": metric.name,
                    "description": metric.description,
                    "value_type": metric.value_type,
                    "unit": metric.unit,
                    "values": metric.values,
                    "aggregation": metric.aggregation,
                    "tags": metric.tags,
                    "validation_rules": metric.validation_rules,
                },
                _METRIC_COLUMNS,
            )
            session.add(record)
            await session.commit()

    async def update(self, uuid: str, changes: Mapping[str, Any]) -> Metric | None:
        async with self._database.session() as session:
            record = await session.get(MetricRecord, uuid)
            if record is None:
                return None
            _apply_changes(record, changes, _METRIC_COLUMNS)
            await session.commit()
            await session.refresh(record)
            return _metric_from_record(record)


class SqlKpiStore:
    def __init__(self, database: Database) -> None:
        self._database = database

    async def find_by_id(self, uuid: str) -> Kpi | None:
        async with self._database.session() as session:
            record = await session.get(KpiRecord, uuid)
            return _kpi_from_record(record) if record is not None else None

    async def list_all(self) -> list[Kpi]:
        async with self._database.session() as session:
            result = await session.execute(select(KpiRecord).order_by(KpiRecord.created_at))
            return [_kpi_from_record(record) for record in result.scalars().all()]

    async def find_by_metric(self, metric_uuid: str) -> list[Kpi]:
        async with self._database.session() as session:
            result = await session.execute(
                select(KpiRecord).where(KpiRecord.metric_uuid == metric_uuid).order_by(KpiRecord.created_at)
            )
            return [_kpi_from_record(record) for record in result.scalars().all()]

    async def save(self, kpi: Kpi) -> None:
        async with self._database.session() as session:
            record = KpiRecord(uuid=kpi.uuid)
            _apply_changes(
                record,
                {
                    "name": kpi.name,
                    "description": kpi.description,
                    "metric_uuid": kpi.metric_uuid,
                    "targets": kpi.targets,
                    "status": kpi.status,
                    "thresholds": kpi.thresholds,
                    "created_at": kpi.created_at,
                    "updated_at": kpi.updated_at,
                },
                _KPI_COLUMNS,
            )
            session.add(record)
            await session.commit()

    async def update(self, uuid: str, changes: Mapping[str, Any]) -> Kpi | None:
        async with self._database.session() as session:
            record = await session.get(KpiRecord, uuid)
            if record is None:
                return None
            _apply_changes(record, changes, _KPI_COLUMNS)
            await session.commit()
            await session.refresh(record)
            return _kpi_from_record(record)


class SqlDashboardStore:
    def __init__(self, database: Database) -> None:
        self._database = database

    async def find_by_id(self, uuid: str) -> Dashboard | None:
        async with self._database.session() as session:
            record = await session.get(DashboardRecord, uuid)
            return _dashboard_from_record(record) if record is not None else None

    async def list_all(self) -> list[Dashboard]:
        async with self._database.session() as session:
            result = await session.execute(select(DashboardRecord).order_by(DashboardRecord.created_at))
            return [_dashboard_from_record(record) for record in result.scalars().all()]

    async def save(self, dashboard: Dashboard) -> None:
        async with self._database.session() as session:
            record = DashboardRecord(uuid=dashboard.uuid)
            _apply_changes(
                record,
                {
                    "name": dashboard.name,
                    "description": dashboard.description,
                    "owner_uuid": dashboard.owner_uuid,
                    "tiles": dashboard.tiles,
                    "created_at": dashboard.created_at,
                    "updated_at": dashboard.updated_at,
                },
                _DASHBOARD_COLUMNS,
            )
            session.add(record)
            await session.commit()

    async def update(self, uuid: str, changes: Mapping[str, Any]) -> Dashboard | None:
        async with self._database.session() as session:
            record = await session.get(DashboardRecord, uuid)
            if record is None:
                return None
            _apply_changes(record, changes, _DASHBOARD_COLUMNS)
            await session.commit()
            await session.refresh(record)
            return _dashboard_from_record(record)

    async def delete(self, uuid: str) -> bool:
        async with self._database.session() as session:
            result = await session.execute(delete(DashboardRecord).where(DashboardRecord.uuid == uuid))
            await session.commit()
            return bool(result.rowcount)


__all__ = ["SqlDashboardStore", "SqlKpiStore", "SqlMetricStore"]
