"""Load a JSON seed file (users, metrics, KPIs, dashboards) into the database."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from sqlalchemy import select

from metricboard.config import get_settings
from metricboard.core.logging import setup_logging
from metricboard.db.database import Database
from metricboard.db.stores import SqlDashboardStore, SqlKpiStore, SqlMetricStore
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
    UserRole,
    ValidationRules,
    utcnow,
)
from metricboard.errors import UnknownMetricReference
from metricboard.models import User
from metricboard.security import hash_password
from metricboard.services.kpi_evaluator import validate_targets
from metricboard.services.metric_rules import validate_metric_values
from metricboard.services.tile_validation import validate_tiles

logger = logging.getLogger("metricboard.seed")

DEFAULT_SEED_FILE = Path(__file__).with_name("demo_seed.json")


def _metric(item: dict[str, Any]) -> Metric:
    rules = item.get("validation_rules")
    return Metric(
        uuid=item["uuid"],
        name=item["name"],
        description=item.get("description", ""),
        value_type=MetricValueType(item["value_type"]),
        unit=item.get("unit", ""),
        values=[MetricValue(value=v["value"], timestamp=v["timestamp"]) for v in item.get("values", [])],
        aggregation=MetricAggregation(item.get("aggregation", MetricAggregation.LATEST.value)),
        tags=list(item.get("tags", [])),
        validation_rules=ValidationRules(**rules) if rules is not None else None,
    )


def _kpi(item: dict[str, Any]) -> Kpi:
    thresholds = item.get("thresholds")
    now = utcnow()
    return Kpi(
        uuid=item["uuid"],
        name=item["name"],
        description=item.get("description", ""),
        metric_uuid=item["metric_uuid"],
        targets=[KpiTarget(value=t["value"], date=t.get("date"), label=t.get("label")) for t in item["targets"]],
        status=KpiStatus(item.get("status", KpiStatus.ON_TRACK.value)),
        thresholds=KpiThresholds(**thresholds) if thresholds is not None else None,
        created_at=now,
        updated_at=now,
    )


def _tiles(item: dict[str, Any]) -> list[TileConfig]:
    return [
        TileConfig(
            id=tile["id"],
            x=tile["x"],
            y=tile["y"],
            w=tile["w"],
            h=tile["h"],
            type=TileType(tile["type"]),
            metric_uuids=list(tile.get("metric_uuids", [])),
            kpi_uuids=tile.get("kpi_uuids"),
            config=tile.get("config"),
        )
        for tile in item["tiles"]
    ]


def _dashboard(item: dict[str, Any], owner_uuid: str, tiles: list[TileConfig]) -> Dashboard:
    now = utcnow()
    return Dashboard(
        uuid=item["uuid"],
        name=item["name"],
        description=item.get("description", ""),
        owner_uuid=owner_uuid,
        tiles=tiles,
        created_at=now,
        updated_at=now,
    )


async def _seed_users(database: Database, users: list[dict[str, Any]]) -> dict[str, str]:
    """Create users that do not exist yet; return a map of email to user uuid."""

    owners: dict[str, str] = {}
    async with database.session() as session:
        for item in users:
            email = item["email"].strip().lower()
            existing = (await session.execute(select(User).where(User.email == email))).scalar_one_or_none()
            if existing is None:
                existing = User(
                    name=item.get("name"),
                    email=email,
                    role=UserRole(item.get("role", UserRole.VIEWER.value)).value,
                    password_hash=hash_password(item["password"]),
                )
                session.add(existing)
                await session.flush()
            owners[email] = existing.uuid
        await session.commit()
    return owners


async def seed(database: Database, payload: dict[str, Any], *, reset: bool = False) -> dict[str, int]:
    """Validate the whole payload, then write it. Nothing is written if any entity is rejected."""

    metrics = [_metric(item) for item in payload.get("metrics", [])]
    kpis = [_kpi(item) for item in payload.get("kpis", [])]
    layouts = [(item, _tiles(item)) for item in payload.get("dashboards", [])]
    for metric in metrics:
        validate_metric_values(metric.value_type, metric.values, metric.validation_rules)
    for kpi in kpis:
        validate_targets(kpi.targets)
    for _, tiles in layouts:
        validate_tiles(tiles)

    await database.create_all()
    metric_store, kpi_store, dashboard_store = SqlMetricStore(database), SqlKpiStore(database), SqlDashboardStore(database)

    seeded_metrics = {metric.uuid for metric in metrics}
    for kpi in kpis:
        if kpi.metric_uuid in seeded_metrics:
            continue
        if reset or await metric_store.find_by_id(kpi.metric_uuid) is None:
            raise UnknownMetricReference(kpi.metric_uuid)

    if reset:
        await database.drop_all()
        await database.create_all()

    owners = await _seed_users(database, payload.get("users", []))
    dashboards = [
        _dashboard(item, owners.get(item["owner"].strip().lower(), item["owner"]), tiles) for item, tiles in layouts
    ]

    for metric in metrics:
        if await metric_store.find_by_id(metric.uuid) is None:
            await metric_store.save(metric)
    for kpi in kpis:
        if await kpi_store.find_by_id(kpi.uuid) is None:
            await kpi_store.save(kpi)
    for dashboard in dashboards:
        if await dashboard_store.find_by_id(dashboard.uuid) is None:
            await dashboard_store.save(dashboard)

    counts = {
        "users": len(owners),
        "metrics": len(metrics),
        "kpis": len(kpis),
        "dashboards": len(dashboards),
    }
    logger.info("Seeded %s", ", ".join(f"{count} {name}" for name, count in counts.items()))
    return counts


def main() -> None:
    parser = argparse.ArgumentParser(description="Load seed data into the metricboard database")
    parser.add_argument("seed_file", nargs="?", default=str(DEFAULT_SEED_FILE))
    parser.add_argument("--database-url", default=None, help="Override the configured database URL")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables before seeding")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.log_level)
    seed_path = Path(args.seed_file)
    if not seed_path.exists():
        raise SystemExit(f"Seed file not found: {seed_path}")
    payload = json.loads(seed_path.read_text())

    database = Database(args.database_url or settings.database_url)

    async def _run() -> None:
        try:
            await seed(database, payload, reset=args.reset)
        finally:
            await database.dispose()

    asyncio.run(_run())


if __name__ == "__main__":
    main()
