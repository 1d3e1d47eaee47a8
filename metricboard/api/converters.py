"""Translation between pydantic payloads and domain dataclasses."""

from __future__ import annotations

from typing import Any

from metricboard.domain import (
    Dashboard,
    Kpi,
    KpiTarget,
    KpiThresholds,
    Metric,
    MetricValue,
    TileConfig,
    ValidationRules,
)
from metricboard.schemas import (
    DashboardSchema,
    KpiSchema,
    KpiTargetSchema,
    KpiThresholdsSchema,
    MetricSchema,
    MetricValueSchema,
    TileConfigSchema,
    ValidationRulesSchema,
)


def to_metric_values(values: list[MetricValueSchema]) -> list[MetricValue]:
    return [MetricValue(value=item.value, timestamp=item.timestamp) for item in values]


def to_validation_rules(rules: ValidationRulesSchema | None) -> ValidationRules | None:
    return ValidationRules(**rules.model_dump()) if rules is not None else None


def to_targets(targets: list[KpiTargetSchema]) -> list[KpiTarget]:
    return [KpiTarget(value=item.value, date=item.date, label=item.label) for item in targets]


def to_thresholds(thresholds: KpiThresholdsSchema | None) -> KpiThresholds | None:
    return KpiThresholds(**thresholds.model_dump()) if thresholds is not None else None


def to_tiles(tiles: list[TileConfigSchema]) -> list[TileConfig]:
    return [TileConfig(**tile.model_dump()) for tile in tiles]


_CONVERTERS = {
    "values": to_metric_values,
    "validation_rules": to_validation_rules,
    "targets": to_targets,
    "thresholds": to_thresholds,
    "tiles": to_tiles,
}


_CLEARABLE = frozenset({"validation_rules", "thresholds"})


def to_changes(payload: Any) -> dict[str, Any]:
    """Turn a partial-update payload into domain field changes.

    Only fields the client sent are kept. An explicit null clears the optional
    ``validation_rules`` and ``thresholds`` fields and is ignored elsewhere.
    """

    changes: dict[str, Any] = {}
    for name in payload.model_fields_set:
        value = getattr(payload, name)
        if value is None and name not in _CLEARABLE:
            continue
        converter = _CONVERTERS.get(name)
        changes[name] = converter(value) if converter else value
    return changes


def metric_out(metric: Metric) -> MetricSchema:
    return MetricSchema(
        uuid=metric.uuid,
        name=metric.name,
        description=metric.description,
        value_type=metric.value_type,
        unit=metric.unit,
        values=[MetricValueSchema(value=item.value, timestamp=item.timestamp) for item in metric.values],
        aggregation=metric.aggregation,
        tags=metric.tags,
        validation_rules=(
            ValidationRulesSchema(
                min=metric.validation_rules.min,
                max=metric.validation_rules.max,
                allow_negative=metric.validation_rules.allow_negative,
                required_frequency=metric.validation_rules.required_frequency,
            )
            if metric.validation_rules is not None
            else None
        ),
    )


def targets_out(targets: list[KpiTarget]) -> list[KpiTargetSchema]:
    return [KpiTargetSchema(value=item.value, date=item.date, label=item.label) for item in targets]


def thresholds_out(thresholds: KpiThresholds | None) -> KpiThresholdsSchema | None:
    if thresholds is None:
        return None
    return KpiThresholdsSchema(warning=thresholds.warning, critical=thresholds.critical)


def kpi_out(kpi: Kpi) -> KpiSchema:
    return KpiSchema(
        uuid=kpi.uuid,
        name=kpi.name,
        description=kpi.description,
        metric_uuid=kpi.metric_uuid,
        targets=targets_out(kpi.targets),
        status=kpi.status,
        thresholds=thresholds_out(kpi.thresholds),
        created_at=kpi.created_at,
        updated_at=kpi.updated_at,
    )


def tiles_out(tiles: list[TileConfig]) -> list[TileConfigSchema]:
    return [
        TileConfigSchema(
            id=tile.id,
            x=tile.x,
            y=tile.y,
            w=tile.w,
            h=tile.h,
            type=tile.type,
            metric_uuids=tile.metric_uuids,
            kpi_uuids=tile.kpi_uuids,
            config=tile.config,
        )
        for tile in tiles
    ]


def dashboard_out(dashboard: Dashboard) -> DashboardSchema:
    return DashboardSchema(
        uuid=dashboard.uuid,
        name=dashboard.name,
        description=dashboard.description,
        owner_uuid=dashboard.owner_uuid,
        tiles=tiles_out(dashboard.tiles),
        created_at=dashboard.created_at,
        updated_at=dashboard.updated_at,
    )


__all__ = [
    "dashboard_out",
    "kpi_out",
    "metric_out",
    "targets_out",
    "thresholds_out",
    "tiles_out",
    "to_changes",
    "to_metric_values",
    "to_targets",
    "to_thresholds",
    "to_tiles",
    "to_validation_rules",
]
