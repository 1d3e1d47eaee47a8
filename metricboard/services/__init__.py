"""Service layer exports."""

from .dashboards import DashboardComposer, can_modify, extract_kpi_uuids, extract_metric_uuids
from .kpi_evaluator import evaluate_status, resolve_current_target, validate_targets
from .kpis import KpiService
from .metrics import MetricService
from .tile_validation import tiles_overlap, validate_tiles

__all__ = [
    "DashboardComposer",
    "KpiService",
    "MetricService",
    "can_modify",
    "evaluate_status",
    "extract_kpi_uuids",
    "extract_metric_uuids",
    "resolve_current_target",
    "tiles_overlap",
    "validate_targets",
    "validate_tiles",
]
