"""Plain domain types shared by the tracker services.

These dataclasses carry no persistence or HTTP concerns; stores translate
them to and from their storage format and routers translate them to pydantic
schemas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any


def ensure_utc(value: datetime | date | str) -> datetime:
    """Coerce an ISO string, date or naive datetime into an aware UTC datetime."""

    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    ADMIN = "admin"
    VIEWER = "viewer"


class MetricValueType(str, Enum):
    INTEGER = "integer"
    DECIMAL = "decimal"
    PERCENTAGE = "percentage"
    CURRENCY = "currency"
    DURATION = "duration"


class MetricAggregation(str, Enum):
    SUM = "sum"
    LATEST = "latest"
    AVERAGE = "average"
    MEDIAN = "median"
    MIN = "min"
    MAX = "max"


class KpiStatus(str, Enum):
    ON_TRACK = "on-track"
    WARNING = "warning"
    CRITICAL = "critical"
    ARCHIVED = "archived"


class TileType(str, Enum):
    SINGLE_METRIC = "single-metric"
    MULTI_METRIC = "multi-metric"
    KPI_TRACKER = "kpi-tracker"
    METRIC_WITH_KPI = "metric-with-kpi"
    CHART = "chart"


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as supplied by the HTTP layer."""

    user_uuid: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass
class MetricValue:
    value: float
    timestamp: datetime

    def __post_init__(self) -> None:
        self.timestamp = ensure_utc(self.timestamp)


@dataclass
class ValidationRules:
    min: float | None = None
    max: float | None = None
    allow_negative: bool = True
    required_frequency: str | None = None


@dataclass
class Metric:
    uuid: str
    name: str
    description: str
    value_type: MetricValueType
    unit: str
    values: list[MetricValue] = field(default_factory=list)
    aggregation: MetricAggregation = MetricAggregation.LATEST
    tags: list[str] = field(default_factory=list)
    validation_rules: ValidationRules | None = None


@dataclass
class KpiTarget:
    value: float
    date: datetime | None = None
    label: str | None = None

    def __post_init__(self) -> None:
        if self.date is not None:
            self.date = ensure_utc(self.date)


@dataclass
class KpiThresholds:
    warning: float | None = None
    critical: float | None = None


@dataclass
class Kpi:
    uuid: str
    name: str
    description: str
    metric_uuid: str
    targets: list[KpiTarget]
    status: KpiStatus = KpiStatus.ON_TRACK
    thresholds: KpiThresholds | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class TileConfig:
    """Grid-positioned visualization unit.

    ``config`` is an untyped key/value map handed through to the front-end;
    nothing in the service inspects its contents.
    """

    id: str
    x: int
    y: int
    w: int
    h: int
    type: TileType
    metric_uuids: list[str]
    kpi_uuids: list[str] | None = None
    config: dict[str, Any] | None = None


@dataclass
class Dashboard:
    uuid: str
    name: str
    description: str
    owner_uuid: str
    tiles: list[TileConfig]
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


__all__ = [
    "Dashboard",
    "Identity",
    "Kpi",
    "KpiStatus",
    "KpiTarget",
    "KpiThresholds",
    "Metric",
    "MetricAggregation",
    "MetricValue",
    "MetricValueType",
    "TileConfig",
    "TileType",
    "UserRole",
    "ValidationRules",
    "ensure_utc",
    "utcnow",
]
