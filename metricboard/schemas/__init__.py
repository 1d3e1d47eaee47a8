"""Pydantic schema exports."""

from .auth import (
    AdminCreateUserRequest,
    AdminUpdateUserRequest,
    AuthResponse,
    HealthResponse,
    LoginRequest,
    RegisterRequest,
    UserOut,
)
from .dashboard import (
    DashboardCreateRequest,
    DashboardDataResponse,
    DashboardListItemSchema,
    DashboardSchema,
    DashboardUpdateRequest,
    TileConfigSchema,
)
from .kpi import (
    KpiCreateRequest,
    KpiEvaluationSchema,
    KpiListItemSchema,
    KpiSchema,
    KpiTargetSchema,
    KpiThresholdsSchema,
    KpiUpdateRequest,
)
from .metric import (
    MetricCreateRequest,
    MetricSchema,
    MetricUpdateRequest,
    MetricValueSchema,
    ValidationRulesSchema,
)

__all__ = [
    "AdminCreateUserRequest",
    "AdminUpdateUserRequest",
    "AuthResponse",
    "HealthResponse",
    "LoginRequest",
    "RegisterRequest",
    "UserOut",
    "DashboardCreateRequest",
    "DashboardDataResponse",
    "DashboardListItemSchema",
    "DashboardSchema",
    "DashboardUpdateRequest",
    "TileConfigSchema",
    "KpiCreateRequest",
    "KpiEvaluationSchema",
    "KpiListItemSchema",
    "KpiSchema",
    "KpiTargetSchema",
    "KpiThresholdsSchema",
    "KpiUpdateRequest",
    "MetricCreateRequest",
    "MetricSchema",
    "MetricUpdateRequest",
    "MetricValueSchema",
    "ValidationRulesSchema",
]
