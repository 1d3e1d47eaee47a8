"""Database model exports."""

from .dashboard import DashboardRecord
from .kpi import KpiRecord
from .metric import MetricRecord
from .user import AuthToken, User

__all__ = [
    "AuthToken",
    "DashboardRecord",
    "KpiRecord",
    "MetricRecord",
    "User",
]
