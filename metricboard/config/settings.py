"""Application configuration and environment helpers."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./.data/metricboard.db"
DEFAULT_DUPLICATE_PREFIX = "Copy of"


class AppSettings(BaseSettings):
    """Configuration options for the metricboard service."""

    model_config = SettingsConfigDict(env_prefix="METRICBOARD_", env_file=".env", env_file_encoding="utf-8")

    app_name: str = Field(default="Metricboard KPI Tracker")
    database_url: str = Field(
        default=DEFAULT_DATABASE_URL,
        description="SQLAlchemy async database URL.",
    )
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    token_lifetime_days: int = Field(default=7, ge=1)
    duplicate_name_prefix: str = Field(default=DEFAULT_DUPLICATE_PREFIX)
    log_level: str = Field(default="INFO")

    telemetry_enabled: bool = Field(default=False)
    telemetry_service_name: str = Field(default="metricboard")
    telemetry_otlp_endpoint: str | None = Field(default=None)
    telemetry_otlp_insecure: bool = Field(default=True)
    telemetry_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)

    def dict_for_logging(self) -> dict[str, Any]:
        """Return a sanitized dict for logging purposes."""

        payload = self.model_dump()
        payload["database_url"] = make_url(self.database_url).render_as_string(hide_password=True)
        return payload


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> AppSettings:
    """Return cached application settings with optional overrides."""

    if overrides:
        return AppSettings(**overrides)
    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_DATABASE_URL",
    "DEFAULT_DUPLICATE_PREFIX",
    "get_settings",
]
