"""Metric model."""

from __future__ import annotations

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from metricboard.db.base import Base


class MetricRecord(Base):
    __tablename__ = "metrics"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    description: Mapped[str] = mapped_column(Text, default="")
    value_type: Mapped[str] = mapped_column(String(32))
    unit: Mapped[str] = mapped_column(String(64), default="")
    aggregation: Mapped[str] = mapped_column(String(16))
    values: Mapped[list] = mapped_column(JSON, default=list)
    tags: Mapped[list] = mapped_column(JSON, default=list)
    validation_rules: Mapped[dict | None] = mapped_column(JSON, nullable=True)


__all__ = ["MetricRecord"]
