"""User accounts and bearer tokens."""

from __future__ import annotations

from datetime import datetime, timedelta
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from metricboard.db.base import Base
from metricboard.domain import UserRole, utcnow


def _uuid_pk() -> str:
    return str(uuid4())


class User(Base):
    __tablename__ = "users"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_pk)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    role: Mapped[str] = mapped_column(String(32), default=UserRole.VIEWER.value)
    password_hash: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    tokens: Mapped[list["AuthToken"]] = relationship(
        "AuthToken", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )


class AuthToken(Base):
    __tablename__ = "auth_tokens"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_pk)
    user_uuid: Mapped[str] = mapped_column(String(36), ForeignKey("users.uuid", ondelete="CASCADE"), index=True)
    token: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    user: Mapped[User] = relationship("User", back_populates="tokens")

    @classmethod
    def for_user(cls, user_uuid: str, lifetime: timedelta) -> "AuthToken":
        now = utcnow()
        return cls(user_uuid=user_uuid, token=str(uuid4()), created_at=now, expires_at=now + lifetime, is_active=True)


__all__ = ["AuthToken", "User"]
