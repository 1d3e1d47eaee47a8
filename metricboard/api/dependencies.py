"""Request dependencies: bearer-token identity and role checks."""

from __future__ import annotations

from typing import AsyncIterator, Awaitable, Callable

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from metricboard.db.database import Database
from metricboard.domain import Identity, UserRole, ensure_utc, utcnow
from metricboard.models import AuthToken, User

IdentityDependency = Callable[..., Awaitable[Identity]]


def _bearer_token(authorization: str | None) -> str:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    return authorization.split(" ", 1)[1].strip()


async def resolve_identity(session: AsyncSession, token_value: str) -> Identity:
    stmt: Select = select(AuthToken).where(AuthToken.token == token_value, AuthToken.is_active.is_(True))
    auth_token = (await session.execute(stmt)).scalar_one_or_none()
    if auth_token is None or ensure_utc(auth_token.expires_at) <= utcnow():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    user = await session.get(User, auth_token.user_uuid)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return Identity(user_uuid=user.uuid, role=UserRole(user.role))


def get_identity_dependency(database: Database) -> IdentityDependency:
    """Build the ``get_current_identity`` dependency bound to ``database``."""

    async def _get_session() -> AsyncIterator[AsyncSession]:
        async for session in database.get_session():
            yield session

    async def get_current_identity(
        authorization: str | None = Header(default=None),
        session: AsyncSession = Depends(_get_session),
    ) -> Identity:
        return await resolve_identity(session, _bearer_token(authorization))

    return get_current_identity


def get_admin_dependency(current_identity: IdentityDependency) -> IdentityDependency:
    async def require_admin(identity: Identity = Depends(current_identity)) -> Identity:
        if not identity.is_admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
        return identity

    return require_admin


__all__ = ["get_admin_dependency", "get_identity_dependency", "resolve_identity"]
