"""Admin-only user management routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from metricboard.api.dependencies import IdentityDependency
from metricboard.api.routes.auth import to_user_out
from metricboard.db.database import Database
from metricboard.domain import Identity
from metricboard.models import User
from metricboard.schemas import AdminCreateUserRequest, AdminUpdateUserRequest, UserOut
from metricboard.security import hash_password


def get_users_router(database: Database, require_admin: IdentityDependency) -> APIRouter:
    router = APIRouter(prefix="/users", tags=["users"])

    @router.get("", response_model=list[UserOut])
    async def list_users(
        _: Identity = Depends(require_admin),
        session: AsyncSession = Depends(database.get_session),
    ) -> list[UserOut]:
        result = await session.execute(select(User).order_by(User.created_at))
        return [to_user_out(user) for user in result.scalars().all()]

    @router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
    async def create_user(
        payload: AdminCreateUserRequest,
        _: Identity = Depends(require_admin),
        session: AsyncSession = Depends(database.get_session),
    ) -> UserOut:
        normalized_email = payload.email.strip().lower()
        existing = await session.execute(select(User).where(User.email == normalized_email))
        if existing.scalar_one_or_none() is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email is already registered")

        user = User(
            name=payload.name.strip() if payload.name else None,
            email=normalized_email,
            password_hash=hash_password(payload.password),
            role=payload.role.value,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return to_user_out(user)

    @router.patch("/{user_uuid}", response_model=UserOut)
    async def update_user(
        user_uuid: str,
        payload: AdminUpdateUserRequest,
        _: Identity = Depends(require_admin),
        session: AsyncSession = Depends(database.get_session),
    ) -> UserOut:
        user = await session.get(User, user_uuid)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        if payload.name is not None:
            user.name = payload.name.strip()
        if payload.role is not None:
            user.role = payload.role.value
        if payload.password is not None:
            user.password_hash = hash_password(payload.password)

        await session.commit()
        await session.refresh(user)
        return to_user_out(user)

    @router.delete("/{user_uuid}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_user(
        user_uuid: str,
        _: Identity = Depends(require_admin),
        session: AsyncSession = Depends(database.get_session),
    ) -> None:
        user = await session.get(User, user_uuid)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        await session.delete(user)
        await session.commit()

    return router


__all__ = ["get_users_router"]
